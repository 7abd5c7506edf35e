"""Shared fixtures for all tests."""
import os

# Must be set before taraq.config is imported anywhere.
os.environ["TARAQ_ROLL_SETTLE_SECONDS"] = "0"
os.environ.pop("TARAQ_GEMINI_API_KEY", None)

import socket
import subprocess
import sys
import time

import pytest
from fastapi.testclient import TestClient

from taraq.main import app


@pytest.fixture
def client():
    """TestClient running the app on a single event loop for the whole test.

    REST calls and WebSocket sessions opened through it share that loop, so
    broadcasts triggered by a REST call reach open WebSockets.
    """
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Live-server fixture (used by the simulation suite)
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def live_server():
    """Start a real uvicorn process on port 18000; yield; stop it.

    Port 18000 avoids clashing with a dev server on 8000.
    Session-scoped so the server starts once for the entire test session.
    """
    port = 18000
    env = dict(os.environ, TARAQ_ROLL_SETTLE_SECONDS="0")
    proc = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn", "taraq.main:app",
            "--host", "127.0.0.1",
            "--port", str(port),
            "--log-level", "warning",
        ],
        env=env,
    )
    # Poll until port is accepting connections (up to 6 s)
    deadline = time.time() + 6
    while time.time() < deadline:
        try:
            s = socket.create_connection(("127.0.0.1", port), timeout=0.5)
            s.close()
            break
        except OSError:
            time.sleep(0.2)
    else:
        proc.terminate()
        raise RuntimeError("uvicorn did not start in time on port 18000")

    yield proc

    proc.terminate()
    proc.wait()
