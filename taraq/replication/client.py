"""
WebSocket transport for a peer.

Connects a PeerSession to a host at ``{base_url}/ws/{game_id}/{peer_id}``
and feeds it every frame the host sends. Connection problems surface as
PeerConnectionError carrying a message fit to show the user.
"""
from __future__ import annotations
import asyncio
import json
import logging
from typing import Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidStatus, InvalidURI

from taraq.game.game_state import GameState
from taraq.managers.connection_manager import CLOSE_GAME_NOT_FOUND, CLOSE_ID_IN_USE, CLOSE_KICKED
from taraq.replication.peer import PeerSession

logger = logging.getLogger(__name__)


class PeerConnectionError(Exception):
    """Connectivity failure, with a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


_CLOSE_MESSAGES = {
    CLOSE_GAME_NOT_FOUND: "Game not found. Check the game code.",
    CLOSE_ID_IN_USE: "That player id is already taken.",
    CLOSE_KICKED: "You were removed from the game by the host.",
}


def describe_close(code: Optional[int]) -> str:
    return _CLOSE_MESSAGES.get(code, "Connection to the host was lost.")


def describe_connection_error(exc: BaseException) -> str:
    """Turn a transport exception into a message for the player."""
    if isinstance(exc, ConnectionClosed):
        return describe_close(exc.rcvd.code if exc.rcvd else None)
    if isinstance(exc, InvalidURI):
        return "Invalid host address."
    if isinstance(exc, InvalidStatus):
        status = exc.response.status_code
        if status == 404:
            return "Game not found. Check the game code."
        return f"The host refused the connection (HTTP {status})."
    if isinstance(exc, (OSError, asyncio.TimeoutError)):
        return "Could not reach the host. Check the address and try again."
    return f"Unexpected connection error: {exc}"


class PeerClient:
    def __init__(
        self,
        base_url: str,
        game_id: str,
        peer_id: str,
        name: str,
        avatar_url: Optional[str] = None,
        on_state: Optional[Callable[[GameState], None]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.game_id = game_id
        self.session = PeerSession(peer_id, name, self._send, avatar_url=avatar_url, on_state=on_state)
        self._ws: Optional[ClientConnection] = None
        self.last_error: Optional[str] = None

    @property
    def url(self) -> str:
        return f"{self.base_url}/ws/{self.game_id}/{self.session.peer_id}"

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self, timeout: float = 10.0) -> None:
        """Open the connection, JOIN, and wait for the first snapshot.

        On failure nothing is retained: no socket, no replica.
        """
        try:
            self._ws = await asyncio.wait_for(connect(self.url), timeout)
            await self.session.join()
            raw = await asyncio.wait_for(self._ws.recv(), timeout)
            self.session.receive(json.loads(raw))
        except PeerConnectionError as e:
            # host closed while the JOIN was being sent
            await self._abandon(e.message)
            raise
        except (ConnectionClosed, InvalidURI, InvalidStatus, OSError, asyncio.TimeoutError) as e:
            await self._abandon(describe_connection_error(e))
            raise PeerConnectionError(self.last_error) from e
        logger.info(f"Joined game {self.game_id} as {self.session.peer_id}")

    async def _abandon(self, error: str) -> None:
        await self.close()
        self.session.drop()
        self.last_error = error
        logger.warning(f"Could not join {self.url}: {error}")

    async def listen(self) -> None:
        """Feed host frames to the session until the connection ends."""
        ws = self._ws
        if ws is None:
            raise PeerConnectionError("Not connected to a host.")
        try:
            async for raw in ws:
                self.session.receive(json.loads(raw))
        except ConnectionClosed as e:
            self.last_error = describe_connection_error(e)
        else:
            if not self.session.kicked:
                self.last_error = describe_close(ws.close_code)
        finally:
            self._ws = None
            self.session.drop()
        logger.info(f"Left game {self.game_id}: {self.last_error}")

    async def recv_one(self, timeout: float = 10.0) -> None:
        """Process exactly one frame from the host."""
        if self._ws is None:
            raise PeerConnectionError("Not connected to a host.")
        raw = await asyncio.wait_for(self._ws.recv(), timeout)
        self.session.receive(json.loads(raw))

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()

    async def _send(self, message: dict) -> None:
        if self._ws is None:
            raise PeerConnectionError("Not connected to a host.")
        try:
            await self._ws.send(json.dumps(message))
        except ConnectionClosed as e:
            raise PeerConnectionError(describe_connection_error(e)) from e
