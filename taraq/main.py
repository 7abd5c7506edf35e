"""FastAPI application factory."""
from __future__ import annotations
import logging

from fastapi import FastAPI

from taraq.api.routes import router
from taraq.api.websocket import ws_router
from taraq.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Taraq",
        description="Host-authoritative dice elimination game",
        version="1.0.0",
    )

    # Routers
    app.include_router(router)
    app.include_router(ws_router)

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
