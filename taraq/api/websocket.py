"""WebSocket endpoint peers connect to."""
from __future__ import annotations
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from taraq.game.player import HOST_PLAYER_ID
from taraq.managers.connection_manager import CLOSE_GAME_NOT_FOUND, CLOSE_ID_IN_USE, connection_manager
from taraq.managers.game_manager import game_manager
from taraq.replication.host import HostProtocol

logger = logging.getLogger(__name__)
ws_router = APIRouter()


@ws_router.websocket("/ws/{game_id}/{peer_id}")
async def websocket_endpoint(websocket: WebSocket, game_id: str, peer_id: str):
    game = game_manager.get_game(game_id)
    if not game:
        # Accept first so the peer sees the close code rather than a bare 403.
        await websocket.accept()
        await websocket.close(code=CLOSE_GAME_NOT_FOUND, reason="Game not found")
        return
    if peer_id == HOST_PLAYER_ID:
        await websocket.accept()
        await websocket.close(code=CLOSE_ID_IN_USE, reason="Peer id already in use")
        return

    if not await connection_manager.connect(game_id, peer_id, websocket):
        return
    protocol = HostProtocol(game)

    # Send current game state immediately on connect
    await connection_manager.send_personal(game_id, peer_id, "SYNC_STATE", game.get_state())

    try:
        while True:
            data = await websocket.receive_json()
            await protocol.handle(peer_id, data)
    except WebSocketDisconnect:
        logger.info(f"Peer {peer_id} disconnected from game {game_id}")
    except Exception as e:
        logger.error(f"WebSocket error for {peer_id} in {game_id}: {e}")
    finally:
        connection_manager.disconnect(game_id, peer_id, websocket)
        if game_manager.get_game(game_id) is game:
            await protocol.handle_disconnect(peer_id)
