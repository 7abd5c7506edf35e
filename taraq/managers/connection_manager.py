"""
WebSocket connection registry — the broadcast set of each game.

Maintains a mapping: game_id → peer_id → WebSocket.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# Close codes sent to a peer before any game traffic.
CLOSE_GAME_NOT_FOUND = 4004
CLOSE_ID_IN_USE = 4009
CLOSE_KICKED = 4010


class ConnectionManager:
    def __init__(self) -> None:
        # game_id → { peer_id → WebSocket }
        self._connections: Dict[str, Dict[str, WebSocket]] = {}

    async def connect(self, game_id: str, peer_id: str, websocket: WebSocket) -> bool:
        """Accept and register. Returns False (and closes) if peer_id is taken."""
        await websocket.accept()
        if peer_id in self._connections.get(game_id, {}):
            await websocket.close(code=CLOSE_ID_IN_USE, reason="Peer id already in use")
            logger.info(f"Rejected duplicate peer {peer_id} in game {game_id}")
            return False
        self._connections.setdefault(game_id, {})[peer_id] = websocket
        logger.info(f"Connected: {peer_id} in game {game_id}")
        return True

    def disconnect(self, game_id: str, peer_id: str, websocket: Optional[WebSocket] = None) -> None:
        """Drop peer_id from the broadcast set.

        If websocket is given, only that exact connection is dropped.
        """
        conns = self._connections.get(game_id)
        if conns is None:
            return
        if websocket is not None and conns.get(peer_id) is not websocket:
            return
        conns.pop(peer_id, None)
        if not conns:
            del self._connections[game_id]
        logger.info(f"Disconnected: {peer_id} from game {game_id}")

    async def send_personal(
        self,
        game_id: str,
        peer_id: str,
        event_type: str,
        payload: dict,
    ) -> None:
        """Send a message to a specific peer."""
        ws = self._connections.get(game_id, {}).get(peer_id)
        if ws:
            await self._safe_send(ws, game_id, peer_id, event_type, payload)

    async def broadcast_personalized(
        self,
        game_id: str,
        event_type: str,
        payload_factory: Callable[[str], Optional[dict]],
    ) -> None:
        """
        Broadcast to all connected peers in a game.

        payload_factory(peer_id) → dict | None
        If factory returns None, skip that peer.
        """
        connections = self._connections.get(game_id, {})
        tasks = []
        for peer_id, ws in list(connections.items()):
            payload = payload_factory(peer_id)
            if payload is None:
                continue
            tasks.append(self._safe_send(ws, game_id, peer_id, event_type, payload))
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def kick(self, game_id: str, peer_id: str) -> None:
        """Close a peer's connection after it was removed from the roster."""
        ws = self._connections.get(game_id, {}).get(peer_id)
        if ws is None:
            return
        self.disconnect(game_id, peer_id)
        try:
            await ws.close(code=CLOSE_KICKED, reason="Removed by host")
        except Exception as e:
            logger.warning(f"Failed to close kicked peer {peer_id}: {e}")

    async def close_game(self, game_id: str) -> None:
        for peer_id in list(self._connections.get(game_id, {})):
            await self.kick(game_id, peer_id)

    async def _safe_send(
        self,
        ws: WebSocket,
        game_id: str,
        peer_id: str,
        event_type: str,
        payload: dict,
    ) -> None:
        try:
            await ws.send_json({"type": event_type, "payload": payload})
        except Exception as e:
            logger.warning(f"WS send failed {peer_id}: {e}")
            self.disconnect(game_id, peer_id, ws)

    def is_connected(self, game_id: str, peer_id: str) -> bool:
        return peer_id in self._connections.get(game_id, {})

    def peer_count(self, game_id: str) -> int:
        return len(self._connections.get(game_id, {}))


# Global singleton
connection_manager = ConnectionManager()
