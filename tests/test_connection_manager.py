"""Unit tests for connection_manager.py — ConnectionManager."""
import asyncio
from unittest.mock import AsyncMock

from taraq.managers.connection_manager import CLOSE_ID_IN_USE, CLOSE_KICKED, ConnectionManager


def _mock_ws():
    """Create a mock WebSocket."""
    ws = AsyncMock()
    ws.accept = AsyncMock()
    ws.send_json = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestConnect:
    def test_connect_and_is_connected(self):
        async def _run():
            cm = ConnectionManager()
            ws = _mock_ws()
            assert await cm.connect("game1", "p1", ws) is True
            assert cm.is_connected("game1", "p1") is True
            ws.accept.assert_awaited_once()
        asyncio.run(_run())

    def test_connect_multiple_peers(self):
        async def _run():
            cm = ConnectionManager()
            await cm.connect("game1", "p1", _mock_ws())
            await cm.connect("game1", "p2", _mock_ws())
            assert cm.peer_count("game1") == 2
        asyncio.run(_run())

    def test_duplicate_peer_id_rejected(self):
        async def _run():
            cm = ConnectionManager()
            first = _mock_ws()
            second = _mock_ws()
            await cm.connect("game1", "p1", first)
            assert await cm.connect("game1", "p1", second) is False
            second.close.assert_awaited_once()
            assert second.close.await_args.kwargs["code"] == CLOSE_ID_IN_USE
            await cm.send_personal("game1", "p1", "SYNC_STATE", {})
            first.send_json.assert_awaited_once()
            second.send_json.assert_not_awaited()
        asyncio.run(_run())

    def test_same_peer_id_in_other_game(self):
        async def _run():
            cm = ConnectionManager()
            assert await cm.connect("game1", "p1", _mock_ws()) is True
            assert await cm.connect("game2", "p1", _mock_ws()) is True
        asyncio.run(_run())

    def test_not_connected(self):
        cm = ConnectionManager()
        assert cm.is_connected("game1", "p1") is False


class TestDisconnect:
    def test_disconnect(self):
        async def _run():
            cm = ConnectionManager()
            await cm.connect("game1", "p1", _mock_ws())
            cm.disconnect("game1", "p1")
            assert cm.is_connected("game1", "p1") is False
            assert cm.peer_count("game1") == 0
        asyncio.run(_run())

    def test_disconnect_other_socket_keeps_registration(self):
        async def _run():
            cm = ConnectionManager()
            ws = _mock_ws()
            await cm.connect("game1", "p1", ws)
            cm.disconnect("game1", "p1", _mock_ws())
            assert cm.is_connected("game1", "p1") is True
            cm.disconnect("game1", "p1", ws)
            assert cm.is_connected("game1", "p1") is False
        asyncio.run(_run())

    def test_disconnect_nonexistent_noop(self):
        cm = ConnectionManager()
        cm.disconnect("game1", "p1")  # should not raise


class TestSend:
    def test_send_personal(self):
        async def _run():
            cm = ConnectionManager()
            ws = _mock_ws()
            await cm.connect("game1", "p1", ws)
            await cm.send_personal("game1", "p1", "SYNC_STATE", {"phase": "SETUP"})
            ws.send_json.assert_awaited_with({"type": "SYNC_STATE", "payload": {"phase": "SETUP"}})
        asyncio.run(_run())

    def test_send_to_disconnected_noop(self):
        async def _run():
            cm = ConnectionManager()
            await cm.send_personal("game1", "p1", "SYNC_STATE", {})
        asyncio.run(_run())

    def test_send_error_disconnects(self):
        async def _run():
            cm = ConnectionManager()
            ws = _mock_ws()
            ws.send_json.side_effect = Exception("connection lost")
            await cm.connect("game1", "p1", ws)
            await cm.send_personal("game1", "p1", "SYNC_STATE", {})
            assert cm.is_connected("game1", "p1") is False
        asyncio.run(_run())

    def test_snapshot_factory_reaches_every_peer(self):
        async def _run():
            cm = ConnectionManager()
            ws1, ws2 = _mock_ws(), _mock_ws()
            await cm.connect("game1", "p1", ws1)
            await cm.connect("game1", "p2", ws2)
            snapshot = {"turn_count": 3}
            await cm.broadcast_personalized("game1", "SYNC_STATE", lambda pid: snapshot)
            expected = {"type": "SYNC_STATE", "payload": {"turn_count": 3}}
            ws1.send_json.assert_awaited_with(expected)
            ws2.send_json.assert_awaited_with(expected)
        asyncio.run(_run())


class TestBroadcastPersonalized:
    def test_skips_none_payloads(self):
        async def _run():
            cm = ConnectionManager()
            ws1, ws2 = _mock_ws(), _mock_ws()
            await cm.connect("game1", "p1", ws1)
            await cm.connect("game1", "p2", ws2)
            await cm.broadcast_personalized(
                "game1",
                "KICK_PLAYER",
                lambda pid: {"id": pid} if pid == "p1" else None,
            )
            ws1.send_json.assert_awaited_with({"type": "KICK_PLAYER", "payload": {"id": "p1"}})
            ws2.send_json.assert_not_awaited()
        asyncio.run(_run())

    def test_one_failure_does_not_stop_others(self):
        async def _run():
            cm = ConnectionManager()
            bad, good = _mock_ws(), _mock_ws()
            bad.send_json.side_effect = Exception("broken pipe")
            await cm.connect("game1", "bad", bad)
            await cm.connect("game1", "good", good)
            await cm.broadcast_personalized("game1", "SYNC_STATE", lambda pid: {"x": 1})
            good.send_json.assert_awaited_once()
            assert cm.is_connected("game1", "bad") is False
            assert cm.is_connected("game1", "good") is True
        asyncio.run(_run())

    def test_empty_game_noop(self):
        async def _run():
            cm = ConnectionManager()
            await cm.broadcast_personalized("game1", "SYNC_STATE", lambda pid: {"x": 1})
        asyncio.run(_run())


class TestKick:
    def test_kick_closes_with_code(self):
        async def _run():
            cm = ConnectionManager()
            ws = _mock_ws()
            await cm.connect("game1", "p1", ws)
            await cm.kick("game1", "p1")
            assert cm.is_connected("game1", "p1") is False
            assert ws.close.await_args.kwargs["code"] == CLOSE_KICKED
        asyncio.run(_run())

    def test_close_game_kicks_everyone(self):
        async def _run():
            cm = ConnectionManager()
            ws1, ws2 = _mock_ws(), _mock_ws()
            await cm.connect("game1", "p1", ws1)
            await cm.connect("game1", "p2", ws2)
            await cm.close_game("game1")
            assert cm.peer_count("game1") == 0
            ws1.close.assert_awaited_once()
            ws2.close.assert_awaited_once()
        asyncio.run(_run())
