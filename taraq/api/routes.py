"""
REST API routes: game creation and the host's own controls.

These endpoints are the host-local surface. They call TaraqGame directly,
and turn actions are only accepted while a local seat (host or hot-seat
player) is on turn; remote seats act through the WebSocket.
"""
from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from taraq.game.game import TaraqGame
from taraq.game.turns import HeartAction
from taraq.managers.connection_manager import connection_manager
from taraq.managers.game_manager import game_manager
from taraq.models.requests import (
    AddPlayerRequest,
    CreateGameRequest,
    DecideRequest,
    SplitAdjustRequest,
    SplitToggleRequest,
)
from taraq.services.commentary import create_commentary_service

router = APIRouter()


def _get_game(game_id: str) -> TaraqGame:
    game = game_manager.get_game(game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game


def _require_local_turn(game: TaraqGame) -> None:
    if not game.current_is_local():
        raise HTTPException(status_code=409, detail="It is not a local player's turn")


def _result(game: TaraqGame, changed: bool, detail: str) -> Dict[str, Any]:
    if not changed:
        raise HTTPException(status_code=409, detail=detail)
    return game.get_state()


@router.post("/api/games")
async def create_game(req: CreateGameRequest) -> Dict[str, Any]:
    game = game_manager.create_game(
        host_name=req.host_name,
        commentary=create_commentary_service(),
    )

    # Wire broadcast through connection manager
    async def broadcast_cb(game_id, event_type, payload_factory):
        await connection_manager.broadcast_personalized(game_id, event_type, payload_factory)

    game.set_broadcast(broadcast_cb)
    game.request_avatar(game.state.players[0].id)

    return {
        "game_id": game.game_id,
        "host_player_id": game.state.players[0].id,
        "phase": game.state.phase.value,
    }


@router.get("/api/games")
async def list_games() -> Dict[str, Any]:
    return {"games": game_manager.list_games()}


@router.get("/api/games/{game_id}/state")
async def get_game_state(game_id: str) -> Dict[str, Any]:
    return _get_game(game_id).get_state()


@router.delete("/api/games/{game_id}")
async def delete_game(game_id: str) -> Dict[str, Any]:
    _get_game(game_id)
    await connection_manager.close_game(game_id)
    game_manager.delete_game(game_id)
    return {"deleted": game_id}


# ----------------------------------------------------------------------
# Roster
# ----------------------------------------------------------------------

@router.post("/api/games/{game_id}/players")
async def add_player(game_id: str, req: AddPlayerRequest) -> Dict[str, Any]:
    game = _get_game(game_id)
    player = await game.add_local_player(req.name)
    if player is None:
        raise HTTPException(status_code=400, detail="Players can only be added during setup")
    return player.to_dict()


@router.delete("/api/games/{game_id}/players/{player_id}")
async def remove_player(game_id: str, player_id: str) -> Dict[str, Any]:
    game = _get_game(game_id)
    if not game.state.get_player(player_id):
        raise HTTPException(status_code=404, detail="Player not found")
    player = await game.remove_player(player_id)
    if player is None:
        raise HTTPException(status_code=400, detail="Player cannot be removed now")
    if player.peer_id:
        await connection_manager.kick(game_id, player.peer_id)
    return game.get_state()


# ----------------------------------------------------------------------
# Lifecycle
# ----------------------------------------------------------------------

@router.post("/api/games/{game_id}/start")
async def start_game(game_id: str) -> Dict[str, Any]:
    game = _get_game(game_id)
    if not await game.start_game():
        raise HTTPException(status_code=400, detail="At least 2 players are needed to start")
    return game.get_state()


@router.post("/api/games/{game_id}/reset")
async def reset_game(game_id: str) -> Dict[str, Any]:
    game = _get_game(game_id)
    await game.reset()
    return game.get_state()


# ----------------------------------------------------------------------
# Turn actions for local seats
# ----------------------------------------------------------------------

@router.post("/api/games/{game_id}/roll")
async def roll(game_id: str) -> Dict[str, Any]:
    game = _get_game(game_id)
    _require_local_turn(game)
    return _result(game, await game.roll_dice(), "Cannot roll now")


@router.post("/api/games/{game_id}/decide")
async def decide(game_id: str, req: DecideRequest) -> Dict[str, Any]:
    game = _get_game(game_id)
    _require_local_turn(game)
    changed = await game.apply_direct_action(req.target_id, HeartAction(req.action))
    return _result(game, changed, "Action not allowed")


@router.post("/api/games/{game_id}/split/toggle")
async def split_toggle(game_id: str, req: SplitToggleRequest) -> Dict[str, Any]:
    game = _get_game(game_id)
    _require_local_turn(game)
    return _result(game, await game.toggle_split(req.enabled), "Split mode not available")


@router.post("/api/games/{game_id}/split/adjust")
async def split_adjust(game_id: str, req: SplitAdjustRequest) -> Dict[str, Any]:
    game = _get_game(game_id)
    _require_local_turn(game)
    # Rejected adjustments are not an error: the unchanged state is returned.
    await game.adjust_split(req.target_id, req.delta)
    return game.get_state()


@router.post("/api/games/{game_id}/split/commit")
async def split_commit(game_id: str) -> Dict[str, Any]:
    game = _get_game(game_id)
    _require_local_turn(game)
    return _result(game, await game.commit_split(), "Nothing to commit")
