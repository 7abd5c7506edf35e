"""Turn order and win-condition rules."""
from __future__ import annotations
from typing import List

from taraq.game.game_state import GamePhase, GameState
from taraq.game.player import Player


def next_living_index(players: List[Player], from_index: int) -> int:
    """Return the index of the next living player after from_index.

    The scan wraps around at most once, so it terminates even if nobody is
    alive; in that case -1 is returned.
    """
    n = len(players)
    for offset in range(1, n + 1):
        idx = (from_index + offset) % n
        if not players[idx].is_dead:
            return idx
    return -1


def advance_turn(state: GameState) -> int:
    """Hand the turn to the next living player. Returns the new index."""
    nxt = next_living_index(state.players, state.current_player_index)
    if nxt != -1:
        state.current_player_index = nxt
    state.phase = GamePhase.ROLL
    state.dice_value = None
    state.clear_split()
    state.turn_count += 1
    return state.current_player_index


def check_win_condition(state: GameState) -> bool:
    """
    End the round if at most one player is left standing, else advance.

    Returns True when the round is over. A single-player roster never ends
    this way. If a split eliminated everyone still alive the round ends
    with no winner.
    """
    living = state.living_players
    if len(state.players) > 1 and len(living) <= 1:
        state.winner = living[0] if living else None
        state.phase = GamePhase.GAME_OVER
        state.clear_split()
        return True
    advance_turn(state)
    return False
