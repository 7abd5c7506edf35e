"""
Turn engine: what a player does with a rolled die.

Every function here mutates the GameState it is given and is meant to be
called by TaraqGame only, which then evaluates the win condition and
broadcasts. None of them raise on bad input; invalid requests are no-ops.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from taraq.game import split
from taraq.game.game_state import GamePhase, GameState, LogEntry, LogType
from taraq.game.player import Player


class HeartAction(Enum):
    ADD = "ADD"
    REMOVE = "REMOVE"


@dataclass
class ActionOutcome:
    """Result of a direct action, fed to the commentary service."""
    actor: Player
    target: Player
    action: HeartAction
    amount: int
    remaining_hearts: int
    is_self: bool
    is_death: bool


@dataclass
class SplitOutcome:
    actor: Player
    deltas: Dict[str, int] = field(default_factory=dict)
    deaths: List[Player] = field(default_factory=list)


def resolve_roll(state: GameState, value: int) -> LogEntry:
    """Store a settled roll and move to DECIDE."""
    state.dice_value = value
    state.is_rolling = False
    state.phase = GamePhase.DECIDE
    roller = state.current_player
    name = roller.name if roller else "Someone"
    return state.add_log(f"{name} rolled a {value}.", LogType.NEUTRAL)


def _living_target(state: GameState, target_id: str) -> Optional[Player]:
    target = state.get_player(target_id)
    if target is None or target.is_dead:
        return None
    return target


def apply_direct_action(
    state: GameState,
    target_id: str,
    action: HeartAction,
    amount: Optional[int] = None,
) -> Optional[ActionOutcome]:
    """Add or remove hearts on one living target.

    amount defaults to the rolled value. Returns None if nothing was applied.
    """
    if state.dice_value is None or state.phase != GamePhase.DECIDE:
        return None
    actor = state.current_player
    target = _living_target(state, target_id)
    if actor is None or target is None:
        return None

    if amount is None:
        amount = state.dice_value
    delta = amount if action == HeartAction.ADD else -amount
    died = target.apply_hearts(delta)

    is_self = actor.id == target.id
    target_text = "themselves" if is_self else target.name
    if action == HeartAction.ADD:
        text = f"{actor.name} gave {amount} hearts to {target_text}."
        log_type = LogType.POSITIVE
    else:
        text = f"{actor.name} removed {amount} hearts from {target_text}."
        log_type = LogType.NEGATIVE
    state.add_log(text, log_type)

    if died:
        state.add_log(f"{target.name} has fallen! (Hearts: {target.hearts})", LogType.DEATH)

    return ActionOutcome(
        actor=actor,
        target=target,
        action=action,
        amount=amount,
        remaining_hearts=target.hearts,
        is_self=is_self,
        is_death=died,
    )


# ----------------------------------------------------------------------
# Split mode
# ----------------------------------------------------------------------

def toggle_split(state: GameState, enabled: bool) -> bool:
    """Enter or leave split mode. Pending deltas are always discarded."""
    if enabled:
        if state.phase != GamePhase.DECIDE or state.dice_value is None or state.dice_value <= 1:
            return False
        if state.is_split_mode:
            return False
        state.is_split_mode = True
        state.split_actions = {}
        return True
    if not state.is_split_mode and not state.split_actions:
        return False
    state.clear_split()
    return True


def adjust_split(state: GameState, target_id: str, delta: int) -> bool:
    """Move one target's pending delta. Out-of-budget requests are ignored."""
    if state.dice_value is None or state.phase != GamePhase.DECIDE or not state.is_split_mode:
        return False
    if delta == 0 or _living_target(state, target_id) is None:
        return False
    if not split.can_adjust(state.split_actions, target_id, delta, state.dice_value):
        return False
    state.split_actions = split.apply_adjustment(state.split_actions, target_id, delta)
    return True


def _join_names(names: List[str]) -> str:
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} and {names[-1]}"


def death_announcement(names: List[str]) -> str:
    if len(names) == 1:
        return f"{names[0]} has fallen!"
    return f"{_join_names(names)} have fallen!"


def commit_split(state: GameState) -> Optional[SplitOutcome]:
    """Apply every pending delta in one step and log the result.

    Only valid in split mode. Unallocated points are simply lost.
    """
    if state.dice_value is None or state.phase != GamePhase.DECIDE or not state.is_split_mode:
        return None
    actor = state.current_player
    if actor is None:
        return None

    deltas = {pid: d for pid, d in state.split_actions.items() if d != 0}
    outcome = SplitOutcome(actor=actor, deltas=deltas)

    parts = []
    for player in state.players:
        delta = deltas.get(player.id)
        if delta is None:
            continue
        if player.apply_hearts(delta):
            outcome.deaths.append(player)
        parts.append(f"{player.name} {delta:+d}")

    if parts:
        net = sum(deltas.values())
        log_type = LogType.POSITIVE if net > 0 else LogType.NEGATIVE if net < 0 else LogType.NEUTRAL
        state.add_log(f"{actor.name} split {state.dice_value}: {', '.join(parts)}.", log_type)
    else:
        state.add_log(f"{actor.name} left {state.dice_value} hearts unassigned.", LogType.NEUTRAL)

    if outcome.deaths:
        state.add_log(death_announcement([p.name for p in outcome.deaths]), LogType.DEATH)

    state.clear_split()
    return outcome
