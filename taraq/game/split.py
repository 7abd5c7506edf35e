"""
Split-allocation validator.

A split distributes one rolled value as signed deltas across several
players. The sum of absolute deltas may never exceed the roll; whatever is
left is the "remaining points" budget shown to the acting player.
"""
from __future__ import annotations
from typing import Dict, Mapping


def used_points(pending: Mapping[str, int]) -> int:
    return sum(abs(d) for d in pending.values())


def remaining_points(pending: Mapping[str, int], budget: int) -> int:
    """Points of the roll not yet allocated."""
    return budget - used_points(pending)


def can_adjust(pending: Mapping[str, int], target_id: str, delta: int, budget: int) -> bool:
    """True if moving target_id's pending delta by `delta` stays within budget."""
    other_usage = sum(abs(d) for pid, d in pending.items() if pid != target_id)
    new_delta = pending.get(target_id, 0) + delta
    return other_usage + abs(new_delta) <= budget


def apply_adjustment(pending: Mapping[str, int], target_id: str, delta: int) -> Dict[str, int]:
    """Return a new pending map with the adjustment applied.

    An entry that returns to zero is dropped rather than stored.
    """
    result = dict(pending)
    new_delta = result.get(target_id, 0) + delta
    if new_delta == 0:
        result.pop(target_id, None)
    else:
        result[target_id] = new_delta
    return result
