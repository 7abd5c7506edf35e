"""Six-sided dice source."""
from __future__ import annotations
import random
from typing import Optional

DICE_SIDES = 6


class DiceSource:
    """Independent uniform rolls in [1, DICE_SIDES].

    Pass a seeded ``random.Random`` for reproducible games.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def roll(self) -> int:
        return self._rng.randint(1, DICE_SIDES)


class FixedDice(DiceSource):
    """Replays a fixed sequence of values, cycling when exhausted."""

    def __init__(self, values: list[int]) -> None:
        super().__init__()
        if not values:
            raise ValueError("FixedDice needs at least one value")
        for v in values:
            if not 1 <= v <= DICE_SIDES:
                raise ValueError(f"Invalid die value: {v}")
        self._values = list(values)
        self._pos = 0

    def roll(self) -> int:
        value = self._values[self._pos % len(self._values)]
        self._pos += 1
        return value
