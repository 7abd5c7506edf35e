"""Player dataclass — one roster entry, persistent across rounds."""
from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Reserved id of the host's own seat.
HOST_PLAYER_ID = "host"

# Inclusive: a player at or below this many hearts is eliminated.
DEATH_THRESHOLD = -5


@dataclass
class Player:
    """Identity and survival state of a seat."""
    id: str
    name: str
    hearts: int = 0
    is_dead: bool = False
    is_host: bool = False
    peer_id: Optional[str] = None          # set for remote players only
    avatar_url: Optional[str] = None
    avatar_seed: int = field(default_factory=lambda: random.randrange(1000))

    @property
    def is_local(self) -> bool:
        """Seat driven from the host process (host self or hot-seat)."""
        return self.peer_id is None

    def apply_hearts(self, delta: int) -> bool:
        """Add delta hearts. Returns True if this call eliminated the player.

        Elimination is a latch: a dead player stays dead whatever the delta.
        """
        self.hearts += delta
        if not self.is_dead and self.hearts <= DEATH_THRESHOLD:
            self.is_dead = True
            return True
        return False

    def reset(self) -> None:
        self.hearts = 0
        self.is_dead = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "hearts": self.hearts,
            "is_dead": self.is_dead,
            "is_host": self.is_host,
            "peer_id": self.peer_id,
            "avatar_url": self.avatar_url,
            "avatar_seed": self.avatar_seed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(
            id=data["id"],
            name=data["name"],
            hearts=int(data.get("hearts", 0)),
            is_dead=bool(data.get("is_dead", False)),
            is_host=bool(data.get("is_host", False)),
            peer_id=data.get("peer_id"),
            avatar_url=data.get("avatar_url"),
            avatar_seed=int(data.get("avatar_seed", 0)),
        )
