"""GameState dataclass, GamePhase and LogType enums, LogEntry."""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from taraq.game.player import Player


class GamePhase(Enum):
    LOBBY = "LOBBY"          # not connected, no state yet
    SETUP = "SETUP"          # roster assembly
    ROLL = "ROLL"
    DECIDE = "DECIDE"
    GAME_OVER = "GAME_OVER"


class LogType(Enum):
    NEUTRAL = "neutral"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    DEATH = "death"
    COMMENTARY = "commentary"


@dataclass(frozen=True)
class LogEntry:
    text: str
    type: LogType = LogType.NEUTRAL
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        return cls(text=data["text"], type=LogType(data["type"]), id=data["id"])


@dataclass
class GameState:
    game_id: str
    phase: GamePhase = GamePhase.SETUP
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    dice_value: Optional[int] = None
    is_rolling: bool = False
    logs: List[LogEntry] = field(default_factory=list)
    turn_count: int = 0
    winner: Optional[Player] = None
    ai_commentary: str = ""
    is_split_mode: bool = False
    split_actions: Dict[str, int] = field(default_factory=dict)  # player id → delta

    @property
    def living_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_dead]

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    def get_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_player_by_peer(self, peer_id: str) -> Optional[Player]:
        for p in self.players:
            if p.peer_id == peer_id:
                return p
        return None

    def add_log(self, text: str, log_type: LogType = LogType.NEUTRAL) -> LogEntry:
        entry = LogEntry(text=text, type=log_type)
        self.logs.append(entry)
        return entry

    def clear_split(self) -> None:
        self.is_split_mode = False
        self.split_actions = {}

    # ------------------------------------------------------------------
    # Snapshot (SYNC_STATE payload)
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "phase": self.phase.value,
            "players": [p.to_dict() for p in self.players],
            "current_player_index": self.current_player_index,
            "dice_value": self.dice_value,
            "is_rolling": self.is_rolling,
            "logs": [entry.to_dict() for entry in self.logs],
            "turn_count": self.turn_count,
            "winner": self.winner.to_dict() if self.winner else None,
            "ai_commentary": self.ai_commentary,
            "is_split_mode": self.is_split_mode,
            "split_actions": dict(self.split_actions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        winner = data.get("winner")
        return cls(
            game_id=data["game_id"],
            phase=GamePhase(data["phase"]),
            players=[Player.from_dict(p) for p in data.get("players", [])],
            current_player_index=int(data.get("current_player_index", 0)),
            dice_value=data.get("dice_value"),
            is_rolling=bool(data.get("is_rolling", False)),
            logs=[LogEntry.from_dict(e) for e in data.get("logs", [])],
            turn_count=int(data.get("turn_count", 0)),
            winner=Player.from_dict(winner) if winner else None,
            ai_commentary=data.get("ai_commentary", ""),
            is_split_mode=bool(data.get("is_split_mode", False)),
            split_actions={k: int(v) for k, v in data.get("split_actions", {}).items()},
        )
