"""
Pydantic models for the peer ↔ host wire protocol.

Every frame is a JSON object ``{"type": ..., "payload": ...}``; payload is
absent for ACTION_ROLL and ACTION_SPLIT_COMMIT.
"""
from __future__ import annotations
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class JoinPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=30)
    peer_id: str = Field(min_length=1)
    avatar_url: Optional[str] = None


class DecidePayload(BaseModel):
    target_id: str
    action: Literal["ADD", "REMOVE"]


class SplitAdjustPayload(BaseModel):
    target_id: str
    delta: int


class KickPayload(BaseModel):
    id: str


# Peer → host

class JoinMessage(BaseModel):
    type: Literal["JOIN"] = "JOIN"
    payload: JoinPayload


class ActionRollMessage(BaseModel):
    type: Literal["ACTION_ROLL"] = "ACTION_ROLL"


class ActionDecideMessage(BaseModel):
    type: Literal["ACTION_DECIDE"] = "ACTION_DECIDE"
    payload: DecidePayload


class ActionSplitAdjustMessage(BaseModel):
    type: Literal["ACTION_SPLIT_ADJUST"] = "ACTION_SPLIT_ADJUST"
    payload: SplitAdjustPayload


class ActionSplitToggleMessage(BaseModel):
    type: Literal["ACTION_SPLIT_TOGGLE"] = "ACTION_SPLIT_TOGGLE"
    payload: bool


class ActionSplitCommitMessage(BaseModel):
    type: Literal["ACTION_SPLIT_COMMIT"] = "ACTION_SPLIT_COMMIT"


# Host → peer

class SyncStateMessage(BaseModel):
    """Carries the full GameState snapshot (GameState.to_dict())."""
    type: Literal["SYNC_STATE"] = "SYNC_STATE"
    payload: Dict[str, Any]


class KickPlayerMessage(BaseModel):
    type: Literal["KICK_PLAYER"] = "KICK_PLAYER"
    payload: KickPayload


NetworkMessage = Annotated[
    Union[
        JoinMessage,
        SyncStateMessage,
        ActionRollMessage,
        ActionDecideMessage,
        ActionSplitAdjustMessage,
        ActionSplitToggleMessage,
        ActionSplitCommitMessage,
        KickPlayerMessage,
    ],
    Field(discriminator="type"),
]

_adapter: TypeAdapter = TypeAdapter(NetworkMessage)


def parse_message(data: Any) -> BaseModel:
    """Validate a decoded frame. Raises pydantic.ValidationError."""
    return _adapter.validate_python(data)


def encode_message(message: BaseModel) -> Dict[str, Any]:
    return message.model_dump(mode="json")
