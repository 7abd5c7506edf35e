"""
Peer-side view of a game: a read-only replica plus intent senders.

PeerSession has no way to change a player, the phase or the dice. The
only state transition it knows is replacing the whole replica with the
snapshot of a SYNC_STATE (or dropping it on KICK_PLAYER). User actions are
sent to the host as ACTION_* messages and take effect when the next
snapshot arrives.
"""
from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from taraq.game import split
from taraq.game.game_state import GamePhase, GameState
from taraq.game.player import Player
from taraq.models.messages import (
    ActionDecideMessage,
    ActionRollMessage,
    ActionSplitAdjustMessage,
    ActionSplitCommitMessage,
    ActionSplitToggleMessage,
    DecidePayload,
    JoinMessage,
    JoinPayload,
    KickPlayerMessage,
    SplitAdjustPayload,
    SyncStateMessage,
    encode_message,
    parse_message,
)

logger = logging.getLogger(__name__)

SendCallback = Callable[[dict], Awaitable[None]]


class PeerSession:
    def __init__(
        self,
        peer_id: str,
        name: str,
        send: SendCallback,
        avatar_url: Optional[str] = None,
        on_state: Optional[Callable[[GameState], None]] = None,
    ) -> None:
        self.peer_id = peer_id
        self.name = name
        self.avatar_url = avatar_url
        self._send = send
        self._on_state = on_state
        self._state: Optional[GameState] = None
        self.kicked = False

    # ------------------------------------------------------------------
    # Replica (read-only)
    # ------------------------------------------------------------------

    @property
    def state(self) -> Optional[GameState]:
        return self._state

    @property
    def phase(self) -> GamePhase:
        return self._state.phase if self._state else GamePhase.LOBBY

    @property
    def me(self) -> Optional[Player]:
        return self._state.get_player_by_peer(self.peer_id) if self._state else None

    @property
    def is_my_turn(self) -> bool:
        if self._state is None:
            return False
        current = self._state.current_player
        return current is not None and current.peer_id == self.peer_id

    @property
    def remaining_split_points(self) -> Optional[int]:
        if self._state is None or self._state.dice_value is None:
            return None
        return split.remaining_points(self._state.split_actions, self._state.dice_value)

    def receive(self, data: Any) -> bool:
        """Apply one frame from the host. Returns True if the replica changed."""
        try:
            message = parse_message(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid message from host: {e.error_count()} error(s)")
            return False

        if isinstance(message, SyncStateMessage):
            self._state = GameState.from_dict(message.payload)
            if self._on_state:
                self._on_state(self._state)
            return True
        if isinstance(message, KickPlayerMessage):
            if message.payload.id != self.peer_id:
                return False
            logger.info(f"Peer {self.peer_id} was removed from the game by the host")
            self._state = None
            self.kicked = True
            return True
        logger.warning(f"Ignoring peer-bound {message.type} from host")
        return False

    def drop(self) -> None:
        """Forget the replica, e.g. after the connection is gone."""
        self._state = None

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    async def join(self) -> None:
        payload = JoinPayload(name=self.name, peer_id=self.peer_id, avatar_url=self.avatar_url)
        await self._send(encode_message(JoinMessage(payload=payload)))

    async def roll(self) -> None:
        await self._send(encode_message(ActionRollMessage()))

    async def decide(self, target_id: str, action: str) -> None:
        payload = DecidePayload(target_id=target_id, action=action)
        await self._send(encode_message(ActionDecideMessage(payload=payload)))

    async def toggle_split(self, enabled: bool) -> None:
        await self._send(encode_message(ActionSplitToggleMessage(payload=enabled)))

    async def adjust_split(self, target_id: str, delta: int) -> None:
        payload = SplitAdjustPayload(target_id=target_id, delta=delta)
        await self._send(encode_message(ActionSplitAdjustMessage(payload=payload)))

    async def commit_split(self) -> None:
        await self._send(encode_message(ActionSplitCommitMessage()))
