"""
Host-side dispatch of peer messages.

Peers never mutate state; they send intents. HostProtocol decides whether
an intent is allowed and, if so, calls the matching TaraqGame mutator,
which broadcasts the new snapshot.
"""
from __future__ import annotations
import logging
from typing import Any, Optional

from pydantic import ValidationError

from taraq.config import settings
from taraq.game.game import TaraqGame
from taraq.game.game_state import GamePhase
from taraq.game.turns import HeartAction
from taraq.models.messages import (
    ActionDecideMessage,
    ActionRollMessage,
    ActionSplitAdjustMessage,
    ActionSplitCommitMessage,
    ActionSplitToggleMessage,
    JoinMessage,
    parse_message,
)

logger = logging.getLogger(__name__)


class HostProtocol:
    """
    Applies the authority rules of the wire protocol for one game.

    ACTION_ROLL is only honoured from the connection that controls the
    current player. With strict_turn_ownership the same check guards
    ACTION_DECIDE and the split messages.
    """

    def __init__(self, game: TaraqGame, strict_turn_ownership: Optional[bool] = None) -> None:
        self.game = game
        self.strict = settings.strict_turn_ownership if strict_turn_ownership is None else strict_turn_ownership

    async def handle(self, sender_id: str, data: Any) -> bool:
        """Dispatch one decoded frame from sender_id. Returns True if state changed."""
        try:
            message = parse_message(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid message from {sender_id}: {e.error_count()} error(s)")
            return False

        game = self.game
        if isinstance(message, JoinMessage):
            before = len(game.state.players)
            await game.join(sender_id, message.payload.name, message.payload.avatar_url)
            return len(game.state.players) != before

        if isinstance(message, ActionRollMessage):
            if not game.is_current_peer(sender_id):
                logger.debug(f"Ignoring out-of-turn roll from {sender_id}")
                return False
            return await game.roll_dice()

        if not isinstance(message, (ActionDecideMessage, ActionSplitAdjustMessage,
                                    ActionSplitToggleMessage, ActionSplitCommitMessage)):
            logger.warning(f"Ignoring host-bound {message.type} from {sender_id}")
            return False

        if self.strict and not game.is_current_peer(sender_id):
            logger.debug(f"Ignoring out-of-turn {message.type} from {sender_id}")
            return False

        if isinstance(message, ActionDecideMessage):
            action = HeartAction(message.payload.action)
            return await game.apply_direct_action(message.payload.target_id, action)
        if isinstance(message, ActionSplitToggleMessage):
            return await game.toggle_split(message.payload)
        if isinstance(message, ActionSplitAdjustMessage):
            return await game.adjust_split(message.payload.target_id, message.payload.delta)
        return await game.commit_split()

    async def handle_disconnect(self, sender_id: str) -> None:
        """
        A peer's connection closed.

        During SETUP its seat is freed; once the game runs the roster is
        fixed and nothing is rolled back.
        """
        if self.game.state.phase == GamePhase.SETUP and self.game.state.get_player(sender_id):
            await self.game.remove_player(sender_id)
