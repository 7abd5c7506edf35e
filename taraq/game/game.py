"""
TaraqGame — the host-side owner of the authoritative GameState.

State machine:
  SETUP → ROLL ⇄ DECIDE → GAME_OVER → (reset) → SETUP

Every public mutator runs its state change synchronously, then pushes the
full snapshot through the broadcast callback before returning. Mutators
return False (and broadcast nothing) when the request does not apply in
the current phase.
"""
from __future__ import annotations
import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Coroutine, Dict, Optional, Set

from taraq.config import settings
from taraq.core.dice import DiceSource
from taraq.game import rules, turns
from taraq.game.game_state import GamePhase, GameState, LogType
from taraq.game.player import DEATH_THRESHOLD, HOST_PLAYER_ID, Player
from taraq.game.turns import ActionOutcome, HeartAction
from taraq.services.commentary import CommentaryService, NullCommentaryService

logger = logging.getLogger(__name__)

# cb(game_id, event_type, payload_factory); payload_factory(peer_id) → dict | None
BroadcastCallback = Callable[[str, str, Callable[[str], Optional[dict]]], Awaitable[None]]

MIN_PLAYERS = 2


class TaraqGame:
    """
    Manages one game session on the host.

    Only this class mutates GameState. Remote peers reach it through
    HostProtocol; the host's own seats through the REST routes or the CLI.
    """

    def __init__(
        self,
        game_id: str,
        host_name: str,
        dice: Optional[DiceSource] = None,
        commentary: Optional[CommentaryService] = None,
        settle_delay: Optional[float] = None,
    ) -> None:
        self.state = GameState(game_id=game_id)
        self.state.players.append(Player(id=HOST_PLAYER_ID, name=host_name, is_host=True))
        self._dice = dice or DiceSource()
        self._commentary = commentary or NullCommentaryService()
        self._settle_delay = settings.roll_settle_seconds if settle_delay is None else settle_delay
        self._broadcast_cb: Optional[BroadcastCallback] = None
        # Bumped on every roll and reset; advisory results from an older
        # epoch are discarded.
        self._epoch = 0
        self._background: Set[asyncio.Task] = set()

    @property
    def game_id(self) -> str:
        return self.state.game_id

    def set_broadcast(self, cb: BroadcastCallback) -> None:
        """Set broadcast callback: cb(game_id, event_type, payload_factory)."""
        self._broadcast_cb = cb

    # ------------------------------------------------------------------
    # Roster (SETUP only)
    # ------------------------------------------------------------------

    async def add_local_player(self, name: str) -> Optional[Player]:
        """Add a hot-seat player driven from the host."""
        if self.state.phase != GamePhase.SETUP:
            return None
        player = Player(id=uuid.uuid4().hex[:8], name=name)
        self.state.players.append(player)
        logger.info(f"Local player {name!r} added to game {self.game_id}")
        await self.broadcast_state()
        self.request_avatar(player.id)
        return player

    async def join(self, peer_id: str, name: str, avatar_url: Optional[str] = None) -> Optional[Player]:
        """
        Handle a JOIN from a remote connection.

        The player is keyed by its connection id. Joining twice is harmless.
        Once the game has started the roster is fixed: the sender only gets
        the current snapshot. The state is broadcast in every case.
        """
        player = self.state.get_player(peer_id)
        if player is None and self.state.phase == GamePhase.SETUP and peer_id != HOST_PLAYER_ID:
            player = Player(id=peer_id, name=name, peer_id=peer_id, avatar_url=avatar_url)
            self.state.players.append(player)
            logger.info(f"Peer {peer_id} joined game {self.game_id} as {name!r}")
            if not avatar_url:
                self.request_avatar(player.id)
        elif player is None:
            logger.info(f"Peer {peer_id} is spectating game {self.game_id}")
        await self.broadcast_state()
        return player

    async def remove_player(self, player_id: str) -> Optional[Player]:
        """Remove a player during SETUP. The host's own seat cannot be removed."""
        if self.state.phase != GamePhase.SETUP or player_id == HOST_PLAYER_ID:
            return None
        player = self.state.get_player(player_id)
        if player is None:
            return None
        self.state.players = [p for p in self.state.players if p.id != player_id]
        logger.info(f"Player {player.name!r} removed from game {self.game_id}")
        if player.peer_id:
            await self._send_to(player.peer_id, "KICK_PLAYER", {"id": player.id})
        await self.broadcast_state()
        return player

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_game(self) -> bool:
        state = self.state
        if state.phase != GamePhase.SETUP or len(state.players) < MIN_PLAYERS:
            return False
        state.phase = GamePhase.ROLL
        state.current_player_index = 0
        state.add_log("The game of Taraq begins. Everyone starts with 0 hearts.")
        state.add_log(f"First player to drop to {DEATH_THRESHOLD} hearts is eliminated.")
        logger.info(f"Game {self.game_id} started with {len(state.players)} players")
        await self.broadcast_state()
        return True

    async def reset(self) -> bool:
        """Back to SETUP with the same roster, everyone at 0 hearts."""
        state = self.state
        if state.phase == GamePhase.LOBBY:
            return False
        self._epoch += 1
        for p in state.players:
            p.reset()
        state.phase = GamePhase.SETUP
        state.current_player_index = 0
        state.dice_value = None
        state.is_rolling = False
        state.logs = []
        state.turn_count = 0
        state.winner = None
        state.ai_commentary = ""
        state.clear_split()
        logger.info(f"Game {self.game_id} reset")
        await self.broadcast_state()
        return True

    # ------------------------------------------------------------------
    # Turn actions
    # ------------------------------------------------------------------

    async def roll_dice(self) -> bool:
        """
        Roll for the current player.

        The rolling flag is broadcast first; the result follows after the
        settle delay. Requests arriving while a roll is in flight are
        disregarded.
        """
        state = self.state
        if state.phase != GamePhase.ROLL or state.is_rolling:
            return False
        self._epoch += 1
        epoch = self._epoch
        state.is_rolling = True
        state.ai_commentary = ""
        state.clear_split()
        await self.broadcast_state()

        if self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)

        if epoch != self._epoch or state.phase != GamePhase.ROLL:
            # reset while the dice were in the air
            return False
        turns.resolve_roll(state, self._dice.roll())
        await self.broadcast_state()
        return True

    async def apply_direct_action(self, target_id: str, action: HeartAction) -> bool:
        outcome = turns.apply_direct_action(self.state, target_id, action)
        if outcome is None:
            return False
        self._spawn(self._fetch_commentary(outcome, self._epoch))
        self._finish_turn()
        await self.broadcast_state()
        return True

    async def toggle_split(self, enabled: bool) -> bool:
        if not turns.toggle_split(self.state, enabled):
            return False
        await self.broadcast_state()
        return True

    async def adjust_split(self, target_id: str, delta: int) -> bool:
        if not turns.adjust_split(self.state, target_id, delta):
            return False
        await self.broadcast_state()
        return True

    async def commit_split(self) -> bool:
        if turns.commit_split(self.state) is None:
            return False
        self._finish_turn()
        await self.broadcast_state()
        return True

    def _finish_turn(self) -> None:
        state = self.state
        if not rules.check_win_condition(state):
            return
        if state.winner:
            state.add_log(f"{state.winner.name} is the last one standing!")
            logger.info(f"Game {self.game_id} won by {state.winner.name!r} after {state.turn_count} turns")
            self._spawn(self._fetch_winner_toast(state.winner.name, state.turn_count, self._epoch))
        else:
            state.add_log("Nobody survived.", LogType.DEATH)
            logger.info(f"Game {self.game_id} ended with no survivors")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_current_peer(self, peer_id: str) -> bool:
        """True if peer_id controls the player whose turn it is."""
        current = self.state.current_player
        return current is not None and current.peer_id is not None and current.peer_id == peer_id

    def current_is_local(self) -> bool:
        current = self.state.current_player
        return current is not None and current.is_local

    def get_state(self) -> Dict[str, Any]:
        return self.state.to_dict()

    # ------------------------------------------------------------------
    # Advisory content (background, never blocks a transition)
    # ------------------------------------------------------------------

    def request_avatar(self, player_id: str) -> None:
        player = self.state.get_player(player_id)
        if player is not None and not player.avatar_url:
            self._spawn(self._fetch_avatar(player_id, player.name))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for outstanding advisory requests."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def close(self) -> None:
        for task in list(self._background):
            task.cancel()

    async def _fetch_commentary(self, outcome: ActionOutcome, epoch: int) -> None:
        try:
            text = await self._commentary.generate_commentary(
                outcome.actor.name,
                "themselves" if outcome.is_self else outcome.target.name,
                outcome.action.value,
                outcome.amount,
                outcome.remaining_hearts,
                outcome.is_self,
                outcome.is_death,
            )
        except Exception as e:
            logger.warning(f"Commentary failed in game {self.game_id}: {e}")
            return
        if text and epoch == self._epoch:
            self.state.ai_commentary = text
            self.state.add_log(text, LogType.COMMENTARY)
            await self.broadcast_state()

    async def _fetch_winner_toast(self, winner_name: str, rounds: int, epoch: int) -> None:
        try:
            text = await self._commentary.generate_winner_toast(winner_name, rounds)
        except Exception as e:
            logger.warning(f"Winner toast failed in game {self.game_id}: {e}")
            return
        if text and epoch == self._epoch and self.state.phase == GamePhase.GAME_OVER:
            self.state.ai_commentary = text
            await self.broadcast_state()

    async def _fetch_avatar(self, player_id: str, name: str) -> None:
        try:
            url = await self._commentary.generate_avatar(name)
        except Exception as e:
            logger.warning(f"Avatar failed for {name!r}: {e}")
            return
        player = self.state.get_player(player_id)
        if url and player is not None:
            player.avatar_url = url
            await self.broadcast_state()

    # ------------------------------------------------------------------
    # Broadcast helpers
    # ------------------------------------------------------------------

    async def broadcast_state(self) -> None:
        """Push the full snapshot to every connection of this game."""
        if self._broadcast_cb:
            # Serialised once, before any send.
            snapshot = self.state.to_dict()
            await self._broadcast_cb(self.game_id, "SYNC_STATE", lambda pid, _s=snapshot: _s)

    async def _send_to(self, peer_id: str, event_type: str, payload: dict) -> None:
        if self._broadcast_cb:
            await self._broadcast_cb(
                self.game_id,
                event_type,
                lambda pid, _target=peer_id, _p=payload: _p if pid == _target else None,
            )
