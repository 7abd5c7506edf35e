"""In-memory TaraqGame store."""
from __future__ import annotations
import uuid
from typing import Dict, List, Optional

from taraq.core.dice import DiceSource
from taraq.game.game import TaraqGame
from taraq.services.commentary import CommentaryService


class GameManager:
    def __init__(self) -> None:
        self._games: Dict[str, TaraqGame] = {}

    def create_game(
        self,
        host_name: str,
        dice: Optional[DiceSource] = None,
        commentary: Optional[CommentaryService] = None,
        settle_delay: Optional[float] = None,
    ) -> TaraqGame:
        game_id = str(uuid.uuid4())[:8]
        game = TaraqGame(
            game_id=game_id,
            host_name=host_name,
            dice=dice,
            commentary=commentary,
            settle_delay=settle_delay,
        )
        self._games[game_id] = game
        return game

    def get_game(self, game_id: str) -> Optional[TaraqGame]:
        return self._games.get(game_id)

    def list_games(self) -> List[dict]:
        result = []
        for gid, game in self._games.items():
            state = game.state
            result.append({
                "game_id": gid,
                "phase": state.phase.value,
                "players": len(state.players),
                "living_players": len(state.living_players),
                "turn_count": state.turn_count,
            })
        return result

    def delete_game(self, game_id: str) -> bool:
        game = self._games.pop(game_id, None)
        if game is None:
            return False
        game.close()
        return True


# Global singleton
game_manager = GameManager()
