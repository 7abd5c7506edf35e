"""Tests for the hot-seat CLI driver."""
import asyncio
import random

import cli
from taraq.core.dice import FixedDice
from taraq.game.game import TaraqGame
from taraq.game.game_state import GamePhase, GameState
from taraq.game.player import Player


def _scripted_input(monkeypatch, lines):
    answers = iter(lines)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))


async def _rolled_game(dice=4, num_players=3) -> TaraqGame:
    game = TaraqGame(game_id="cli-test", host_name="Ann", dice=FixedDice([dice]), settle_delay=0)
    for i in range(1, num_players):
        game.state.players.append(Player(id=f"p{i}", name=f"P{i}"))
    await game.start_game()
    await game.roll_dice()
    return game


class TestHelpers:
    def test_fmt_hearts_sign(self):
        assert "+3♥" in cli.fmt_hearts(3)
        assert "-5♥" in cli.fmt_hearts(-5)
        assert "+0♥" in cli.fmt_hearts(0)

    def test_parse_seat(self):
        state = GameState(game_id="g")
        state.players = [Player(id="a", name="A"), Player(id="b", name="B", is_dead=True)]
        assert cli.parse_seat(state, "1").id == "a"
        assert cli.parse_seat(state, "2") is None  # dead
        assert cli.parse_seat(state, "3") is None
        assert cli.parse_seat(state, "x") is None


class TestPrompts:
    def test_direct_decision(self, monkeypatch):
        _scripted_input(monkeypatch, ["", "r 9", "r 2"])

        async def _run():
            game = await _rolled_game(dice=4)
            await cli.prompt_decision(game)
            return game

        game = asyncio.run(_run())
        assert game.state.get_player("p1").hearts == -4
        assert game.state.current_player_index == 1

    def test_split_decision(self, monkeypatch):
        _scripted_input(monkeypatch, ["s", "2 -3", "3 +2", "3 +1", "c"])

        async def _run():
            game = await _rolled_game(dice=4)
            await cli.prompt_decision(game)
            return game

        game = asyncio.run(_run())
        assert game.state.get_player("p1").hearts == -3
        assert game.state.get_player("p2").hearts == 1

    def test_split_cancel_then_direct(self, monkeypatch):
        _scripted_input(monkeypatch, ["s", "2 -1", "x", "a 1"])

        async def _run():
            game = await _rolled_game(dice=3)
            await cli.prompt_decision(game)
            return game

        game = asyncio.run(_run())
        assert game.state.get_player("p1").hearts == 0
        assert game.state.players[0].hearts == 3


class TestAutoPlay:
    def test_auto_decide_always_completes_the_turn(self):
        async def _run():
            rng = random.Random(3)
            for dice in range(1, 7):
                game = await _rolled_game(dice=dice, num_players=4)
                await cli.auto_decide(game, rng)
                assert game.state.phase == GamePhase.ROLL
                assert game.state.current_player_index == 1
        asyncio.run(_run())

    def test_watch_mode_runs_to_the_end(self, capsys):
        game = cli.CLIGame(["A", "B", "C"], watch=True, seed=4, max_turns=400)
        asyncio.run(game.run())
        out = capsys.readouterr().out
        assert "TARAQ" in out
        state = game.game.state
        assert state.phase == GamePhase.GAME_OVER or state.turn_count >= 400
