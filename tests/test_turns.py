"""Unit tests for turns.py — roll resolution, direct actions and split mode."""
import re

from taraq.game import turns
from taraq.game.game_state import GamePhase, GameState, LogType
from taraq.game.player import Player
from taraq.game.turns import HeartAction


def _make_state(num_players=3, dice_value=None) -> GameState:
    state = GameState(game_id="test", phase=GamePhase.ROLL)
    for i in range(num_players):
        state.players.append(Player(id=f"p{i}", name=f"Player {i}"))
    if dice_value is not None:
        turns.resolve_roll(state, dice_value)
    return state


class TestResolveRoll:
    def test_sets_dice_and_phase(self):
        state = _make_state()
        state.is_rolling = True
        entry = turns.resolve_roll(state, 4)
        assert state.dice_value == 4
        assert state.phase == GamePhase.DECIDE
        assert state.is_rolling is False
        assert entry.text == "Player 0 rolled a 4."
        assert entry.type == LogType.NEUTRAL


class TestApplyDirectAction:
    def test_requires_dice(self):
        state = _make_state()
        assert turns.apply_direct_action(state, "p1", HeartAction.ADD) is None
        assert state.players[1].hearts == 0
        assert state.logs == []

    def test_add_to_other(self):
        state = _make_state(dice_value=3)
        outcome = turns.apply_direct_action(state, "p1", HeartAction.ADD)
        assert state.players[1].hearts == 3
        assert outcome.is_self is False
        assert outcome.remaining_hearts == 3
        assert state.logs[-1].text == "Player 0 gave 3 hearts to Player 1."
        assert state.logs[-1].type == LogType.POSITIVE

    def test_remove_from_self(self):
        state = _make_state(dice_value=2)
        outcome = turns.apply_direct_action(state, "p0", HeartAction.REMOVE)
        assert state.players[0].hearts == -2
        assert outcome.is_self is True
        assert state.logs[-1].text == "Player 0 removed 2 hearts from themselves."
        assert state.logs[-1].type == LogType.NEGATIVE

    def test_no_positive_clamp(self):
        state = _make_state(dice_value=6)
        state.players[1].hearts = 100
        turns.apply_direct_action(state, "p1", HeartAction.ADD)
        assert state.players[1].hearts == 106

    def test_death_at_threshold(self):
        state = _make_state(dice_value=1)
        state.players[1].hearts = -4
        outcome = turns.apply_direct_action(state, "p1", HeartAction.REMOVE)
        assert state.players[1].hearts == -5
        assert state.players[1].is_dead is True
        assert outcome.is_death is True
        assert state.logs[-1].type == LogType.DEATH
        assert state.logs[-1].text == "Player 1 has fallen! (Hearts: -5)"

    def test_zero_amount_at_minus_four_stays_alive(self):
        state = _make_state(dice_value=1)
        state.players[1].hearts = -4
        outcome = turns.apply_direct_action(state, "p1", HeartAction.REMOVE, amount=0)
        assert state.players[1].hearts == -4
        assert state.players[1].is_dead is False
        assert outcome.is_death is False

    def test_dead_target_rejected(self):
        state = _make_state(dice_value=3)
        state.players[1].is_dead = True
        state.players[1].hearts = -6
        assert turns.apply_direct_action(state, "p1", HeartAction.ADD) is None
        assert state.players[1].hearts == -6

    def test_unknown_target_rejected(self):
        state = _make_state(dice_value=3)
        assert turns.apply_direct_action(state, "ghost", HeartAction.ADD) is None

    def test_death_is_a_latch(self):
        player = Player(id="x", name="X", hearts=-5, is_dead=True)
        assert player.apply_hearts(10) is False
        assert player.hearts == 5
        assert player.is_dead is True


class TestToggleSplit:
    def test_enable_requires_roll_above_one(self):
        state = _make_state(dice_value=1)
        assert turns.toggle_split(state, True) is False
        assert state.is_split_mode is False

    def test_enable_and_disable(self):
        state = _make_state(dice_value=4)
        assert turns.toggle_split(state, True) is True
        turns.adjust_split(state, "p1", 2)
        assert turns.toggle_split(state, False) is True
        assert state.is_split_mode is False
        assert state.split_actions == {}

    def test_enable_outside_decide(self):
        state = _make_state()
        assert turns.toggle_split(state, True) is False


class TestAdjustSplit:
    def test_requires_split_mode(self):
        state = _make_state(dice_value=4)
        assert turns.adjust_split(state, "p1", 1) is False

    def test_budget_enforced(self):
        state = _make_state(dice_value=4)
        turns.toggle_split(state, True)
        assert turns.adjust_split(state, "p0", 2) is True
        assert turns.adjust_split(state, "p1", 3) is False
        assert turns.adjust_split(state, "p1", 2) is True
        assert state.split_actions == {"p0": 2, "p1": 2}

    def test_zero_delta_entry_removed(self):
        state = _make_state(dice_value=3)
        turns.toggle_split(state, True)
        turns.adjust_split(state, "p1", -1)
        turns.adjust_split(state, "p1", 1)
        assert state.split_actions == {}

    def test_dead_target_rejected(self):
        state = _make_state(dice_value=3)
        state.players[2].is_dead = True
        turns.toggle_split(state, True)
        assert turns.adjust_split(state, "p2", 1) is False


class TestCommitSplit:
    def test_applies_all_deltas_atomically(self):
        state = _make_state(dice_value=5)
        turns.toggle_split(state, True)
        turns.adjust_split(state, "p1", -3)
        turns.adjust_split(state, "p2", 2)
        logs_before = len(state.logs)
        outcome = turns.commit_split(state)
        assert state.players[1].hearts == -3
        assert state.players[2].hearts == 2
        assert outcome.deltas == {"p1": -3, "p2": 2}
        assert len(state.logs) == logs_before + 1
        assert state.logs[-1].text == "Player 0 split 5: Player 1 -3, Player 2 +2."
        assert state.logs[-1].type == LogType.NEGATIVE
        assert state.split_actions == {}
        assert state.is_split_mode is False

    def test_single_death_wording(self):
        state = _make_state(dice_value=3)
        state.players[1].hearts = -3
        turns.toggle_split(state, True)
        turns.adjust_split(state, "p1", -2)
        turns.adjust_split(state, "p2", 1)
        outcome = turns.commit_split(state)
        assert [p.id for p in outcome.deaths] == ["p1"]
        assert state.logs[-1].text == "Player 1 has fallen!"
        assert state.logs[-1].type == LogType.DEATH

    def test_multiple_deaths_aggregated(self):
        state = _make_state(num_players=4, dice_value=4)
        state.players[1].hearts = -3
        state.players[2].hearts = -4
        state.players[3].hearts = -4
        turns.toggle_split(state, True)
        turns.adjust_split(state, "p1", -2)
        turns.adjust_split(state, "p2", -1)
        turns.adjust_split(state, "p3", -1)
        turns.commit_split(state)
        deaths = [e for e in state.logs if e.type == LogType.DEATH]
        assert len(deaths) == 1
        assert deaths[0].text == "Player 1, Player 2 and Player 3 have fallen!"

    def test_unused_points_allowed(self):
        state = _make_state(dice_value=4)
        turns.toggle_split(state, True)
        turns.adjust_split(state, "p1", 1)
        assert turns.commit_split(state) is not None
        assert state.players[1].hearts == 1

    def test_empty_commit_logged(self):
        state = _make_state(dice_value=4)
        turns.toggle_split(state, True)
        turns.commit_split(state)
        assert state.logs[-1].text == "Player 0 left 4 hearts unassigned."

    def test_requires_dice(self):
        state = _make_state()
        assert turns.commit_split(state) is None

    def test_requires_split_mode(self):
        state = _make_state(dice_value=4)
        logs_before = len(state.logs)
        assert turns.commit_split(state) is None
        assert len(state.logs) == logs_before
        assert state.phase == GamePhase.DECIDE

    def test_roll_of_one_cannot_be_committed(self):
        state = _make_state(dice_value=1)
        assert turns.toggle_split(state, True) is False
        assert turns.commit_split(state) is None
        assert state.dice_value == 1


class TestLogReplay:
    """Heart totals can be rebuilt from the action log alone."""

    _DIRECT = re.compile(r"^(.+) (gave|removed) (\d+) hearts (?:to|from) (.+)\.$")

    def _replay(self, state: GameState) -> dict:
        hearts = {p.name: 0 for p in state.players}
        for entry in state.logs:
            m = self._DIRECT.match(entry.text)
            if m:
                actor, verb, amount, target = m.groups()
                name = actor if target == "themselves" else target
                hearts[name] += int(amount) if verb == "gave" else -int(amount)
                continue
            if " split " in entry.text and ": " in entry.text:
                for part in entry.text.split(": ", 1)[1].rstrip(".").split(", "):
                    name, delta = part.rsplit(" ", 1)
                    hearts[name] += int(delta)
        return hearts

    def test_replay_matches_hearts(self):
        state = _make_state(num_players=3)
        script = [
            (4, "direct", "p1", HeartAction.REMOVE),
            (2, "direct", "p0", HeartAction.ADD),
            (5, "split", {"p1": -2, "p2": -3}, None),
            (3, "direct", "p2", HeartAction.REMOVE),
        ]
        for value, kind, target, action in script:
            state.phase = GamePhase.ROLL
            turns.resolve_roll(state, value)
            if kind == "direct":
                turns.apply_direct_action(state, target, action)
            else:
                turns.toggle_split(state, True)
                for pid, delta in target.items():
                    turns.adjust_split(state, pid, delta)
                turns.commit_split(state)
        replayed = self._replay(state)
        assert replayed == {p.name: p.hearts for p in state.players}
