#!/usr/bin/env python3
"""
CLI for playing Taraq in one terminal, without a server.

Usage:
    python cli.py Alice Bob Carol         # hot-seat game, names in turn order
    python cli.py --watch                 # 4 automatic players, spectator mode
    python cli.py --watch --players 6 --seed 7
    python cli.py Alice Bob --delay 0.5   # dramatic dice pause
"""
from __future__ import annotations

import argparse
import asyncio
import random
import sys
from typing import List, Optional

from taraq.core.dice import DiceSource
from taraq.game import split
from taraq.game.game import TaraqGame
from taraq.game.game_state import GamePhase, GameState, LogType
from taraq.game.player import DEATH_THRESHOLD, Player
from taraq.game.turns import HeartAction
from taraq.services.commentary import create_commentary_service


# -- ANSI colors ---------------------------------------------------------------

RESET  = "\033[0m"
BOLD   = "\033[1m"
DIM    = "\033[2m"
RED    = "\033[91m"
GREEN  = "\033[92m"
YELLOW = "\033[93m"
BLUE   = "\033[94m"
CYAN   = "\033[96m"
WHITE  = "\033[97m"

LOG_COLORS = {
    LogType.NEUTRAL: DIM,
    LogType.POSITIVE: GREEN,
    LogType.NEGATIVE: RED,
    LogType.DEATH: RED + BOLD,
    LogType.COMMENTARY: CYAN,
}


def fmt_hearts(n: int) -> str:
    if n <= DEATH_THRESHOLD:
        clr = RED + BOLD
    elif n < 0:
        clr = RED
    elif n > 0:
        clr = GREEN
    else:
        clr = WHITE
    return f"{clr}{n:+d}♥{RESET}"


# -- Display helpers -----------------------------------------------------------

def print_divider(label: str = "") -> None:
    if label:
        print(f"\n{DIM}{'─' * 20} {BOLD}{WHITE}{label} {DIM}{'─' * 20}{RESET}")
    else:
        print(f"{DIM}{'─' * 60}{RESET}")


def print_table(state: GameState) -> None:
    """Print every seat with its hearts and pending split delta."""
    print()
    for i, p in enumerate(state.players, start=1):
        marker = f"{CYAN}>{RESET} " if i - 1 == state.current_player_index else "  "
        status = f" {RED}(dead){RESET}" if p.is_dead else ""
        pending = state.split_actions.get(p.id)
        pending_str = f"  {YELLOW}pending {pending:+d}{RESET}" if pending else ""
        print(f"  {marker}[{i}] {p.name:<12} {fmt_hearts(p.hearts):>18}{status}{pending_str}")
    if state.is_split_mode and state.dice_value is not None:
        left = split.remaining_points(state.split_actions, state.dice_value)
        print(f"\n  Split points left: {YELLOW}{left}{RESET}")
    print()


class LogPrinter:
    """Prints log entries appended since the last call."""

    def __init__(self) -> None:
        self._seen = 0

    def flush(self, state: GameState) -> None:
        for entry in state.logs[self._seen:]:
            clr = LOG_COLORS.get(entry.type, "")
            prefix = "☠ " if entry.type == LogType.DEATH else ""
            print(f"  {clr}{prefix}{entry.text}{RESET}")
        self._seen = len(state.logs)

    def rewind(self) -> None:
        self._seen = 0


# -- Input helpers -------------------------------------------------------------

def read(prompt: str) -> str:
    try:
        return input(f"  {BOLD}{prompt}{RESET}").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        sys.exit(0)


def parse_seat(state: GameState, token: str) -> Optional[Player]:
    try:
        idx = int(token) - 1
    except ValueError:
        return None
    if 0 <= idx < len(state.players) and not state.players[idx].is_dead:
        return state.players[idx]
    return None


async def prompt_decision(game: TaraqGame) -> None:
    """Ask the current player what to do with the roll until something applies."""
    state = game.state
    can_split = (state.dice_value or 0) > 1
    options = [
        f"  {GREEN}[a N]{RESET} give {state.dice_value} hearts to seat N",
        f"  {RED}[r N]{RESET} remove {state.dice_value} hearts from seat N",
    ]
    if can_split:
        options.append(f"  {YELLOW}[s]{RESET}   split the roll across several seats")
    print("\n".join(options))

    while True:
        parts = read("Your decision: ").split()
        if not parts:
            continue
        cmd = parts[0]
        if cmd in ("a", "r") and len(parts) == 2:
            target = parse_seat(state, parts[1])
            if target is None:
                print(f"  {RED}No living player in that seat.{RESET}")
                continue
            action = HeartAction.ADD if cmd == "a" else HeartAction.REMOVE
            if await game.apply_direct_action(target.id, action):
                return
        elif cmd == "s" and can_split:
            await game.toggle_split(True)
            if await prompt_split(game):
                return
            await game.toggle_split(False)
            print("\n".join(options))
        else:
            print(f"  {DIM}Enter 'a 2', 'r 3' or 's'{RESET}")


async def prompt_split(game: TaraqGame) -> bool:
    """Run split mode. Returns False if the player backed out."""
    state = game.state
    print(f"  {DIM}'N +k' / 'N -k' adjusts seat N, 'c' commits, 'x' cancels{RESET}")
    while True:
        print_table(state)
        parts = read("Split: ").split()
        if not parts:
            continue
        if parts[0] == "x":
            return False
        if parts[0] == "c":
            return await game.commit_split()
        if len(parts) == 2:
            target = parse_seat(state, parts[0])
            try:
                delta = int(parts[1])
            except ValueError:
                delta = 0
            if target is not None and delta and await game.adjust_split(target.id, delta):
                continue
        print(f"  {RED}That does not fit in the roll.{RESET}")


# -- Automatic players (spectator mode) ----------------------------------------

async def auto_decide(game: TaraqGame, rng: random.Random) -> None:
    """A deliberately simple policy: heal yourself when low, else hurt the healthiest."""
    state = game.state
    me = state.current_player
    living = state.living_players
    others = [p for p in living if p.id != me.id]
    if me.hearts - (state.dice_value or 0) <= DEATH_THRESHOLD + 1 or not others:
        await game.apply_direct_action(me.id, HeartAction.ADD)
        return

    if (state.dice_value or 0) > 2 and len(others) > 1 and rng.random() < 0.3:
        await game.toggle_split(True)
        victims = sorted(others, key=lambda p: p.hearts)[:2]
        for _ in range(state.dice_value):
            await game.adjust_split(rng.choice(victims).id, -1)
        await game.commit_split()
        return

    target = max(others, key=lambda p: (p.hearts, rng.random()))
    await game.apply_direct_action(target.id, HeartAction.REMOVE)


# -- Game driver ---------------------------------------------------------------

class CLIGame:
    """Drive a TaraqGame from the terminal. Every seat is a local hot-seat."""

    def __init__(
        self,
        names: List[str],
        watch: bool = False,
        seed: Optional[int] = None,
        delay: float = 0.0,
        max_turns: int = 0,
    ) -> None:
        self.names = names
        self.watch = watch
        self.rng = random.Random(seed)
        self.max_turns = max_turns
        self.game = TaraqGame(
            game_id="cli",
            host_name=names[0],
            dice=DiceSource(random.Random(self.rng.random())),
            commentary=create_commentary_service(),
            settle_delay=delay,
        )
        self.logs = LogPrinter()

    async def run(self) -> None:
        for name in self.names[1:]:
            await self.game.add_local_player(name)

        while True:
            await self.game.start_game()
            await self._play_round()
            if self.watch or read("Play again? [y/N] ") not in ("y", "yes"):
                break
            await self.game.reset()
            self.logs.rewind()
        self.game.close()

    async def _play_round(self) -> None:
        game = self.game
        state = game.state
        print_divider("TARAQ")
        self.logs.flush(state)

        while state.phase != GamePhase.GAME_OVER:
            if self.max_turns and state.turn_count >= self.max_turns:
                print(f"\n  {DIM}Stopped after {state.turn_count} turns.{RESET}")
                return
            player = state.current_player
            print_divider(f"TURN {state.turn_count + 1}: {player.name.upper()}")
            print_table(state)

            if not self.watch:
                read("Press Enter to roll...")
            await game.roll_dice()
            self.logs.flush(state)

            if self.watch:
                await auto_decide(game, self.rng)
            else:
                await prompt_decision(game)
            await game.drain()
            self.logs.flush(state)

        print_divider("GAME OVER")
        print_table(state)
        if state.winner:
            print(f"  {GREEN}{BOLD}{state.winner.name} wins after {state.turn_count} turns!{RESET}")
        else:
            print(f"  {RED}{BOLD}Nobody survived.{RESET}")
        if state.ai_commentary:
            print(f'  {CYAN}"{state.ai_commentary}"{RESET}')
        print()


# -- Entry point ---------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Taraq — hot-seat CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  python cli.py Alice Bob Carol        three players taking turns at one keyboard
  python cli.py --watch                spectate 4 automatic players
  python cli.py --watch --players 6    spectate 6 automatic players
  python cli.py --watch --turns 20     stop after 20 turns
""",
    )
    parser.add_argument("names", nargs="*", help="player names in turn order")
    parser.add_argument("--watch", action="store_true", help="automatic players, spectator mode")
    parser.add_argument("--players", type=int, default=4, help="automatic players with --watch (default: 4)")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--delay", type=float, default=0.0, help="dice settle delay in seconds")
    parser.add_argument("--turns", type=int, default=0, help="stop after this many turns (0=unlimited)")

    args = parser.parse_args()

    names = args.names
    if args.watch and not names:
        names = [f"Bot {i + 1}" for i in range(max(2, args.players))]
    if len(names) < 2:
        parser.error("at least 2 player names are needed (or use --watch)")

    game = CLIGame(
        names=names,
        watch=args.watch,
        seed=args.seed,
        delay=args.delay,
        max_turns=args.turns,
    )
    asyncio.run(game.run())


if __name__ == "__main__":
    main()
