import argparse
import json
import logging
import os
import random
import sys
from typing import List, Optional

from fluff.core.bet import Bet, RaiseError
from fluff.core.config import GameConfig
from fluff.core.game import Game, FluffCallTransition
from fluff.core.player import Player
from fluff.core.round import explain_call
from fluff.core.state import RoundPhase
from fluff.persistence import serializer
from fluff.persistence.recorder import InMemoryRecorder

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def print_dice_counts(game: Game):
    """
    Print how many dice each seated player still holds.
    Args:
        game (Game): Game in any phase.
    """
    print("\nCurrent dice counts:")
    for player, count in game.player_dice_counts.items():
        print(f"  {player} has {count}")


def wait_player_ready(player: Player):
    """Hot-seat handover: keep the screen clear until the right player is at the keyboard."""
    while input(f"\nPlayer {player} ready? (y/n): ").strip().lower() not in ("y", "yes"):
        pass


def print_turn(game: Game):
    round_ = game.curr_round
    print(f"\n=== ROUND {len(game.round_history) + 1} ===")
    print(f"{round_.current_player}, your dice: {round_.current_player_rolls.rolls}")
    last = round_.last_turn
    if last is None:
        print("No bets yet.")
    else:
        print(f"Last bet: {last.bet} by {last.player}")


def prompt_bet(prev_bet: Optional[Bet]) -> Optional[Bet]:
    """
    Prompt for a bet written as "<count> <roll>" until it parses and raises the standing bet.
    Returns:
        Bet or None: The confirmed bet, or None if the player backed out.
    """
    while True:
        text = input('Input your bet as "<count> <roll>": ')
        try:
            bet = Bet.parse(text)
            if prev_bet is not None:
                bet.validate_raise_from(prev_bet)
        except ValueError as e:
            print(f"Invalid bet: {e}")
            continue
        confirm = input(f"Confirm bet of {bet}? (Y/n): ").strip().lower()
        return None if confirm in ("n", "no") else bet


def explain_fluff_result(transition: FluffCallTransition):
    """
    Print the reveal of the round that was just called: every hand, the running total and who lost a die.
    """
    game = transition.game
    report = explain_call(game.last_round)
    verdict = report.verdict
    print(f"\n{verdict.caller} called fluff on the bet of {report.bet} made by {verdict.better}!\nRolls:")
    for tally in report.tallies:
        print(f"  {tally.player} had {list(tally.rolls)}: {tally.matches} effective {report.bet.roll}(s)"
              f" => current total {tally.running_total}")
    print(f"{report.total} {report.bet.roll}(s) is {report.relationship} {report.bet.count}, "
          f"so {verdict.winner} is correct and {verdict.loser} loses the round")
    remaining = game.player_dice_counts[verdict.loser]
    print(f"Since {verdict.loser} lost this round, their dice count goes from {remaining + 1} to {remaining}")


def run_round(game: Game) -> FluffCallTransition:
    """
    Play one round from its opening bet to the fluff call.
    Args:
        game (Game): Game holding a fresh round.
    Returns:
        FluffCallTransition: Result of the call.
    """
    print_dice_counts(game)
    while True:
        round_ = game.curr_round
        wait_player_ready(round_.current_player)
        print_turn(game)
        if round_.phase is RoundPhase.BETTING:
            choice = input("Choose action: 1) Raise  2) Call fluff  (1-2): ").strip()
            if choice == "2":
                return game.call_fluff()
            if choice != "1":
                print("Choice not recognized.")
                continue
        bet = prompt_bet(round_.prev_bet)
        if bet is None:
            continue
        try:
            game = game.raise_bet(bet)
        except RaiseError as e:
            print(f"Invalid bet: {e}")


def play(names: List[str], config: GameConfig, rng: Optional[random.Random] = None,
         save_path: Optional[str] = None) -> Game:
    """
    Run a hot-seat game in the terminal until one player is left.
    Args:
        names (list[str]): Player names in seating order.
        config (GameConfig): Rule options.
        rng (random.Random|None): Dice source.
        save_path (str|None): If given, the finished game and its events are written there as JSON.
    Returns:
        Game: The finished game.
    """
    recorder = InMemoryRecorder()
    game = Game.new([Player(n) for n in names], config, rng=rng, recorder=recorder)
    while True:
        transition = run_round(game)
        explain_fluff_result(transition)
        game = transition.game
        if transition.is_game_over:
            break
    print(f"\n{game.winner} wins after {len(game.round_history)} round(s)!")
    if save_path:
        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        snapshot = serializer.game_to_dict(game)
        snapshot["events"] = serializer.events_to_list(recorder.events())
        with open(save_path, "w", encoding="utf-8") as f:
            f.write(json.dumps(snapshot, indent=2))
        print(f"Saved game to {save_path}")
    return game


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Fluff (liar's dice) in the terminal, hot-seat style.")
    parser.add_argument("players", nargs="+", help="Player names, in seating order")
    parser.add_argument("--dice", type=int, default=5, help="Dice each player starts with")
    parser.add_argument("--faces", type=int, default=6, help="Faces per die")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible dice")
    parser.add_argument("--save", default=None, help="Write the finished game to this JSON file")
    parser.add_argument("--log-level", type=str.upper, default="WARNING", choices=LOG_LEVELS,
                        help="Logging level (DEBUG reveals every roll)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    if len(set(args.players)) != len(args.players):
        print("Player names must be distinct.", file=sys.stderr)
        return 2
    try:
        config = GameConfig(max_dice=args.dice, max_roll=args.faces)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        play(args.players, config, rng=rng, save_path=args.save)
    except (KeyboardInterrupt, EOFError):
        print("\nGame aborted.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
