"""
round.py
Implements the Round state machine: rolling hands, accepting raises in turn order and resolving a fluff call.
Related modules:
- state.py: Phase payloads (NewRound, Betting, Called) and IllegalMoveError.
- bet.py: Raise validation and the fluff predicate.
- dice.py: Rolls each player's hand.
- game.py: Creates rounds and consumes resolved ones.
"""

import logging
import random
from dataclasses import FrozenInstanceError, dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .bet import Bet
from .dice import roll_n
from .player import Player
from .rules import count_matches_by_player
from .state import Betting, Called, IllegalMoveError, NewRound, PlayerRolls, RoundPhase

logger = logging.getLogger(__name__)

RoundState = Union[NewRound, Betting, Called]


class PlayerNotActiveError(LookupError):
    """
    Raised when a round is seeded with a first player who holds no dice.
    """
    def __init__(self, player: Player):
        self.player = player
        super().__init__(f"Player {player} has no dice left and can not start the round")


@dataclass(frozen=True)
class Turn:
    """One bet made by one player. Turns are only ever appended."""
    player: Player
    bet: Bet


@dataclass
class Round:
    """
    A single round of Fluff. Which operations are legal depends on `state_data`:
    NewRound -> raise_bet, Betting -> raise_bet / call_fluff, Called -> read only.
    Fields:
        players_rolls (mapping): Player -> dice, in turn order. Read-only.
        turns (tuple[Turn]): Bets made so far, oldest first.
        state_data: Phase payload.
    A resolved round can not be changed at all.
    """
    players_rolls: Mapping[Player, Tuple[int, ...]]
    turns: Tuple[Turn, ...]
    state_data: RoundState
    _consumed: bool = field(default=False, compare=False, repr=False)
    _order: List[Player] = field(init=False, compare=False, repr=False)
    _seats: Dict[Player, int] = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.players_rolls, MappingProxyType):
            self.players_rolls = MappingProxyType(dict(self.players_rolls))
        self._order = list(self.players_rolls)
        self._seats = {player: i for i, player in enumerate(self._order)}
        # Resolved rounds never change again
        self._sealed = self.is_resolved

    def __setattr__(self, name, value):
        if self.__dict__.get("_sealed", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r} of a resolved round")
        super().__setattr__(name, value)

    @classmethod
    def new(cls,
            player_dice_counts: Mapping[Player, int],
            max_roll: int,
            rng: Optional[random.Random] = None) -> "Round":
        """
        Roll a fresh round for every player with dice left. The first of them opens.
        Args:
            player_dice_counts (mapping): Player -> remaining dice, in seating order.
            max_roll (int): Number of faces per die.
            rng (random.Random|None): Source of randomness.
        Raises:
            ValueError: If no player has any dice.
        """
        players_rolls = {
            player: roll_n(dice_count, max_roll, rng)
            for player, dice_count in player_dice_counts.items()
            if dice_count != 0
        }
        if not players_rolls:
            raise ValueError("Can not start a round without any player holding dice")
        for player, rolls in players_rolls.items():
            logger.debug("Rolled %s for %s", rolls, player)
        first = next(iter(players_rolls))
        return cls(
            players_rolls=players_rolls,
            turns=(),
            state_data=NewRound(PlayerRolls(first, players_rolls[first])),
        )

    @classmethod
    def new_with_first_player(cls,
                              player_dice_counts: Mapping[Player, int],
                              max_roll: int,
                              first_player: Player,
                              rng: Optional[random.Random] = None) -> "Round":
        """
        Like `new`, but `first_player` opens instead of the first seated player.
        Seating order, and therefore turn order after the opener, is unchanged.
        Raises:
            PlayerNotActiveError: If `first_player` has no dice left.
        """
        if player_dice_counts.get(first_player, 0) == 0:
            raise PlayerNotActiveError(first_player)
        round_ = cls.new(player_dice_counts, max_roll, rng)
        round_.state_data = NewRound(PlayerRolls(first_player, round_.players_rolls[first_player]))
        return round_

    @property
    def phase(self) -> RoundPhase:
        return self.state_data.phase

    @property
    def is_resolved(self) -> bool:
        return self.phase is RoundPhase.RESOLVED

    def _require(self, action: str, *phases: RoundPhase) -> None:
        if self._consumed:
            raise IllegalMoveError(f"Can not {action}: this round was consumed by an earlier transition")
        if self.phase not in phases:
            raise IllegalMoveError(f"Can not {action} in a {self.phase.value} round")

    def _next_state(self, turn: Turn) -> Betting:
        next_index = (self._seats[turn.player] + 1) % len(self._order)
        next_player = self._order[next_index]
        return Betting(PlayerRolls(next_player, self.players_rolls[next_player]), turn.bet)

    @property
    def current_player_rolls(self) -> PlayerRolls:
        """The player due to act and their own dice. Unresolved rounds only."""
        self._require("look up the current player", RoundPhase.FRESH, RoundPhase.BETTING)
        if isinstance(self.state_data, NewRound):
            return self.state_data.first_player_rolls
        return self.state_data.curr_player_rolls

    @property
    def current_player(self) -> Player:
        return self.current_player_rolls.player

    @property
    def prev_bet(self) -> Optional[Bet]:
        """Bet a raise must exceed, None before the first bet."""
        if isinstance(self.state_data, Betting):
            return self.state_data.prev_bet
        if self.turns:
            return self.turns[-1].bet
        return None

    @property
    def last_turn(self) -> Optional[Turn]:
        return self.turns[-1] if self.turns else None

    def all_rolls(self) -> Iterator[int]:
        """Every die on the table, flattened in seating order."""
        for rolls in self.players_rolls.values():
            yield from rolls

    def raise_bet(self, bet: Bet) -> "Round":
        """
        Make a bet for the player due to act.
        On a fresh round the bet is accepted unconditionally and a new betting round
        is returned; the fresh round must not be used afterwards. On a betting round
        the bet must raise the standing one; the round is updated in place and returned.
        Args:
            bet (Bet): The new bet.
        Returns:
            Round: The betting round.
        Raises:
            RaiseError: If the bet does not raise the standing bet. Nothing changes.
            IllegalMoveError: If the round is resolved or consumed.
        """
        self._require("raise a bet", RoundPhase.FRESH, RoundPhase.BETTING)
        if isinstance(self.state_data, Betting):
            bet.validate_raise_from(self.state_data.prev_bet)
            turn = Turn(self.state_data.curr_player_rolls.player, bet)
            self.state_data = self._next_state(turn)
            self.turns = self.turns + (turn,)
            logger.debug("%s raised to %s", turn.player, bet)
            return self

        turn = Turn(self.state_data.first_player_rolls.player, bet)
        betting = Round(
            players_rolls=self.players_rolls,
            turns=self.turns + (turn,),
            state_data=self._next_state(turn),
        )
        self._consumed = True
        logger.debug("%s opened with %s", turn.player, bet)
        return betting

    def call_fluff(self) -> "Round":
        """
        The player due to act challenges the standing bet.
        Returns:
            Round: A resolved round carrying the verdict. This round is consumed.
        Raises:
            IllegalMoveError: If no bet has been made yet, or the round is resolved or consumed.
        """
        self._require("call fluff", RoundPhase.BETTING)
        prev_bet = self.state_data.prev_bet
        verdict = Called(
            caller=self.state_data.curr_player_rolls.player,
            better=self.turns[-1].player,
            was_fluff=prev_bet.is_fluff(self.all_rolls()),
        )
        self._consumed = True
        logger.info(
            "%s called fluff on %s by %s: %s",
            verdict.caller, prev_bet, verdict.better,
            "it was fluff" if verdict.was_fluff else "the bet held",
        )
        return Round(players_rolls=self.players_rolls, turns=self.turns, state_data=verdict)


@dataclass(frozen=True)
class PlayerTally:
    """How many dice one player contributed to the final bet."""
    player: Player
    rolls: Tuple[int, ...]
    matches: int
    running_total: int


@dataclass(frozen=True)
class CallReport:
    """
    Recount of a resolved round.
    Fields:
        bet (Bet): Final bet that was called.
        verdict (Called): Stored verdict of the round.
        tallies (tuple[PlayerTally]): Per-player counts in seating order.
        total (int): Dice matching the final bet across the table.
    """
    bet: Bet
    verdict: Called
    tallies: Tuple[PlayerTally, ...]
    total: int

    @property
    def recomputed_fluff(self) -> bool:
        return self.total < self.bet.count

    @property
    def consistent(self) -> bool:
        return self.recomputed_fluff == self.verdict.was_fluff

    @property
    def relationship(self) -> str:
        if self.total > self.bet.count:
            return "greater than"
        if self.total == self.bet.count:
            return "equal to"
        return "less than"


def explain_call(round_: Round) -> CallReport:
    """
    Recount the dice of a resolved round against its final bet.
    A recount that disagrees with the stored verdict is logged; the stored verdict stands.
    Args:
        round_ (Round): A resolved round.
    Returns:
        CallReport: Per-player tallies and the recount.
    Raises:
        IllegalMoveError: If the round is not resolved.
    """
    if not round_.is_resolved:
        raise IllegalMoveError(f"Can not explain a {round_.phase.value} round")
    bet = round_.turns[-1].bet
    matches = count_matches_by_player(round_.players_rolls, bet.roll)
    tallies = []
    total = 0
    for player, rolls in round_.players_rolls.items():
        total += matches[player]
        tallies.append(PlayerTally(player, rolls, matches[player], total))
    report = CallReport(bet=bet, verdict=round_.state_data, tallies=tuple(tallies), total=total)
    if not report.consistent:
        logger.warning(
            "Discrepancy in was_fluff: stored %s, but a total of %d effective %d(s) against %s says %s",
            report.verdict.was_fluff, total, bet.roll, bet, report.recomputed_fluff,
        )
    return report
