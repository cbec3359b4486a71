"""
state.py
Defines the phase tags and phase-specific payloads for rounds and games.
A Round or Game carries exactly one payload; its class decides which operations are legal.
Related modules:
- round.py: Round.state_data is one of NewRound, Betting, Called.
- game.py: Game.state_data is one of InRound, GameOver.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Tuple

from .bet import Bet
from .player import Player

if TYPE_CHECKING:
    from .round import Round


class IllegalMoveError(Exception):
    """
    Raised when an operation is attempted in a phase where it is meaningless,
    or on a round/game value that a previous transition already consumed.
    """
    pass


class RoundPhase(Enum):
    FRESH = "fresh"
    BETTING = "betting"
    RESOLVED = "resolved"


class GamePhase(Enum):
    IN_ROUND = "in_round"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class PlayerRolls:
    """
    A player together with the dice they rolled this round.
    Fields:
        player (Player): Shared player identity.
        rolls (tuple[int]): That player's dice.
    """
    player: Player
    rolls: Tuple[int, ...]


@dataclass(frozen=True)
class NewRound:
    """Fresh round: nobody has bet yet. `first_player_rolls` belongs to whoever opens."""
    first_player_rolls: PlayerRolls

    phase = RoundPhase.FRESH


@dataclass(frozen=True)
class Betting:
    """
    Betting in progress.
    Fields:
        curr_player_rolls (PlayerRolls): Player due to act next, with their dice.
        prev_bet (Bet): Standing bet that any raise must exceed.
    """
    curr_player_rolls: PlayerRolls
    prev_bet: Bet

    phase = RoundPhase.BETTING


@dataclass(frozen=True)
class Called:
    """
    Resolved round verdict.
    Fields:
        caller (Player): Player who called fluff.
        better (Player): Player who made the final bet.
        was_fluff (bool): True if the final bet was false.
    """
    caller: Player
    better: Player
    was_fluff: bool

    phase = RoundPhase.RESOLVED

    @property
    def loser(self) -> Player:
        return self.better if self.was_fluff else self.caller

    @property
    def winner(self) -> Player:
        return self.caller if self.was_fluff else self.better


@dataclass(frozen=True)
class InRound:
    curr_round: "Round"

    phase = GamePhase.IN_ROUND


@dataclass(frozen=True)
class GameOver:
    winner: Player

    phase = GamePhase.GAME_OVER
