"""
game.py
Implements the Game state machine, which carries dice counts and round history from round to round
until one player is left.
Related modules:
- round.py: Each Game in progress owns one unresolved Round.
- state.py: InRound / GameOver payloads and IllegalMoveError.
- config.py: GameConfig sets starting dice and die faces.
- persistence/recorder.py: Optional sink for the events a Game emits.
"""

import logging
import random
from dataclasses import FrozenInstanceError, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..persistence.events import GameEvent
from .bet import Bet
from .config import GameConfig
from .player import Player
from .round import Round
from .state import GameOver, GamePhase, IllegalMoveError, InRound, RoundPhase

logger = logging.getLogger(__name__)

GameState = Union[InRound, GameOver]


class TransitionKind(Enum):
    NEXT_ROUND = "next_round"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class FluffCallTransition:
    """
    Outcome of Game.call_fluff. Check `kind` before continuing:
    NEXT_ROUND wraps a game with a fresh round, GAME_OVER a finished game.
    """
    kind: TransitionKind
    game: "Game"

    @property
    def is_game_over(self) -> bool:
        return self.kind is TransitionKind.GAME_OVER


@dataclass
class Game:
    """
    A whole game of Fluff.
    Fields:
        player_dice_counts (mapping): Player -> remaining dice, in seating order. Read-only.
        config (GameConfig): Rule options.
        round_history (tuple[Round]): Resolved rounds, oldest first.
        state_data: InRound while playing, GameOver once one player is left.
        rng (random.Random|None): Dice source for new rounds. Not part of equality.
        recorder: Optional event sink with a `record(event)` method. Not part of equality.
    A finished game can not be changed at all.
    """
    player_dice_counts: Mapping[Player, int]
    config: GameConfig
    round_history: Tuple[Round, ...]
    state_data: GameState
    rng: Optional[random.Random] = field(default=None, compare=False, repr=False)
    recorder: Any = field(default=None, compare=False, repr=False)
    _consumed: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.player_dice_counts, MappingProxyType):
            self.player_dice_counts = MappingProxyType(dict(self.player_dice_counts))
        self._sealed = self.is_over

    def __setattr__(self, name, value):
        if self.__dict__.get("_sealed", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r} of a finished game")
        super().__setattr__(name, value)

    @classmethod
    def new(cls,
            players: Iterable[Player],
            config: Optional[GameConfig] = None,
            rng: Optional[random.Random] = None,
            recorder: Any = None) -> "Game":
        """
        Seat the players, hand everyone `config.max_dice` dice and roll the first round.
        Args:
            players (iterable[Player]): Distinct players in seating order.
            config (GameConfig|None): Rule options, defaults to GameConfig().
            rng (random.Random|None): Dice source.
            recorder: Optional event sink.
        Raises:
            ValueError: If there are no players or a player is seated twice.
        """
        config = config or GameConfig()
        player_dice_counts: Dict[Player, int] = {}
        for player in players:
            if player in player_dice_counts:
                raise ValueError(f"Player {player} is seated more than once")
            player_dice_counts[player] = config.max_dice
        if not player_dice_counts:
            raise ValueError("A game needs at least one player")
        game = cls(
            player_dice_counts=player_dice_counts,
            config=config,
            round_history=(),
            state_data=InRound(Round.new(player_dice_counts, config.max_roll, rng)),
            rng=rng,
            recorder=recorder,
        )
        logger.info("New game: %s with %d dice each", ", ".join(map(str, player_dice_counts)), config.max_dice)
        game._emit_round_started()
        return game

    # Events are GameEvent records, sent only when a recorder is attached
    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        if self.recorder is None:
            return
        self.recorder.record(GameEvent(event_type=event_type, payload=payload))

    def _emit_round_started(self) -> None:
        curr_round = self.state_data.curr_round
        self._emit("RoundStarted", {
            "round": len(self.round_history) + 1,
            "first_player": curr_round.current_player.name,
            "dice_counts": {p.name: len(r) for p, r in curr_round.players_rolls.items()},
        })

    @property
    def phase(self) -> GamePhase:
        return self.state_data.phase

    @property
    def is_over(self) -> bool:
        return self.phase is GamePhase.GAME_OVER

    def _require_in_round(self, action: str) -> Round:
        if self._consumed:
            raise IllegalMoveError(f"Can not {action}: this game was consumed by an earlier transition")
        if not isinstance(self.state_data, InRound):
            raise IllegalMoveError(f"Can not {action} once the game is over")
        return self.state_data.curr_round

    @property
    def curr_round(self) -> Round:
        """The round being played. Raises IllegalMoveError once the game is over."""
        return self._require_in_round("inspect the current round")

    @property
    def winner(self) -> Player:
        if not isinstance(self.state_data, GameOver):
            raise IllegalMoveError("The game has no winner while a round is in progress")
        return self.state_data.winner

    @property
    def active_players(self) -> List[Player]:
        return [player for player, count in self.player_dice_counts.items() if count != 0]

    def dice_counts(self) -> Dict[Player, int]:
        """Snapshot of remaining dice per player, in seating order."""
        return dict(self.player_dice_counts)

    @property
    def last_round(self) -> Optional[Round]:
        return self.round_history[-1] if self.round_history else None

    def raise_bet(self, bet: Bet) -> "Game":
        """
        Bet on behalf of the player due to act in the current round.
        The opening bet of a round returns a new Game and consumes this one;
        later bets update this Game in place and return it.
        Raises:
            RaiseError: If the bet does not raise the standing bet. Nothing changes.
            IllegalMoveError: If the game is over or consumed.
        """
        curr_round = self._require_in_round("raise a bet")
        player = curr_round.current_player
        new_round = curr_round.raise_bet(bet)
        self._emit("BetPlaced", {"player": player.name, "bet": [bet.count, bet.roll]})
        if new_round is curr_round:
            return self
        self._consumed = True
        return Game(
            player_dice_counts=self.player_dice_counts,
            config=self.config,
            round_history=self.round_history,
            state_data=InRound(new_round),
            rng=self.rng,
            recorder=self.recorder,
        )

    def call_fluff(self) -> FluffCallTransition:
        """
        The player due to act challenges the standing bet. The round is resolved,
        its loser gives up a die and the round moves into the history. With one
        player left the game is over; otherwise the round winner opens a new round.
        Returns:
            FluffCallTransition: NEXT_ROUND or GAME_OVER, wrapping the new Game. This Game is consumed.
        Raises:
            IllegalMoveError: If no bet has been made this round, or the game is over or consumed.
        """
        curr_round = self._require_in_round("call fluff")
        if curr_round.phase is not RoundPhase.BETTING:
            raise IllegalMoveError(f"Can not call fluff in a {curr_round.phase.value} round")
        finished = curr_round.call_fluff()
        verdict = finished.state_data
        self._emit("FluffCalled", {
            "caller": verdict.caller.name,
            "better": verdict.better.name,
            "bet": [finished.turns[-1].bet.count, finished.turns[-1].bet.roll],
        })

        player_dice_counts = dict(self.player_dice_counts)
        player_dice_counts[verdict.loser] -= 1
        round_history = self.round_history + (finished,)
        self._consumed = True
        logger.info("%s loses a die, %d left", verdict.loser, player_dice_counts[verdict.loser])
        self._emit("RoundEnded", {
            "round": len(round_history),
            "winner": verdict.winner.name,
            "loser": verdict.loser.name,
            "was_fluff": verdict.was_fluff,
            "loser_dice": player_dice_counts[verdict.loser],
        })

        active = [player for player, count in player_dice_counts.items() if count != 0]
        if len(active) <= 1:
            # Nobody left only happens when a lone player loses their last die
            winner = active[0] if active else verdict.winner
            logger.info("Game over, %s wins after %d round(s)", winner, len(round_history))
            game = Game(
                player_dice_counts=player_dice_counts,
                config=self.config,
                round_history=round_history,
                state_data=GameOver(winner),
                rng=self.rng,
                recorder=self.recorder,
            )
            game._emit("GameOver", {"winner": winner.name, "rounds": len(round_history)})
            return FluffCallTransition(TransitionKind.GAME_OVER, game)

        new_round = Round.new_with_first_player(
            player_dice_counts, self.config.max_roll, verdict.winner, self.rng
        )
        game = Game(
            player_dice_counts=player_dice_counts,
            config=self.config,
            round_history=round_history,
            state_data=InRound(new_round),
            rng=self.rng,
            recorder=self.recorder,
        )
        game._emit_round_started()
        return FluffCallTransition(TransitionKind.NEXT_ROUND, game)
