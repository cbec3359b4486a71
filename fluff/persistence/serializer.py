"""
serializer.py
Provides functions for turning Players, Bets, Rounds and Games into JSON-friendly dicts and back.
Player-keyed tables are written as ordered [name, value] pairs, and decoding hands out one Player
object per name so the shared identity of a live game is restored.
Related modules:
- core/game.py, core/round.py: The values being saved.
- recorder.py: Events can be saved next to a snapshot.
"""

import json
from typing import Any, Dict, List, Optional

from ..core.bet import Bet
from ..core.config import GameConfig
from ..core.game import Game
from ..core.player import Player
from ..core.round import Round, Turn
from ..core.state import (
    Betting,
    Called,
    GameOver,
    GamePhase,
    InRound,
    NewRound,
    PlayerRolls,
    RoundPhase,
)

PlayerTable = Dict[str, Player]


def _player(name: Any, players: PlayerTable) -> Player:
    if not isinstance(name, str):
        raise ValueError(f"Player name must be a string, got {name!r}")
    if name not in players:
        players[name] = Player(name)
    return players[name]


def _seated(name: Any, players: PlayerTable, seats: Dict[Player, Any]) -> Player:
    player = _player(name, players)
    if player not in seats:
        raise ValueError(f"Player {name!r} is not seated in this round")
    return player


def _int(value: Any, what: str) -> int:
    # json only gives bool for true/false, but bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    return value


def bet_to_dict(bet: Bet) -> Dict[str, int]:
    return {"count": bet.count, "roll": bet.roll}


def bet_from_dict(data: Dict[str, Any]) -> Bet:
    return Bet(data["count"], data["roll"])


def round_to_dict(round_: Round) -> Dict[str, Any]:
    """
    Serialize a round in any phase.
    Args:
        round_ (Round): Round to save.
    Returns:
        dict: JSON-friendly snapshot.
    """
    state = round_.state_data
    if isinstance(state, NewRound):
        state_ser = {"phase": RoundPhase.FRESH.value, "first_player": state.first_player_rolls.player.name}
    elif isinstance(state, Betting):
        state_ser = {
            "phase": RoundPhase.BETTING.value,
            "curr_player": state.curr_player_rolls.player.name,
            "prev_bet": bet_to_dict(state.prev_bet),
        }
    else:
        state_ser = {
            "phase": RoundPhase.RESOLVED.value,
            "caller": state.caller.name,
            "better": state.better.name,
            "was_fluff": state.was_fluff,
        }
    return {
        "players_rolls": [[p.name, list(rolls)] for p, rolls in round_.players_rolls.items()],
        "turns": [{"player": t.player.name, "bet": bet_to_dict(t.bet)} for t in round_.turns],
        "state": state_ser,
    }


def round_from_dict(data: Dict[str, Any], players: Optional[PlayerTable] = None) -> Round:
    """
    Rebuild a round saved by round_to_dict.
    Args:
        data (dict): Snapshot.
        players (dict|None): Name -> Player table shared with the enclosing game.
    Returns:
        Round: Equal to the round that was saved.
    Raises:
        ValueError: If the snapshot is malformed.
    """
    players = {} if players is None else players
    try:
        players_rolls = {
            _player(name, players): tuple(_int(r, "Roll") for r in rolls)
            for name, rolls in data["players_rolls"]
        }
        turns = tuple(
            Turn(_seated(t["player"], players, players_rolls), bet_from_dict(t["bet"]))
            for t in data["turns"]
        )
        state = data["state"]
        phase = RoundPhase(state["phase"])
        if phase is RoundPhase.FRESH:
            if turns:
                raise ValueError("A fresh round can not have any turns")
            first = _seated(state["first_player"], players, players_rolls)
            state_data = NewRound(PlayerRolls(first, players_rolls[first]))
        else:
            if not turns:
                raise ValueError(f"A {phase.value} round needs at least one turn")
            if phase is RoundPhase.BETTING:
                curr = _seated(state["curr_player"], players, players_rolls)
                state_data = Betting(PlayerRolls(curr, players_rolls[curr]), bet_from_dict(state["prev_bet"]))
            else:
                was_fluff = state["was_fluff"]
                if not isinstance(was_fluff, bool):
                    raise ValueError(f"was_fluff must be true or false, got {was_fluff!r}")
                state_data = Called(
                    caller=_seated(state["caller"], players, players_rolls),
                    better=_seated(state["better"], players, players_rolls),
                    was_fluff=was_fluff,
                )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed round snapshot: {e!r}") from e
    return Round(players_rolls=players_rolls, turns=turns, state_data=state_data)


def game_to_dict(game: Game) -> Dict[str, Any]:
    """
    Serialize a game in any phase, including its full round history.
    Returns:
        dict: JSON-friendly snapshot.
    """
    if isinstance(game.state_data, InRound):
        state_ser = {"phase": GamePhase.IN_ROUND.value, "curr_round": round_to_dict(game.state_data.curr_round)}
    else:
        state_ser = {"phase": GamePhase.GAME_OVER.value, "winner": game.state_data.winner.name}
    return {
        "config": {"max_dice": game.config.max_dice, "max_roll": game.config.max_roll},
        "player_dice_counts": [[p.name, count] for p, count in game.player_dice_counts.items()],
        "round_history": [round_to_dict(r) for r in game.round_history],
        "state": state_ser,
    }


def game_from_dict(data: Dict[str, Any]) -> Game:
    """
    Rebuild a game saved by game_to_dict. Every table refers to the same Player objects.
    Raises:
        ValueError: If the snapshot is malformed.
    """
    players: PlayerTable = {}
    try:
        config = GameConfig(**data["config"])
        player_dice_counts = {}
        for name, count in data["player_dice_counts"]:
            count = _int(count, "Dice count")
            if count < 0:
                raise ValueError(f"Dice count can not be negative, got {count}")
            player_dice_counts[_player(name, players)] = count
        round_history = tuple(round_from_dict(r, players) for r in data["round_history"])
        if any(not r.is_resolved for r in round_history):
            raise ValueError("Every round in the history must be resolved")
        state = data["state"]
        if GamePhase(state["phase"]) is GamePhase.IN_ROUND:
            curr_round = round_from_dict(state["curr_round"], players)
            if curr_round.is_resolved:
                raise ValueError("The current round of a game can not be resolved")
            state_data = InRound(curr_round)
        else:
            state_data = GameOver(_player(state["winner"], players))
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed game snapshot: {e!r}") from e
    return Game(
        player_dice_counts=player_dice_counts,
        config=config,
        round_history=round_history,
        state_data=state_data,
    )


def dumps(game: Game, indent: Optional[int] = None) -> str:
    """
    Serialize a game to a JSON string.
    Args:
        game (Game): Game to save.
        indent (int|None): Passed through to json.dumps.
    Returns:
        str: JSON string.
    """
    return json.dumps(game_to_dict(game), indent=indent)


def loads(s: str) -> Game:
    """
    Deserialize a JSON string produced by dumps.
    Args:
        s (str): JSON string.
    Returns:
        Game: Equal to the saved game.
    """
    return game_from_dict(json.loads(s))


def events_to_list(events) -> List[Dict[str, Any]]:
    """Turn recorded GameEvents into plain dicts for saving next to a snapshot."""
    return [{"event_type": e.event_type, "payload": e.payload} for e in events]
