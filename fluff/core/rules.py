"""
rules.py
Defines helper functions for Fluff rules: counting dice that satisfy a claimed face, with ones wild.
Related modules:
- bet.py: Bet.count_matches and Bet.is_fluff delegate here.
- round.py: Uses count_matches_by_player when explaining a resolved call.
"""

from typing import Dict, Iterable, Mapping, Sequence, TypeVar

K = TypeVar("K")

# Face that counts toward any claimed face.
WILD_FACE = 1


def matches_face(die: int, face: int) -> bool:
    """True if a single die supports a claim about `face`."""
    return die == face or die == WILD_FACE


def count_matches(rolls: Iterable[int], face: int) -> int:
    """
    Count the dice supporting a claim about `face`.
    A claim on the wild face itself only counts ones.
    Args:
        rolls (iterable[int]): Dice faces, typically flattened across all players.
        face (int): Face value claimed.
    Returns:
        int: Number of matching dice.
    """
    return sum(1 for d in rolls if matches_face(d, face))


def count_matches_by_player(players_rolls: Mapping[K, Sequence[int]], face: int) -> Dict[K, int]:
    """
    Count matching dice per player, preserving the mapping's order.
    Args:
        players_rolls (mapping): Player -> that player's dice.
        face (int): Face value claimed.
    Returns:
        dict: Player -> number of matching dice.
    """
    return {player: count_matches(rolls, face) for player, rolls in players_rolls.items()}
