"""
player.py
Defines the Player identity shared by every player-keyed table in the game.
Related modules:
- game.py: Keys dice counts by Player.
- round.py: Keys rolls and turns by Player.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Player:
    """
    A named participant. Equality and hashing go through the name, but the game
    hands the same Player object around instead of rebuilding it from strings.
    Args:
        name (str): Display name, unique within a game.
    """
    name: str

    def __str__(self) -> str:
        return self.name
