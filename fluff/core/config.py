"""
config.py
Defines the GameConfig dataclass, which holds the two numeric rule options of a Fluff game.
Related modules:
- game.py: Uses GameConfig to set starting dice and roll new rounds.
- dice.py: Rolls faces in [1, max_roll].
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GameConfig:
    """
    Rule options for a Fluff game. Fixed once the game starts.
    Fields:
        max_dice (int): Dice each player starts with (default 5).
        max_roll (int): Number of faces on each die (default 6).
    """
    max_dice: int = 5
    max_roll: int = 6

    def __post_init__(self) -> None:
        for name in ("max_dice", "max_roll"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
