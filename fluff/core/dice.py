"""
dice.py
Defines dice rolling utilities for the Fluff engine.
Related modules:
- round.py: Uses roll_n to roll each player's hand at round creation.
"""

import random
from typing import Optional, Tuple

# Process-wide generator used when the caller does not supply one.
_RNG = random.Random()


def roll_die(max_roll: int, rng: random.Random) -> int:
    """
    Roll a single die with faces 1..max_roll using the provided random number generator.
    Args:
        max_roll (int): Highest face.
        rng (random.Random): RNG instance.
    Returns:
        int: Die face.
    """
    return rng.randint(1, max_roll)


def roll_n(n: int, max_roll: int, rng: Optional[random.Random] = None) -> Tuple[int, ...]:
    """
    Roll n dice using the provided RNG, or the module-level generator when none is given.
    Args:
        n (int): Number of dice to roll.
        max_roll (int): Highest face.
        rng (random.Random|None): RNG instance.
    Returns:
        tuple[int]: Die faces.
    """
    if rng is None:
        rng = _RNG
    return tuple(roll_die(max_roll, rng) for _ in range(n))
