"""
bet.py
Defines the Bet model for Fluff, including raise ordering, the fluff predicate and the raise errors.
Related modules:
- rules.py: Wildcard matching used by count_matches.
- round.py: Validates each raise against the previous bet.
"""

from dataclasses import dataclass
from typing import Iterable

from .rules import count_matches


class RaiseError(ValueError):
    """
    Raised when a bet is not strictly higher than the bet it is meant to raise.
    Subclassed by CountDecreasedError, SameBetError and SameCountLowerRollError.
    """
    pass


class CountDecreasedError(RaiseError):
    def __init__(self, prev: int, new: int):
        self.prev = prev
        self.new = new
        super().__init__(f"Count can not be decreased, but it changed from {prev} to {new}")


class SameBetError(RaiseError):
    def __init__(self, bet: "Bet"):
        self.bet = bet
        super().__init__(f"Bet can not be the same, but it stayed as {bet}")


class SameCountLowerRollError(RaiseError):
    def __init__(self, prev: int, new: int):
        self.prev = prev
        self.new = new
        super().__init__(
            f"Roll can not be decreased unless count is increased, but roll changed from {prev} to {new}"
        )


def _check_positive(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True, order=True)
class Bet:
    """
    A claim that at least `count` dice across every hand show `roll` (ones are wild).
    Field order matters: the generated ordering is lexicographic on (count, roll).
    Args:
        count (int): Number of dice claimed.
        roll (int): Face value claimed.
    """
    count: int
    roll: int

    def __post_init__(self) -> None:
        _check_positive("count", self.count)
        _check_positive("roll", self.roll)

    @classmethod
    def parse(cls, text: str) -> "Bet":
        """
        Parse a bet written as "<count> <roll>".
        Raises:
            ValueError: If the text is not exactly two positive integers.
        """
        parts = text.strip().lower().split()
        if len(parts) != 2:
            raise ValueError(f"{len(parts)} arg(s) given instead of 2")
        return cls(int(parts[0]), int(parts[1]))

    def validate_raise_from(self, previous: "Bet") -> None:
        """
        Check that this bet legally raises `previous`.
        Args:
            previous (Bet): The bet currently standing.
        Raises:
            CountDecreasedError: count went down.
            SameBetError: count and roll are both unchanged.
            SameCountLowerRollError: count unchanged and roll went down.
        """
        if self.count < previous.count:
            raise CountDecreasedError(previous.count, self.count)
        if self.count > previous.count:
            return
        if self.roll < previous.roll:
            raise SameCountLowerRollError(previous.roll, self.roll)
        if self.roll == previous.roll:
            raise SameBetError(self)

    def is_raised_from(self, previous: "Bet") -> bool:
        try:
            self.validate_raise_from(previous)
        except RaiseError:
            return False
        return True

    def raise_to(self, count: int, roll: int) -> "Bet":
        """
        Build the bet (count, roll) and return it if it raises this one.
        Raises:
            RaiseError: If the new bet is not higher.
        """
        new_bet = Bet(count, roll)
        new_bet.validate_raise_from(self)
        return new_bet

    def count_matches(self, rolls: Iterable[int]) -> int:
        return count_matches(rolls, self.roll)

    def is_fluff(self, rolls: Iterable[int]) -> bool:
        """True if fewer dice than claimed support this bet."""
        return self.count_matches(rolls) < self.count

    def __str__(self) -> str:
        suffix = "" if self.count == 1 else "s"
        return f"{self.count} {self.roll}{suffix}"
