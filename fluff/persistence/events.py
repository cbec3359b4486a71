"""
events.py
Defines the GameEvent dataclass for recording what happens during a Fluff game.
Emitted by core/game.py and collected by recorder.py.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class GameEvent:
    """
    Represents a single event in the game (e.g., round started, bet placed, fluff called).
    Fields:
        event_type (str): Type of event: RoundStarted, BetPlaced, FluffCalled, RoundEnded or GameOver.
        payload (dict): Event-specific data, JSON friendly (player names, not Player objects).
    """
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
