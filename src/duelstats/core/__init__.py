"""
duelstats Core - Foundation modules for the aggregation pipeline.

This module contains the fundamental components:
- constants: Termination codes, colors, player slots and thresholds
- config: Application configuration management
- models: Game record data contracts
- loader: Monthly JSON archive loading and merging
- utils: General utility functions
"""

from duelstats.core.constants import (
    ALL,
    BLITZ,
    Color,
    PlayerSlot,
    Termination,
)
from duelstats.core.models import (
    Clock,
    Game,
    GamePlayer,
    GamesByMonth,
    MoveEval,
    Opening,
    PlayerAnalysis,
)

__all__ = [
    "ALL",
    "BLITZ",
    "Color",
    "PlayerSlot",
    "Termination",
    "Clock",
    "Game",
    "GamePlayer",
    "GamesByMonth",
    "MoveEval",
    "Opening",
    "PlayerAnalysis",
]
