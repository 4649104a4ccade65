"""
duelstats - Constants

Termination codes, colors, player slots and the thresholds shared by the
aggregation modules.
"""

from enum import StrEnum


class Color(StrEnum):
    """Side to move / side that won."""

    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PlayerSlot(StrEnum):
    """
    Head-to-head player slot.

    player1/player2 are resolved from the first non-empty month of the full
    archive and compared by display name.
    """

    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def other(self) -> "PlayerSlot":
        return PlayerSlot.PLAYER2 if self is PlayerSlot.PLAYER1 else PlayerSlot.PLAYER1


class Termination(StrEnum):
    """
    Game termination reasons as exported by Lichess.

    Anything outside this set (aborted, cheat, variantEnd, ...) is
    reported as UNKNOWN.
    """

    MATE = "mate"
    RESIGN = "resign"
    TIMEOUT = "timeout"
    OUT_OF_TIME = "outoftime"
    DRAW = "draw"
    STALEMATE = "stalemate"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: str | None) -> "Termination":
        if not code:
            return cls.UNKNOWN
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


TERMINATION_LABELS = {
    Termination.MATE: "Checkmate",
    Termination.RESIGN: "Resignation",
    Termination.TIMEOUT: "Timeout",
    Termination.OUT_OF_TIME: "Out of Time",
    Termination.DRAW: "Draw Agreement",
    Termination.STALEMATE: "Stalemate",
    Termination.UNKNOWN: "Unknown",
}

# Speed categories
BLITZ = "blitz"
RAPID = "rapid"
# Games in these categories get their duration estimate capped
CAPPED_SPEEDS = {BLITZ, RAPID}

DEFAULT_PLAYER_NAMES = ("Player 1", "Player 2")

# Filter wildcard
ALL = "all"

# Session clustering
DEFAULT_SESSION_GAP_MINUTES = 15
MAX_SESSION_GAP_MINUTES = 120  # Hard cap on the same-day gap
MAX_GAME_DURATION_MINUTES = 120  # Blitz/rapid duration cap
FALLBACK_MINUTES_PER_PLY = 1  # End-time estimate when lastMoveAt is missing
FALLBACK_GAME_MINUTES = 30  # End-time estimate when moves are missing too
DEFAULT_CLOCK_INITIAL_SECONDS = 300
CLOCK_SECONDS_PER_PLY = 2  # Overhead added to clock-based duration estimates

# Aggregate statistics
TIME_PRESSURE_SECONDS = 30

# Highlights
HIGHLIGHT_TOP_N = 10
MISSED_MATE_BASE_SCORE = 1000

# Caching
FILTER_CACHE_CAPACITY = 20
MEMO_FLUSH_THRESHOLD = 10_000

# Archive layout
MONTH_FILE_PATTERN = r"^(\d{4})-(\d{2})\.json$"

MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
