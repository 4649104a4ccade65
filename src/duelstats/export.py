"""
Export Functionality for duelstats

Provides export formats for head-to-head results:
- JSON: complete statistics plus sessions, openings and highlights
- CSV: the monthly breakdown as a flat table (via pandas)

The format is picked from the output file extension unless given.
"""

import json
import logging
from collections import Counter
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from duelstats import __version__
from duelstats.analysis.stats import Stats
from duelstats.analysis.timeline import month_label
from duelstats.context import DuelContext
from duelstats.core.constants import ALL
from duelstats.core.utils import mean_or_zero

logger = logging.getLogger(__name__)

MONTHLY_COLUMNS = [
    "month",
    "label",
    "games",
    "player1_wins",
    "player2_wins",
    "draws",
    "player1_win_rate",
    "player2_win_rate",
    "player1_best_streak",
    "player2_best_streak",
    "player1_avg_accuracy",
    "player2_avg_accuracy",
    "player1_avg_king_moves",
    "player2_avg_king_moves",
]


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def dataclass_to_dict(obj: Any) -> Any:
    """Convert a dataclass (or nested dataclasses) to plain JSON types."""
    if hasattr(obj, "to_dict"):
        return dataclass_to_dict(obj.to_dict())
    if is_dataclass(obj) and not isinstance(obj, type):
        return {key: dataclass_to_dict(value) for key, value in asdict(obj).items()}
    elif isinstance(obj, Counter):
        return dict(obj)
    elif isinstance(obj, dict):
        return {str(k): dataclass_to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, Path):
        return str(obj)
    else:
        return obj


# ============================================================================
# JSON Export
# ============================================================================


def export_to_json(
    data: dict[str, Any],
    output_path: Path | None = None,
    indent: int = 2,
    include_metadata: bool = True,
) -> str:
    """
    Export results to JSON format.

    Args:
        data: Results dictionary
        output_path: Optional path to write the file
        indent: JSON indentation level
        include_metadata: Whether to include export metadata

    Returns:
        JSON string
    """
    export_data = dataclass_to_dict(data)

    if include_metadata:
        export_data = {
            "_metadata": {
                "exported_at": datetime.now().isoformat(),
                "format": "duelstats_json",
                "version": __version__,
            },
            **export_data,
        }

    json_str = json.dumps(export_data, indent=indent, default=str)

    if output_path:
        output_path.write_text(json_str)
        logger.info(f"Exported JSON to: {output_path}")

    return json_str


# ============================================================================
# CSV Export
# ============================================================================


def monthly_stats_frame(stats: Stats) -> pd.DataFrame:
    """One row per month of the monthly breakdown, oldest first."""
    rows = []
    for key in sorted(stats.monthly_stats):
        month = stats.monthly_stats[key]
        rows.append(
            {
                "month": key,
                "label": month_label(key),
                "games": month.games,
                "player1_wins": month.player1_wins,
                "player2_wins": month.player2_wins,
                "draws": month.draws,
                "player1_win_rate": round(month.player1_win_rate, 1),
                "player2_win_rate": round(month.player2_win_rate, 1),
                "player1_best_streak": month.streaks.player1,
                "player2_best_streak": month.streaks.player2,
                "player1_avg_accuracy": round(mean_or_zero(month.player1_accuracy), 1),
                "player2_avg_accuracy": round(mean_or_zero(month.player2_accuracy), 1),
                "player1_avg_king_moves": round(mean_or_zero(month.player1_king_moves), 2),
                "player2_avg_king_moves": round(mean_or_zero(month.player2_king_moves), 2),
            }
        )
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def export_monthly_csv(stats: Stats, output_path: Path, delimiter: str = ",") -> None:
    """Write the monthly breakdown as CSV."""
    frame = monthly_stats_frame(stats)
    frame.to_csv(output_path, index=False, sep=delimiter)
    logger.info(f"Exported {len(frame)} months to CSV: {output_path}")


# ============================================================================
# Combined Export
# ============================================================================


def build_export_payload(
    ctx: DuelContext, year: str = ALL, month: str = ALL, day: str | None = ALL
) -> dict[str, Any]:
    """Everything computed for one filter selection, ready for JSON."""
    stats = ctx.stats(year, month, day)
    sessions = ctx.sessions(year, month, day)
    openings = ctx.openings(year, month, day)
    return {
        "filter": {"year": year, "month": month, "day": day or ALL},
        "stats": stats.to_dict() if stats else None,
        "sessions": [s.to_dict() for s in sessions],
        "openings": {name: record.to_dict() for name, record in openings.items()},
        "highlights": ctx.highlights(year, month, day).to_dict(),
    }


def export_analysis(
    ctx: DuelContext,
    output_path: Path,
    format: str | None = None,
    year: str = ALL,
    month: str = ALL,
    day: str | None = ALL,
) -> None:
    """
    Export results for a filter selection to the specified format.

    Format is detected from file extension if not specified.

    Raises:
        ValueError: for an unsupported format, or a CSV export of an empty
            selection
    """
    export_config = ctx.config.export
    if format is None:
        format = output_path.suffix.lstrip(".").lower() or export_config.default_format

    if format == "json":
        export_to_json(
            build_export_payload(ctx, year, month, day),
            output_path,
            indent=export_config.json_indent,
        )

    elif format == "csv":
        stats = ctx.stats(year, month, day)
        if stats is None:
            raise ValueError("No games in the selected range")
        export_monthly_csv(stats, output_path, delimiter=export_config.csv_delimiter)

    else:
        raise ValueError(f"Unsupported export format: {format}")
