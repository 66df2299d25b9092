"""Formatting utilities for display values."""

from datetime import datetime

from smartschool.database.models import GradeScale


def format_currency(value: float) -> str:
    """Format an amount as Zambian Kwacha, e.g. ``K1,250``."""
    if float(value).is_integer():
        return f"K{int(value):,}"
    return f"K{value:,.2f}"


def format_sync_time(moment: datetime) -> str:
    """Wall-clock time shown next to "Cloud Synced"."""
    return moment.strftime("%H:%M:%S")


def format_sync_status(is_syncing: bool, sync_error: str | None,
                       last_synced: str | None) -> str:
    """One-line status for the header indicator."""
    if is_syncing:
        return "Syncing..."
    if sync_error:
        return "Sync Notice"
    return f"Cloud Synced: {last_synced or 'Never'}"


def format_grade(grade_scales: list[dict], score: float | None) -> str:
    """Label of the band containing ``score``; absent scores map to -1."""
    value = -1 if score is None else score
    for row in grade_scales:
        band = GradeScale.from_dict(row)
        if band.contains(value):
            return str(band.label)
    return "-"
