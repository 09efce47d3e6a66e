"""Date formatting helpers for post listings."""
from datetime import datetime


def parse_iso_date(iso: str) -> datetime:
    """
    Parse an ISO-8601 timestamp, accepting the ``Z`` suffix used by JSON APIs.

    Raises:
        ValueError: If *iso* is not a valid ISO-8601 date or timestamp
    """
    if not isinstance(iso, str) or not iso.strip():
        raise ValueError(f"Invalid ISO date: {iso!r}")
    value = iso.strip()
    if value.endswith(('Z', 'z')):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def format_date(iso: str) -> str:
    """Format an ISO timestamp as e.g. ``October 18, 2026``."""
    d = parse_iso_date(iso)
    return f"{d:%B} {d.day}, {d.year}"
