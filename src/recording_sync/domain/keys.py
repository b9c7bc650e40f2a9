"""Canonical storage key derivation.

Keys are a pure function of business identity so that re-running a transfer
computes the same key and finds the object already in place.
"""

from datetime import UTC, date, datetime

KEY_PREFIX = "recordings"


def parse_business_date(value: datetime | date | str) -> datetime:
    """Parse a business date into an aware UTC datetime.

    Accepts a datetime (naive values are taken as UTC), a date, or an
    ISO 8601 string such as ``2024-06-15T18:00:00Z`` or ``2024-06-15``.

    Raises:
        ValueError: If a string cannot be parsed.
        TypeError: If the value is of any other type.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Business date is empty")
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(f"Unparseable business date: {value!r}") from e
    else:
        raise TypeError(f"Unsupported business date type: {type(value).__name__}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def derive_key(
    session_id: str,
    export_or_production_id: str,
    business_date: datetime | date | str,
    ext: str = "mp4",
) -> str:
    """Derive the canonical object key for a recording.

    Format: ``recordings/{YYYY-MM-DD}/{session_id}/{export_or_production_id}.{ext}``
    where the date is the UTC calendar date of ``business_date``.

    Example:
        >>> derive_key("S1", "P1", "2024-06-15T18:00:00Z")
        'recordings/2024-06-15/S1/P1.mp4'
    """
    if not session_id:
        raise ValueError("session_id is required")
    if not export_or_production_id:
        raise ValueError("export_or_production_id is required")

    day = parse_business_date(business_date).date().isoformat()
    return f"{KEY_PREFIX}/{day}/{session_id}/{export_or_production_id}.{ext.lstrip('.')}"


def production_id_from_key(key: str) -> str | None:
    """Recover the production/export id from a key in the canonical layout."""
    parts = key.split("/")
    if len(parts) != 4 or parts[0] != KEY_PREFIX:
        return None
    stem = parts[3].rsplit(".", 1)[0]
    return stem or None
