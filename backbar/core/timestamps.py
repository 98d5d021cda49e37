"""Timestamp helpers for the document-store wire format.

Timestamps travel as ISO-8601 UTC strings with millisecond precision.
Everything the engine stamps is truncated to milliseconds first, so a value
survives a write/read cycle unchanged.
"""

from datetime import UTC, datetime, timedelta
from typing import Any


def truncate_ms(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def now_ms() -> datetime:
    """Current UTC time, truncated to milliseconds."""
    return truncate_ms(datetime.now(UTC))


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Any:
    """Coerce a wire timestamp to an aware ``datetime``.

    Accepts ISO strings (any offset, ``Z`` suffix included), naive or aware
    datetimes, and document-store timestamp objects of the form
    ``{"seconds": int, "nanoseconds": int}``. Anything else is returned as-is
    for the model validator to reject.
    """
    if isinstance(value, dict) and "seconds" in value:
        nanos = value.get("nanoseconds", value.get("nanos", 0)) or 0
        return datetime.fromtimestamp(int(value["seconds"]), UTC) + timedelta(
            microseconds=int(nanos) // 1000
        )
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
