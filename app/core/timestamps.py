# app/core/timestamps.py
import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def to_epoch_ms(value) -> int | None:
    """
    Normalize a stored timestamp to epoch milliseconds.

    Older rows were written either as epoch-ms integers or as ISO-8601
    strings ("2024-05-01T09:30:00.000Z"). Both are accepted here, along
    with numeric strings. Anything else becomes None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return int(value)

    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)

    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return int(float(raw))
        except ValueError:
            pass
        # fromisoformat() only understands a trailing "Z" from 3.11 on
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)

    return None
