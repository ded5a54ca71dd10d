"""Named APR periods and unix time helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

PERIOD_SECONDS: dict[str, int] = {
    "1h": 60 * 60,
    "1d": 24 * 60 * 60,
    "1w": 7 * 24 * 60 * 60,
}


def get_period_seconds(period: str) -> int:
    seconds = PERIOD_SECONDS.get(period)
    if seconds is None:
        raise ValueError(f"Unknown period: {period}")
    return seconds


def from_unix_time(value: int | str) -> datetime:
    """Convert unix seconds (int or numeric string, as subgraphs return them)."""
    return EPOCH + timedelta(seconds=int(value))


def get_unix_time(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(seconds=1)


def epoch_ms(moment: datetime) -> int:
    """Exact milliseconds since the epoch (no float round trip)."""
    return (moment - EPOCH) // timedelta(milliseconds=1)
