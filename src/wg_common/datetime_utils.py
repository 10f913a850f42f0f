"""Clock helpers.

Services accept an optional ``now`` so tests and replays can pin the clock;
``resolve_now`` is the single place that falls back to the wall clock.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_now(now: datetime | None) -> datetime:
    return utc_now() if now is None else as_utc(now)
