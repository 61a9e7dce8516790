"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def expires_after(minutes: int, start: datetime | None = None) -> datetime:
    return (start or utc_now()) + timedelta(minutes=minutes)


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    """True once `now` is strictly past `expires_at`.

    Naive datetimes coming back from the DB are treated as UTC.
    """
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return (now or utc_now()) > expires_at
