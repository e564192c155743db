"""Nightly maintenance window of the upstream parking API."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

UPSTREAM_TIMEZONE = timezone(timedelta(hours=8), "UTC+08:00")

WINDOW_START = (23, 50)
WINDOW_END = (0, 20)


def is_in_maintenance_window(now: datetime) -> bool:
    """Return True when ``now`` falls in ``[23:50, 00:20)`` upstream local time.

    Upstream local time is a fixed UTC+8 offset. Naive datetimes are
    interpreted as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(UPSTREAM_TIMEZONE)
    start_hour, start_minute = WINDOW_START
    end_hour, end_minute = WINDOW_END
    if local.hour == start_hour and local.minute >= start_minute:
        return True
    return local.hour == end_hour and local.minute < end_minute
