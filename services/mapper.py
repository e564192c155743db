"""Conversion of area readings into time-series points."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from models.records import AreaReading, TimePoint

MEASUREMENT = "parking_spaces"
UNKNOWN_LOCATION = "Unknown"

LOCATIONS: Dict[int, str] = {
    12: "SIP-B25-B26",
    2: "ZHONGMENG",
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def location_for(area_code: int) -> str:
    return LOCATIONS.get(area_code, UNKNOWN_LOCATION)


def timestamp_ns(now: datetime) -> int:
    """Nanoseconds since the epoch, computed without float rounding."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    delta = now - _EPOCH
    seconds = delta.days * 86_400 + delta.seconds
    return seconds * 1_000_000_000 + delta.microseconds * 1_000


def to_point(reading: AreaReading, now: datetime) -> TimePoint:
    return TimePoint(
        measurement=MEASUREMENT,
        tags={
            "area_code": str(reading.area_code),
            "location": location_for(reading.area_code),
        },
        fields={"free_spaces": reading.free_spaces},
        timestamp_ns=timestamp_ns(now),
    )


def to_points(readings: Iterable[AreaReading], now: datetime) -> List[TimePoint]:
    return [to_point(reading, now) for reading in readings]
