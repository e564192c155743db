"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True, slots=True)
class AreaReading:
    """Free spaces reported for one parking area in one polling cycle."""

    area_code: int
    free_spaces: int


@dataclass(frozen=True, slots=True)
class TimePoint:
    """A single tagged observation ready for the time-series store."""

    measurement: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, int] = field(default_factory=dict)
    timestamp_ns: int = 0
