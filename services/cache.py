"""In-process cache of the last positive reading per parking area."""

from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional

from models.records import AreaReading


class ObservationCache:
    """Keeps the most recent reading with free spaces for every area.

    Zero or negative readings are treated as suspect and never replace a cached
    value; they still reach the sink, they just do not refresh the fallback.
    """

    def __init__(self) -> None:
        self._readings: Dict[int, AreaReading] = {}
        self._lock = Lock()

    def upsert_if_positive(self, reading: AreaReading) -> bool:
        if reading.free_spaces <= 0:
            return False
        with self._lock:
            self._readings[reading.area_code] = reading
        return True

    def get(self, area_code: int) -> Optional[AreaReading]:
        with self._lock:
            return self._readings.get(area_code)

    def snapshot(self) -> List[AreaReading]:
        """Return every cached reading; order is not significant."""

        with self._lock:
            return list(self._readings.values())

    def is_empty(self) -> bool:
        with self._lock:
            return not self._readings

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)
