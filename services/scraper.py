"""Periodic fetch-or-fallback cycle that feeds parking data into the sink."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Iterable, Iterator, List, Optional, Protocol, Tuple

from errors import DecodeError, EmptyPayload, SinkWriteError, TransportError, UpstreamRejected
from models.records import TimePoint
from models.schemas import ApiResponse, CycleResult, CycleStatus
from services.cache import ObservationCache
from services.fetcher import ParkingApiClient
from services.maintenance import is_in_maintenance_window
from services.mapper import to_points
from settings import get_settings
from storage.influx import PointSink, build_default_sink

logger = logging.getLogger(__name__)


class Fetcher(Protocol):

    def fetch(self, url: Optional[str] = None) -> ApiResponse: ...

    def close(self) -> None: ...


class Ticker:
    """Fixed-interval timer yielding once per tick.

    The first tick fires immediately. Later ticks are scheduled ``interval``
    seconds after the previous scheduled tick; if the consumer overran that
    deadline the tick fires at once and the schedule restarts from now.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        max_ticks: Optional[int] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("Ticker interval must be positive.")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._max_ticks = max_ticks

    def __iter__(self) -> Iterator[int]:
        count = 0
        deadline = self._clock()
        while self._max_ticks is None or count < self._max_ticks:
            delay = deadline - self._clock()
            if delay > 0:
                self._sleep(delay)
            yield count
            count += 1
            deadline += self.interval
            now = self._clock()
            if deadline < now:
                deadline = now


@dataclass
class ScraperStats:
    """Counters accumulated over the lifetime of a scraper."""

    cycles: int = 0
    fallbacks: int = 0
    fetch_failures: int = 0
    rejected: int = 0
    empty_payloads: int = 0
    write_failures: int = 0
    points_written: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Scraper:
    """Drives one cycle per tick: fetch or fall back, refresh cache, write.

    Every per-cycle failure is logged and reported in the returned
    ``CycleResult``; none of them escapes ``run_cycle``.
    """

    def __init__(
        self,
        client: Fetcher,
        sink: PointSink,
        cache: Optional[ObservationCache] = None,
        interval_secs: int = 60,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.sink = sink
        self.cache = cache if cache is not None else ObservationCache()
        self.interval_secs = interval_secs
        self.stats = ScraperStats()
        self._clock = clock

    def run(self, ticker: Optional[Iterable[int]] = None) -> None:
        """Run cycles until the ticker is exhausted or the process is stopped."""
        ticks = ticker if ticker is not None else Ticker(self.interval_secs)
        logger.info(
            "Starting parking data scraper. Interval: %s seconds",
            self.interval_secs,
            extra={"interval_secs": self.interval_secs},
        )
        for _tick in ticks:
            self.run_cycle()

    def run_cycle(self, now: Optional[datetime] = None) -> CycleResult:
        started = time.perf_counter()
        now = now or self._clock()
        self.stats.cycles += 1

        try:
            points, from_cache = self._collect_points(now)
        except (TransportError, DecodeError) as exc:
            self.stats.fetch_failures += 1
            logger.error("Error fetching parking data: %s", exc, extra={"reason": type(exc).__name__})
            return self._finish(CycleStatus.fetch_failed, now, started, reason=str(exc))
        except UpstreamRejected as exc:
            self.stats.rejected += 1
            logger.error("API returned unsuccessful response", extra={"reason": str(exc)})
            return self._finish(CycleStatus.rejected, now, started, reason=str(exc))
        except EmptyPayload as exc:
            self.stats.empty_payloads += 1
            logger.warning("No parking data available in the response")
            return self._finish(CycleStatus.empty, now, started, reason=str(exc))

        try:
            self.sink.write(points)
        except SinkWriteError as exc:
            self.stats.write_failures += 1
            logger.error("%s", exc, extra={"point_count": len(points)})
            return self._finish(
                CycleStatus.write_failed,
                now,
                started,
                point_count=len(points),
                from_cache=from_cache,
                reason=str(exc),
            )

        self.stats.points_written += len(points)
        if from_cache:
            self.stats.fallbacks += 1
            status = CycleStatus.fallback
        else:
            status = CycleStatus.written
        logger.info("Successfully wrote data to InfluxDB", extra={"point_count": len(points)})
        return self._finish(status, now, started, point_count=len(points), from_cache=from_cache)

    def close(self) -> None:
        self.client.close()
        self.sink.close()

    def _collect_points(self, now: datetime) -> Tuple[List[TimePoint], bool]:
        if is_in_maintenance_window(now):
            if not self.cache.is_empty():
                cached = self.cache.snapshot()
                logger.info(
                    "Maintenance window active, serving %d cached areas",
                    len(cached),
                    extra={"point_count": len(cached)},
                )
                return to_points(cached, now), True
            logger.warning("Maintenance window active but cache is empty, fetching anyway")

        logger.info("Fetching parking data...")
        response = self.client.fetch()
        if not response.success:
            raise UpstreamRejected(f"Upstream reported failure for {response.date!r}")

        readings = response.readings
        if not readings:
            raise EmptyPayload("Response contained no area readings")

        logger.info("Found parking data for %d areas", len(readings))
        for reading in readings:
            logger.info(
                "Area %s: %s free spaces",
                reading.area_code,
                reading.free_spaces,
                extra={"area_code": reading.area_code, "free_spaces": reading.free_spaces},
            )
            if not self.cache.upsert_if_positive(reading):
                logger.debug(
                    "Keeping cached value for non-positive reading",
                    extra={"area_code": reading.area_code},
                )
        return to_points(readings, now), False

    def _finish(
        self,
        status: CycleStatus,
        now: datetime,
        started: float,
        point_count: int = 0,
        from_cache: bool = False,
        reason: Optional[str] = None,
    ) -> CycleResult:
        cycle_ms = int((time.perf_counter() - started) * 1000)
        logger.debug(
            "Cycle finished",
            extra={"status": status.value, "point_count": point_count, "cycle_ms": cycle_ms},
        )
        return CycleResult(
            status=status,
            started_at=now,
            point_count=point_count,
            from_cache=from_cache,
            reason=reason,
            cycle_ms=cycle_ms,
        )


@lru_cache
def build_default_scraper() -> Scraper:
    """Factory that wires the scraper from the configuration file."""
    config = get_settings().app
    client = ParkingApiClient(url=config.api.url, timeout=config.api.request_timeout_secs)
    return Scraper(
        client=client,
        sink=build_default_sink(),
        cache=ObservationCache(),
        interval_secs=config.api.scraping_interval_secs,
    )
