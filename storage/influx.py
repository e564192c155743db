from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional, Protocol, Sequence

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.exceptions import InfluxDBError
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from errors import SinkWriteError
from models.records import TimePoint
from settings import get_settings

logger = logging.getLogger(__name__)


class PointSink(Protocol):

    def write(self, points: Sequence[TimePoint]) -> None: ...

    def close(self) -> None: ...


def to_influx_point(point: TimePoint) -> Point:
    record = Point(point.measurement)
    for key, value in point.tags.items():
        record = record.tag(key, value)
    for key, value in point.fields.items():
        record = record.field(key, value)
    return record.time(point.timestamp_ns, WritePrecision.NS)


class InfluxSink:
    """Writes batches of points to one InfluxDB bucket."""

    def __init__(
        self,
        url: str,
        org: str,
        bucket: str,
        token: str,
        timeout: float = 10.0,
        client: Optional[InfluxDBClient] = None,
    ) -> None:
        self.bucket = bucket
        self.org = org
        self._client = client or InfluxDBClient(
            url=url, token=token, org=org, timeout=int(timeout * 1000)
        )
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)

    def write(self, points: Sequence[TimePoint]) -> None:
        """Write all ``points`` in one request; any failure fails the whole batch."""

        records: List[Point] = [to_influx_point(point) for point in points]
        if not records:
            return
        try:
            self._write_api.write(
                bucket=self.bucket,
                org=self.org,
                record=records,
                write_precision=WritePrecision.NS,
            )
        except (ApiException, InfluxDBError, Urllib3HTTPError, OSError) as exc:
            raise SinkWriteError(f"Failed to write to InfluxDB: {exc}") from exc
        logger.debug(
            "Wrote batch to InfluxDB",
            extra={"bucket": self.bucket, "point_count": len(records)},
        )

    def close(self) -> None:
        self._write_api.close()
        self._client.close()


@lru_cache
def build_default_sink() -> InfluxSink:
    config = get_settings().app.influxdb
    return InfluxSink(
        url=config.url,
        org=config.org,
        bucket=config.bucket,
        token=config.token,
        timeout=config.timeout_secs,
    )
