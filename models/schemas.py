"""Pydantic schemas for the upstream payload and per-cycle outcomes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import AreaReading


class AreaPayload(BaseModel):
    """One entry of the upstream ``msparkingData`` array."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", strict=True)

    area_code: int = Field(..., alias="areaCode")
    free_spaces: int = Field(..., alias="areaFreeSpaceNum")

    def to_reading(self) -> AreaReading:
        return AreaReading(area_code=self.area_code, free_spaces=self.free_spaces)


class ApiResponse(BaseModel):
    """Body returned by the parking availability API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", strict=True)

    success: bool
    areas: List[AreaPayload] = Field(..., alias="msparkingData")
    date: str = Field(..., description="Upstream report date; not used downstream.")

    @property
    def readings(self) -> List[AreaReading]:
        return [area.to_reading() for area in self.areas]


class CycleStatus(str, Enum):
    """Outcome of a single polling cycle."""

    written = "written"
    fallback = "fallback"
    rejected = "rejected"
    empty = "empty"
    fetch_failed = "fetch_failed"
    write_failed = "write_failed"


class CycleResult(BaseModel):
    """Summary record produced by every cycle, successful or not."""

    status: CycleStatus
    started_at: datetime
    point_count: int = Field(default=0, ge=0)
    from_cache: bool = False
    reason: Optional[str] = None
    cycle_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from tick to completion."
    )
