"""Position sample models."""

from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class Coordinate(BaseModel):
    """A WGS84 point in decimal degrees."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    latitude: float
    longitude: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)


class PositionSample(BaseModel):
    """A single GPS fix reported by a device.

    Parameters
    ----------
    device_id : str
        Vendor device identifier.
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    timestamp : datetime
        Fix time (timezone-aware).
    speed : float or None
        Reported speed in km/h. ``None`` when the vendor did not report one;
        consumers derive it from distance/time when needed.
    ignition_on : bool or None
        Ignition (ACC) state. ``None`` when unknown.
    heading : float or None
        Course over ground in degrees.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    device_id: str
    latitude: float
    longitude: float
    timestamp: datetime
    speed: float | None = None
    ignition_on: bool | None = None
    heading: float | None = None

    @field_validator("timestamp")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return value
