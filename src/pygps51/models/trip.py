"""Trip models: derived candidates and vendor ``querytrips`` rows."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pygps51.exceptions import Gps51DataIntegrityError
from pygps51.ingestion.normalize import safe_float, safe_str, speed_from_metres_per_hour
from pygps51.models._base import VendorBaseModel, VendorTimestamp
from pygps51.models.position import Coordinate

TripSource = Literal["segmenter", "vendor"]


class TripCandidate(BaseModel):
    """A trip derived from samples or taken from a vendor trip row.

    Constructing a candidate whose ``end_time`` is not after its
    ``start_time``, whose distance is negative, or whose coordinates are
    not finite raises :class:`~pygps51.exceptions.Gps51DataIntegrityError`.

    Parameters
    ----------
    device_id : str
        Vendor device identifier.
    start_time, end_time : datetime
        Trip boundaries (timezone-aware).
    start_coord, end_coord : Coordinate or None
        First and last positions. ``None`` when the vendor reported no
        usable endpoint; a later reconciliation pass fills it in.
    distance_km : float
        Travelled distance.
    avg_speed_kmh, max_speed_kmh : float
        Speed statistics over the trip.
    source : str
        ``"segmenter"`` or ``"vendor"``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    device_id: str
    start_time: datetime
    end_time: datetime
    start_coord: Coordinate | None = None
    end_coord: Coordinate | None = None
    distance_km: float
    avg_speed_kmh: float = 0.0
    max_speed_kmh: float = 0.0
    source: TripSource = "segmenter"

    @model_validator(mode="after")
    def _check_integrity(self) -> TripCandidate:
        if self.end_time <= self.start_time:
            raise Gps51DataIntegrityError(
                f"Trip for device {self.device_id} ends at {self.end_time.isoformat()} "
                f"not after its start {self.start_time.isoformat()}"
            )
        if any(c is not None and not c.is_finite for c in (self.start_coord, self.end_coord)):
            raise Gps51DataIntegrityError(f"Trip for device {self.device_id} has non-finite coordinates")
        if not math.isfinite(self.distance_km) or self.distance_km < 0:
            raise Gps51DataIntegrityError(
                f"Trip for device {self.device_id} has invalid distance {self.distance_km!r}"
            )
        return self

    @property
    def needs_coordinate_backfill(self) -> bool:
        return self.start_coord is None or self.end_coord is None

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def key(self) -> tuple[str, datetime]:
        """Natural key used for idempotent upserts."""
        return (self.device_id, self.start_time)


class VendorTripRecord(VendorBaseModel):
    """One row of the vendor ``querytrips`` report.

    Distances arrive in metres and speeds in metres per hour; the
    properties below expose kilometres and km/h.
    """

    device_id: str | None = Field(default=None, validation_alias=AliasChoices("deviceid", "device_id"))
    start_time: VendorTimestamp = Field(default=None, validation_alias=AliasChoices("starttime", "begintime"))
    end_time: VendorTimestamp = Field(default=None, validation_alias=AliasChoices("endtime"))
    start_lat: float | None = Field(default=None, validation_alias=AliasChoices("startlat", "startlatitude", "slat"))
    start_lon: float | None = Field(
        default=None, validation_alias=AliasChoices("startlon", "startlng", "startlongitude", "slon")
    )
    end_lat: float | None = Field(default=None, validation_alias=AliasChoices("endlat", "endlatitude", "elat"))
    end_lon: float | None = Field(
        default=None, validation_alias=AliasChoices("endlon", "endlng", "endlongitude", "elon")
    )
    distance_m: float | None = Field(default=None, validation_alias=AliasChoices("distance", "totaldistance"))
    max_speed_mph: float | None = Field(default=None, validation_alias=AliasChoices("maxspeed"))
    avg_speed_mph: float | None = Field(default=None, validation_alias=AliasChoices("avgspeed", "averagespeed"))

    @field_validator(
        "start_lat",
        "start_lon",
        "end_lat",
        "end_lon",
        "distance_m",
        "max_speed_mph",
        "avg_speed_mph",
        mode="before",
    )
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def distance_km(self) -> float | None:
        return None if self.distance_m is None else self.distance_m / 1000.0

    @property
    def max_speed_kmh(self) -> float | None:
        return speed_from_metres_per_hour(self.max_speed_mph)

    @property
    def avg_speed_kmh(self) -> float | None:
        return speed_from_metres_per_hour(self.avg_speed_mph)
