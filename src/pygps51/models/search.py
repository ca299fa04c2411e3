"""Trip search model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SearchTrip(BaseModel):
    """A stored trip normalized for location search.

    Every field is optional because stored rows are often partial.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    device_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    start_latitude: float | None = None
    start_longitude: float | None = None
    end_latitude: float | None = None
    end_longitude: float | None = None
    distance_km: float | None = None
    duration_seconds: float | None = None
    max_speed: float | None = None
    avg_speed: float | None = None
    end_location_name: str | None = None
