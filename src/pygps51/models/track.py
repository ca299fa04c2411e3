"""Vendor ``querytrack`` points and ``reportaccsbytime`` ignition intervals."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pygps51._constants import ACC_STATE_OFF, ACC_STATE_ON
from pygps51.ingestion.normalize import normalize_speed_kmh, safe_float, safe_int, safe_str
from pygps51.models._base import VendorBaseModel, VendorEnum, VendorTimestamp


class AccState(VendorEnum):
    """Ignition state in ACC reports."""

    UNKNOWN = -1
    OFF = ACC_STATE_OFF
    ON = ACC_STATE_ON


class VendorTrackPoint(VendorBaseModel):
    """One raw fix from ``querytrack``.

    Ignition comes from bit 0 of ``status`` when present, otherwise from
    an ``ACC ON``/``ACC OFF`` marker in ``strstatus``.
    """

    device_id: str | None = Field(default=None, validation_alias=AliasChoices("deviceid", "device_id"))
    latitude: float | None = Field(default=None, validation_alias=AliasChoices("callat", "lat", "latitude"))
    longitude: float | None = Field(
        default=None, validation_alias=AliasChoices("callon", "lon", "lng", "longitude")
    )
    timestamp: VendorTimestamp = Field(
        default=None, validation_alias=AliasChoices("gpstime", "updatetime", "time", "validpoistiontime")
    )
    speed: float | None = None
    heading: float | None = Field(default=None, validation_alias=AliasChoices("course", "heading", "direction"))
    status: int | None = None
    status_text: str | None = Field(default=None, validation_alias=AliasChoices("strstatus", "strstatusen"))

    @field_validator("latitude", "longitude", "heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("speed", mode="before")
    @classmethod
    def _coerce_speed(cls, value: Any) -> float | None:
        return normalize_speed_kmh(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("device_id", "status_text", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def ignition_on(self) -> bool | None:
        if self.status is not None:
            return bool(self.status & 0x01)
        if self.status_text:
            text = self.status_text.upper()
            if "ACC ON" in text:
                return True
            if "ACC OFF" in text:
                return False
        return None


class AccRecord(VendorBaseModel):
    """One ignition interval from ``reportaccsbytime``."""

    device_id: str | None = Field(default=None, validation_alias=AliasChoices("deviceid", "device_id"))
    acc_state: AccState = Field(default=AccState.UNKNOWN, validation_alias=AliasChoices("accstate", "acc_state"))
    begin_time: VendorTimestamp = Field(default=None, validation_alias=AliasChoices("begintime", "starttime"))
    end_time: VendorTimestamp = Field(default=None, validation_alias=AliasChoices("endtime"))
    start_lat: float | None = Field(default=None, validation_alias=AliasChoices("slat", "startlat"))
    start_lon: float | None = Field(default=None, validation_alias=AliasChoices("slon", "startlon"))
    end_lat: float | None = Field(default=None, validation_alias=AliasChoices("elat", "endlat"))
    end_lon: float | None = Field(default=None, validation_alias=AliasChoices("elon", "endlon"))

    @field_validator("acc_state", mode="before")
    @classmethod
    def _coerce_acc_state(cls, value: Any) -> AccState:
        parsed = safe_int(value)
        return AccState.UNKNOWN if parsed is None else AccState(parsed)

    @field_validator("start_lat", "start_lon", "end_lat", "end_lon", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, value: Any) -> str | None:
        return safe_str(value)

    def covers(self, instant: datetime) -> bool:
        """Whether *instant* falls inside this interval (end inclusive)."""
        if self.begin_time is None or self.end_time is None:
            return False
        return self.begin_time <= instant <= self.end_time
