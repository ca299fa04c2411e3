"""Base model and enum for GPS51 vendor payloads.

Every vendor record model inherits from :class:`VendorBaseModel` which
provides:

* A ``model_validator(mode="before")`` that strips vendor sentinel
  values (``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.

State enums inherit from :class:`VendorEnum` which adds an ``UNKNOWN``
member at ``-1`` and a ``_missing_`` hook that returns ``UNKNOWN``
for any value without a mapped member.
"""

from __future__ import annotations

import enum
import math
from datetime import UTC, datetime, timedelta, timezone
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from pygps51._constants import VENDOR_DATETIME_FORMAT, VENDOR_UTC_OFFSET_HOURS

# Sentinel strings the vendor uses for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null"})

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 100_000_000_000


def vendor_timezone(offset_hours: int = VENDOR_UTC_OFFSET_HOURS) -> timezone:
    return timezone(timedelta(hours=offset_hours))


def format_vendor_datetime(value: datetime, offset_hours: int = VENDOR_UTC_OFFSET_HOURS) -> str:
    """Render an aware datetime as the vendor's ``yyyy-MM-dd HH:mm:ss`` wall clock."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(vendor_timezone(offset_hours)).strftime(VENDOR_DATETIME_FORMAT)


def parse_vendor_timestamp(value: Any, offset_hours: int = VENDOR_UTC_OFFSET_HOURS) -> datetime | None:
    """Convert a vendor timestamp to an aware UTC datetime.

    Accepts epoch seconds, epoch milliseconds (numbers or numeric strings)
    and ``yyyy-MM-dd HH:mm:ss`` strings in the vendor timezone. Returns
    ``None`` for missing, non-positive or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text in _SENTINELS:
            return None
        try:
            value = float(text)
        except ValueError:
            try:
                naive = datetime.strptime(text, VENDOR_DATETIME_FORMAT)
            except ValueError:
                return None
            return naive.replace(tzinfo=vendor_timezone(offset_hours)).astimezone(UTC)
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return None
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


VendorTimestamp = Annotated[datetime | None, BeforeValidator(parse_vendor_timestamp)]
"""Annotated type that coerces vendor timestamps (s, ms or wall-clock string) to UTC datetimes."""


class VendorEnum(enum.IntEnum):
    """Base for vendor state enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    Values the vendor sends that have no mapped member resolve to
    ``UNKNOWN`` instead of raising ``ValueError``.
    """

    @classmethod
    def _missing_(cls, value: object) -> VendorEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: VendorEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class VendorBaseModel(BaseModel):
    """Base for vendor record models.

    Handles:
    * vendor sentinel values (``""``, ``"--"``, NaN) dropped so
      the field default is used instead
    * Stashes the original vendor dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original vendor record."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_vendor_values(cls, values: Any) -> Any:
        """Strip vendor sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = VendorBaseModel._clean_dict(original)
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
