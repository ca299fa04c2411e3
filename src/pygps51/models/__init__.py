"""Data models for GPS51 payloads and derived trips."""

from pygps51.models._base import (
    VendorBaseModel,
    VendorEnum,
    VendorTimestamp,
    format_vendor_datetime,
    parse_vendor_timestamp,
)
from pygps51.models.command import CommandOutcome, CommandResult, CommandStatus
from pygps51.models.position import Coordinate, PositionSample
from pygps51.models.search import SearchTrip
from pygps51.models.segment import RouteSegment, SegmentKind, TripSummary
from pygps51.models.sync import DeviceStatus, DeviceSyncOutcome, DeviceSyncStatus, SyncRunResult, SyncState
from pygps51.models.token import AuthToken
from pygps51.models.track import AccRecord, AccState, VendorTrackPoint
from pygps51.models.trip import TripCandidate, VendorTripRecord

__all__ = [
    "AccRecord",
    "AccState",
    "AuthToken",
    "CommandOutcome",
    "CommandResult",
    "CommandStatus",
    "Coordinate",
    "DeviceStatus",
    "DeviceSyncOutcome",
    "DeviceSyncStatus",
    "PositionSample",
    "RouteSegment",
    "SearchTrip",
    "SegmentKind",
    "SyncRunResult",
    "SyncState",
    "TripCandidate",
    "TripSummary",
    "VendorBaseModel",
    "VendorEnum",
    "VendorTimestamp",
    "VendorTrackPoint",
    "VendorTripRecord",
    "format_vendor_datetime",
    "parse_vendor_timestamp",
]
