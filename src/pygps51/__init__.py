"""pygps51 - Async GPS51 vendor client with trip segmentation and sync."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pygps51")
except PackageNotFoundError:
    __version__ = "0+local"
from pygps51.client import Gps51Client
from pygps51.config import Gps51Config, SegmentationConfig, SyncConfig
from pygps51.exceptions import (
    Gps51ApiError,
    Gps51AuthenticationError,
    Gps51ConfigError,
    Gps51DataIntegrityError,
    Gps51Error,
    Gps51MalformedResponseError,
    Gps51RateLimitError,
    Gps51TokenExpiredError,
    Gps51TransportError,
)
from pygps51.models import (
    CommandOutcome,
    CommandResult,
    Coordinate,
    DeviceSyncStatus,
    PositionSample,
    RouteSegment,
    SearchTrip,
    SegmentKind,
    SyncRunResult,
    SyncState,
    TripCandidate,
    TripSummary,
)
from pygps51.polling import PollResult, poll_until
from pygps51.state import InMemoryTripStore, TripStore
from pygps51.sync import VendorSyncClient
from pygps51.trips import (
    DistanceAccumulator,
    GhostTripFilter,
    RouteSegmentSplitter,
    TripSegmenter,
    accumulate,
    filter_by_location,
    map_vendor_trip_to_search_trip,
)

__all__ = [
    "__version__",
    "CommandOutcome",
    "CommandResult",
    "Coordinate",
    "DeviceSyncStatus",
    "DistanceAccumulator",
    "GhostTripFilter",
    "Gps51ApiError",
    "Gps51AuthenticationError",
    "Gps51Client",
    "Gps51Config",
    "Gps51ConfigError",
    "Gps51DataIntegrityError",
    "Gps51Error",
    "Gps51MalformedResponseError",
    "Gps51RateLimitError",
    "Gps51TokenExpiredError",
    "Gps51TransportError",
    "InMemoryTripStore",
    "PollResult",
    "PositionSample",
    "RouteSegment",
    "RouteSegmentSplitter",
    "SearchTrip",
    "SegmentKind",
    "SegmentationConfig",
    "SyncConfig",
    "SyncRunResult",
    "SyncState",
    "TripCandidate",
    "TripSegmenter",
    "TripStore",
    "TripSummary",
    "VendorSyncClient",
    "accumulate",
    "filter_by_location",
    "map_vendor_trip_to_search_trip",
    "poll_until",
]
