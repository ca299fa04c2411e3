"""Trip derivation: segmentation, ghost filtering, route splitting and search."""

from pygps51.trips.distance import DistanceAccumulator, accumulate, accumulate_samples
from pygps51.trips.ghost import GhostTripFilter
from pygps51.trips.route import RouteSegmentSplitter
from pygps51.trips.search import filter_by_location, map_vendor_trip_to_search_trip
from pygps51.trips.segmenter import TripSegmenter

__all__ = [
    "DistanceAccumulator",
    "GhostTripFilter",
    "RouteSegmentSplitter",
    "TripSegmenter",
    "accumulate",
    "accumulate_samples",
    "filter_by_location",
    "map_vendor_trip_to_search_trip",
]
