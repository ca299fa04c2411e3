"""Sync state persistence and scheduling policy."""

from pygps51.state.policy import fetch_window, prioritize_devices
from pygps51.state.store import InMemoryTripStore, TripStore

__all__ = ["InMemoryTripStore", "TripStore", "fetch_window", "prioritize_devices"]
