"""Tracking set and its persistence."""

from .storage import load_tracking_set, save_tracking_set
from .tracking_set import TrackingSet, as_utc

__all__ = ["TrackingSet", "as_utc", "load_tracking_set", "save_tracking_set"]
