"""Viewport-driven cluster loading and marker lifecycle for listing maps."""

from listing_map.client import ClusterSource, HttpClusterSource
from listing_map.config import Settings
from listing_map.controller import ClusterMapController
from listing_map.errors import (
    FetchError,
    ListingMapError,
    LoadOutcome,
    MalformedResponseError,
    NotReadyError,
)
from listing_map.filter_state import FilterState
from listing_map.widget import ListingPanel, MapEvent, MapWidget

__all__ = [
    "ClusterMapController",
    "ClusterSource",
    "FetchError",
    "FilterState",
    "HttpClusterSource",
    "ListingMapError",
    "ListingPanel",
    "LoadOutcome",
    "MalformedResponseError",
    "MapEvent",
    "MapWidget",
    "NotReadyError",
    "Settings",
]
