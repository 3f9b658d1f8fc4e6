"""Domain models for the listing map."""

from listing_map.models.geo import Bounds, LatLng, MapOptions
from listing_map.models.listing import (
    AreaBucket,
    Cluster,
    FilterCriteria,
    Listing,
    TransactionType,
)

__all__ = [
    "AreaBucket",
    "Bounds",
    "Cluster",
    "FilterCriteria",
    "LatLng",
    "Listing",
    "MapOptions",
    "TransactionType",
]
