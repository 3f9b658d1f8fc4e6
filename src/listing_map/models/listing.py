"""Listing, cluster and filter models exchanged with the cluster backend."""

import math
from enum import StrEnum
from typing import Any, Final, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from listing_map.models.geo import LatLng

_Wire = ConfigDict(frozen=True, populate_by_name=True)


class AreaBucket(StrEnum):
    """Exclusive-area bands (m²) offered by the area filter."""

    ALL = "all"
    UP_TO_60 = "60"
    UP_TO_85 = "85"
    UP_TO_135 = "135"
    OVER_135 = "136"

    @property
    def label(self) -> str:
        return _AREA_LABELS[self.value]


_AREA_LABELS: Final[dict[str, str]] = {
    "all": "All sizes",
    "60": "60m² or less",
    "85": "60m² - 85m²",
    "135": "85m² - 135m²",
    "136": "Over 135m²",
}


class TransactionType(StrEnum):
    """Transaction kinds: outright sale (매매) or jeonse deposit lease (전세)."""

    ALL = "all"
    SALE = "sale"
    JEONSE = "jeonse"

    @property
    def label(self) -> str:
        return _TRANSACTION_LABELS[self.value]


_TRANSACTION_LABELS: Final[dict[str, str]] = {
    "all": "All",
    "sale": "Sale (매매)",
    "jeonse": "Jeonse (전세)",
}


class Listing(BaseModel):
    """A single apartment listing inside a cluster."""

    model_config = _Wire

    id: int
    name: str
    address: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    @property
    def position(self) -> LatLng:
        return LatLng(lat=self.latitude, lng=self.longitude)


class Cluster(BaseModel):
    """A server-computed group of nearby listings.

    Clusters have no identity across fetches: ``grid_cell`` is informational
    only and two fetches of the same viewport may return different centroids
    and members for the same cell.
    """

    model_config = _Wire

    grid_cell: tuple[int, int] | None = Field(default=None, alias="gridCell")
    centroid: LatLng
    count: int = Field(ge=1)
    members: tuple[Listing, ...] = ()

    @model_validator(mode="after")
    def check_members(self) -> Self:
        """Members never outnumber ``count``; a singleton carries its one listing."""
        if len(self.members) > self.count:
            raise ValueError("Cluster has more members than its count")
        if self.count == 1 and len(self.members) != 1:
            raise ValueError("Single-listing cluster must carry exactly one member")
        return self

    @property
    def label(self) -> str:
        return str(self.count)


class FilterCriteria(BaseModel):
    """User-editable query scope. Prices are in units of 10,000 KRW (만원).

    Instances are immutable; edits produce a new snapshot.
    """

    model_config = ConfigDict(frozen=True)

    min_price: int = Field(default=0, ge=0)
    max_price: int | None = Field(default=None, ge=0, description="None means unbounded")
    area: AreaBucket = AreaBucket.ALL
    transaction_type: TransactionType = TransactionType.ALL

    @field_validator("max_price", mode="before")
    @classmethod
    def infinite_is_unbounded(cls, v: Any) -> Any:
        if isinstance(v, float) and math.isinf(v) and v > 0:
            return None
        return v

    @model_validator(mode="after")
    def check_price_range(self) -> Self:
        """Ensure min_price <= max_price."""
        if self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must be <= max_price")
        return self

    def to_query_params(self) -> dict[str, str]:
        """Backend query parameters; an unbounded max price is omitted."""
        params = {
            "minPrice": str(self.min_price),
            "area": self.area.value,
            "type": self.transaction_type.value,
        }
        if self.max_price is not None:
            params["maxPrice"] = str(self.max_price)
        return params
