"""Geographic value types shared by the viewport and cluster models."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LatLng(BaseModel):
    """A WGS84 coordinate pair."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    @model_validator(mode="before")
    @classmethod
    def accept_pair(cls, data: Any) -> Any:
        """Allow ``[lat, lng]`` pairs as well as ``{"lat": ..., "lng": ...}``."""
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("Coordinate pair must have exactly two values")
            return {"lat": data[0], "lng": data[1]}
        return data


class Bounds(BaseModel):
    """Visible map rectangle, southwest to northeast corner."""

    model_config = ConfigDict(frozen=True)

    sw: LatLng
    ne: LatLng

    @model_validator(mode="after")
    def check_corners(self) -> Self:
        """Ensure the southwest corner is not north or east of the northeast one."""
        if self.sw.lat > self.ne.lat:
            raise ValueError("sw.lat must be <= ne.lat")
        if self.sw.lng > self.ne.lng:
            raise ValueError("sw.lng must be <= ne.lng")
        return self

    @classmethod
    def from_corners(
        cls, sw: tuple[float, float], ne: tuple[float, float]
    ) -> Self:
        return cls(sw=LatLng(lat=sw[0], lng=sw[1]), ne=LatLng(lat=ne[0], lng=ne[1]))

    def to_query_params(self) -> dict[str, str]:
        """Backend query parameters describing this rectangle."""
        return {
            "minLat": str(self.sw.lat),
            "maxLat": str(self.ne.lat),
            "minLng": str(self.sw.lng),
            "maxLng": str(self.ne.lng),
        }


class MapOptions(BaseModel):
    """Options used to construct the external map widget."""

    model_config = ConfigDict(frozen=True)

    center: LatLng
    zoom: int = Field(ge=0, le=21)
    min_zoom: int = Field(default=0, ge=0, le=21)

    @model_validator(mode="after")
    def check_zoom_range(self) -> Self:
        if self.min_zoom > self.zoom:
            raise ValueError("min_zoom must be <= zoom")
        return self
