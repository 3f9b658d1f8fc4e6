"""Application configuration using pydantic-settings."""

from dataclasses import replace
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from listing_map.markers import DEFAULT_ICON_TIERS, IconTier
from listing_map.models import LatLng, MapOptions


class Settings(BaseSettings):
    """Controller settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LISTING_MAP_",
        extra="ignore",
    )

    # Cluster backend
    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the cluster backend",
    )
    clusters_path: str = Field(default="/api/clusters")
    request_timeout: float = Field(default=10.0, gt=0, description="Seconds per request")

    # Fetch scheduling
    debounce_ms: int = Field(
        default=500,
        ge=0,
        le=10_000,
        description="Quiet period after the last viewport/filter change before fetching",
    )

    # Map behaviour
    close_up_zoom: int = Field(
        default=17,
        ge=1,
        le=21,
        description="Zoom level applied when a listing is opened from the panel",
    )
    initial_lat: float = Field(default=37.5666805, ge=-90, le=90)
    initial_lng: float = Field(default=126.9784147, ge=-180, le=180)
    initial_zoom: int = Field(default=10, ge=0, le=21)
    min_zoom: int = Field(default=6, ge=0, le=21)
    enable_hover: bool = Field(
        default=True,
        description="Show the panel on marker hover; disable on touch-only devices",
    )

    # Cluster badge tiers
    icon_medium_min: int = Field(default=10, ge=2)
    icon_large_min: int = Field(default=100, ge=3)

    @model_validator(mode="after")
    def check_ranges(self) -> Self:
        if self.min_zoom > self.initial_zoom:
            raise ValueError("min_zoom must be <= initial_zoom")
        if self.icon_medium_min >= self.icon_large_min:
            raise ValueError("icon_medium_min must be < icon_large_min")
        return self

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @property
    def clusters_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/{self.clusters_path.lstrip('/')}"

    def get_map_options(self) -> MapOptions:
        """Options for constructing the map widget."""
        return MapOptions(
            center=LatLng(lat=self.initial_lat, lng=self.initial_lng),
            zoom=self.initial_zoom,
            min_zoom=self.min_zoom,
        )

    def get_icon_tiers(self) -> tuple[IconTier, ...]:
        """Badge tiers with the configured count thresholds."""
        small, medium, large = DEFAULT_ICON_TIERS
        return (
            small,
            replace(medium, min_count=self.icon_medium_min),
            replace(large, min_count=self.icon_large_min),
        )
