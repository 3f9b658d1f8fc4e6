"""Shared pytest fixtures and test doubles for the map controller."""

import asyncio
import os
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

import pytest
from hypothesis import HealthCheck, settings

from listing_map.client import ClusterSource
from listing_map.config import Settings
from listing_map.models import Bounds, Cluster, FilterCriteria, LatLng, Listing
from listing_map.widget import (
    ListenerHandle,
    ListingPanel,
    MapEvent,
    MapWidget,
    MarkerHandle,
    MarkerHandlers,
    MarkerIcon,
    PointerEvent,
    PointerHandler,
)

# Hypothesis settings profiles for different environments
settings.register_profile("fast", max_examples=10)
settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "fast"))

SEOUL_BOUNDS = Bounds.from_corners((37.40, 126.90), (37.60, 127.05))


@pytest.fixture(autouse=True)
def _isolate_settings_from_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent a local .env file from leaking into test Settings instances."""
    monkeypatch.setattr(
        Settings,
        "model_config",
        {**Settings.model_config, "env_file": None},
    )


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


@dataclass
class FakeMarker:
    position: LatLng
    icon: MarkerIcon
    handlers: MarkerHandlers


class FakeMapWidget(MapWidget):
    """In-memory map that records listener and marker traffic.

    Marker clicks are delivered to map-level ``click`` listeners unless the
    marker handler stopped propagation, like a browser map would.
    """

    def __init__(self, bounds: Bounds = SEOUL_BOUNDS, *, ready: bool = True) -> None:
        self.bounds = bounds
        self._ready = ready
        self.listeners: dict[ListenerHandle, tuple[MapEvent, PointerHandler]] = {}
        self.markers: dict[MarkerHandle, FakeMarker] = {}
        self.call_log: list[tuple[str, MapEvent]] = []
        self.centers: list[LatLng] = []
        self.zooms: list[int] = []
        self.fail_marker_labels: set[str] = set()
        self.disposed = False
        self._next_id = 0

    # MapWidget ---------------------------------------------------------
    @property
    def ready(self) -> bool:
        return self._ready

    def get_bounds(self) -> Bounds:
        return self.bounds

    def add_listener(self, event: MapEvent, handler: PointerHandler) -> ListenerHandle:
        self._next_id += 1
        handle = ListenerHandle(self._next_id)
        self.listeners[handle] = (event, handler)
        self.call_log.append(("add", event))
        return handle

    def remove_listener(self, handle: ListenerHandle) -> None:
        event, _ = self.listeners.pop(handle)
        self.call_log.append(("remove", event))

    def set_center(self, position: LatLng) -> None:
        self.centers.append(position)

    def set_zoom(self, zoom: int) -> None:
        self.zooms.append(zoom)

    def create_marker(
        self, position: LatLng, icon: MarkerIcon, handlers: MarkerHandlers
    ) -> MarkerHandle:
        if icon.label in self.fail_marker_labels:
            raise RuntimeError(f"cannot render marker {icon.label}")
        self._next_id += 1
        handle = MarkerHandle(self._next_id)
        self.markers[handle] = FakeMarker(position=position, icon=icon, handlers=handlers)
        return handle

    def destroy_marker(self, handle: MarkerHandle) -> None:
        del self.markers[handle]

    def dispose(self) -> None:
        self._ready = False
        self.disposed = True

    # Simulation helpers ------------------------------------------------
    def initialise(self) -> None:
        self._ready = True
        self.emit(MapEvent.INIT)

    def emit(self, event: MapEvent, pointer: PointerEvent | None = None) -> None:
        pointer = pointer or PointerEvent()
        for subscribed, handler in list(self.listeners.values()):
            if subscribed == event:
                handler(pointer)

    def pan_to(self, bounds: Bounds) -> None:
        self.bounds = bounds
        self.emit(MapEvent.IDLE)

    def click_background(self) -> None:
        self.emit(MapEvent.CLICK)

    def click_marker(self, handle: MarkerHandle) -> None:
        pointer = PointerEvent(position=self.markers[handle].position)
        on_click = self.markers[handle].handlers.on_click
        if on_click is not None:
            on_click(pointer)
        if not pointer.propagation_stopped:
            self.emit(MapEvent.CLICK, pointer)

    def hover_marker(self, handle: MarkerHandle) -> None:
        handler = self.markers[handle].handlers.on_mouse_over
        if handler is not None:
            handler(PointerEvent())

    def leave_marker(self, handle: MarkerHandle) -> None:
        handler = self.markers[handle].handlers.on_mouse_out
        if handler is not None:
            handler(PointerEvent())

    def listener_count(self, event: MapEvent | None = None) -> int:
        return sum(1 for e, _ in self.listeners.values() if event is None or e == event)

    def marker_handles(self) -> list[MarkerHandle]:
        return list(self.markers)


class RecordingPanel(ListingPanel):
    """Listing panel that remembers what it shows."""

    def __init__(self) -> None:
        self.members: list[Listing] | None = None
        self.on_listing_click: Callable[[Listing], None] | None = None
        self.show_calls = 0
        self.hide_calls = 0

    @property
    def visible(self) -> bool:
        return self.members is not None

    def show(
        self, members: Sequence[Listing], on_listing_click: Callable[[Listing], None]
    ) -> None:
        self.members = list(members)
        self.on_listing_click = on_listing_click
        self.show_calls += 1

    def hide(self) -> None:
        self.members = None
        self.hide_calls += 1

    def click_listing(self, index: int = 0) -> None:
        assert self.members is not None and self.on_listing_click is not None
        self.on_listing_click(self.members[index])


@dataclass
class FetchCall:
    bounds: Bounds
    criteria: FilterCriteria
    future: "asyncio.Future[list[Cluster]]"
    issued_at: float


@dataclass
class ScriptedClusterSource(ClusterSource):
    """Cluster source whose responses are resolved by the test.

    With ``auto`` set, every fetch answers immediately with ``auto``.
    """

    auto: list[Cluster] | None = None
    calls: list[FetchCall] = field(default_factory=list)

    async def fetch_clusters(self, bounds: Bounds, criteria: FilterCriteria) -> list[Cluster]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[list[Cluster]] = loop.create_future()
        self.calls.append(FetchCall(bounds, criteria, future, loop.time()))
        if self.auto is not None:
            future.set_result(list(self.auto))
        return await future

    def resolve(self, index: int, clusters: list[Cluster]) -> None:
        self.calls[index].future.set_result(clusters)

    def fail(self, index: int, error: Exception) -> None:
        self.calls[index].future.set_exception(error)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def seoul_bounds() -> Bounds:
    return SEOUL_BOUNDS


@pytest.fixture
def make_listing() -> Callable[..., Listing]:
    def _make(listing_id: int, lat: float = 37.5, lng: float = 126.97) -> Listing:
        return Listing(
            id=listing_id,
            name=f"Apartment {listing_id}",
            address=f"{listing_id} Sejong-daero, Jung-gu, Seoul",
            latitude=lat,
            longitude=lng,
        )

    return _make


@pytest.fixture
def make_cluster(make_listing: Callable[..., Listing]) -> Callable[..., Cluster]:
    """Build a cluster whose members all sit at its centroid."""

    def _make(lat: float, lng: float, count: int, *, first_id: int = 1) -> Cluster:
        members = tuple(make_listing(first_id + i, lat, lng) for i in range(count))
        return Cluster(centroid=LatLng(lat=lat, lng=lng), count=count, members=members)

    return _make


@pytest.fixture
def test_settings() -> Settings:
    return Settings(debounce_ms=30, close_up_zoom=17)


@pytest.fixture
def widget() -> FakeMapWidget:
    return FakeMapWidget()


@pytest.fixture
def widget_factory() -> Callable[..., FakeMapWidget]:
    return FakeMapWidget


@pytest.fixture
def panel() -> RecordingPanel:
    return RecordingPanel()


@pytest.fixture
def source() -> ScriptedClusterSource:
    return ScriptedClusterSource()


async def settle(rounds: int = 5) -> None:
    """Let callbacks scheduled with call_soon run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def spin() -> Callable[..., Awaitable[None]]:
    return settle
