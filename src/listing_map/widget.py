"""Capability set of the external map widget and listing panel.

The controller only talks to the map through :class:`MapWidget`. Concrete
widgets (a browser bridge, a desktop map view, a test fake) implement it.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, NewType

from listing_map.models import Bounds, LatLng, Listing

ListenerHandle = NewType("ListenerHandle", int)
MarkerHandle = NewType("MarkerHandle", int)


class MapEvent(StrEnum):
    """Map-level events the controller listens to."""

    INIT = "init"
    IDLE = "idle"
    CLICK = "click"


@dataclass
class PointerEvent:
    """Pointer event delivered to map and marker handlers.

    A marker handler that calls :meth:`stop_propagation` keeps the widget from
    also delivering the event to map-level ``click`` listeners.
    """

    position: LatLng | None = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


PointerHandler = Callable[[PointerEvent], None]


@dataclass(frozen=True)
class MarkerHandlers:
    on_click: PointerHandler | None = None
    on_mouse_over: PointerHandler | None = None
    on_mouse_out: PointerHandler | None = None


_ICON_TEMPLATE: Final = (
    '<div style="cursor:pointer;width:{size}px;height:{size}px;'
    "line-height:{line_height}px;font-size:{font_size}px;color:white;"
    "text-align:center;font-weight:bold;background:rgba(30, 64, 175, 0.8);"
    'border-radius:50%;">{label}</div>'
)


@dataclass(frozen=True)
class MarkerIcon:
    """Round cluster badge showing the member count."""

    label: str
    size: int = 40
    line_height: int = 42
    font_size: int = 10

    def to_html(self) -> str:
        return _ICON_TEMPLATE.format(
            size=self.size,
            line_height=self.line_height,
            font_size=self.font_size,
            label=self.label,
        )


class MapWidget(ABC):
    """Interface of the interactive map the controller drives."""

    @property
    @abstractmethod
    def ready(self) -> bool:
        """Whether the widget has finished initialising."""
        ...

    @abstractmethod
    def get_bounds(self) -> Bounds:
        """Currently visible rectangle."""
        ...

    @abstractmethod
    def add_listener(self, event: MapEvent, handler: PointerHandler) -> ListenerHandle:
        """Register a map-level event handler."""
        ...

    @abstractmethod
    def remove_listener(self, handle: ListenerHandle) -> None:
        """Unregister a handler previously returned by :meth:`add_listener`."""
        ...

    @abstractmethod
    def set_center(self, position: LatLng) -> None: ...

    @abstractmethod
    def set_zoom(self, zoom: int) -> None: ...

    @abstractmethod
    def create_marker(
        self, position: LatLng, icon: MarkerIcon, handlers: MarkerHandlers
    ) -> MarkerHandle:
        """Place a marker on the map and attach its pointer handlers."""
        ...

    @abstractmethod
    def destroy_marker(self, handle: MarkerHandle) -> None:
        """Remove a marker and its handlers from the map."""
        ...

    def dispose(self) -> None:  # noqa: B027
        """Release widget resources. The owner calls this, not the controller."""


class ListingPanel(ABC):
    """Side panel listing the members of the focused cluster."""

    @abstractmethod
    def show(
        self, members: Sequence[Listing], on_listing_click: Callable[[Listing], None]
    ) -> None: ...

    @abstractmethod
    def hide(self) -> None: ...

