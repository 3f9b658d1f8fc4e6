"""Reads the visible rectangle from the map widget."""

from listing_map.errors import NotReadyError
from listing_map.models import Bounds
from listing_map.widget import MapWidget


class ViewportBoundsTracker:
    """Derives :class:`Bounds` from the widget on demand, never caching them."""

    def __init__(self, widget: MapWidget) -> None:
        self._widget = widget

    def current_bounds(self) -> Bounds:
        """Return the visible rectangle.

        Raises:
            NotReadyError: The widget has not finished initialising.
        """
        if not self._widget.ready:
            raise NotReadyError("Map widget is not initialised yet")
        return self._widget.get_bounds()

    def try_current_bounds(self) -> Bounds | None:
        """Like :meth:`current_bounds` but returns None while the widget is not ready."""
        try:
            return self.current_bounds()
        except NotReadyError:
            return None
