"""Map-level listener bookkeeping.

All listener registration on the widget goes through here so that a mounted
controller never holds more than one listener per event type and a teardown
leaves none behind.
"""

from collections.abc import Sequence

from listing_map.logging import get_logger
from listing_map.widget import ListenerHandle, MapEvent, MapWidget, PointerHandler

logger = get_logger(__name__)

Binding = tuple[MapEvent, PointerHandler]


class EventSubscriptionRegistry:
    """Attach a set of map listeners and remove them in reverse order."""

    def __init__(self) -> None:
        self._widget: MapWidget | None = None
        self._subscriptions: list[tuple[MapEvent, ListenerHandle]] = []

    @property
    def active_events(self) -> tuple[MapEvent, ...]:
        return tuple(event for event, _ in self._subscriptions)

    @property
    def widget(self) -> MapWidget | None:
        return self._widget

    def attach(self, widget: MapWidget, bindings: Sequence[Binding]) -> None:
        """Subscribe ``bindings`` on ``widget``, first dropping any current subscriptions.

        Raises:
            ValueError: The same event appears twice in ``bindings``.
        """
        events = [event for event, _ in bindings]
        if len(set(events)) != len(events):
            raise ValueError(f"Duplicate event in bindings: {events}")

        self.detach()
        self._widget = widget
        for event, handler in bindings:
            handle = widget.add_listener(event, handler)
            self._subscriptions.append((event, handle))
        logger.debug("listeners_attached", events=[e.value for e in events])

    def detach(self) -> None:
        """Unsubscribe everything, most recently added first. Safe to call twice."""
        widget = self._widget
        if widget is None:
            return
        while self._subscriptions:
            event, handle = self._subscriptions.pop()
            self._remove(widget, event, handle)
        self._widget = None
        logger.debug("listeners_detached")

    def release(self, event: MapEvent) -> bool:
        """Unsubscribe a single event, e.g. a one-shot ``init`` listener."""
        widget = self._widget
        if widget is None:
            return False
        for i, (subscribed, handle) in enumerate(self._subscriptions):
            if subscribed == event:
                del self._subscriptions[i]
                self._remove(widget, event, handle)
                return True
        return False

    @staticmethod
    def _remove(widget: MapWidget, event: MapEvent, handle: ListenerHandle) -> None:
        try:
            widget.remove_listener(handle)
        except Exception as e:
            logger.warning("listener_remove_failed", map_event=event.value, error=str(e))
