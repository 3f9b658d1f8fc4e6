"""Viewport-driven cluster map controller.

Wires the pieces together for one mounted map widget:

    idle/filter change -> debounce -> read bounds + filter -> fetch
    -> sequence-gated store -> marker reconciliation -> interaction reset

All widget callbacks run on the event loop that called :meth:`mount`.
"""

from collections.abc import Callable
from typing import Any

from listing_map.client import ClusterSource
from listing_map.config import Settings
from listing_map.errors import NotReadyError
from listing_map.filter_state import FilterState
from listing_map.interaction import InteractionState, InteractionStateMachine
from listing_map.logging import get_logger
from listing_map.markers import MarkerLifecycleManager
from listing_map.models import Cluster, FilterCriteria, Listing
from listing_map.scheduler import DebouncedFetchScheduler
from listing_map.store import ClusterDataStore, ErrorReporter
from listing_map.subscriptions import Binding, EventSubscriptionRegistry
from listing_map.viewport import ViewportBoundsTracker
from listing_map.widget import ListingPanel, MapEvent, MapWidget, PointerEvent

logger = get_logger(__name__)


class ClusterMapController:
    """Load clusters for the visible map area and manage their markers."""

    def __init__(
        self,
        source: ClusterSource,
        *,
        panel: ListingPanel,
        settings: Settings | None = None,
        filters: FilterState | None = None,
        report_error: ErrorReporter | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            source: Where cluster queries are sent.
            panel: Listing panel showing the focused cluster's members.
            settings: Controller settings (defaults from the environment).
            filters: Shared filter state; a private one is created if omitted.
            report_error: Receives fetch failures. Defaults to logging them.
        """
        self.settings = settings or Settings()
        self.filters = filters or FilterState()
        self._store = ClusterDataStore(source, report_error=report_error)
        self._scheduler = DebouncedFetchScheduler(
            self._refresh, delay=self.settings.debounce_seconds
        )
        self._interaction = InteractionStateMachine(
            panel, on_listing_chosen=self._zoom_to_listing
        )
        self._registry = EventSubscriptionRegistry()
        self._store.subscribe(self._on_snapshot)

        self._widget: MapWidget | None = None
        self._tracker: ViewportBoundsTracker | None = None
        self._markers: MarkerLifecycleManager | None = None
        self._unsubscribe_filters: Callable[[], None] | None = None

    @property
    def mounted(self) -> bool:
        return self._widget is not None

    @property
    def clusters(self) -> tuple[Cluster, ...]:
        return self._store.clusters

    @property
    def interaction_state(self) -> InteractionState:
        return self._interaction.state

    @property
    def scheduler(self) -> DebouncedFetchScheduler:
        return self._scheduler

    @property
    def store(self) -> ClusterDataStore:
        return self._store

    @property
    def registry(self) -> EventSubscriptionRegistry:
        return self._registry

    @property
    def markers(self) -> MarkerLifecycleManager | None:
        return self._markers

    def mount(self, widget: MapWidget) -> None:
        """Take ownership of ``widget`` and start loading clusters.

        Must be called from a running event loop. Mounting again (for
        example after the widget was replaced) tears the previous mount down
        first.
        """
        if self._widget is not None:
            self.unmount()

        self._widget = widget
        self._tracker = ViewportBoundsTracker(widget)
        hover = self.settings.enable_hover
        self._markers = MarkerLifecycleManager(
            widget,
            on_click=self._interaction.marker_clicked,
            on_enter=self._interaction.pointer_entered if hover else None,
            on_leave=self._interaction.pointer_left if hover else None,
            icon_tiers=self.settings.get_icon_tiers(),
        )
        self._unsubscribe_filters = self.filters.subscribe(self._on_filter_changed)

        bindings: list[Binding] = [
            (MapEvent.IDLE, self._on_idle),
            (MapEvent.CLICK, self._on_map_click),
        ]
        ready = widget.ready
        if not ready:
            bindings.append((MapEvent.INIT, self._on_map_ready))
        self._registry.attach(widget, bindings)
        logger.info("controller_mounted", widget_ready=ready, hover=hover)

        if ready:
            self._scheduler.trigger_immediate()

    def unmount(self, *, dispose_widget: bool = False) -> None:
        """Stop loading and release every listener and marker. Idempotent.

        Args:
            dispose_widget: Also dispose the widget, for callers that handed
                ownership of it to the controller.
        """
        widget = self._widget
        if widget is None:
            return

        self._scheduler.cancel()
        # In-flight fetches may still resolve; their results are now stale.
        self._store.reset()
        self._registry.detach()
        if self._unsubscribe_filters is not None:
            self._unsubscribe_filters()
            self._unsubscribe_filters = None
        if self._markers is not None:
            self._markers.clear()
        self._interaction.invalidate()

        self._widget = None
        self._tracker = None
        self._markers = None
        if dispose_widget:
            widget.dispose()
        logger.info("controller_unmounted", widget_disposed=dispose_widget)

    def set_filter(self, criteria: FilterCriteria) -> bool:
        """Replace the filter snapshot; refetches after the debounce window."""
        return self.filters.replace(criteria)

    def update_filter(self, **changes: Any) -> bool:
        return self.filters.update(**changes)

    async def _refresh(self) -> None:
        tracker = self._tracker
        if tracker is None:
            return
        try:
            bounds = tracker.current_bounds()
        except NotReadyError:
            logger.info("refresh_skipped_not_ready")
            return
        await self._store.load(bounds, self.filters.criteria)

    def _on_snapshot(self, clusters: tuple[Cluster, ...]) -> None:
        if self._markers is None:
            return
        self._markers.reconcile(clusters)
        self._interaction.invalidate()

    def _on_filter_changed(self, criteria: FilterCriteria) -> None:
        # Results of fetches issued under the old filter must not be shown.
        self._store.invalidate()
        self._scheduler.trigger()

    def _on_idle(self, event: PointerEvent) -> None:
        self._scheduler.trigger()

    def _on_map_click(self, event: PointerEvent) -> None:
        self._interaction.background_clicked()

    def _on_map_ready(self, event: PointerEvent) -> None:
        self._registry.release(MapEvent.INIT)
        logger.info("map_ready")
        self._scheduler.trigger_immediate()

    def _zoom_to_listing(self, listing: Listing) -> None:
        widget = self._widget
        if widget is None:
            return
        widget.set_center(listing.position)
        widget.set_zoom(self.settings.close_up_zoom)
        logger.info(
            "zoomed_to_listing",
            listing_id=listing.id,
            zoom=self.settings.close_up_zoom,
        )
        self._scheduler.trigger_immediate()
