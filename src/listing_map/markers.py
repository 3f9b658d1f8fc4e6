"""Keeps on-map markers in step with the cluster snapshot.

Clusters carry no identity across fetches, so every new snapshot destroys all
existing markers and creates a fresh one per cluster. Handlers capture the
cluster's index and the reconciliation generation they were created in; an
event from a marker of an older generation is ignored.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Final

from listing_map.logging import get_logger
from listing_map.models import Cluster
from listing_map.widget import (
    MapWidget,
    MarkerHandle,
    MarkerHandlers,
    MarkerIcon,
    PointerEvent,
    PointerHandler,
)

logger = get_logger(__name__)

MarkerCallback = Callable[[int, Cluster], None]


@dataclass(frozen=True)
class IconTier:
    """Badge dimensions used from ``min_count`` members upwards."""

    min_count: int
    size: int
    line_height: int
    font_size: int


DEFAULT_ICON_TIERS: Final[tuple[IconTier, ...]] = (
    IconTier(min_count=1, size=40, line_height=42, font_size=10),
    IconTier(min_count=10, size=50, line_height=54, font_size=12),
    IconTier(min_count=100, size=60, line_height=64, font_size=14),
)


def cluster_icon(count: int, tiers: Sequence[IconTier] = DEFAULT_ICON_TIERS) -> MarkerIcon:
    """Badge for a cluster of ``count`` listings, sized by the largest tier reached."""
    tier = tiers[0]
    for candidate in tiers:
        if count >= candidate.min_count:
            tier = candidate
    return MarkerIcon(
        label=str(count),
        size=tier.size,
        line_height=tier.line_height,
        font_size=tier.font_size,
    )


class MarkerLifecycleManager:
    """Owns every marker handle the controller has placed on the widget."""

    def __init__(
        self,
        widget: MapWidget,
        *,
        on_click: MarkerCallback,
        on_enter: MarkerCallback | None = None,
        on_leave: MarkerCallback | None = None,
        icon_tiers: Sequence[IconTier] = DEFAULT_ICON_TIERS,
    ) -> None:
        self._widget = widget
        self._on_click = on_click
        self._on_enter = on_enter
        self._on_leave = on_leave
        self._icon_tiers = tuple(icon_tiers)
        self._markers: dict[int, MarkerHandle] = {}
        self._snapshot: tuple[Cluster, ...] = ()
        self._generation = 0

    @property
    def markers(self) -> dict[int, MarkerHandle]:
        """Snapshot index -> live handle."""
        return dict(self._markers)

    @property
    def live_count(self) -> int:
        return len(self._markers)

    def reconcile(self, clusters: Sequence[Cluster]) -> int:
        """Replace every marker with one per cluster in ``clusters``.

        A cluster whose marker cannot be created is skipped.

        Returns:
            Number of markers now live.
        """
        removed = self._destroy_all()
        self._generation += 1
        self._snapshot = tuple(clusters)

        created: dict[int, MarkerHandle] = {}
        for index, cluster in enumerate(self._snapshot):
            try:
                handle = self._widget.create_marker(
                    cluster.centroid,
                    cluster_icon(cluster.count, self._icon_tiers),
                    self._handlers_for(self._generation, index),
                )
            except Exception as e:
                logger.warning(
                    "marker_create_failed",
                    index=index,
                    count=cluster.count,
                    error=str(e),
                )
                continue
            created[index] = handle
        self._markers = created

        logger.debug(
            "markers_reconciled",
            generation=self._generation,
            removed=removed,
            created=len(created),
            skipped=len(self._snapshot) - len(created),
        )
        return len(created)

    def clear(self) -> None:
        """Destroy every marker; used on unmount."""
        removed = self._destroy_all()
        self._generation += 1
        self._snapshot = ()
        if removed:
            logger.debug("markers_cleared", removed=removed)

    def _destroy_all(self) -> int:
        old, self._markers = self._markers, {}
        for index, handle in old.items():
            try:
                self._widget.destroy_marker(handle)
            except Exception as e:
                logger.warning("marker_destroy_failed", index=index, error=str(e))
        return len(old)

    def _handlers_for(self, generation: int, index: int) -> MarkerHandlers:
        def on_click(event: PointerEvent) -> None:
            # Keep the map-level click (clear selection) from seeing this.
            event.stop_propagation()
            self._dispatch(generation, index, self._on_click)

        return MarkerHandlers(
            on_click=on_click,
            on_mouse_over=self._forwarder(generation, index, self._on_enter),
            on_mouse_out=self._forwarder(generation, index, self._on_leave),
        )

    def _forwarder(
        self, generation: int, index: int, callback: MarkerCallback | None
    ) -> PointerHandler | None:
        if callback is None:
            return None

        def forward(event: PointerEvent) -> None:
            self._dispatch(generation, index, callback)

        return forward

    def _dispatch(self, generation: int, index: int, callback: MarkerCallback) -> None:
        if generation != self._generation or index not in self._markers:
            logger.debug("stale_marker_event_ignored", generation=generation, index=index)
            return
        callback(index, self._snapshot[index])
