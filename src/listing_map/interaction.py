"""Hover/select focus over clusters and the listing panel that follows it.

States are Idle, Hovering(cluster) and Selected(cluster). A selection pins the
panel: hovering another marker underneath it does not change what is shown,
and leaving a marker does not clear it. Every reconciliation returns the
machine to Idle because the focused cluster no longer backs any marker.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum

from listing_map.logging import get_logger
from listing_map.models import Cluster, Listing
from listing_map.widget import ListingPanel

logger = get_logger(__name__)


class InteractionMode(StrEnum):
    IDLE = "idle"
    HOVERING = "hovering"
    SELECTED = "selected"


@dataclass(frozen=True)
class Focus:
    """A cluster as addressed by its marker: snapshot index plus the cluster."""

    index: int
    cluster: Cluster


@dataclass(frozen=True)
class InteractionState:
    hovered: Focus | None = None
    selected: Focus | None = None

    @property
    def mode(self) -> InteractionMode:
        if self.selected is not None:
            return InteractionMode.SELECTED
        if self.hovered is not None:
            return InteractionMode.HOVERING
        return InteractionMode.IDLE

    @property
    def focused(self) -> Focus | None:
        """What the panel displays; selection wins over hover."""
        return self.selected or self.hovered


IDLE = InteractionState()


class InteractionStateMachine:
    """Drive the listing panel from marker and map pointer events."""

    def __init__(
        self,
        panel: ListingPanel,
        *,
        on_listing_chosen: Callable[[Listing], None],
    ) -> None:
        """Initialize the machine.

        Args:
            panel: Panel that renders the focused cluster's members.
            on_listing_chosen: Called after a listing in the focused cluster is
                clicked and the machine has returned to Idle.
        """
        self._panel = panel
        self._on_listing_chosen = on_listing_chosen
        self._state = IDLE

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def mode(self) -> InteractionMode:
        return self._state.mode

    def pointer_entered(self, index: int, cluster: Cluster) -> None:
        self._transition(replace(self._state, hovered=Focus(index, cluster)), "pointer_entered")

    def pointer_left(self, index: int, cluster: Cluster) -> None:
        hovered = self._state.hovered
        if hovered is None or hovered.index != index:
            return
        self._transition(replace(self._state, hovered=None), "pointer_left")

    def marker_clicked(self, index: int, cluster: Cluster) -> None:
        """Select the clicked cluster; clicking the selected one again releases it."""
        selected = self._state.selected
        if selected is not None and selected.index == index:
            self._transition(replace(self._state, selected=None), "marker_deselected")
            return
        self._transition(replace(self._state, selected=Focus(index, cluster)), "marker_clicked")

    def background_clicked(self) -> None:
        self._transition(IDLE, "background_clicked")

    def invalidate(self) -> None:
        """Forget any focus; the clusters it pointed at are gone."""
        self._transition(IDLE, "invalidated")

    def listing_clicked(self, listing: Listing) -> None:
        """Handle a click on a listing in the panel.

        Only honoured while a cluster is selected and the listing is one of
        its members. A hover preview does not accept clicks, and a panel still
        holding an old callback cannot act on stale data.
        """
        selected = self._state.selected
        if selected is None or listing not in selected.cluster.members:
            logger.debug("stale_listing_click_ignored", listing_id=listing.id)
            return
        self._transition(IDLE, "listing_clicked")
        self._on_listing_chosen(listing)

    def _transition(self, new_state: InteractionState, reason: str) -> None:
        old_state = self._state
        self._state = new_state
        if new_state == old_state:
            return
        logger.debug(
            "interaction_transition",
            reason=reason,
            from_mode=old_state.mode.value,
            to_mode=new_state.mode.value,
        )
        old_focus, new_focus = old_state.focused, new_state.focused
        if new_focus == old_focus:
            return
        if new_focus is None:
            self._panel.hide()
        else:
            self._panel.show(new_focus.cluster.members, self.listing_clicked)
