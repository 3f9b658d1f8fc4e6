"""Holds the active filter snapshot and tells subscribers when it is replaced."""

from collections.abc import Callable
from typing import Any

from listing_map.logging import get_logger
from listing_map.models import FilterCriteria

logger = get_logger(__name__)

FilterListener = Callable[[FilterCriteria], None]


class FilterState:
    """Single source of truth for the current :class:`FilterCriteria`.

    Consumers read :attr:`criteria` when they need it instead of holding on to
    a snapshot, so an in-flight callback never sees an outdated filter.
    """

    def __init__(self, criteria: FilterCriteria | None = None) -> None:
        self._criteria = criteria or FilterCriteria()
        self._listeners: list[FilterListener] = []

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def replace(self, criteria: FilterCriteria) -> bool:
        """Swap in a whole new snapshot.

        Returns:
            True if the snapshot changed and listeners were notified.
        """
        if criteria == self._criteria:
            return False
        self._criteria = criteria
        logger.debug("filter_replaced", **criteria.to_query_params())
        for listener in list(self._listeners):
            listener(criteria)
        return True

    def update(self, **changes: Any) -> bool:
        """Replace the snapshot with a copy that has ``changes`` applied and validated.

        Raises:
            ValueError: If a key is not a field of :class:`FilterCriteria`
                (query parameter names such as ``maxPrice`` included).
        """
        unknown = changes.keys() - FilterCriteria.model_fields.keys()
        if unknown:
            raise ValueError(f"Unknown filter fields: {', '.join(sorted(unknown))}")
        merged = {**self._criteria.model_dump(), **changes}
        return self.replace(FilterCriteria.model_validate(merged))

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
