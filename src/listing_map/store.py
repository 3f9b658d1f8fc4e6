"""Latest cluster snapshot plus the sequence gate that keeps it current.

Every load is tagged with a sequence number when it is issued. A result is
applied only if no newer load has been issued since, so a slow stale response
can never overwrite fresher data (last issued wins, not last completed).
"""

from collections.abc import Callable

from listing_map.client import ClusterSource
from listing_map.errors import FetchError, LoadOutcome, MalformedResponseError
from listing_map.logging import get_logger
from listing_map.models import Bounds, Cluster, FilterCriteria

logger = get_logger(__name__)

ErrorReporter = Callable[[FetchError], None]
SnapshotListener = Callable[[tuple[Cluster, ...]], None]


def log_fetch_error(error: FetchError) -> None:
    """Default error channel: log and carry on."""
    logger.warning(
        "cluster_fetch_error_reported",
        error=str(error),
        status_code=error.status_code,
    )


class ClusterDataStore:
    """Holds the clusters of the most recently issued successful fetch."""

    def __init__(
        self,
        source: ClusterSource,
        *,
        report_error: ErrorReporter | None = None,
    ) -> None:
        self._source = source
        self._report_error = report_error or log_fetch_error
        self._clusters: tuple[Cluster, ...] = ()
        self._issued = 0
        self._applied = 0
        self._listeners: list[SnapshotListener] = []

    @property
    def clusters(self) -> tuple[Cluster, ...]:
        return self._clusters

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the newest issued load."""
        return self._issued

    @property
    def applied_sequence(self) -> int:
        """Sequence number whose result is currently held (0 if none)."""
        return self._applied

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with each newly applied snapshot."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self, bounds: Bounds, criteria: FilterCriteria) -> LoadOutcome:
        """Fetch clusters and apply them if this load is still the newest one.

        Fetch failures (including malformed bodies) empty the store and are
        sent to the error channel. Nothing is raised for either case.
        """
        self._issued += 1
        sequence = self._issued
        log = logger.bind(sequence=sequence)

        try:
            clusters = await self._source.fetch_clusters(bounds, criteria)
        except FetchError as e:
            if sequence != self._issued:
                log.info("stale_fetch_failure_discarded", latest=self._issued, error=str(e))
                return LoadOutcome.STALE
            log.warning(
                "cluster_fetch_failed",
                error=str(e),
                malformed=isinstance(e, MalformedResponseError),
            )
            self._apply(sequence, ())
            self._report(e)
            return LoadOutcome.FAILED

        if sequence != self._issued:
            log.info("stale_result_discarded", latest=self._issued, count=len(clusters))
            return LoadOutcome.STALE

        self._apply(sequence, tuple(clusters))
        log.info("clusters_applied", count=len(clusters))
        return LoadOutcome.APPLIED

    def invalidate(self) -> None:
        """Make every in-flight load stale without touching the held snapshot."""
        self._issued += 1

    def reset(self) -> None:
        """Invalidate in-flight loads and drop the snapshot without notifying."""
        self.invalidate()
        self._clusters = ()
        self._applied = 0

    def _apply(self, sequence: int, clusters: tuple[Cluster, ...]) -> None:
        self._clusters = clusters
        self._applied = sequence
        for listener in list(self._listeners):
            listener(clusters)

    def _report(self, error: FetchError) -> None:
        try:
            self._report_error(error)
        except Exception:
            logger.error("error_reporter_failed", exc_info=True)
