"""Cluster backend client.

One GET per fetch, parameterised by the viewport rectangle and the active
filter. The body must be a JSON array of cluster records; anything else is a
:class:`MalformedResponseError`.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from listing_map.errors import FetchError, MalformedResponseError
from listing_map.logging import get_logger
from listing_map.models import Bounds, Cluster, FilterCriteria

if TYPE_CHECKING:
    from listing_map.config import Settings

logger = get_logger(__name__)

_CLUSTER_LIST: TypeAdapter[list[Cluster]] = TypeAdapter(list[Cluster])
_DEFAULT_TIMEOUT = 10.0


class ClusterSource(ABC):
    """Anything that can answer a bounds + filter query with clusters."""

    @abstractmethod
    async def fetch_clusters(self, bounds: Bounds, criteria: FilterCriteria) -> list[Cluster]:
        """Fetch the clusters inside ``bounds`` matching ``criteria``.

        Raises:
            FetchError: Network failure or error status.
            MalformedResponseError: Body is not a list of clusters.
        """
        ...


def build_query_params(bounds: Bounds, criteria: FilterCriteria) -> dict[str, str]:
    return {**bounds.to_query_params(), **criteria.to_query_params()}


def parse_clusters(payload: object) -> list[Cluster]:
    """Validate a decoded JSON body as a list of clusters."""
    if not isinstance(payload, list):
        raise MalformedResponseError(
            f"Expected a JSON array of clusters, got {type(payload).__name__}"
        )
    try:
        return _CLUSTER_LIST.validate_python(payload)
    except ValidationError as e:
        raise MalformedResponseError(
            f"Cluster payload failed validation ({e.error_count()} errors)"
        ) from e


class HttpClusterSource(ClusterSource):
    """Fetch clusters over HTTP with httpx."""

    def __init__(
        self,
        *,
        url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            url: Absolute URL of the clusters endpoint.
            timeout: Per-request timeout in seconds.
            client: Shared client to reuse. When omitted a client is opened
                per request.
        """
        self.url = url
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: "Settings", *, client: httpx.AsyncClient | None = None
    ) -> "HttpClusterSource":
        return cls(url=settings.clusters_url, timeout=settings.request_timeout, client=client)

    async def fetch_clusters(self, bounds: Bounds, criteria: FilterCriteria) -> list[Cluster]:
        params = build_query_params(bounds, criteria)
        if self._client is not None:
            return await self._fetch_with_client(self._client, params)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._fetch_with_client(client, params)

    async def _fetch_with_client(
        self, client: httpx.AsyncClient, params: dict[str, str]
    ) -> list[Cluster]:
        try:
            resp = await client.get(self.url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise FetchError(f"Cluster request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Cluster request failed: {e}") from e

        if not resp.is_success:
            raise FetchError(
                f"Cluster endpoint returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise MalformedResponseError("Cluster response is not valid JSON") from e

        clusters = parse_clusters(payload)
        logger.debug("clusters_fetched", count=len(clusters), **params)
        return clusters
