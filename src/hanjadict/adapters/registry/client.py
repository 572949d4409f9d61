"""HTTP client for the court-registry name-character list."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from hanjadict.adapters.http_resilience import ResilientClient

from .schema import RegistryPayload

if TYPE_CHECKING:
    from collections.abc import Callable

    from hanjadict.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class RegistryAPIError(RuntimeError):
    """Raised when the registry endpoint returns an unexpected payload."""


def unwrap_rows(payload: object) -> list[dict[str, object]]:
    """Accept either a bare row list or an object wrapping it under ``items``."""

    if isinstance(payload, dict) and "items" in payload:
        payload = payload["items"]
    try:
        return RegistryPayload.validate_python(payload)
    except ValidationError as exc:
        raise RegistryAPIError("Registry payload is not a list of rows") from exc


class RegistryClient:
    """Low-level client fetching the whole registry list from one URL."""

    def __init__(
        self,
        *,
        url: str,
        resilience: ResilienceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._url = url
        self._resilience = resilience
        self._client_factory = client_factory or ResilientClient

    def fetch_rows(self) -> list[dict[str, object]]:
        return asyncio.run(self._fetch_rows_async())

    async def _fetch_rows_async(self) -> list[dict[str, object]]:
        async with self._client_factory(self._resilience) as client:
            response = await client.get(self._url)
            response.raise_for_status()
            try:
                payload = response.json()
            except ValueError as exc:
                raise RegistryAPIError("Registry response is not JSON") from exc

        rows = unwrap_rows(payload)
        log.debug("Fetched %d registry rows from %s", len(rows), self._url)
        return rows
