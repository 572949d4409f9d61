"""Record source backed by the court-registry list (local export or HTTP)."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from hanjadict.domain.model import SourceTag
from hanjadict.domain.ports.sources import SourceBatch, SourceRejection, SourceUnavailableError

from .client import RegistryAPIError, RegistryClient, unwrap_rows
from .schema import GovHanjaRecord
from .translator import to_raw_record

if TYPE_CHECKING:
    from pathlib import Path

    from hanjadict.config.registry import RegistryConfig
    from hanjadict.domain.model import RawRecord


log = getLogger(__name__)


class RegistrySource:
    def __init__(self, config: RegistryConfig, *, client: RegistryClient | None = None) -> None:
        self._config = config
        if client is None and config.url is not None and config.path is None:
            client = RegistryClient(url=config.url, resilience=config.resilience)
        self._client = client

    @property
    def name(self) -> str:
        return SourceTag.SUPREME_COURT

    def _read_file(self, path: Path) -> list[dict[str, object]]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SourceUnavailableError(self.name, f"cannot read {path}: {exc}") from exc
        try:
            return unwrap_rows(payload)
        except RegistryAPIError as exc:
            raise SourceUnavailableError(self.name, f"{path}: {exc}") from exc

    def _rows(self) -> list[dict[str, object]]:
        if self._config.path is not None:
            return self._read_file(self._config.path)
        if self._client is None:
            raise SourceUnavailableError(self.name, "no registry path or URL configured")
        try:
            return self._client.fetch_rows()
        except (httpx.HTTPError, RegistryAPIError) as exc:
            raise SourceUnavailableError(self.name, str(exc)) from exc

    def fetch(self) -> SourceBatch:
        collected_at = datetime.now(tz=UTC)
        records: list[RawRecord] = []
        rejected: list[SourceRejection] = []
        for index, row in enumerate(self._rows()):
            key = str(row.get("rnum", index))
            try:
                parsed = GovHanjaRecord.model_validate(row)
                records.append(to_raw_record(parsed, collected_at=collected_at))
            except (ValidationError, ValueError) as exc:
                log.debug("Rejected registry row %s: %s", key, exc)
                rejected.append(SourceRejection(key=key, message=str(exc)))
        log.info("Read %d registry rows (%d rejected)", len(records), len(rejected))
        return SourceBatch(records=tuple(records), rejected=tuple(rejected))
