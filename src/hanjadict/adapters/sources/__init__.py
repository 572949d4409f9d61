"""Record sources feeding the ingest stage."""

from __future__ import annotations

from .bundled import BundledTableSource, base_table_source, expanded_table_source

__all__ = ["BundledTableSource", "base_table_source", "expanded_table_source"]
