"""Cross-cutting helpers shared by the CLI and adapters."""

from __future__ import annotations

from .logging import configure_logging

__all__ = ["configure_logging"]
