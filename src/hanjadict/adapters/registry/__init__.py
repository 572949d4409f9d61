"""Court-registry source adapter."""

from __future__ import annotations

from .client import RegistryAPIError, RegistryClient
from .source import RegistrySource

__all__ = ["RegistryAPIError", "RegistryClient", "RegistrySource"]
