"""Filesystem adapters: stage store and report renderings."""

from __future__ import annotations

from .renderers import render_html, render_markdown, write_report
from .store import FileStageStore

__all__ = ["FileStageStore", "render_html", "render_markdown", "write_report"]
