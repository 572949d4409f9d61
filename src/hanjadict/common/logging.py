"""Shared logging setup for hanjadict entry points."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger once for CLI output.

    Pass ``force=True`` to replace handlers installed earlier, e.g. when the
    ``--verbose`` flag raises the level after imports already logged.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
