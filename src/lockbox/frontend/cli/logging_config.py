"""Lightweight logging setup for the TUI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional


def configure_logging(level: int = logging.WARNING, log_file: Optional[str | Path] = None) -> None:
    # Configure root logger once. A running Textual app owns the terminal,
    # so a log file is preferred when one is given.
    if logging.getLogger().handlers:
        return

    kwargs = {"filename": str(log_file), "encoding": "utf-8"} if log_file else {"stream": sys.stderr}
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        **kwargs,
    )
