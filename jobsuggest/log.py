"""Logging setup shared by the pipeline, the CLI and the UI (stdlib only)."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; installs the root handlers on first use."""
    if not _configured:
        configure()
    return logging.getLogger(name)


def configure(
    level: str | None = None,
    log_dir: Path | None = None,
    stream: TextIO | None = None,
) -> None:
    """(Re)install the console handler and the daily file handler.

    *level* falls back to ``$LOG_LEVEL`` then ``INFO``.  The console handler
    writes to *stream* (stdout by default).  Setting ``$JOBSUGGEST_LOG_FILE=0``
    keeps logs on the console only.
    """
    global _configured
    _configured = True

    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    numeric = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric)
    for handler in list(root.handlers):
        if getattr(handler, "_jobsuggest", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(stream or sys.stdout)
    console.setLevel(numeric)
    console.setFormatter(formatter)
    console._jobsuggest = True  # type: ignore[attr-defined]
    root.addHandler(console)

    if os.environ.get("JOBSUGGEST_LOG_FILE", "1").strip() in ("0", "false", "no"):
        return

    target = log_dir or LOG_DIR
    try:
        target.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(
            target / f"jobsuggest_{datetime.now().strftime('%Y-%m-%d')}.log",
            encoding="utf-8",
        )
    except OSError:
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    fh._jobsuggest = True  # type: ignore[attr-defined]
    root.addHandler(fh)
