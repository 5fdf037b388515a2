"""loguru setup for ``nspi-fill`` runs.

Every record carries a ``run_id`` extra so that the log lines of one fill can
be matched against the reports written for it.  Library code only emits
records through ``loguru.logger``; sinks are installed here, by the CLI.
"""

from __future__ import annotations

import sys
import uuid
from typing import Optional

from loguru import logger

TEXT_FORMAT = "<level>{level: <8}</level> | {extra[run_id]:>8} | {message}"


def setup_logging(level: str = "INFO", fmt: str = "text", log_file: Optional[str] = None) -> None:
    """Replace loguru's sinks with the ones used by a fill run.

    Args:
        level: Minimum level; ``DEBUG`` adds one line per cloud region.
        fmt: ``"text"`` for the console format, ``"json"`` for serialized
            records on stderr.
        log_file: Optional path that also receives every record, in text
            format, typically next to the ``--report-dir`` output.

    ``run_id`` is reset to ``"-"``; call :func:`bind_run_context` afterwards.
    """
    logger.remove()
    logger.configure(extra={"run_id": "-"})
    if fmt == "json":
        logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=level.upper(), format=TEXT_FORMAT)
    if log_file:
        logger.add(log_file, level=level.upper(), format=TEXT_FORMAT)


def new_run_id() -> str:
    return uuid.uuid4().hex[:8]


def bind_run_context(run_id: str) -> None:
    """Tag all subsequent records of this fill run with *run_id*."""
    logger.configure(extra={"run_id": run_id})
