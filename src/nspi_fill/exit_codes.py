"""Structured exit codes for the ``nspi-fill`` commands."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nspi_fill.tracking import FillReport


class ExitCode(IntEnum):
    SUCCESS = 0
    PARTIAL_FAILURE = 1  # some regions skipped or failed
    TOTAL_FAILURE = 2
    BAD_INPUT = 3
    NO_WORK = 6  # Mask holds no cloud ids


def exit_code_from_report(report: FillReport) -> ExitCode:
    """Derive an exit code from a :class:`FillReport`'s results."""
    if not report.results:
        return ExitCode.NO_WORK
    unfilled = sum(1 for r in report.results if r.status != "success")
    if unfilled == len(report.results):
        return ExitCode.TOTAL_FAILURE
    elif unfilled > 0:
        return ExitCode.PARTIAL_FAILURE
    return ExitCode.SUCCESS
