"""Region result tracking and reporting."""

from nspi_fill.tracking.fill_report import FillReport
from nspi_fill.tracking.region_result import RegionResult

__all__ = [
    "FillReport",
    "RegionResult",
]
