"""In-process execution of per-region fill tasks."""

from nspi_fill.execution.local_executor import run_region_tasks

__all__ = ["run_region_tasks"]
