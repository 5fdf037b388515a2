"""Run per-region fill workers in-process, sequentially or on a thread pool."""

from __future__ import annotations

import time
import traceback
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List

from loguru import logger

from nspi_fill.tracking import FillReport, RegionResult


def _invoke_region(
    worker_fn: Callable[[int], Any],
    cloud_id: int,
    report: FillReport,
) -> Any:
    """Call *worker_fn* for *cloud_id* and record the result in *report*."""
    logger.debug(f"[local] Starting region {cloud_id}")
    t0 = time.perf_counter()

    try:
        fill = worker_fn(cloud_id)
    except Exception as exc:
        duration = time.perf_counter() - t0
        logger.error(f"[local] Region {cloud_id} failed: {exc}")
        report.add_result(RegionResult(
            cloud_id=cloud_id,
            status="failed",
            duration_sec=duration,
            error_message=str(exc),
            error_traceback=traceback.format_exc(),
        ))
        raise

    duration = time.perf_counter() - t0
    report.add_result(RegionResult(
        cloud_id=cloud_id,
        status=fill.status,
        window=fill.window,
        n_targets=fill.n_targets,
        n_weighted=fill.n_weighted,
        n_fallback=fill.n_fallback,
        n_out_of_range=fill.n_out_of_range,
        duration_sec=duration,
        error_message=fill.message,
    ))
    logger.debug(f"[local] Completed region {cloud_id} in {duration:.3f}s")
    return fill


def run_region_tasks(
    worker_fn: Callable[[int], Any],
    cloud_ids: List[int],
    report: FillReport,
    max_workers: int = 1,
) -> Dict[int, Any]:
    """Call *worker_fn* once per cloud id, sequentially or in parallel.

    Args:
        worker_fn: Takes a cloud id and returns that region's fill.
        cloud_ids: Ids to process.
        report: Collects a :class:`RegionResult` for every invocation.
        max_workers: ``1`` for sequential (default), ``>1`` for thread-pool
            parallelism.

    Returns:
        Mapping of cloud id to the worker's return value.
    """
    if not cloud_ids:
        return {}

    logger.info(f"[local] Filling {len(cloud_ids)} cloud regions (max_workers={max_workers})")

    fills: Dict[int, Any] = {}
    if max_workers <= 1:
        for cloud_id in cloud_ids:
            fills[cloud_id] = _invoke_region(worker_fn, cloud_id, report)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                pool.submit(_invoke_region, worker_fn, cloud_id, report): cloud_id
                for cloud_id in cloud_ids
            }
            for fut in as_completed(futures):
                fills[futures[fut]] = fut.result()  # re-raises worker failures
    return fills
