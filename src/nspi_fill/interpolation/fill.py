"""Neighborhood similar pixel interpolation of cloudy pixels.

Reference: Zhu, X., Gao, F., Liu, D., Chen, J., 2012. A modified
neighborhood similar pixel interpolator approach for removing thick clouds
in Landsat images. IEEE Geoscience and Remote Sensing Letters 9, 521-525.

Each cloud id in the mask is filled independently:

1. ``extract_region``: window around the cloud plus ``cloud_nbh`` pixels.
2. ``similarity_thresholds``: per-band tolerance from the window's clear pixels.
3. ``find_similar_pixels``: nearest spectrally similar clear pixels per target.
4. ``predict_pixel``: blended predictors, or the mean-difference fallback.
5. ``write_back``: values go to the cloud's own pixels only.

Targets only ever read mask-zero pixels, which are never written, so the
regions can run in any order or in parallel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from nspi_fill.execution import run_region_tasks
from nspi_fill.interpolation.predictor import (
    FALLBACK,
    mean_difference,
    predict_pixel,
)
from nspi_fill.interpolation.region import CloudRegion, cloud_ids, extract_region
from nspi_fill.interpolation.search import find_similar_pixels
from nspi_fill.interpolation.threshold import similarity_thresholds
from nspi_fill.interpolation.validation import (
    coerce_mask,
    validate_images,
    validate_parameters,
)
from nspi_fill.tracking import FillReport


@dataclass
class RegionFill:
    """Filled values for one cloud id, in full-image coordinates."""

    cloud_id: int
    status: str  # 'success' or 'skipped'
    window: Tuple[int, int, int, int]
    rows: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.intp))
    cols: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.intp))
    values: Optional[np.ndarray] = None  # (N, B)
    n_weighted: int = 0
    n_fallback: int = 0
    n_out_of_range: int = 0
    message: Optional[str] = None

    @property
    def n_targets(self) -> int:
        return int(self.rows.shape[0])


def _reference_vector(
    region: CloudRegion,
    ordinal: int,
    row: int,
    col: int,
    similarity_reference: str,
) -> np.ndarray:
    """Clear vector the similarity test compares candidates against.

    ``"loop_index"`` takes the window pixel whose flat column-major index
    equals the target's ordinal among the cloud's pixels; ``"target"`` takes
    the target itself.  The two agree only for the first pixel of a window.
    """
    if similarity_reference == "target":
        return region.clear[row, col, :]
    ref_row, ref_col = region.pixel_at_ordinal(ordinal)
    return region.clear[ref_row, ref_col, :]


def fill_region(
    cloudy: np.ndarray,
    clear: np.ndarray,
    mask: np.ndarray,
    cloud_id: int,
    num_class: int = 4,
    min_pixel: int = 20,
    cloud_nbh: int = 10,
    dn_min: float = 0,
    dn_max: float = 255,
    similarity_reference: str = "loop_index",
) -> RegionFill:
    """Compute fill values for every pixel of one cloud id.

    Inputs are not modified; see :func:`write_back` to apply the result.
    """
    region = extract_region(cloudy, clear, mask, cloud_id, cloud_nbh)
    target_rows, target_cols = region.positions(cloud_id)
    clear_px = region.clear_pixels()

    if clear_px.rows.size == 0:
        message = f"no clear pixels within {cloud_nbh} px of cloud {cloud_id}"
        logger.warning(f"Skipping cloud {cloud_id}: {message}")
        return RegionFill(
            cloud_id=cloud_id,
            status="skipped",
            window=region.bounds,
            message=message,
        )

    thresholds = similarity_thresholds(clear_px.clear, num_class)
    mean_diff = mean_difference(clear_px.clear, clear_px.cloudy)
    logger.debug(
        f"Cloud {cloud_id}: window {region.n_rows}x{region.n_cols}, "
        f"{target_rows.size} targets, {clear_px.rows.size} clear, "
        f"thresholds {np.around(thresholds, 3)}"
    )

    values = np.empty((target_rows.size, region.clear.shape[2]), dtype=np.float64)
    n_fallback = 0
    n_out_of_range = 0
    for ordinal, (row, col) in enumerate(zip(target_rows, target_cols)):
        reference = _reference_vector(region, ordinal, row, col, similarity_reference)
        candidates = find_similar_pixels(
            region, clear_px, row, col, reference, thresholds, min_pixel
        )
        estimate = predict_pixel(
            candidates, region.clear[row, col, :], mean_diff, dn_min, dn_max
        )
        values[ordinal] = estimate.values
        if estimate.method == FALLBACK:
            n_fallback += 1
        n_out_of_range += estimate.n_out_of_range

    return RegionFill(
        cloud_id=cloud_id,
        status="success",
        window=region.bounds,
        rows=target_rows + region.up_row,
        cols=target_cols + region.left_col,
        values=values,
        n_weighted=int(target_rows.size) - n_fallback,
        n_fallback=n_fallback,
        n_out_of_range=n_out_of_range,
    )


def write_back(output: np.ndarray, fill: RegionFill) -> None:
    """Write *fill* into *output* at the cloud's own pixel positions."""
    if fill.values is None:
        return
    output[fill.rows, fill.cols, :] = fill.values


def fill_clouds(
    cloudy: np.ndarray,
    clear: np.ndarray,
    cloud_mask: np.ndarray,
    num_class: int = 4,
    min_pixel: int = 20,
    cloud_nbh: int = 10,
    dn_min: float = 0,
    dn_max: float = 255,
    *,
    dims: Optional[Sequence[int]] = None,
    similarity_reference: str = "loop_index",
    max_workers: int = 1,
    report: Optional[FillReport] = None,
) -> np.ndarray:
    """Fill clouded pixels of *cloudy* using the clear reference image.

    Args:
        cloudy: ``(rows, cols, bands)`` image with clouds.
        clear: ``(rows, cols, bands)`` reference image of the same scene.
        cloud_mask: ``(rows, cols)`` integer mask: ``0`` clear in both
            images, ``-1`` missing in the clear image, ``>0`` cloud id.
        num_class: Expected number of land-cover classes.
        min_pixel: Maximum number of similar pixels used per target.
        cloud_nbh: Margin (pixels) around each cloud searched for similar pixels.
        dn_min: Lower bound (exclusive) of valid values.
        dn_max: Upper bound (exclusive) of valid values.
        dims: Optional explicit ``(rows, cols, bands)``, checked against the
            arrays.
        similarity_reference: ``"loop_index"`` or ``"target"``; see
            :func:`_reference_vector`.
        max_workers: Regions processed concurrently; ``1`` runs sequentially.
        report: Optional :class:`FillReport` receiving one result per region.

    Returns:
        New float64 array shaped like *cloudy*.  Only cloud pixels differ
        from the input.

    Raises:
        ValueError: on malformed inputs or parameters.
    """
    cloudy = np.asarray(cloudy)
    clear = np.asarray(clear)
    validate_images(cloudy, clear, dims)
    validate_parameters(num_class, min_pixel, cloud_nbh, dn_min, dn_max, similarity_reference)
    mask = coerce_mask(cloud_mask, cloudy.shape[:2])

    output = np.array(cloudy, dtype=np.float64)
    ids = cloud_ids(mask)
    if not ids:
        logger.info("No cloud ids in mask; nothing to fill")
        return output

    if report is None:
        report = FillReport()

    worker = partial(
        fill_region,
        cloudy,
        clear,
        mask,
        num_class=num_class,
        min_pixel=min_pixel,
        cloud_nbh=cloud_nbh,
        dn_min=dn_min,
        dn_max=dn_max,
        similarity_reference=similarity_reference,
    )
    fills = run_region_tasks(worker, ids, report, max_workers=max_workers)

    # Ascending id order keeps the result independent of max_workers
    for cloud_id in ids:
        write_back(output, fills[cloud_id])

    n_filled = sum(fills[c].n_targets for c in ids)
    logger.info(f"Filled {n_filled} pixels across {len(ids)} cloud regions")
    return output
