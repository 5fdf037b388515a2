"""Build ``-1 / 0 / id`` cloud masks from binary cloud and missing-data masks."""

from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
from loguru import logger
from scipy import ndimage
from scipy.ndimage import binary_dilation, generate_binary_structure

from nspi_fill.interpolation.region import CLEAR, MISSING, cloud_ids, window_bounds


def label_cloud_mask(
    cloud: np.ndarray,
    missing: Optional[np.ndarray] = None,
    buffer: int = 0,
    min_size: int = 0,
    connectivity: int = 2,
) -> np.ndarray:
    """Label connected cloud patches with unique ids starting at 1.

    Args:
        cloud: ``(H, W)`` binary cloud mask (non-zero = cloud).
        missing: Optional ``(H, W)`` binary mask of pixels missing in the
            clear image.  They are coded ``-1`` unless they are also cloud.
        buffer: Dilation iterations applied to the cloud mask before labelling.
        min_size: Patches with fewer pixels are returned to the clear class.
        connectivity: ``1`` for 4-connected, ``2`` for 8-connected patches.

    Returns:
        ``(H, W)`` int32 mask: ``-1`` missing, ``0`` clear, ``1..n`` cloud ids.
    """
    cloud = np.asarray(cloud) != 0
    if cloud.ndim != 2:
        raise ValueError(f"cloud mask must be 2-D, got shape {cloud.shape}")
    if connectivity not in (1, 2):
        raise ValueError(f"connectivity must be 1 or 2, got {connectivity}")

    struct = generate_binary_structure(2, connectivity)
    if buffer > 0:
        cloud = binary_dilation(cloud, iterations=buffer, structure=struct)

    labels, n_labels = ndimage.label(cloud, structure=struct)
    if min_size > 0 and n_labels > 0:
        sizes = np.bincount(labels.ravel())
        small = sizes < min_size
        small[0] = False
        labels[small[labels]] = 0
        # Renumber so ids stay contiguous
        kept = np.unique(labels[labels > 0])
        lookup = np.zeros(n_labels + 1, dtype=np.int64)
        lookup[kept] = np.arange(1, kept.size + 1)
        labels = lookup[labels]
        logger.debug(f"Dropped {n_labels - kept.size} cloud patches below {min_size} px")
        n_labels = kept.size

    out = labels.astype(np.int32)
    if missing is not None:
        missing = np.asarray(missing) != 0
        if missing.shape != out.shape:
            raise ValueError(
                f"missing mask shape {missing.shape} does not match cloud mask {out.shape}"
            )
        out[np.logical_and(missing, out == CLEAR)] = MISSING

    logger.info(f"Labelled {n_labels} cloud regions covering {np.mean(out > 0) * 100:.1f}% of pixels")
    return out


def describe_regions(mask: np.ndarray, cloud_nbh: int = 0) -> List[Dict[str, int]]:
    """Pixel count and window bounds for each cloud id in *mask*."""
    mask = np.asarray(mask)
    rows = []
    for cloud_id in cloud_ids(mask):
        up_row, down_row, left_col, right_col = window_bounds(mask, cloud_id, cloud_nbh)
        window = mask[up_row:down_row + 1, left_col:right_col + 1]
        rows.append({
            "cloud_id": cloud_id,
            "n_pixels": int(np.sum(mask == cloud_id)),
            "n_clear": int(np.sum(window == CLEAR)),
            "up_row": up_row,
            "down_row": down_row,
            "left_col": left_col,
            "right_col": right_col,
        })
    return rows
