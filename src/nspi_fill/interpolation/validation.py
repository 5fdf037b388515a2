"""Fail-fast checks on fill inputs and parameters."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

SIMILARITY_REFERENCES = ("loop_index", "target")


def validate_images(
    cloudy: np.ndarray,
    clear: np.ndarray,
    dims: Optional[Sequence[int]] = None,
) -> None:
    """Both images must be ``(rows, cols, bands)`` with identical shapes."""
    if cloudy.ndim != 3:
        raise ValueError(f"cloudy image must be 3-D (rows, cols, bands), got shape {cloudy.shape}")
    if clear.shape != cloudy.shape:
        raise ValueError(
            f"clear image shape {clear.shape} does not match cloudy image shape {cloudy.shape}"
        )
    if dims is not None and tuple(int(d) for d in dims) != cloudy.shape:
        raise ValueError(f"dims {tuple(dims)} do not match image shape {cloudy.shape}")


def coerce_mask(cloud_mask: np.ndarray, spatial_shape: Sequence[int]) -> np.ndarray:
    """Return *cloud_mask* as int64 after checking shape and value range.

    Raises:
        ValueError: if the mask is not 2-D, does not match *spatial_shape*,
            holds non-integral values, or values below ``-1``.
    """
    mask = np.asarray(cloud_mask)
    if mask.ndim != 2:
        raise ValueError(f"cloud mask must be 2-D, got shape {mask.shape}")
    if mask.shape != tuple(spatial_shape):
        raise ValueError(
            f"cloud mask shape {mask.shape} does not match image rows/cols {tuple(spatial_shape)}"
        )
    if mask.dtype == np.bool_:
        mask = mask.astype(np.int64)
    elif not np.issubdtype(mask.dtype, np.integer):
        if not np.all(np.isfinite(mask)) or np.any(mask != np.round(mask)):
            raise ValueError("cloud mask must contain integer codes only")
    mask = mask.astype(np.int64)
    if mask.size and mask.min() < -1:
        raise ValueError(f"cloud mask values must be >= -1, found {int(mask.min())}")
    return mask


def validate_parameters(
    num_class: int,
    min_pixel: int,
    cloud_nbh: int,
    dn_min: float,
    dn_max: float,
    similarity_reference: str = "loop_index",
) -> None:
    """Range checks for the fill parameters."""
    if num_class < 1:
        raise ValueError(f"num_class must be >= 1, got {num_class}")
    if min_pixel < 1:
        raise ValueError(f"min_pixel must be >= 1, got {min_pixel}")
    if cloud_nbh < 0:
        raise ValueError(f"cloud_nbh must be >= 0, got {cloud_nbh}")
    if dn_min >= dn_max:
        raise ValueError(f"dn_min ({dn_min}) must be smaller than dn_max ({dn_max})")
    if similarity_reference not in SIMILARITY_REFERENCES:
        raise ValueError(
            f"similarity_reference must be one of {SIMILARITY_REFERENCES}, "
            f"got {similarity_reference!r}"
        )
