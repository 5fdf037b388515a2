"""Load and save ``(rows, cols, bands)`` arrays via rasterio or numpy.

Supports:
- GeoTIFF: ``.tif`` / ``.tiff`` (all bands, band-first on disk)
- NumPy: ``.npy``
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple

import numpy as np
from loguru import logger

TIFF_SUFFIXES = (".tif", ".tiff")
NPY_SUFFIXES = (".npy",)


def check_suffix(path: str) -> str:
    """Return the lower-case suffix of *path*, raising ValueError if unsupported."""
    suffix = os.path.splitext(path)[1].lower()
    if suffix not in TIFF_SUFFIXES + NPY_SUFFIXES:
        raise ValueError(f"Unsupported raster suffix {suffix!r} for {path} (use .tif or .npy)")
    return suffix


def read_image(path: str) -> Tuple[np.ndarray, Optional[Dict[str, Any]]]:
    """Read a multiband image as ``(rows, cols, bands)``.

    Returns:
        ``(array, profile)``; *profile* is the rasterio profile for GeoTIFFs
        and ``None`` for ``.npy`` files.
    """
    suffix = check_suffix(path)
    if suffix in NPY_SUFFIXES:
        arr = np.load(path)
        if arr.ndim == 2:
            arr = arr[..., np.newaxis]
        profile = None
    else:
        import rasterio

        with rasterio.open(path) as src:
            arr = np.moveaxis(src.read(), 0, -1)
            profile = dict(src.profile)
    if arr.ndim != 3:
        raise ValueError(f"{path}: expected a (rows, cols, bands) image, got shape {arr.shape}")
    logger.debug(f"Read {path}: shape={arr.shape} dtype={arr.dtype}")
    return arr, profile


def read_mask(path: str) -> Tuple[np.ndarray, Optional[Dict[str, Any]]]:
    """Read a single-band mask as ``(rows, cols)``, with its profile."""
    arr, profile = read_image(path)
    if arr.shape[-1] != 1:
        raise ValueError(f"{path}: mask must have a single band, got {arr.shape[-1]}")
    return arr[..., 0], profile


def write_image(
    path: str,
    arr: np.ndarray,
    profile: Optional[Dict[str, Any]] = None,
) -> None:
    """Write ``(rows, cols, bands)`` or ``(rows, cols)`` *arr* to *path*.

    For GeoTIFFs, *profile* (typically from :func:`read_image`) supplies the
    georeferencing; count, dtype and size are taken from *arr*.
    """
    suffix = check_suffix(path)
    if arr.ndim == 2:
        arr = arr[..., np.newaxis]

    if suffix in NPY_SUFFIXES:
        np.save(path, arr)
    else:
        import rasterio

        out_profile = {"driver": "GTiff"}
        if profile:
            out_profile.update(profile)
        out_profile.update(
            driver="GTiff",
            count=arr.shape[2],
            height=arr.shape[0],
            width=arr.shape[1],
            dtype=arr.dtype.name,
        )
        # A nodata value from an integer source may not fit the new dtype
        out_profile.pop("nodata", None)
        with rasterio.open(path, "w", **out_profile) as dst:
            dst.write(np.moveaxis(arr, -1, 0))
    logger.info(f"Wrote {path}: shape={arr.shape} dtype={arr.dtype}")
