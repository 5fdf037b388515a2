"""Per-band similarity tolerance for the similar-pixel search."""

from __future__ import annotations

import numpy as np


def similarity_thresholds(clear_values: np.ndarray, num_class: int) -> np.ndarray:
    """Tolerance ``2 * std / num_class`` for each band.

    Args:
        clear_values: ``(N, B)`` clear-image values at the window's
            mask-zero pixels.
        num_class: Expected number of land-cover classes in the scene.  More
            classes means a tighter tolerance.

    Returns:
        ``(B,)`` float64 thresholds.  Bands with fewer than two samples get a
        zero spread.
    """
    n_pixels, n_bands = clear_values.shape
    if n_pixels < 2:
        return np.zeros(n_bands, dtype=np.float64)
    std = np.std(clear_values, axis=0, ddof=1)
    return 2.0 * std / num_class
