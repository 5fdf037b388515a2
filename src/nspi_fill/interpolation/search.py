"""Similar-pixel search around one cloud-covered target pixel."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from nspi_fill.interpolation.region import ClearPixels, CloudRegion


# Number of nearest clear pixels dropped before the similarity walk.
# Exactly one; the legacy C++ loop skipped two (see DESIGN.md).
SKIP_NEAREST = 1


@dataclass
class CandidateSet:
    """Accepted similar pixels for one target, nearest first.

    ``center_dist`` is the target's distance to the window centre, used to
    derive the predictor blending weights.
    """

    cloudy: np.ndarray  # (K, B)
    clear: np.ndarray  # (K, B)
    spectral_dist: np.ndarray  # (K,)
    spatial_dist: np.ndarray  # (K,)
    center_dist: float

    def __len__(self) -> int:
        return int(self.spatial_dist.shape[0])


def center_distance(region: CloudRegion, row: int, col: int) -> float:
    """Distance from window position ``(row, col)`` to the window centre."""
    return float(np.sqrt((region.x_center - row) ** 2 + (region.y_center - col) ** 2))


def find_similar_pixels(
    region: CloudRegion,
    clear_px: ClearPixels,
    row: int,
    col: int,
    reference: np.ndarray,
    thresholds: np.ndarray,
    min_pixel: int,
) -> CandidateSet:
    """Rank clear pixels by distance and keep the first spectrally similar ones.

    The nearest clear pixel is always dropped.  A candidate passes when, in
    every band, its clear value minus *reference* is at most the band's
    threshold (signed, not absolute).  At most *min_pixel* candidates are
    kept, in ascending spatial distance.

    Args:
        region: Window being filled.
        clear_px: Mask-zero pixels of *region* (see :meth:`CloudRegion.clear_pixels`).
        row: Target row in window coordinates.
        col: Target column in window coordinates.
        reference: ``(B,)`` clear-image vector the similarity test compares
            against.
        thresholds: ``(B,)`` per-band tolerance.
        min_pixel: Candidate-set capacity.
    """
    spatial = np.sqrt(
        (clear_px.rows - row).astype(np.float64) ** 2
        + (clear_px.cols - col).astype(np.float64) ** 2
    )
    order = np.argsort(spatial, kind="stable")[SKIP_NEAREST:]

    similar = np.all(clear_px.clear[order] - reference <= thresholds, axis=1)
    accepted = order[similar][:min_pixel]

    target_clear = region.clear[row, col, :]
    clear_similar = clear_px.clear[accepted]
    spectral = np.sqrt(np.mean((clear_similar - target_clear) ** 2, axis=1))

    return CandidateSet(
        cloudy=clear_px.cloudy[accepted],
        clear=clear_similar,
        spectral_dist=spectral,
        spatial_dist=spatial[accepted],
        center_dist=center_distance(region, row, col),
    )
