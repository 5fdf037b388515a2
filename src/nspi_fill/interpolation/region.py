"""Cloud region extraction: bounding windows around one cloud id.

A region is the bounding box of every pixel carrying a cloud id, grown by a
margin of ``cloud_nbh`` pixels on each side and clipped to the image.  All
later steps work on owned copies of the window, never on views of the full
image, so regions can be processed on separate threads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Tuple

import numpy as np


# Mask classes
CLEAR = 0
MISSING = -1


class ClearPixels(NamedTuple):
    """Mask-zero pixels of a window, in column-major window order."""

    rows: np.ndarray
    cols: np.ndarray
    clear: np.ndarray  # (N, B)
    cloudy: np.ndarray  # (N, B)


@dataclass
class CloudRegion:
    """Window around one cloud id with owned ``(h, w, B)`` / ``(h, w)`` copies."""

    cloud_id: int
    up_row: int
    down_row: int
    left_col: int
    right_col: int
    cloudy: np.ndarray
    clear: np.ndarray
    mask: np.ndarray

    @property
    def n_rows(self) -> int:
        return self.down_row - self.up_row + 1

    @property
    def n_cols(self) -> int:
        return self.right_col - self.left_col + 1

    @property
    def x_center(self) -> float:
        # Half the window width; compared against row offsets downstream.
        return self.n_cols / 2.0

    @property
    def y_center(self) -> float:
        return self.n_rows / 2.0

    @property
    def bounds(self) -> Tuple[int, int, int, int]:
        return self.up_row, self.down_row, self.left_col, self.right_col

    def positions(self, value: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(rows, cols)`` of window pixels whose mask equals *value*.

        Positions come back in column-major order (down each column, then
        across), which fixes the pixel ordinal used as the loop index.
        """
        cols, rows = np.nonzero(self.mask.T == value)
        return rows, cols

    def clear_pixels(self) -> ClearPixels:
        """Collect the mask-zero pixels of the window and their band vectors."""
        rows, cols = self.positions(CLEAR)
        return ClearPixels(
            rows=rows,
            cols=cols,
            clear=self.clear[rows, cols, :],
            cloudy=self.cloudy[rows, cols, :],
        )

    def pixel_at_ordinal(self, ordinal: int) -> Tuple[int, int]:
        """Map a flat column-major window index to ``(row, col)``."""
        return ordinal % self.n_rows, ordinal // self.n_rows


def cloud_ids(mask: np.ndarray) -> List[int]:
    """Distinct positive cloud ids in *mask*, ascending."""
    ids = np.unique(mask)
    return [int(i) for i in ids[ids >= 1]]


def window_bounds(
    mask: np.ndarray,
    cloud_id: int,
    margin: int,
) -> Tuple[int, int, int, int]:
    """Bounding box of *cloud_id* grown by *margin* and clipped to *mask*.

    Returns:
        ``(up_row, down_row, left_col, right_col)``, all inclusive.

    Raises:
        ValueError: if *cloud_id* does not occur in *mask*.
    """
    rows, cols = np.nonzero(mask == cloud_id)
    if rows.size == 0:
        raise ValueError(f"Cloud id {cloud_id} not present in mask")

    n_rows, n_cols = mask.shape
    up_row = max(int(rows.min()) - margin, 0)
    down_row = min(int(rows.max()) + margin, n_rows - 1)
    left_col = max(int(cols.min()) - margin, 0)
    right_col = min(int(cols.max()) + margin, n_cols - 1)
    return up_row, down_row, left_col, right_col


def extract_region(
    cloudy: np.ndarray,
    clear: np.ndarray,
    mask: np.ndarray,
    cloud_id: int,
    cloud_nbh: int,
) -> CloudRegion:
    """Cut the window for *cloud_id* out of both images and the mask.

    Args:
        cloudy: ``(H, W, B)`` cloudy image.
        clear: ``(H, W, B)`` clear reference image.
        mask: ``(H, W)`` cloud mask (``-1`` missing, ``0`` clear, ``>0`` id).
        cloud_id: Positive cloud id.
        cloud_nbh: Margin in pixels added around the cloud's bounding box.

    Returns:
        A :class:`CloudRegion` holding float64 copies of the window.
    """
    up_row, down_row, left_col, right_col = window_bounds(mask, cloud_id, cloud_nbh)
    rs = slice(up_row, down_row + 1)
    cs = slice(left_col, right_col + 1)
    return CloudRegion(
        cloud_id=cloud_id,
        up_row=up_row,
        down_row=down_row,
        left_col=left_col,
        right_col=right_col,
        cloudy=np.array(cloudy[rs, cs, :], dtype=np.float64),
        clear=np.array(clear[rs, cs, :], dtype=np.float64),
        mask=np.array(mask[rs, cs]),
    )
