"""Raster array I/O."""

from nspi_fill.io.raster_io import check_suffix, read_image, read_mask, write_image

__all__ = ["check_suffix", "read_image", "read_mask", "write_image"]
