"""Cloud filling with the neighborhood similar pixel interpolator (NSPI)."""

from nspi_fill.interpolation import (
    cloud_ids,
    extract_region,
    fill_clouds,
    fill_region,
    find_similar_pixels,
    predict_pixel,
    similarity_thresholds,
)
from nspi_fill.masks import label_cloud_mask
from nspi_fill.tracking import FillReport, RegionResult

__all__ = [
    "FillReport",
    "RegionResult",
    "cloud_ids",
    "extract_region",
    "fill_clouds",
    "fill_region",
    "find_similar_pixels",
    "label_cloud_mask",
    "predict_pixel",
    "similarity_thresholds",
]
