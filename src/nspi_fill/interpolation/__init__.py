"""Neighborhood similar pixel interpolation (NSPI) cloud filling."""

from nspi_fill.interpolation.fill import RegionFill, fill_clouds, fill_region, write_back
from nspi_fill.interpolation.predictor import PixelEstimate, predict_pixel
from nspi_fill.interpolation.region import CloudRegion, cloud_ids, extract_region
from nspi_fill.interpolation.search import CandidateSet, find_similar_pixels
from nspi_fill.interpolation.threshold import similarity_thresholds

__all__ = [
    "CandidateSet",
    "CloudRegion",
    "PixelEstimate",
    "RegionFill",
    "cloud_ids",
    "extract_region",
    "fill_clouds",
    "fill_region",
    "find_similar_pixels",
    "predict_pixel",
    "similarity_thresholds",
    "write_back",
]
