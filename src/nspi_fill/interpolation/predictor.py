"""Dual-predictor blending and the mean-difference fallback.

Two estimates are formed from the similar pixels of a target:

* **A**: weighted mean of the candidates' cloudy values.
* **B**: the target's own clear value plus the weighted mean of the
  candidates' ``cloudy - clear`` difference.

They are blended with weights derived from the target's distance to the
window centre relative to the mean candidate distance.  When B falls outside
the valid ``(dn_min, dn_max)`` range for a band, A is used alone.  With fewer
than two candidates the target gets its clear value plus the window's mean
``cloudy - clear`` difference.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from nspi_fill.interpolation.search import CandidateSet


# Numerical guards, not tuning parameters
NORM_EPS = 1e-6
COST_EPS = 1e-7

WEIGHTED = "weighted"
FALLBACK = "fallback"


@dataclass
class PixelEstimate:
    """Filled band vector for one target and how it was obtained."""

    values: np.ndarray  # (B,)
    method: str  # WEIGHTED or FALLBACK
    n_out_of_range: int = 0  # bands where predictor B was rejected


def normalize_distances(dist: np.ndarray) -> np.ndarray:
    """Min-max scale *dist* onto ``[1, 2]``."""
    return (dist - dist.min()) / (dist.max() - dist.min() + NORM_EPS) + 1.0


def candidate_weights(candidates: CandidateSet) -> np.ndarray:
    """Inverse combined-distance weights, summing to one."""
    cost = (
        normalize_distances(candidates.spectral_dist)
        * normalize_distances(candidates.spatial_dist)
        + COST_EPS
    )
    inverse = 1.0 / cost
    return inverse / inverse.sum()


def temporal_weights(center_dist: float, spatial_dist: np.ndarray) -> Tuple[float, float]:
    """``(W1, W2)`` blending weights for predictors A and B.

    W2 dominates for targets close to the window centre, where the local bias
    correction is trusted more.
    """
    mean_dist = float(np.mean(spatial_dist))
    total = center_dist + mean_dist
    return center_dist / total, mean_dist / total


def mean_difference(clear_values: np.ndarray, cloudy_values: np.ndarray) -> np.ndarray:
    """Per-band mean of ``cloudy - clear`` over the window's clear pixels."""
    return np.mean(cloudy_values - clear_values, axis=0)


def predict_pixel(
    candidates: CandidateSet,
    target_clear: np.ndarray,
    mean_diff: np.ndarray,
    dn_min: float,
    dn_max: float,
) -> PixelEstimate:
    """Estimate the cloudy-image vector of one target pixel.

    Args:
        candidates: Similar pixels found for the target.
        target_clear: ``(B,)`` clear-image vector at the target.
        mean_diff: ``(B,)`` window mean difference, used when the candidate
            set has fewer than two members.
        dn_min: Lower bound (exclusive) of valid values for predictor B.
        dn_max: Upper bound (exclusive) of valid values for predictor B.
    """
    if len(candidates) <= 1:
        return PixelEstimate(values=target_clear + mean_diff, method=FALLBACK)

    weights = candidate_weights(candidates)
    w1, w2 = temporal_weights(candidates.center_dist, candidates.spatial_dist)

    predict_a = weights @ candidates.cloudy
    predict_b = target_clear + weights @ (candidates.cloudy - candidates.clear)

    in_range = (predict_b > dn_min) & (predict_b < dn_max)
    values = np.where(in_range, w1 * predict_a + w2 * predict_b, predict_a)
    return PixelEstimate(
        values=values,
        method=WEIGHTED,
        n_out_of_range=int(np.sum(~in_range)),
    )
