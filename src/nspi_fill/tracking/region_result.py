"""RegionResult dataclass: outcome of filling one cloud id."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple


@dataclass
class RegionResult:
    """Track the fill of a single cloud region."""

    cloud_id: int
    status: str  # 'success', 'skipped', 'failed'
    window: Optional[Tuple[int, int, int, int]] = None  # up, down, left, right
    n_targets: int = 0
    n_weighted: int = 0  # targets filled by the blended predictors
    n_fallback: int = 0  # targets filled by the mean-difference fallback
    n_out_of_range: int = 0  # target bands where predictor B was rejected
    duration_sec: Optional[float] = None
    error_message: Optional[str] = None
    error_traceback: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
