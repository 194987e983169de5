"""
Outlier detection for a single metric.

Two independent rules are provided:

- IQR (Tukey fence): flag values outside [Q1 - 1.5 IQR, Q3 + 1.5 IQR].
- Z-score: flag values more than 3 population standard deviations
  from the mean.

Both ignore None and non-finite values when computing statistics and
never flag them.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from covidmath.utils.general import finite_values, is_finite

logger = logging.getLogger(__name__)

IQR_MULTIPLIER = 1.5
Z_THRESHOLD = 3.0
MIN_IQR_SAMPLES = 4
MIN_Z_SAMPLES = 2


@dataclass
class IQRResult:
    """Tukey fence bounds and per-value flags."""
    lower: Optional[float] = None
    upper: Optional[float] = None
    q1: Optional[float] = None
    q3: Optional[float] = None
    iqr: Optional[float] = None
    flagged: List[bool] = field(default_factory=list)

    def thresholds(self) -> dict:
        return {'lower': self.lower, 'upper': self.upper, 'q1': self.q1, 'q3': self.q3}


@dataclass
class ZScoreResult:
    """Population mean/std and per-value flags."""
    mean: Optional[float] = None
    std: Optional[float] = None
    threshold: float = Z_THRESHOLD
    flagged: List[bool] = field(default_factory=list)

    def thresholds(self) -> dict:
        return {'mean': self.mean, 'std': self.std, 'threshold': self.threshold}


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Compute the p-th percentile of sorted values by linear interpolation.

    The fractional rank is p/100 * (n - 1), interpolated between the
    neighbouring floor and ceiling ranks.

    Args:
        sorted_values: Non-empty values in ascending order
        p: Percentile in [0, 100]

    Returns:
        Interpolated percentile
    """
    idx = (p / 100.0) * (len(sorted_values) - 1)
    lo = math.floor(idx)
    hi = math.ceil(idx)
    frac = idx - lo
    return sorted_values[lo] + frac * (sorted_values[hi] - sorted_values[lo])


def detect_iqr(values: Sequence[Optional[float]],
               multiplier: float = IQR_MULTIPLIER,
               min_samples: int = MIN_IQR_SAMPLES) -> IQRResult:
    """
    Flag outliers with the Tukey fence rule.

    Args:
        values: Metric value per row (None / NaN / inf allowed)
        multiplier: Fence width in IQRs
        min_samples: Minimum number of finite values needed

    Returns:
        IQRResult; bounds are None and nothing is flagged when there are
        too few finite values
    """
    valid = sorted(finite_values(values))

    if len(valid) < min_samples:
        logger.debug(f"IQR skipped: {len(valid)} valid values (< {min_samples})")
        return IQRResult(flagged=[False] * len(values))

    q1 = percentile(valid, 25)
    q3 = percentile(valid, 75)
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr

    flagged = [
        is_finite(v) and (v < lower or v > upper)
        for v in values
    ]

    return IQRResult(lower=lower, upper=upper, q1=q1, q3=q3, iqr=iqr, flagged=flagged)


def detect_zscore(values: Sequence[Optional[float]],
                  threshold: float = Z_THRESHOLD,
                  min_samples: int = MIN_Z_SAMPLES) -> ZScoreResult:
    """
    Flag outliers whose absolute z-score exceeds a threshold.

    Uses the population standard deviation; a zero deviation is replaced
    by 1.

    Args:
        values: Metric value per row (None / NaN / inf allowed)
        threshold: Absolute z-score above which a value is flagged
        min_samples: Minimum number of finite values needed

    Returns:
        ZScoreResult; mean and std are None and nothing is flagged when
        there are too few finite values
    """
    valid = finite_values(values)

    if len(valid) < min_samples:
        logger.debug(f"Z-score skipped: {len(valid)} valid values (< {min_samples})")
        return ZScoreResult(threshold=threshold, flagged=[False] * len(values))

    mean = sum(valid) / len(valid)
    variance = sum((v - mean) ** 2 for v in valid) / len(valid)
    std = math.sqrt(variance) or 1.0

    flagged = [
        is_finite(v) and abs((v - mean) / std) > threshold
        for v in values
    ]

    return ZScoreResult(mean=mean, std=std, threshold=threshold, flagged=flagged)
