"""
Replicate statistics shared by the calibration fitter and sample aggregator.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class ReplicateStats:
    """
    Summary of replicate absorbance readings.

    Undefined values are NaN: the mean when there are no replicates, the
    standard deviation and CV when there are fewer than two, and the CV when
    the mean is zero.
    """

    mean: float
    stdev: float
    cv_percent: float
    n: int

    @property
    def is_defined(self) -> bool:
        return bool(np.isfinite(self.mean) and np.isfinite(self.stdev))


def describe(values: Sequence[float]) -> ReplicateStats:
    """
    Compute mean, Bessel-corrected standard deviation and CV.

    Parameters
    ----------
    values : sequence of float
        Replicate readings (may be empty)

    Returns
    -------
    ReplicateStats
    """
    data = np.asarray(values, dtype=float)
    n = int(data.size)

    if n == 0:
        return ReplicateStats(mean=float("nan"), stdev=float("nan"), cv_percent=float("nan"), n=0)

    mean = float(np.mean(data))
    if n < 2:
        return ReplicateStats(mean=mean, stdev=float("nan"), cv_percent=float("nan"), n=n)

    stdev = float(np.std(data, ddof=1))
    cv_percent = 100.0 * stdev / mean if mean != 0 else float("nan")
    return ReplicateStats(mean=mean, stdev=stdev, cv_percent=cv_percent, n=n)
