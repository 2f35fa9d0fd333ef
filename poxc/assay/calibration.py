"""
Per-plate calibration curve fitting.

Standard wells of known concentration are averaged per concentration level
and an ordinary least-squares line is fit through the level means with
**concentration as the response** and mean absorbance as the predictor:

    concentration = intercept + slope * absorbance

Sample readings are converted with the same line, without inversion.
Each plate gets its own model; models are never pooled across plates.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy import stats

from poxc.assay.blank import CorrectedObservation
from poxc.assay.stats import describe
from poxc.assay.wells import LabelConvention
from poxc.core.constants import MIN_CALIBRATION_LEVELS
from poxc.core.exceptions import InsufficientCalibrationDataError
from poxc.core.logging_config import get_logger

logger = get_logger("assay.calibration")


@dataclass(frozen=True)
class StandardLevel:
    """
    Replicate summary of one standard concentration on one plate.

    Reported for review only; the regression uses ``mean_absorbance``.
    """

    plate_id: str
    concentration: float
    mean_absorbance: float
    stdev_absorbance: float
    cv_percent: float
    n_replicates: int


@dataclass
class CalibrationModel:
    """
    Linear calibration of one plate.

    Attributes
    ----------
    plate_id : str
        Plate identifier
    slope : float
        Concentration per unit absorbance
    intercept : float
        Concentration at zero (blank-corrected) absorbance
    r_squared : float
        Coefficient of determination, in [0, 1]
    n_levels : int
        Number of distinct standard levels in the fit
    levels : List[StandardLevel]
        Per-level diagnostics the fit was computed from
    """

    plate_id: str
    slope: float
    intercept: float
    r_squared: float
    n_levels: int
    levels: List[StandardLevel] = field(default_factory=list, repr=False)

    def predict(self, absorbance: float) -> float:
        """Concentration for a blank-corrected absorbance."""
        return self.intercept + self.slope * absorbance

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for tabular output."""
        return {
            "plate_id": self.plate_id,
            "slope": self.slope,
            "intercept": self.intercept,
            "r_squared": self.r_squared,
            "n_levels": self.n_levels,
        }


class CalibrationFitter:
    """
    Fits one calibration model per plate from its standard wells.

    Examples
    --------
    >>> fitter = CalibrationFitter()
    >>> model = fitter.fit("20230601A", corrected_wells)
    >>> print(f"slope={model.slope:.1f} R2={model.r_squared:.4f}")
    """

    def __init__(self, conventions: Optional[LabelConvention] = None):
        self.conventions = conventions or LabelConvention()

    def summarize_levels(
        self, plate_id: str, wells: Sequence[CorrectedObservation]
    ) -> List[StandardLevel]:
        """
        Group standard wells by concentration and summarize replicates.

        Wells flagged EXCLUDED are dropped; levels left without replicates
        are omitted. Levels are returned in ascending concentration.
        """
        by_level: Dict[float, List[float]] = {}
        for w in wells:
            concentration = self.conventions.parse_standard(w.sample_id)
            if concentration is None or w.is_excluded:
                continue
            by_level.setdefault(concentration, []).append(w.adjusted_absorbance)

        levels = []
        for concentration in sorted(by_level):
            summary = describe(by_level[concentration])
            levels.append(
                StandardLevel(
                    plate_id=plate_id,
                    concentration=concentration,
                    mean_absorbance=summary.mean,
                    stdev_absorbance=summary.stdev,
                    cv_percent=summary.cv_percent,
                    n_replicates=summary.n,
                )
            )
        return levels

    def fit(self, plate_id: str, wells: Sequence[CorrectedObservation]) -> CalibrationModel:
        """
        Fit concentration on mean absorbance for one plate.

        Parameters
        ----------
        plate_id : str
            Plate identifier
        wells : sequence of CorrectedObservation
            Blank-corrected wells of the plate; non-standards are ignored

        Returns
        -------
        CalibrationModel

        Raises
        ------
        InsufficientCalibrationDataError
            If fewer than 2 distinct standard levels remain, or all level
            means share the same absorbance
        """
        levels = self.summarize_levels(plate_id, wells)
        return self.fit_levels(plate_id, levels)

    def fit_levels(self, plate_id: str, levels: Sequence[StandardLevel]) -> CalibrationModel:
        """Fit a model from already summarized standard levels."""
        if len(levels) < MIN_CALIBRATION_LEVELS:
            raise InsufficientCalibrationDataError(plate_id, len(levels))

        absorbance = np.array([lvl.mean_absorbance for lvl in levels])
        concentration = np.array([lvl.concentration for lvl in levels])

        if np.unique(absorbance).size < 2:
            raise InsufficientCalibrationDataError(
                plate_id, len(levels), detail="all standard levels have the same absorbance"
            )

        fit = stats.linregress(absorbance, concentration)
        r_squared = float(np.clip(fit.rvalue**2, 0.0, 1.0))

        logger.debug(
            f"Plate {plate_id}: conc = {fit.intercept:.6g} + {fit.slope:.6g} * abs "
            f"(R2={r_squared:.4f}, {len(levels)} levels)"
        )

        return CalibrationModel(
            plate_id=plate_id,
            slope=float(fit.slope),
            intercept=float(fit.intercept),
            r_squared=r_squared,
            n_levels=len(levels),
            levels=list(levels),
        )
