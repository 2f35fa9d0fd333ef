"""
Quality-control reporting for POXC runs.

Nothing here blocks the pipeline. Skipped plates and samples are recorded as
``PipelineIssue`` entries, and review thresholds (calibration R², replicate
CV) only add flag columns for external review.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence

import pandas as pd

from poxc.core.constants import DEFAULT_CV_THRESHOLD_PERCENT, DEFAULT_R_SQUARED_THRESHOLD
from poxc.core.exceptions import AssayDataError, UndefinedAggregateWarning
from poxc.core.logging_config import get_logger

logger = get_logger("assay.quality")

ISSUE_COLUMNS = ["plate_id", "sample_id", "reason", "message", "fatal"]


@dataclass(frozen=True)
class PipelineIssue:
    """
    A skipped item or diagnostic raised during a run.

    Attributes
    ----------
    plate_id : str
        Plate concerned
    sample_id : str, optional
        Sample concerned (None for plate-level issues)
    reason : str
        Error or warning class name, e.g. "MissingMassError"
    message : str
        Human-readable description
    fatal : bool
        True if the plate or sample was left out of the results
    """

    plate_id: str
    sample_id: Optional[str]
    reason: str
    message: str
    fatal: bool = True

    @classmethod
    def from_error(cls, error: AssayDataError, plate_id: Optional[str] = None) -> "PipelineIssue":
        """Record a data error; the plate falls back to ``plate_id`` if unset on the error."""
        return cls(
            plate_id=error.plate_id or plate_id or "",
            sample_id=error.sample_id,
            reason=error.reason,
            message=str(error),
            fatal=True,
        )

    @classmethod
    def undefined_aggregate(cls, plate_id: str, sample_id: str, n_replicates: int) -> "PipelineIssue":
        if n_replicates == 0:
            message = f"All replicates of sample {sample_id} on plate {plate_id} were excluded"
        else:
            message = (
                f"Sample {sample_id} on plate {plate_id} has {n_replicates} replicate; "
                "standard deviation and CV are undefined"
            )
        return cls(
            plate_id=plate_id,
            sample_id=sample_id,
            reason=UndefinedAggregateWarning.__name__,
            message=message,
            fatal=False,
        )

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def issues_to_frame(issues: Sequence[PipelineIssue]) -> pd.DataFrame:
    """Tabulate issues with a stable column order (empty table if none)."""
    return pd.DataFrame([issue.to_dict() for issue in issues], columns=ISSUE_COLUMNS)


class QualityReviewer:
    """
    Adds review flags to calibration, standard and result tables.

    Parameters
    ----------
    r_squared_threshold : float
        Calibrations with R² below this are flagged ``low_r_squared``
    cv_threshold_percent : float
        Replicate groups with CV above this are flagged ``high_cv``
    """

    def __init__(
        self,
        r_squared_threshold: float = DEFAULT_R_SQUARED_THRESHOLD,
        cv_threshold_percent: float = DEFAULT_CV_THRESHOLD_PERCENT,
    ):
        self.r_squared_threshold = r_squared_threshold
        self.cv_threshold_percent = cv_threshold_percent

    def flag_calibrations(self, calibration: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of the calibration table with a ``low_r_squared`` column."""
        flagged = calibration.copy()
        r_squared = pd.to_numeric(flagged["r_squared"], errors="coerce")
        flagged["low_r_squared"] = r_squared < self.r_squared_threshold
        n_low = int(flagged["low_r_squared"].sum())
        if n_low:
            logger.warning(
                f"{n_low} plate(s) with calibration R2 below {self.r_squared_threshold}"
            )
        return flagged

    def flag_replicates(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Return a copy of a replicate table with a ``high_cv`` column.

        Undefined CVs (NaN) are never flagged.
        """
        flagged = table.copy()
        cv = pd.to_numeric(flagged["cv_percent"], errors="coerce")
        flagged["high_cv"] = cv.abs() > self.cv_threshold_percent
        return flagged

    def flagged_plates(self, calibration: pd.DataFrame) -> List[str]:
        """Plate ids whose calibration falls below the R² threshold."""
        mask = pd.to_numeric(calibration["r_squared"], errors="coerce") < self.r_squared_threshold
        return list(calibration.loc[mask, "plate_id"])
