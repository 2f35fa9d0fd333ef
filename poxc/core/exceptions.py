"""
Error and warning taxonomy for the POXC pipeline.

Every data error is deterministic: it describes a shape problem in the input
tables, never a transient failure, so nothing here is retried. Errors carry
the plate and (where relevant) sample they apply to so the pipeline can
isolate the failure and keep processing the rest of the batch.
"""

from typing import Optional


class AssayDataError(ValueError):
    """
    Base class for input data problems scoped to a plate or sample.

    Parameters
    ----------
    message : str
        Human-readable description
    plate_id : str, optional
        Plate the problem belongs to
    sample_id : str, optional
        Sample the problem belongs to (None for plate-level problems)
    """

    def __init__(
        self, message: str, plate_id: Optional[str] = None, sample_id: Optional[str] = None
    ):
        super().__init__(message)
        self.plate_id = plate_id
        self.sample_id = sample_id

    @property
    def reason(self) -> str:
        """Short machine-readable reason (the error class name)."""
        return type(self).__name__


class MissingBlankError(AssayDataError):
    """Plate has no usable water-blank wells."""

    def __init__(self, plate_id: str):
        super().__init__(f"Plate {plate_id} has no blank wells", plate_id=plate_id)


class InsufficientCalibrationDataError(AssayDataError):
    """Plate has fewer than two distinct standard levels to fit."""

    def __init__(self, plate_id: str, n_levels: int, detail: str = ""):
        message = f"Plate {plate_id} has {n_levels} usable standard level(s); need at least 2"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, plate_id=plate_id)
        self.n_levels = n_levels


class MalformedPlateIdError(AssayDataError):
    """Plate identifier does not embed an 8-digit run date."""

    def __init__(self, plate_id: str, sample_id: Optional[str] = None):
        super().__init__(
            f"Plate id {plate_id!r} does not contain an 8-digit run date",
            plate_id=plate_id,
            sample_id=sample_id,
        )


class MissingMassError(AssayDataError):
    """No soil mass recorded for a (sample_id, run_date) pair."""

    def __init__(self, sample_id: str, run_date: str, plate_id: Optional[str] = None):
        super().__init__(
            f"No soil mass for sample {sample_id!r} on run date {run_date}",
            plate_id=plate_id,
            sample_id=sample_id,
        )
        self.run_date = run_date


class UndefinedAggregateWarning(UserWarning):
    """Replicate statistics are undefined (all excluded or a single replicate)."""
