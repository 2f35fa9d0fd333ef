"""
Blank correction for assay plates.

Each plate carries water-blank wells measuring the baseline absorbance of the
reader and reagent. Their mean, rounded to the reader's reporting precision,
is subtracted from every other well on the same plate. Blank wells contribute
only to that mean and never reach downstream stages.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from poxc.assay.wells import LabelConvention, QualityFlag, WellObservation
from poxc.core.constants import ABSORBANCE_DECIMALS
from poxc.core.exceptions import MissingBlankError
from poxc.core.logging_config import get_logger

logger = get_logger("assay.blank")


@dataclass(frozen=True)
class BlankValue:
    """
    Mean water-blank absorbance for a plate.

    Attributes
    ----------
    plate_id : str
        Plate identifier
    mean_blank_absorbance : float
        Mean raw absorbance of the blank wells, rounded to 3 decimals
    n_wells : int
        Number of blank wells averaged
    """

    plate_id: str
    mean_blank_absorbance: float
    n_wells: int


@dataclass(frozen=True)
class CorrectedObservation:
    """A non-blank well with its blank-corrected absorbance."""

    plate_id: str
    well_id: str
    sample_id: str
    raw_absorbance: float
    adjusted_absorbance: float
    quality_flag: QualityFlag = QualityFlag.OK

    @property
    def is_excluded(self) -> bool:
        return self.quality_flag is QualityFlag.EXCLUDED


class BlankCorrector:
    """
    Subtracts the per-plate water blank from every well.

    Examples
    --------
    >>> corrector = BlankCorrector()
    >>> blank, corrected = corrector.correct("20230601A", wells)
    >>> print(f"Blank: {blank.mean_blank_absorbance:.3f}")
    """

    def __init__(self, conventions: Optional[LabelConvention] = None):
        self.conventions = conventions or LabelConvention()

    def compute_blank(self, plate_id: str, wells: Sequence[WellObservation]) -> BlankValue:
        """
        Average the blank wells of one plate.

        Wells flagged EXCLUDED are left out.

        Raises
        ------
        MissingBlankError
            If the plate has no usable blank wells
        """
        values = [
            w.raw_absorbance
            for w in wells
            if self.conventions.is_blank(w.sample_id) and not w.is_excluded
        ]
        if not values:
            raise MissingBlankError(plate_id)

        mean = round(float(np.mean(values)), ABSORBANCE_DECIMALS)
        logger.debug(f"Plate {plate_id}: blank {mean:.3f} from {len(values)} wells")
        return BlankValue(plate_id=plate_id, mean_blank_absorbance=mean, n_wells=len(values))

    def correct(
        self, plate_id: str, wells: Sequence[WellObservation]
    ) -> Tuple[BlankValue, List[CorrectedObservation]]:
        """
        Blank-correct all non-blank wells of one plate.

        Parameters
        ----------
        plate_id : str
            Plate identifier
        wells : sequence of WellObservation
            All wells of the plate

        Returns
        -------
        blank : BlankValue
        corrected : list of CorrectedObservation
            Every non-blank well, in input order
        """
        blank = self.compute_blank(plate_id, wells)
        corrected = [
            CorrectedObservation(
                plate_id=w.plate_id,
                well_id=w.well_id,
                sample_id=w.sample_id,
                raw_absorbance=w.raw_absorbance,
                adjusted_absorbance=w.raw_absorbance - blank.mean_blank_absorbance,
                quality_flag=w.quality_flag,
            )
            for w in wells
            if not self.conventions.is_blank(w.sample_id)
        ]
        return blank, corrected
