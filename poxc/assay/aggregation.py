"""
Replicate aggregation of soil sample wells.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from poxc.assay.blank import CorrectedObservation
from poxc.assay.stats import describe
from poxc.assay.wells import LabelConvention, QualityFlag
from poxc.core.logging_config import get_logger

logger = get_logger("assay.aggregation")


@dataclass(frozen=True)
class SampleGroup:
    """
    Replicate summary of one sample on one plate.

    ``mean_absorbance`` is NaN when every replicate was excluded;
    ``stdev_absorbance`` and ``cv_percent`` are NaN with fewer than two
    remaining replicates.
    """

    plate_id: str
    sample_id: str
    mean_absorbance: float
    stdev_absorbance: float
    cv_percent: float
    n_replicates: int
    n_excluded: int = 0
    n_unknown: int = 0

    @property
    def is_defined(self) -> bool:
        return bool(np.isfinite(self.mean_absorbance) and np.isfinite(self.stdev_absorbance))


class SampleAggregator:
    """Averages replicate sample wells per (plate_id, sample_id)."""

    def __init__(self, conventions: Optional[LabelConvention] = None):
        self.conventions = conventions or LabelConvention()

    def aggregate(
        self, plate_id: str, wells: Sequence[CorrectedObservation]
    ) -> List[SampleGroup]:
        """
        Summarize sample replicates of one plate.

        Blank and standard wells are ignored. EXCLUDED wells are dropped before
        the statistics but still counted. Groups are returned in first-seen
        order.

        Parameters
        ----------
        plate_id : str
            Plate identifier
        wells : sequence of CorrectedObservation
            Blank-corrected wells of the plate

        Returns
        -------
        List[SampleGroup]
        """
        groups: Dict[str, List[CorrectedObservation]] = {}
        for w in wells:
            if self.conventions.is_control(w.sample_id):
                continue
            groups.setdefault(w.sample_id, []).append(w)

        result = []
        for sample_id, members in groups.items():
            kept = [w.adjusted_absorbance for w in members if not w.is_excluded]
            summary = describe(kept)
            group = SampleGroup(
                plate_id=plate_id,
                sample_id=sample_id,
                mean_absorbance=summary.mean,
                stdev_absorbance=summary.stdev,
                cv_percent=summary.cv_percent,
                n_replicates=summary.n,
                n_excluded=len(members) - len(kept),
                n_unknown=sum(1 for w in members if w.quality_flag is QualityFlag.UNKNOWN),
            )
            if not group.is_defined:
                logger.warning(
                    f"Plate {plate_id}, sample {sample_id}: "
                    f"{summary.n} usable replicate(s), statistics undefined"
                )
            result.append(group)
        return result
