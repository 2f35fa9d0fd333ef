"""
POXC concentration from calibrated absorbance and soil mass.

The calibration converts a sample's blank-corrected absorbance into the
permanganate concentration left after reaction. The oxidant consumed by the
soil is converted to carbon with fixed stoichiometry:

    post_reaction = intercept + slope * mean_absorbance
    poxc_mg_per_kg = (0.02 - post_reaction) * 9000 * (0.02 / mass_kg)

No clamping is applied; negative or non-finite results are passed through
for domain review.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from poxc.assay.aggregation import SampleGroup
from poxc.assay.calibration import CalibrationModel
from poxc.assay.wells import extract_run_date
from poxc.core.constants import (
    CARBON_MG_PER_MOL_OXIDANT,
    INITIAL_OXIDANT_MOL_L,
    REACTION_VOLUME_L,
)
from poxc.core.exceptions import MissingMassError
from poxc.core.logging_config import get_logger

logger = get_logger("assay.concentration")


@dataclass(frozen=True)
class SoilMassRecord:
    """Mass of soil weighed for a sample on a given run date."""

    sample_id: str
    run_date: str
    mass_kg: float


class SoilMassTable:
    """
    Read-only lookup of soil masses keyed by (sample_id, run_date).

    Parameters
    ----------
    records : iterable of SoilMassRecord

    Raises
    ------
    ValueError
        If the same key is recorded twice with different masses
    """

    def __init__(self, records: Iterable[SoilMassRecord] = ()):
        self._masses: Dict[Tuple[str, str], float] = {}
        for record in records:
            key = (record.sample_id, record.run_date)
            if key in self._masses and self._masses[key] != record.mass_kg:
                raise ValueError(
                    f"Conflicting soil masses for sample {record.sample_id!r} "
                    f"on {record.run_date}: {self._masses[key]} vs {record.mass_kg}"
                )
            self._masses[key] = float(record.mass_kg)

    def __len__(self) -> int:
        return len(self._masses)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._masses

    def lookup(self, sample_id: str, run_date: str, plate_id: Optional[str] = None) -> float:
        """
        Return the soil mass in kg.

        Raises
        ------
        MissingMassError
            If no record matches
        """
        try:
            return self._masses[(sample_id, run_date)]
        except KeyError:
            raise MissingMassError(sample_id, run_date, plate_id=plate_id) from None


def poxc_mg_per_kg(post_reaction_concentration: float, mass_kg: float) -> float:
    """
    Convert residual oxidant concentration into POXC per kg of soil.

    Parameters
    ----------
    post_reaction_concentration : float
        Oxidant concentration after reaction (calibration units)
    mass_kg : float
        Soil mass in kg

    Returns
    -------
    float
        POXC in mg/kg. A zero mass gives a non-finite value rather than an error.
    """
    consumed = INITIAL_OXIDANT_MOL_L - np.float64(post_reaction_concentration)
    with np.errstate(divide="ignore", invalid="ignore"):
        value = consumed * CARBON_MG_PER_MOL_OXIDANT * (REACTION_VOLUME_L / np.float64(mass_kg))
    return float(value)


@dataclass(frozen=True)
class ComputedResult:
    """
    Final per-sample result.

    Every result traces to exactly one plate calibration (``slope``,
    ``intercept``) and that plate's blank correction.
    """

    plate_id: str
    sample_id: str
    run_date: str
    mean_absorbance: float
    stdev_absorbance: float
    cv_percent: float
    n_replicates: int
    slope: float
    intercept: float
    r_squared: float
    mass_kg: float
    post_reaction_concentration: float
    poxc_mg_per_kg: float
    display_name: Optional[str] = None


class ConcentrationCalculator:
    """
    Combines a sample group, its plate calibration and its soil mass.

    Examples
    --------
    >>> calculator = ConcentrationCalculator(masses)
    >>> result = calculator.calculate(group, model)
    >>> print(f"{result.sample_id}: {result.poxc_mg_per_kg:.1f} mg/kg")
    """

    def __init__(self, masses: SoilMassTable):
        self.masses = masses

    def calculate(self, group: SampleGroup, model: CalibrationModel) -> ComputedResult:
        """
        Compute POXC for one sample group.

        Raises
        ------
        MalformedPlateIdError
            If the plate id embeds no run date
        MissingMassError
            If no soil mass joins on (sample_id, run_date)
        ValueError
            If the group and model belong to different plates
        """
        if group.plate_id != model.plate_id:
            raise ValueError(
                f"Sample group plate {group.plate_id} does not match "
                f"calibration plate {model.plate_id}"
            )

        run_date = extract_run_date(group.plate_id, sample_id=group.sample_id)
        mass_kg = self.masses.lookup(group.sample_id, run_date, plate_id=group.plate_id)

        post_reaction = model.predict(group.mean_absorbance)
        value = poxc_mg_per_kg(post_reaction, mass_kg)

        if not np.isfinite(value) and np.isfinite(group.mean_absorbance):
            logger.warning(
                f"Plate {group.plate_id}, sample {group.sample_id}: "
                f"non-finite POXC for mass {mass_kg} kg"
            )

        return ComputedResult(
            plate_id=group.plate_id,
            sample_id=group.sample_id,
            run_date=run_date,
            mean_absorbance=group.mean_absorbance,
            stdev_absorbance=group.stdev_absorbance,
            cv_percent=group.cv_percent,
            n_replicates=group.n_replicates,
            slope=model.slope,
            intercept=model.intercept,
            r_squared=model.r_squared,
            mass_kg=mass_kg,
            post_reaction_concentration=post_reaction,
            poxc_mg_per_kg=value,
        )
