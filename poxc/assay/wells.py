"""
Well observations and plate label conventions.

A plate reader export is a flat table of wells. Each well carries a raw
sample label which is either a water blank, a calibration standard whose
label encodes its concentration (e.g. ``"200uM"``), or a soil sample id.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from poxc.core.constants import (
    DEFAULT_BLANK_MARKER,
    DEFAULT_STANDARD_SUFFIX,
    RUN_DATE_PATTERN,
)
from poxc.core.exceptions import MalformedPlateIdError
from poxc.core.logging_config import get_logger

logger = get_logger("assay.wells")

_RUN_DATE_RE = re.compile(RUN_DATE_PATTERN)


class QualityFlag(Enum):
    """Externally supplied review mark for a single well."""

    OK = "ok"
    EXCLUDED = "excluded"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "QualityFlag":
        """
        Convert a table cell into a QualityFlag.

        Missing values (None, NaN, empty string) mean OK. Matching is
        case-insensitive and exact: only the text ``excluded`` removes a
        well from the statistics. Any other mark (``bad``, ``x``, ``yes``)
        maps to UNKNOWN, which keeps the well and counts it in ``n_unknown``.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.OK
        if isinstance(value, float) and math.isnan(value):
            return cls.OK
        text = str(value).strip().lower()
        if not text:
            return cls.OK
        for flag in cls:
            if text == flag.value:
                return flag
        logger.debug(f"Unrecognised quality flag {value!r}, treating as UNKNOWN")
        return cls.UNKNOWN


@dataclass(frozen=True)
class WellObservation:
    """
    A single raw absorbance reading.

    Attributes
    ----------
    plate_id : str
        Plate identifier; embeds the run date
    well_id : str
        Well position on the plate (e.g. "A1")
    sample_id : str
        Raw sample label (blank marker, standard label or soil sample id)
    raw_absorbance : float
        Absorbance as reported by the plate reader
    quality_flag : QualityFlag
        External review mark
    """

    plate_id: str
    well_id: str
    sample_id: str
    raw_absorbance: float
    quality_flag: QualityFlag = QualityFlag.OK

    @property
    def is_excluded(self) -> bool:
        return self.quality_flag is QualityFlag.EXCLUDED


@dataclass(frozen=True)
class LabelConvention:
    """
    Rules that classify a sample label as blank, standard or sample.

    Attributes
    ----------
    blank_marker : str
        Case-sensitive substring identifying water blank wells
    standard_suffix : str
        Trailing unit marker of standard labels; the prefix is the concentration
    """

    blank_marker: str = DEFAULT_BLANK_MARKER
    standard_suffix: str = DEFAULT_STANDARD_SUFFIX

    def is_blank(self, label: str) -> bool:
        return self.blank_marker in label

    def parse_standard(self, label: str) -> Optional[float]:
        """Return the concentration encoded in a standard label, or None."""
        text = label.strip()
        if not text.endswith(self.standard_suffix):
            return None
        number = text[: len(text) - len(self.standard_suffix)].strip()
        try:
            value = float(number)
        except ValueError:
            return None
        if not math.isfinite(value):
            return None
        return value

    def is_standard(self, label: str) -> bool:
        return self.parse_standard(label) is not None

    def is_control(self, label: str) -> bool:
        """True for blanks and standards, i.e. anything that is not a soil sample."""
        return self.is_blank(label) or self.is_standard(label)


def extract_run_date(plate_id: str, sample_id: Optional[str] = None) -> str:
    """
    Extract the run date (first 8-digit run) from a plate identifier.

    Parameters
    ----------
    plate_id : str
        Plate identifier such as "20230601A"
    sample_id : str, optional
        Sample the lookup is made for, attached to the error

    Returns
    -------
    str
        The 8-digit date string, e.g. "20230601"

    Raises
    ------
    MalformedPlateIdError
        If plate_id contains no 8-digit run
    """
    match = _RUN_DATE_RE.search(plate_id)
    if match is None:
        raise MalformedPlateIdError(plate_id, sample_id=sample_id)
    return match.group(0)


def group_by_plate(observations: Iterable[WellObservation]) -> Dict[str, List[WellObservation]]:
    """Partition observations by plate_id, preserving first-seen plate order."""
    plates: Dict[str, List[WellObservation]] = {}
    for obs in observations:
        plates.setdefault(obs.plate_id, []).append(obs)
    return plates
