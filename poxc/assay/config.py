"""
Configuration for a POXC assay run.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from poxc.assay.wells import LabelConvention
from poxc.core.constants import (
    DEFAULT_BLANK_MARKER,
    DEFAULT_CV_THRESHOLD_PERCENT,
    DEFAULT_R_SQUARED_THRESHOLD,
    DEFAULT_STANDARD_SUFFIX,
)
from poxc.core.logging_config import get_logger

logger = get_logger("assay.config")


@dataclass
class AssayConfig:
    """
    Settings for a pipeline run.

    Attributes
    ----------
    blank_marker : str
        Case-sensitive substring identifying water blank labels
    standard_suffix : str
        Trailing unit marker of standard labels
    r_squared_threshold : float
        Calibration R² below this is flagged for review
    cv_threshold_percent : float
        Replicate CV above this is flagged for review
    n_workers : int, optional
        Worker threads for per-plate processing. None uses the CPU count;
        1 processes plates sequentially.
    """

    blank_marker: str = DEFAULT_BLANK_MARKER
    standard_suffix: str = DEFAULT_STANDARD_SUFFIX
    r_squared_threshold: float = DEFAULT_R_SQUARED_THRESHOLD
    cv_threshold_percent: float = DEFAULT_CV_THRESHOLD_PERCENT
    n_workers: Optional[int] = None

    @property
    def conventions(self) -> LabelConvention:
        return LabelConvention(
            blank_marker=self.blank_marker, standard_suffix=self.standard_suffix
        )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AssayConfig":
        """
        Build from a configuration dictionary with an optional ``assay`` section.

        Raises
        ------
        ValueError
            If the section is invalid
        """
        from poxc.core.config import validate_assay_config

        validate_assay_config(config)
        assay = config.get("assay") or {}

        return cls(
            blank_marker=assay.get("blank_marker", DEFAULT_BLANK_MARKER),
            standard_suffix=assay.get("standard_suffix", DEFAULT_STANDARD_SUFFIX),
            r_squared_threshold=float(
                assay.get("r_squared_threshold", DEFAULT_R_SQUARED_THRESHOLD)
            ),
            cv_threshold_percent=float(
                assay.get("cv_threshold_percent", DEFAULT_CV_THRESHOLD_PERCENT)
            ),
            n_workers=assay.get("n_workers"),
        )

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "AssayConfig":
        """
        Load assay configuration from a YAML or JSON file.

        Parameters
        ----------
        config_path : str or Path
            Path to configuration file

        Returns
        -------
        AssayConfig
        """
        from poxc.core.config import load_config

        config = cls.from_dict(load_config(config_path))
        logger.info(
            f"Assay conventions: blank={config.blank_marker!r}, "
            f"standard suffix={config.standard_suffix!r}"
        )
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assay": {
                "blank_marker": self.blank_marker,
                "standard_suffix": self.standard_suffix,
                "r_squared_threshold": self.r_squared_threshold,
                "cv_threshold_percent": self.cv_threshold_percent,
                "n_workers": self.n_workers,
            }
        }
