"""
Configuration management for POXC.

Provides utilities for loading, saving and validating YAML/JSON configuration
files holding the assay label conventions and review thresholds.
"""

import json
from pathlib import Path
from typing import Dict, Any, Union
import logging

import yaml

logger = logging.getLogger(__name__)


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters
    ----------
    config_path : str or Path
        Path to configuration file (.yaml, .yml, or .json)

    Returns
    -------
    dict
        Configuration dictionary (empty if the file is empty)

    Raises
    ------
    FileNotFoundError
        If config file does not exist
    ValueError
        If file format is not supported or the document is not a mapping
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()

    with open(config_path, "r") as f:
        if suffix in [".yaml", ".yml"]:
            config = yaml.safe_load(f)
        elif suffix == ".json":
            config = json.load(f)
        else:
            raise ValueError(
                f"Unsupported config file format: {suffix}. " "Use .yaml, .yml, or .json"
            )

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    logger.info(f"Loaded configuration from {config_path}")
    return config


def validate_assay_config(config: Dict[str, Any]) -> bool:
    """
    Validate assay configuration structure.

    The ``assay`` section is optional; every key inside it is optional too.

    Parameters
    ----------
    config : dict
        Configuration dictionary

    Returns
    -------
    bool
        True if valid

    Raises
    ------
    ValueError
        If configuration is invalid
    """
    assay = config.get("assay", {})
    if assay is None:
        return True
    if not isinstance(assay, dict):
        raise ValueError("'assay' section must be a mapping")

    for key in ["blank_marker", "standard_suffix"]:
        if key in assay:
            value = assay[key]
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"'{key}' must be a non-empty string")

    if "r_squared_threshold" in assay:
        threshold = assay["r_squared_threshold"]
        if not isinstance(threshold, (int, float)) or not 0.0 <= threshold <= 1.0:
            raise ValueError("'r_squared_threshold' must be a number in [0, 1]")

    if "cv_threshold_percent" in assay:
        cv = assay["cv_threshold_percent"]
        if not isinstance(cv, (int, float)) or cv < 0:
            raise ValueError("'cv_threshold_percent' must be a non-negative number")

    if assay.get("n_workers") is not None:
        workers = assay["n_workers"]
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ValueError("'n_workers' must be a positive integer")

    return True


def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> None:
    """
    Save configuration to YAML or JSON file.

    Unknown suffixes are written as YAML with a ``.yaml`` suffix.

    Parameters
    ----------
    config : dict
        Configuration dictionary
    config_path : str or Path
        Path to output file
    """
    config_path = Path(config_path)
    suffix = config_path.suffix.lower()

    if suffix not in [".yaml", ".yml", ".json"]:
        config_path = config_path.with_suffix(".yaml")
        suffix = ".yaml"

    with open(config_path, "w") as f:
        if suffix == ".json":
            json.dump(config, f, indent=2)
        else:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved configuration to {config_path}")
