"""
Core utilities.

This module provides:
- Stoichiometric constants and default conventions
- Error and warning taxonomy
- Configuration and logging
"""

from poxc.core import constants
from poxc.core import config
from poxc.core import logging_config
from poxc.core.exceptions import (
    AssayDataError,
    MissingBlankError,
    InsufficientCalibrationDataError,
    MalformedPlateIdError,
    MissingMassError,
    UndefinedAggregateWarning,
)

__all__ = [
    # Modules
    "constants",
    "config",
    "logging_config",
    # Errors
    "AssayDataError",
    "MissingBlankError",
    "InsufficientCalibrationDataError",
    "MalformedPlateIdError",
    "MissingMassError",
    "UndefinedAggregateWarning",
]
