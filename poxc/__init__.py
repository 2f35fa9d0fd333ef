"""
POXC: plate calibration pipeline for soil permanganate-oxidizable carbon

Converts blank-corrected absorbance readings from multi-well assay plates into
a POXC concentration per soil sample, using an independent linear calibration
per plate and reporting quality-control diagnostics alongside the results.
"""

__version__ = "0.1.0"
__author__ = "POXC Contributors"

# Core imports for convenience
from poxc.core import constants

__all__ = [
    "constants",
]
