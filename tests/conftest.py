"""
Pytest configuration and shared fixtures for POXC tests.

This module provides:
- Factory fixtures for synthetic plates (blank, standards, sample replicates)
- The reference plate "20230601A" with a known calibration
- Soil mass and sample identity lookups
- Temporary configuration files
"""

import os
import tempfile
from pathlib import Path

import pytest

from poxc.assay.concentration import SoilMassRecord, SoilMassTable
from poxc.assay.enrichment import SampleIdentityTable
from poxc.assay.wells import QualityFlag, WellObservation

REFERENCE_PLATE = "20230601A"
REFERENCE_BLANK = 0.05
REFERENCE_STANDARDS = {0.0: 0.00, 100.0: 0.25, 200.0: 0.50, 400.0: 1.00}


def build_plate(
    plate_id,
    blank=0.05,
    blank_wells=2,
    standards=None,
    standard_replicates=2,
    samples=None,
    flags=None,
):
    """
    Build raw wells for one plate.

    Parameters
    ----------
    plate_id : str
        Plate identifier
    blank : float
        Raw absorbance of every water blank well
    blank_wells : int
        Number of blank wells
    standards : dict, optional
        concentration -> blank-corrected absorbance
    standard_replicates : int
        Replicate wells per standard level
    samples : dict, optional
        sample_id -> list of blank-corrected replicate absorbances
    flags : dict, optional
        (sample_id, replicate index) -> QualityFlag
    """
    standards = REFERENCE_STANDARDS if standards is None else standards
    samples = samples or {}
    flags = flags or {}
    wells = []
    counter = iter(range(1, 10000))

    for _ in range(blank_wells):
        wells.append(WellObservation(plate_id, f"W{next(counter)}", "Water", blank))

    for concentration, absorbance in standards.items():
        label = f"{concentration:g}uM"
        for _ in range(standard_replicates):
            wells.append(WellObservation(plate_id, f"W{next(counter)}", label, absorbance + blank))

    for sample_id, replicates in samples.items():
        for i, absorbance in enumerate(replicates):
            wells.append(
                WellObservation(
                    plate_id,
                    f"W{next(counter)}",
                    sample_id,
                    absorbance + blank,
                    flags.get((sample_id, i), QualityFlag.OK),
                )
            )
    return wells


@pytest.fixture
def plate_factory():
    """Factory fixture returning ``build_plate``."""
    return build_plate


@pytest.fixture
def reference_wells():
    """Reference plate: slope 400, intercept 0; sample S1 averages 0.30."""
    return build_plate(
        REFERENCE_PLATE,
        blank=REFERENCE_BLANK,
        samples={"S1": [0.29, 0.31], "S2": [0.10, 0.12, 0.11]},
    )


@pytest.fixture
def reference_masses():
    return SoilMassTable(
        [
            SoilMassRecord("S1", "20230601", 0.0025),
            SoilMassRecord("S2", "20230601", 0.0025),
        ]
    )


@pytest.fixture
def reference_identities():
    return SampleIdentityTable.from_mapping({"S1": "Field A topsoil", "S2": "Field A topsoil"})


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "assay": {
            "blank_marker": "Water",
            "standard_suffix": "uM",
            "r_squared_threshold": 0.99,
            "cv_threshold_percent": 10.0,
            "n_workers": 2,
        }
    }


@pytest.fixture
def temp_config_file(sample_config_dict):
    """Create a temporary YAML configuration file."""
    import yaml

    config_fd, config_path = tempfile.mkstemp(suffix=".yaml")
    os.close(config_fd)  # Close file descriptor to prevent leaks

    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)

    yield config_path

    Path(config_path).unlink(missing_ok=True)
