"""
Tests for assay constants and the error taxonomy.
"""

import pytest
from poxc.core import constants
from poxc.core.exceptions import (
    AssayDataError,
    InsufficientCalibrationDataError,
    MalformedPlateIdError,
    MissingBlankError,
    MissingMassError,
)


def test_constants_exist():
    """Test that all expected constants are defined."""
    assert hasattr(constants, "INITIAL_OXIDANT_MOL_L")
    assert hasattr(constants, "CARBON_MG_PER_MOL_OXIDANT")
    assert hasattr(constants, "REACTION_VOLUME_L")
    assert hasattr(constants, "ABSORBANCE_DECIMALS")


def test_constant_values():
    """Stoichiometry of the permanganate assay."""
    assert constants.INITIAL_OXIDANT_MOL_L == 0.02
    assert constants.CARBON_MG_PER_MOL_OXIDANT == 9000.0
    assert constants.REACTION_VOLUME_L == 0.02
    assert constants.ABSORBANCE_DECIMALS == 3
    assert constants.MIN_CALIBRATION_LEVELS == 2


def test_review_thresholds():
    assert 0.0 < constants.DEFAULT_R_SQUARED_THRESHOLD <= 1.0
    assert constants.DEFAULT_CV_THRESHOLD_PERCENT > 0


@pytest.mark.parametrize(
    "error",
    [
        MissingBlankError("P1"),
        InsufficientCalibrationDataError("P1", 1),
        MalformedPlateIdError("P1", sample_id="S1"),
        MissingMassError("S1", "20230601", plate_id="P1"),
    ],
)
def test_errors_are_value_errors(error):
    assert isinstance(error, AssayDataError)
    assert isinstance(error, ValueError)
    assert error.plate_id == "P1"
    assert error.reason == type(error).__name__


def test_insufficient_calibration_detail():
    error = InsufficientCalibrationDataError("P1", 0, detail="no standards")
    assert error.n_levels == 0
    assert "no standards" in str(error)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
