"""
Constants for POXC calculations.

The stoichiometric constants describe the permanganate oxidation assay and
are not configurable. Label conventions and review thresholds are defaults
that ``AssayConfig`` may override.
"""

# ============================================================================
# Stoichiometric Constants
# ============================================================================

# Initial permanganate concentration
INITIAL_OXIDANT_MOL_L = 0.02  # mol/L

# Carbon oxidized per mol of permanganate reduced (Mn7+ -> Mn4+, 0.75 mol C)
CARBON_MG_PER_MOL_OXIDANT = 9000.0  # mg C / mol

# Volume of oxidant solution reacted with the soil
REACTION_VOLUME_L = 0.02  # L

# ============================================================================
# Instrument Precision
# ============================================================================

# Plate reader reporting precision for absorbance
ABSORBANCE_DECIMALS = 3

# ============================================================================
# Label Conventions
# ============================================================================

# Substring marking a water blank well (case-sensitive)
DEFAULT_BLANK_MARKER = "Water"

# Trailing unit marker of a standard label, e.g. "200uM"
DEFAULT_STANDARD_SUFFIX = "uM"

# Run date embedded in plate identifiers, e.g. "20230601A"
RUN_DATE_PATTERN = r"\d{8}"

# Minimum distinct standard levels for a calibration
MIN_CALIBRATION_LEVELS = 2

# ============================================================================
# Review Thresholds (reported, never enforced)
# ============================================================================

DEFAULT_R_SQUARED_THRESHOLD = 0.99
DEFAULT_CV_THRESHOLD_PERCENT = 10.0
