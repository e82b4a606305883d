"""
LPI percent cover computation package.

This package provides functions to compute plot-level percent cover from
tall Line-Point Intercept (LPI) survey data, for single categorical
variables (e.g. species code) or combinations of them (e.g. growth habit
and duration).
"""

# Re-export constants
from .constants import (
    TOP_CANOPY,
    LOWER_LAYERS,
    SOIL_SURFACE,
    HIT_MODES,
    NO_HIT_CODES,
    MISSING_LABEL,
)

from .exceptions import (
    LPICoverError,
    InvalidConfigurationError,
    SchemaViolationError,
    UndefinedCoverError,
    UndefinedCoverWarning,
)

# Re-export LPI module functions for convenience
from .lpi import (
    # Data loading
    load_lpi_tall,
    validate_lpi_tall,
    drop_no_hit_records,
    extract_year_from_form_date,
    get_layer_order,
    order_layers,
    # Cover calculation
    calculate_point_counts,
    build_indicator,
    pct_cover,
    # Main workflow
    summarize_point_counts,
    melt_cover,
    compute_cover_tables,
)

__version__ = "0.1.0"
