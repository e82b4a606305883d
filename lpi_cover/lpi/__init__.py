"""
Percent cover calculations for Line-Point Intercept (LPI) data.
"""

from .data_loader import (
    load_lpi_tall,
    validate_lpi_tall,
    is_no_hit,
    is_missing_value,
    drop_no_hit_records,
    extract_year_from_form_date,
    get_layer_order,
    order_layers,
)

from .cover_calculator import (
    get_level_columns,
    get_point_columns,
    calculate_point_counts,
    add_point_counts,
    drop_unnumbered_points,
    build_indicator,
    add_indicator,
    any_hit_points,
    first_hit_points,
    handle_undefined_cover,
    summarize_cover,
    reshape_cover,
    pct_cover,
)

from .main import (
    summarize_point_counts,
    melt_cover,
    compute_cover_tables,
)
