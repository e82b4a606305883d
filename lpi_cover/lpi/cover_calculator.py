"""
Percent cover calculation functions for tall Line-Point Intercept data.

Cover is computed per plot (optionally per line and per survey year) for any
combination of categorical variables, e.g. ``GrowthHabitSub`` and
``Duration`` give indicators like ``Graminoid.Perennial`` and ``Forb.Annual``.
"""

import warnings
import numpy as np
import pandas as pd
from typing import List, Sequence, Tuple

from ..constants import (
    SITE_KEYS,
    PLOT_KEYS,
    LINE_ID,
    LINE_KEYS,
    POINT_KEY,
    LAYER_COL,
    CODE_COL,
    DATE_COL,
    YEAR_COL,
    POINT_COUNT_COL,
    INDICATOR_COL,
    PERCENT_COL,
    SOIL_SURFACE,
    HIT_MODES,
    UNDEFINED_POLICIES,
    INDICATOR_SEP,
    MISSING_LABEL,
)
from ..exceptions import (
    InvalidConfigurationError,
    UndefinedCoverError,
    UndefinedCoverWarning,
)
from .data_loader import (
    validate_lpi_tall,
    drop_no_hit_records,
    is_no_hit,
    is_missing_value,
    extract_year_from_form_date,
    order_layers,
)


def _unique(columns: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(columns))


def get_level_columns(by_line: bool = False, by_year: bool = False) -> List[str]:
    """
    Get the columns that define one output row (and one denominator).

    Parameters
    ----------
    by_line : bool
        Whether to report each line separately
    by_year : bool
        Whether to report each survey year separately

    Returns
    -------
    List[str]
        Site and plot identifiers, plus line identifiers and/or Year
    """
    level = SITE_KEYS + PLOT_KEYS
    if by_line:
        level = level + LINE_KEYS
    if by_year:
        level = [YEAR_COL] + level
    return level


def get_point_columns(level: List[str]) -> List[str]:
    """Columns identifying a single pin drop within a level group."""
    return level + [col for col in LINE_KEYS + [POINT_KEY] if col not in level]


def calculate_point_counts(lpi_tall: pd.DataFrame, level: List[str]) -> pd.DataFrame:
    """
    Calculate the number of pin drops in each level group.

    Points are numbered 1..k along each line, so the highest PointNbr on a
    line is the number of pin drops on it. The point count of a group is the
    sum of those maxima over its distinct lines, which does not depend on
    how many layers were recorded at each point.

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table containing the level columns, LineID and PointNbr
    level : List[str]
        Columns defining a group (see get_level_columns)

    Returns
    -------
    pd.DataFrame
        One row per group with the level columns and point_count.
        Groups with no usable PointNbr values get a point_count of 0.
    """
    line_cols = _unique(level + [LINE_ID])

    df = lpi_tall[_unique(line_cols + [POINT_KEY])].copy()
    df[POINT_KEY] = pd.to_numeric(df[POINT_KEY], errors='coerce')

    line_lengths = df.groupby(line_cols, dropna=False)[POINT_KEY].max().reset_index()

    point_counts = (
        line_lengths.groupby(level, dropna=False)[POINT_KEY]
        .sum()
        .reset_index()
        .rename(columns={POINT_KEY: POINT_COUNT_COL})
    )

    return point_counts


def add_point_counts(lpi_tall: pd.DataFrame, level: List[str]) -> pd.DataFrame:
    """
    Add a point_count column holding each record's group denominator.

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table
    level : List[str]
        Columns defining a group

    Returns
    -------
    pd.DataFrame
        Copy of the table with point_count merged on the level columns
    """
    point_counts = calculate_point_counts(lpi_tall, level)
    df = lpi_tall.drop(columns=[POINT_COUNT_COL], errors='ignore')
    return df.merge(point_counts, on=level, how='left')


def drop_unnumbered_points(lpi_tall: pd.DataFrame) -> pd.DataFrame:
    """
    Drop hit records whose PointNbr is missing or not a number.

    Such records are not part of any counted pin drop, so keeping them would
    add hits on top of the point count. Records in groups with a point count
    of 0 are kept so the undefined cover policy still reports those groups.

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table with point_count added

    Returns
    -------
    pd.DataFrame
        The table without unnumbered records in groups with pin drops
    """
    point_numbers = pd.to_numeric(lpi_tall[POINT_KEY], errors='coerce')
    unnumbered = point_numbers.isna() & (lpi_tall[POINT_COUNT_COL] > 0)

    if unnumbered.any():
        warnings.warn(
            f"Dropped {int(unnumbered.sum())} hit record(s) with a missing or "
            f"non-numeric {POINT_KEY}; they do not belong to a counted pin drop.",
            stacklevel=3
        )

    return lpi_tall[~unnumbered]


def build_indicator(
    df: pd.DataFrame,
    grouping_variables: Sequence[str]
) -> Tuple[pd.Series, pd.Series]:
    """
    Build the composite indicator for each row.

    Values of the grouping variables are joined with "." in the order given.
    Missing values (NaN or empty string) are written as "NA", so a row with
    GrowthHabitSub "Forb" and no Duration gets "Forb.NA".

    Parameters
    ----------
    df : pd.DataFrame
        Table containing the grouping variable columns
    grouping_variables : Sequence[str]
        Column names to combine

    Returns
    -------
    Tuple[pd.Series, pd.Series]
        The indicator strings, and a boolean mask that is True where every
        grouping variable was missing
    """
    labels = []
    all_missing = pd.Series(True, index=df.index)

    for var in grouping_variables:
        missing = is_missing_value(df[var])
        all_missing &= missing
        labels.append(df[var].astype(object).where(~missing, MISSING_LABEL).astype(str))

    if len(labels) > 1:
        indicator = labels[0].str.cat(labels[1:], sep=INDICATOR_SEP)
    else:
        indicator = labels[0]

    return indicator, all_missing


def add_indicator(points: pd.DataFrame, grouping_variables: Sequence[str]) -> pd.DataFrame:
    """
    Add the indicator column and drop rows where every grouping value is missing.
    """
    points = points.copy()
    indicator, all_missing = build_indicator(points, grouping_variables)
    points[INDICATOR_COL] = indicator

    return points[~all_missing]


def any_hit_points(
    lpi_tall: pd.DataFrame,
    level: List[str],
    grouping_variables: Sequence[str]
) -> pd.DataFrame:
    """
    Find presence of each grouping at each pin drop, using hits in any layer.

    A pin drop may count towards several groupings if its layers fall into
    different ones, but only once towards any single grouping.

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table with point_count already added
    level : List[str]
        Columns defining a group
    grouping_variables : Sequence[str]
        Columns the cover is calculated for

    Returns
    -------
    pd.DataFrame
        One row per pin drop and combination of grouping values, with
        'present' set to 1 if any layer had a recorded code, else 0
    """
    keys = _unique(get_point_columns(level) + [POINT_COUNT_COL] + list(grouping_variables))

    df = lpi_tall.assign(_hit=~is_no_hit(lpi_tall[CODE_COL]))

    # "" and NaN are the same missing grouping value
    for var in _unique(grouping_variables):
        df[var] = df[var].where(~is_missing_value(df[var]))

    presence = df.groupby(keys, dropna=False)['_hit'].any().reset_index(name='present')
    presence['present'] = presence['present'].astype(int)

    return presence


def first_hit_points(
    lpi_tall: pd.DataFrame,
    level: List[str],
    grouping_variables: Sequence[str]
) -> pd.DataFrame:
    """
    Find the grouping of the first (top-most) hit at each pin drop.

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table with point_count already added
    level : List[str]
        Columns defining a group
    grouping_variables : Sequence[str]
        Columns the cover is calculated for

    Returns
    -------
    pd.DataFrame
        One row per pin drop with its first code, the grouping values that
        go with it and 'present' set to 1
    """
    point_cols = get_point_columns(level)

    hits = order_layers(drop_no_hit_records(lpi_tall))

    # Records are in canopy order, so first() is the top-most hit
    first_codes = (
        hits.groupby(point_cols + [POINT_COUNT_COL], dropna=False, sort=False)[CODE_COL]
        .first()
        .reset_index()
    )

    # Per-point attributes, still in canopy order, to recover the grouping values
    attributes = hits[_unique(point_cols + [CODE_COL] + list(grouping_variables))].drop_duplicates()

    points = first_codes.merge(attributes, on=point_cols + [CODE_COL], how='left')
    points = points.drop_duplicates(subset=point_cols, keep='first')
    points['present'] = 1

    return points


def handle_undefined_cover(
    summary: pd.DataFrame,
    level: List[str],
    on_undefined: str = 'warn'
) -> pd.DataFrame:
    """
    Deal with groups whose point count is zero, where cover is undefined.

    Parameters
    ----------
    summary : pd.DataFrame
        Aggregated cover with point_count and percent columns; percent is
        already NaN for the undefined groups
    level : List[str]
        Columns defining a group
    on_undefined : str
        'warn' keeps the rows with NaN percent, 'drop' removes them (both
        issue an UndefinedCoverWarning), 'raise' raises UndefinedCoverError

    Returns
    -------
    pd.DataFrame
        The summary, with undefined groups dropped if requested
    """
    undefined = ~(summary[POINT_COUNT_COL] > 0)
    if not undefined.any():
        return summary

    groups = list(summary.loc[undefined, level].drop_duplicates().itertuples(index=False, name=None))

    if on_undefined == 'raise':
        raise UndefinedCoverError(groups)

    action = 'dropped' if on_undefined == 'drop' else 'set to NaN'
    warnings.warn(
        f"Cover is undefined for {len(groups)} group(s) with a point count of 0 "
        f"and was {action}: {groups}",
        UndefinedCoverWarning,
        stacklevel=4
    )

    if on_undefined == 'drop':
        return summary[~undefined]
    return summary


def summarize_cover(
    points: pd.DataFrame,
    level: List[str],
    on_undefined: str = 'warn'
) -> pd.DataFrame:
    """
    Calculate percent cover for each group and indicator.

    percent = 100 * (number of pin drops where the indicator is present) / point_count

    Parameters
    ----------
    points : pd.DataFrame
        Output of any_hit_points or first_hit_points with the indicator added
    level : List[str]
        Columns defining a group
    on_undefined : str
        Policy for groups with a point count of 0 (see handle_undefined_cover)

    Returns
    -------
    pd.DataFrame
        Tall table with the level columns, indicator, point_count and percent
    """
    if points.empty:
        return pd.DataFrame(columns=level + [INDICATOR_COL, POINT_COUNT_COL, PERCENT_COL])

    # Distinct grouping values can render to the same indicator (1 and "1",
    # or "a.b"/"c" and "a"/"b.c"); a pin drop counts once per indicator
    points = (
        points.groupby(get_point_columns(level) + [INDICATOR_COL], dropna=False)
        .agg(present=('present', 'max'), point_count=(POINT_COUNT_COL, 'first'))
        .reset_index()
    )

    summary = (
        points.groupby(level + [INDICATOR_COL], dropna=False)
        .agg(n_present=('present', 'sum'), point_count=(POINT_COUNT_COL, 'first'))
        .reset_index()
    )

    # A zero denominator gives NaN rather than inf
    denominator = summary[POINT_COUNT_COL].replace(0, np.nan)
    summary[PERCENT_COL] = 100 * summary['n_present'] / denominator
    summary = summary.drop(columns=['n_present'])

    return handle_undefined_cover(summary, level, on_undefined)


def reshape_cover(summary: pd.DataFrame, level: List[str], tall: bool = False) -> pd.DataFrame:
    """
    Shape the cover table for output.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of summarize_cover
    level : List[str]
        Columns defining a group
    tall : bool
        If True, return one row per group and indicator that was observed.
        If False, return one row per group and one column per indicator,
        with 0 where an indicator was not observed in a group.

    Returns
    -------
    pd.DataFrame
        The cover table
    """
    summary = (
        summary[level + [INDICATOR_COL, PERCENT_COL]]
        .sort_values(level + [INDICATOR_COL])
        .reset_index(drop=True)
    )

    if tall:
        return summary

    if summary.empty:
        return pd.DataFrame(columns=level)

    wide = (
        summary.set_index(level + [INDICATOR_COL])[PERCENT_COL]
        .unstack(INDICATOR_COL, fill_value=0)
        .reset_index()
    )

    # Flatten column names
    wide.columns.name = None

    return wide


def _normalize_grouping_variables(grouping_variables: tuple) -> List[str]:
    if len(grouping_variables) == 1 and isinstance(grouping_variables[0], (list, tuple)):
        grouping_variables = tuple(grouping_variables[0])

    if len(grouping_variables) == 0:
        raise InvalidConfigurationError("At least one grouping variable is required")

    return list(grouping_variables)


def pct_cover(
    lpi_tall: pd.DataFrame,
    *grouping_variables: str,
    tall: bool = False,
    hit: str = 'any',
    by_year: bool = False,
    by_line: bool = False,
    on_undefined: str = 'warn'
) -> pd.DataFrame:
    """
    Calculate percent cover by plot for variables or combinations of variables.

    Cover is calculated for every combination of the requested variables, so
    grouping by GrowthHabitSub and Duration gives indicators like
    Graminoid.Perennial, Graminoid.Annual and Shrub.Perennial, while grouping
    by code gives one indicator per species code. Groupings where every
    variable value was missing are dropped.

    Steps:
    1. Drop layers with no recorded hit (code NaN, "" or "None")
    2. Count the pin drops in each plot (or plot-line, or plot-year)
    3. Put layers in canopy order
    4. Find presence per pin drop: any layer ('any'), top-most hit ('first'),
       or SoilSurface only ('basal')
    5. Combine the grouping values into indicators and drop the all-missing ones
    6. Divide by the point count and reshape

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table, one row per pin drop and layer
    *grouping_variables : str
        One or more column names to calculate cover for, or a single list
        of them. Order sets the order within the indicator names.
    tall : bool
        If True, return a tall table with no rows for groupings that were not
        observed in a plot. Defaults to False (wide, zero-filled).
    hit : str
        'any' counts a hit anywhere in the canopy column, so one pin drop can
        count towards several groupings. 'first' counts only the top-most hit.
        'basal' counts only the SoilSurface layer. Defaults to 'any'.
    by_year : bool
        Whether to report each survey year (from FormDate) separately
    by_line : bool
        Whether to report each line (LineKey, LineID) separately
    on_undefined : str
        What to do with groups whose point count is 0: 'warn' (NaN percent
        and an UndefinedCoverWarning), 'drop', or 'raise'

    Returns
    -------
    pd.DataFrame
        Percent cover with the level columns (Year, SiteKey, SiteID, SiteName,
        PlotKey, PlotID, LineKey, LineID as requested) and either one column
        per indicator or indicator and percent columns

    Raises
    ------
    InvalidConfigurationError
        If hit or on_undefined is not recognised, or no grouping variable is given
    SchemaViolationError
        If lpi_tall is missing a required column
    UndefinedCoverError
        If on_undefined is 'raise' and a group has a point count of 0
    """
    grouping_variables = _normalize_grouping_variables(grouping_variables)

    if hit not in HIT_MODES:
        raise InvalidConfigurationError(
            f"Unknown hit '{hit}', expected one of: {', '.join(HIT_MODES)}"
        )
    if on_undefined not in UNDEFINED_POLICIES:
        raise InvalidConfigurationError(
            f"Unknown on_undefined '{on_undefined}', expected one of: {', '.join(UNDEFINED_POLICIES)}"
        )

    validate_lpi_tall(lpi_tall, grouping_variables, by_year=by_year)

    level = get_level_columns(by_line=by_line, by_year=by_year)

    df = drop_no_hit_records(lpi_tall)
    if by_year:
        df[YEAR_COL] = extract_year_from_form_date(df[DATE_COL])

    df = add_point_counts(df, level)
    df = drop_unnumbered_points(df)
    df = order_layers(df)

    if hit == 'basal':
        # Point counts above still include every pin drop
        df = df[df[LAYER_COL] == SOIL_SURFACE]
        points = any_hit_points(df, level, grouping_variables)
    elif hit == 'any':
        points = any_hit_points(df, level, grouping_variables)
    else:
        points = first_hit_points(df, level, grouping_variables)

    points = add_indicator(points, grouping_variables)
    summary = summarize_cover(points, level, on_undefined)

    return reshape_cover(summary, level, tall=tall)
