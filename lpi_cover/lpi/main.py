"""
Main workflow orchestration for computing plot-level percent cover tables
from tall Line-Point Intercept data.
"""

import argparse
import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .data_loader import (
    load_lpi_tall,
    validate_lpi_tall,
    drop_no_hit_records,
    extract_year_from_form_date,
)
from .cover_calculator import (
    get_level_columns,
    get_point_columns,
    calculate_point_counts,
    pct_cover,
)
from ..constants import (
    SITE_KEYS,
    PLOT_KEYS,
    LINE_KEYS,
    DATE_COL,
    YEAR_COL,
    INDICATOR_COL,
    PERCENT_COL,
    HIT_MODES,
    UNDEFINED_POLICIES,
)
from ..exceptions import InvalidConfigurationError, LPICoverError


def summarize_point_counts(
    lpi_tall: pd.DataFrame,
    by_line: bool = False,
    by_year: bool = False
) -> pd.DataFrame:
    """
    Get the point count (cover denominator) for every plot, line or year.

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table
    by_line : bool
        Whether to count each line separately
    by_year : bool
        Whether to count each survey year separately

    Returns
    -------
    pd.DataFrame
        One row per group with the level columns and point_count
    """
    validate_lpi_tall(lpi_tall, [], by_year=by_year)

    df = drop_no_hit_records(lpi_tall)
    if by_year:
        df[YEAR_COL] = extract_year_from_form_date(df[DATE_COL])

    level = get_level_columns(by_line=by_line, by_year=by_year)
    return calculate_point_counts(df, level)


def melt_cover(wide: pd.DataFrame, level_columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Convert a wide cover table back to the tall form.

    Cells holding 0 are dropped, since the tall form has no rows for
    groupings that were not observed. NaN cells (undefined cover) are kept.

    Parameters
    ----------
    wide : pd.DataFrame
        Output of pct_cover with tall=False
    level_columns : List[str], optional
        Identifier columns of the table. Defaults to whichever of Year and
        the site, plot and line identifiers are present.

    Returns
    -------
    pd.DataFrame
        Tall table with the level columns, indicator and percent
    """
    if level_columns is None:
        known = [YEAR_COL] + SITE_KEYS + PLOT_KEYS + LINE_KEYS
        level_columns = [col for col in known if col in wide.columns]

    tall = wide.melt(id_vars=level_columns, var_name=INDICATOR_COL, value_name=PERCENT_COL)
    tall = tall[tall[PERCENT_COL] != 0]

    return tall.sort_values(level_columns + [INDICATOR_COL]).reset_index(drop=True)


def compute_cover_tables(
    lpi_tall: pd.DataFrame,
    indicator_sets: Dict[str, Sequence[str]],
    tall: bool = False,
    hit: str = 'any',
    by_year: bool = False,
    by_line: bool = False,
    on_undefined: str = 'warn',
    verbose: bool = True
) -> Dict:
    """
    Compute percent cover tables for several sets of grouping variables.

    This is the main workflow function that:
    1. Checks the options and that every requested column exists
    2. Computes the point counts used as denominators
    3. Computes one cover table per indicator set
    4. Collects summary metadata

    Parameters
    ----------
    lpi_tall : pd.DataFrame
        Tall LPI table, one row per pin drop and layer
    indicator_sets : Dict[str, Sequence[str]]
        Mapping of output name to grouping variables, e.g.
        {'species': ['code'], 'growth_habit': ['GrowthHabitSub', 'Duration']}
    tall : bool
        Whether to return tall rather than wide tables
    hit : str
        'any', 'first' or 'basal'
    by_year : bool
        Whether to report each survey year separately
    by_line : bool
        Whether to report each line separately
    on_undefined : str
        Policy for groups with a point count of 0: 'warn', 'drop' or 'raise'
    verbose : bool
        Whether to print progress messages

    Returns
    -------
    dict
        Dictionary with keys:
        - 'cover': dict of indicator set name to cover table
        - 'point_counts': point count per group
        - 'metadata': counts of sites, plots, lines, points and the options used
    """
    if not indicator_sets:
        raise InvalidConfigurationError("At least one indicator set is required")
    if hit not in HIT_MODES:
        raise InvalidConfigurationError(
            f"Unknown hit '{hit}', expected one of: {', '.join(HIT_MODES)}"
        )
    if on_undefined not in UNDEFINED_POLICIES:
        raise InvalidConfigurationError(
            f"Unknown on_undefined '{on_undefined}', expected one of: {', '.join(UNDEFINED_POLICIES)}"
        )

    all_variables = [var for variables in indicator_sets.values() for var in variables]
    validate_lpi_tall(lpi_tall, all_variables, by_year=by_year)

    if verbose:
        print(f"Computing '{hit}' hit cover for {len(indicator_sets)} indicator set(s)")
        print(f"  {len(lpi_tall)} LPI records")

    if verbose:
        print("  Counting pin drops...")
    point_counts = summarize_point_counts(lpi_tall, by_line=by_line, by_year=by_year)

    cover = {}
    for name, variables in indicator_sets.items():
        if verbose:
            print(f"  Computing cover for {name} ({', '.join(variables)})...")
        cover[name] = pct_cover(
            lpi_tall,
            list(variables),
            tall=tall,
            hit=hit,
            by_year=by_year,
            by_line=by_line,
            on_undefined=on_undefined
        )

    hits = drop_no_hit_records(lpi_tall)
    point_cols = get_point_columns(SITE_KEYS + PLOT_KEYS)

    metadata = {
        'hit': hit,
        'tall': tall,
        'by_year': by_year,
        'by_line': by_line,
        'indicator_sets': {name: list(variables) for name, variables in indicator_sets.items()},
        'n_records': len(lpi_tall),
        'n_hit_records': len(hits),
        'n_sites': lpi_tall[SITE_KEYS[0]].nunique(),
        'n_plots': lpi_tall[PLOT_KEYS[0]].nunique(),
        'n_lines': len(lpi_tall[PLOT_KEYS + LINE_KEYS].drop_duplicates()),
        'n_points': len(hits[point_cols].drop_duplicates()),
    }

    if verbose:
        print(f"  Done! Computed {len(cover)} cover table(s) for {metadata['n_plots']} plots.")

    return {
        'cover': cover,
        'point_counts': point_counts,
        'metadata': metadata,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command line entry point: compute cover for one tall LPI file.

    Example: python -m lpi_cover.lpi.main lpi_tall.csv GrowthHabitSub Duration --hit first

    Parameters
    ----------
    argv : Sequence[str], optional
        Arguments without the program name. Defaults to sys.argv[1:].

    Returns
    -------
    int
        Exit status, 0 on success and 1 if the cover could not be computed
    """
    parser = argparse.ArgumentParser(
        description="Compute plot-level percent cover from a tall LPI table."
    )
    parser.add_argument("lpi_file", help="Tall LPI table (.csv or .pkl)")
    parser.add_argument("variables", nargs="+", help="Grouping variables, e.g. GrowthHabitSub Duration")
    parser.add_argument("--hit", choices=HIT_MODES, default='any', help="Hit mode (default: any)")
    parser.add_argument("--tall", action="store_true", help="Write tall output instead of wide")
    parser.add_argument("--by-year", action="store_true", help="Report each survey year separately")
    parser.add_argument("--by-line", action="store_true", help="Report each line separately")
    parser.add_argument(
        "--on-undefined", choices=UNDEFINED_POLICIES, default='warn',
        help="Handling of plots with a point count of 0 (default: warn)"
    )
    parser.add_argument(
        "--output", default=None,
        help="CSV to write (default: <file stem>_cover_<variables>.csv beside the input)"
    )
    args = parser.parse_args(argv)

    lpi_path = Path(args.lpi_file)

    try:
        lpi_tall = load_lpi_tall(str(lpi_path))

        print(f"Computing {args.hit} hit cover for {', '.join(args.variables)} from {lpi_path}")
        cover = pct_cover(
            lpi_tall,
            args.variables,
            tall=args.tall,
            hit=args.hit,
            by_year=args.by_year,
            by_line=args.by_line,
            on_undefined=args.on_undefined,
        )
    except (FileNotFoundError, LPICoverError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print("\nCover preview:")
    print(cover.head(10))

    if args.output:
        output_file = Path(args.output)
    else:
        output_file = lpi_path.with_name(f"{lpi_path.stem}_cover_{'_'.join(args.variables)}.csv")
    cover.to_csv(output_file, index=False)
    print(f"\nResults saved to: {output_file}")

    return 0


if __name__ == "__main__":
    import sys

    sys.exit(main())
