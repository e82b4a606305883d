"""
Data loading and preparation functions for tall Line-Point Intercept tables.
"""

import warnings
import pandas as pd
from pathlib import Path
from typing import Iterable, List

from ..constants import (
    SITE_KEYS,
    PLOT_KEYS,
    LINE_KEYS,
    POINT_KEY,
    LAYER_COL,
    CODE_COL,
    DATE_COL,
    TOP_CANOPY,
    LOWER_LAYERS,
    SOIL_SURFACE,
    NO_HIT_CODES,
)
from ..exceptions import SchemaViolationError

ID_COLS = SITE_KEYS + PLOT_KEYS + LINE_KEYS


def load_lpi_tall(path: str) -> pd.DataFrame:
    """
    Load a tall LPI table (one row per pin drop and layer) from disk.

    Parameters
    ----------
    path : str
        Path to a .csv or .pkl file holding the "layers" table produced by
        the upstream gather step

    Returns
    -------
    pd.DataFrame
        The tall LPI table with identifier columns as strings, PointNbr as a
        number and FormDate parsed as a datetime (where those columns exist)
    """
    lpi_path = Path(path)

    if not lpi_path.exists():
        raise FileNotFoundError(f"No LPI data file found at {lpi_path}")

    suffix = lpi_path.suffix.lower()
    if suffix == '.csv':
        df = pd.read_csv(lpi_path, dtype={col: str for col in ID_COLS})
    elif suffix in ('.pkl', '.pickle'):
        df = pd.read_pickle(lpi_path)
    else:
        raise ValueError(f"Unsupported LPI file type '{suffix}', expected .csv or .pkl")

    if len(df) == 0:
        warnings.warn(f"LPI table at {lpi_path} has no records.")

    if POINT_KEY in df.columns:
        df[POINT_KEY] = pd.to_numeric(df[POINT_KEY], errors='coerce')
    if DATE_COL in df.columns:
        df[DATE_COL] = pd.to_datetime(df[DATE_COL], errors='coerce', format='mixed')

    return df


def validate_lpi_tall(
    df: pd.DataFrame,
    grouping_variables: Iterable[str],
    by_year: bool = False
) -> None:
    """
    Check that a tall LPI table has every column the cover calculation reads.

    Parameters
    ----------
    df : pd.DataFrame
        Tall LPI table
    grouping_variables : Iterable[str]
        Names of the columns the cover will be grouped by
    by_year : bool
        Whether FormDate is needed to derive the survey year

    Raises
    ------
    SchemaViolationError
        If one or more required columns are absent
    """
    required = ID_COLS + [POINT_KEY, LAYER_COL, CODE_COL]
    if by_year:
        required.append(DATE_COL)
    required += list(grouping_variables)

    missing = [col for col in dict.fromkeys(required) if col not in df.columns]
    if missing:
        raise SchemaViolationError(missing)


def is_no_hit(codes: pd.Series) -> pd.Series:
    """
    Flag code values that mean nothing was recorded at a layer.

    Parameters
    ----------
    codes : pd.Series
        The code column of a tall LPI table

    Returns
    -------
    pd.Series
        Boolean mask, True where the code is NaN, an empty string or "None"
    """
    return codes.isna() | codes.isin(list(NO_HIT_CODES))


def is_missing_value(values: pd.Series) -> pd.Series:
    """Boolean mask of grouping values that are NaN or an empty string."""
    return values.isna() | (values.astype(object) == '')


def drop_no_hit_records(df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop the layers where no hit was recorded.

    Parameters
    ----------
    df : pd.DataFrame
        Tall LPI table

    Returns
    -------
    pd.DataFrame
        Copy of the table without rows whose code is NaN, "" or "None"
    """
    return df[~is_no_hit(df[CODE_COL])].copy()


def extract_year_from_form_date(form_dates: pd.Series) -> pd.Series:
    """
    Extract the four-digit survey year from FormDate values.

    Unparseable or missing dates give <NA>, with a warning, since those
    records are reported under a Year of <NA>.

    Parameters
    ----------
    form_dates : pd.Series
        FormDate values, either datetimes or date strings

    Returns
    -------
    pd.Series
        Nullable integer series of years
    """
    dates = pd.to_datetime(form_dates, errors='coerce', format='mixed')
    years = dates.dt.year.astype('Int64')

    n_unparsed = int(years.isna().sum())
    if n_unparsed > 0:
        n_missing = int(is_missing_value(form_dates).sum())
        warnings.warn(
            f"{n_unparsed} {DATE_COL} value(s) could not be parsed as a date "
            f"({n_missing} missing, {n_unparsed - n_missing} unreadable); "
            f"their records are grouped under Year <NA>.",
            stacklevel=3
        )

    return years


def get_layer_order(layers: Iterable[str]) -> List[str]:
    """
    Get the canonical top-to-bottom order for the layers in the data.

    The order is TopCanopy, then whichever of Lower1..Lower7 appear, in
    numeric order, then SoilSurface.

    Parameters
    ----------
    layers : Iterable[str]
        Layer values observed in the data

    Returns
    -------
    List[str]
        Ordered layer names
    """
    present = set(pd.Series(list(layers), dtype=object).dropna())
    lower = [layer for layer in LOWER_LAYERS if layer in present]
    return [TOP_CANOPY] + lower + [SOIL_SURFACE]


def order_layers(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort records into canopy order, top layer first.

    The sort is stable, so rows on the same layer keep their input order.
    Layers not in the canonical order sort after SoilSurface.

    Parameters
    ----------
    df : pd.DataFrame
        Tall LPI table with a layer column

    Returns
    -------
    pd.DataFrame
        Reordered copy of the table
    """
    order = get_layer_order(df[LAYER_COL].unique())
    rank = {layer: i for i, layer in enumerate(order)}

    return df.sort_values(
        LAYER_COL,
        key=lambda layers: layers.map(rank).fillna(len(order)),
        kind='stable'
    )
