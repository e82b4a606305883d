"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- A builder for small tall LPI tables
- A single-line plot with one hit per point
- A multi-layer, multi-plot table
"""
import pytest
import numpy as np
import pandas as pd


DEFAULT_RECORD = {
    'SiteKey': 'S1',
    'SiteID': 'SITE1',
    'SiteName': 'Sagebrush Flat',
    'PlotKey': 'P1',
    'PlotID': 'PLOT1',
    'LineKey': 'L1',
    'LineID': '1',
    'FormDate': '2020-06-15',
}


def build_lpi(records):
    """Build a tall LPI table, filling identifier columns from DEFAULT_RECORD."""
    return pd.DataFrame([{**DEFAULT_RECORD, **record} for record in records])


@pytest.fixture
def make_lpi():
    """Factory for tall LPI tables from partial records."""
    return build_lpi


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def three_point_plot() -> pd.DataFrame:
    """One plot, one line, three pin drops with only a TopCanopy hit each."""
    return build_lpi([
        {'PointNbr': 1, 'layer': 'TopCanopy', 'code': 'POSE', 'GrowthHabit': 'Grass'},
        {'PointNbr': 2, 'layer': 'TopCanopy', 'code': 'PSSP6', 'GrowthHabit': 'Grass'},
        {'PointNbr': 3, 'layer': 'TopCanopy', 'code': 'ACMI2', 'GrowthHabit': 'Forb'},
    ])


@pytest.fixture
def layered_lpi() -> pd.DataFrame:
    """
    Two plots with several layers per pin drop.

    PLOT1 has two lines of 2 points each (4 points). PLOT2 has one line of
    4 points. Rows are deliberately not in canopy order.
    """
    plot1 = [
        # Line 1, point 1: shrub over grass over litter
        {'LineKey': 'L1', 'LineID': '1', 'PointNbr': 1, 'layer': 'SoilSurface', 'code': 'S',
         'GrowthHabitSub': np.nan, 'Duration': np.nan},
        {'LineKey': 'L1', 'LineID': '1', 'PointNbr': 1, 'layer': 'Lower1', 'code': 'POSE',
         'GrowthHabitSub': 'Graminoid', 'Duration': 'Perennial'},
        {'LineKey': 'L1', 'LineID': '1', 'PointNbr': 1, 'layer': 'TopCanopy', 'code': 'ARTR2',
         'GrowthHabitSub': 'Shrub', 'Duration': 'Perennial'},
        # Line 1, point 2: forb with unknown duration, then bare soil
        {'LineKey': 'L1', 'LineID': '1', 'PointNbr': 2, 'layer': 'TopCanopy', 'code': 'AF01',
         'GrowthHabitSub': 'Forb', 'Duration': np.nan},
        {'LineKey': 'L1', 'LineID': '1', 'PointNbr': 2, 'layer': 'SoilSurface', 'code': 'S',
         'GrowthHabitSub': np.nan, 'Duration': np.nan},
        # Line 2, point 1: nothing in the canopy, rock at the surface
        {'LineKey': 'L2', 'LineID': '2', 'PointNbr': 1, 'layer': 'TopCanopy', 'code': 'None',
         'GrowthHabitSub': np.nan, 'Duration': np.nan},
        {'LineKey': 'L2', 'LineID': '2', 'PointNbr': 1, 'layer': 'SoilSurface', 'code': 'R',
         'GrowthHabitSub': np.nan, 'Duration': np.nan},
        # Line 2, point 2: annual grass in Lower2 under a perennial grass
        {'LineKey': 'L2', 'LineID': '2', 'PointNbr': 2, 'layer': 'Lower2', 'code': 'BRTE',
         'GrowthHabitSub': 'Graminoid', 'Duration': 'Annual'},
        {'LineKey': 'L2', 'LineID': '2', 'PointNbr': 2, 'layer': 'TopCanopy', 'code': 'PSSP6',
         'GrowthHabitSub': 'Graminoid', 'Duration': 'Perennial'},
        {'LineKey': 'L2', 'LineID': '2', 'PointNbr': 2, 'layer': 'SoilSurface', 'code': 'PSSP6',
         'GrowthHabitSub': 'Graminoid', 'Duration': 'Perennial'},
    ]
    plot2 = [
        {'PointNbr': point, 'layer': 'TopCanopy', 'code': 'ARTR2',
         'GrowthHabitSub': 'Shrub', 'Duration': 'Perennial'}
        for point in (1, 2, 3)
    ] + [
        {'PointNbr': point, 'layer': 'SoilSurface', 'code': 'S',
         'GrowthHabitSub': np.nan, 'Duration': np.nan}
        for point in (1, 2, 3, 4)
    ]
    for record in plot2:
        record.update({'PlotKey': 'P2', 'PlotID': 'PLOT2', 'LineKey': 'L3', 'LineID': '1'})

    return build_lpi(plot1 + plot2)
