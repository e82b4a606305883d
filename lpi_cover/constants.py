"""
Constants used across the lpi-cover codebase.
"""

# Identifier columns of the tall LPI table, as produced by the gather step
SITE_KEYS = ['SiteKey', 'SiteID', 'SiteName']
PLOT_KEYS = ['PlotKey', 'PlotID']
LINE_ID = 'LineID'
LINE_KEYS = ['LineKey', LINE_ID]
POINT_KEY = 'PointNbr'

LAYER_COL = 'layer'
CODE_COL = 'code'
DATE_COL = 'FormDate'

# Columns added during the cover calculation
YEAR_COL = 'Year'
POINT_COUNT_COL = 'point_count'
INDICATOR_COL = 'indicator'
PERCENT_COL = 'percent'

# Canopy layers, top to bottom
TOP_CANOPY = 'TopCanopy'
LOWER_LAYERS = [f'Lower{i}' for i in range(1, 8)]
SOIL_SURFACE = 'SoilSurface'

# Code values that mean nothing was hit at a layer (NaN is handled separately)
NO_HIT_CODES = {'', 'None'}

# Supported ways of counting hits at a pin drop
HIT_MODES = ('any', 'first', 'basal')

# What to do with a group whose point count is zero
UNDEFINED_POLICIES = ('warn', 'raise', 'drop')

# Composite indicators are grouping values joined with this separator,
# missing values rendered as MISSING_LABEL
INDICATOR_SEP = '.'
MISSING_LABEL = 'NA'
