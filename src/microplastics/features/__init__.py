"""Feature module - column definitions and table joins.

Public API:
    Wrangler - Join auxiliary tables and prepare the model frame
    FeatureConfig - Which columns a run uses
    OUTCOME, FEATURE_COLUMNS - Column names
"""

from microplastics.features.definitions import (
    CATEGORICAL_FEATURES,
    FEATURE_COLUMNS,
    ID_COLUMNS,
    NUMERIC_FEATURES,
    OUTCOME,
    FeatureConfig,
)
from microplastics.features.wrangler import Wrangler, haversine_km, normalize_tract, normalize_zip

__all__ = [
    "Wrangler",
    "haversine_km",
    "normalize_zip",
    "normalize_tract",
    "FeatureConfig",
    "OUTCOME",
    "ID_COLUMNS",
    "NUMERIC_FEATURES",
    "CATEGORICAL_FEATURES",
    "FEATURE_COLUMNS",
]
