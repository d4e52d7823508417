"""Column definitions for the water-sample tables.

One row per water sample. Identifier columns locate a sample in space and
time and are dropped before modeling; the predictors are the auxiliary
variables joined or measured for each site.

Join keys:
- ZIP_KEY: five-character ZIP code (population by ZIP)
- TRACT_KEY: 11-digit census tract FIPS code (population and land use by tract)
- SITE_KEY: site identifier (geocoded ZIP lookups)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


OUTCOME = "particle_concentration"

# Dropped before modeling
ID_COLUMNS = ["site", "latitude", "longitude", "date"]

SITE_KEY = "site"
ZIP_KEY = "zip"
TRACT_KEY = "tract_fips"

NUMERIC_FEATURES = [
    # Field and lab measurements
    "visual_score",
    "turbidity",
    "temperature",
    "ecoli",
    # Joined auxiliary variables
    "facility_distance_km",
    "population",
    "landuse_developed",
    "landuse_agriculture",
    "landuse_forest",
    "landuse_wetland",
]

CATEGORICAL_FEATURES = [
    "water_body",
]

FEATURE_COLUMNS = NUMERIC_FEATURES + CATEGORICAL_FEATURES

# Land-use proportion columns produced by the tract table
LANDUSE_COLUMNS = [c for c in NUMERIC_FEATURES if c.startswith("landuse_")]


@dataclass
class FeatureConfig:
    """Which columns a modeling run uses."""

    outcome: str = OUTCOME
    id_columns: List[str] = field(default_factory=lambda: ID_COLUMNS.copy())
    feature_cols: List[str] = field(default_factory=lambda: FEATURE_COLUMNS.copy())

    def present(self, columns) -> List[str]:
        """Feature columns that actually exist in a frame."""
        return [c for c in self.feature_cols if c in columns]
