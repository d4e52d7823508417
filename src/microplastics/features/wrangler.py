"""Data wrangling for the water-sample table.

Provides the Wrangler class for joining auxiliary tables onto samples and
preparing the model-ready frame. Each auxiliary table is joined by a single
key; keys must be unique on the auxiliary side. ZIP and tract keys are
normalized to zero-padded strings on both sides before joining.

Key Methods:
    get_model_ready_data() - Master orchestrator (joins -> distance -> missing -> drop ids)
    join_zip_population() - Population by ZIP code
    join_tract_population() - Population by census tract
    join_land_use() - Land-use proportions by census tract
    add_facility_distance() - Distance to nearest wastewater facility
    handle_missing() - Drop or keep rows with missing predictors
    drop_id_columns() - Remove site, coordinates, date

Usage:
    from microplastics.features import Wrangler

    wrangler = Wrangler()
    df = wrangler.get_model_ready_data(samples, facilities=facilities)
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np
import pandas as pd

from microplastics.config import EARTH_RADIUS_KM
from microplastics.features.definitions import (
    LANDUSE_COLUMNS,
    TRACT_KEY,
    ZIP_KEY,
    FeatureConfig,
)

MISSING_STRATEGIES = ("drop", "impute")


def normalize_zip(value) -> Optional[str]:
    """Five-character zero-padded ZIP code, or None for missing values."""
    if pd.isna(value):
        return None
    text = str(value).strip()
    if text.endswith(".0"):
        text = text[:-2]
    # ZIP+4 -> ZIP
    text = text.split("-")[0]
    return text.zfill(5)


def normalize_tract(value) -> Optional[str]:
    """Eleven-digit census tract FIPS code, or None for missing values."""
    if pd.isna(value):
        return None
    text = str(value).strip()
    if text.endswith(".0"):
        text = text[:-2]
    return text.zfill(11)


# Join keys arrive as ints, floats, or strings depending on the source file
KEY_NORMALIZERS = {ZIP_KEY: normalize_zip, TRACT_KEY: normalize_tract}


def haversine_km(lat1, lon1, lat2, lon2) -> np.ndarray:
    """Great-circle distance in km (broadcasts over arrays)."""
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    a = (
        np.sin((lat2 - lat1) / 2.0) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


class Wrangler:
    """Joins and cleaning steps that turn raw samples into a modeling frame."""

    def __init__(self, config: Optional[FeatureConfig] = None):
        self.config = config or FeatureConfig()

    def get_model_ready_data(
        self,
        samples: pd.DataFrame,
        zip_population: Optional[pd.DataFrame] = None,
        tract_population: Optional[pd.DataFrame] = None,
        land_use: Optional[pd.DataFrame] = None,
        facilities: Optional[pd.DataFrame] = None,
        missing: str = "drop",
    ) -> pd.DataFrame:
        """Master orchestrator: join, derive, clean, and drop identifiers.

        Only the auxiliary tables that are passed are joined. Population
        comes from the tract table when both population tables are given.

        Returns:
            Frame holding the outcome and every available predictor.
        """
        df = samples.copy()
        if zip_population is not None:
            df = self.join_zip_population(df, zip_population)
        if tract_population is not None:
            df = self.join_tract_population(df, tract_population)
        if land_use is not None:
            df = self.join_land_use(df, land_use)
        if facilities is not None:
            df = self.add_facility_distance(df, facilities)

        df = self.handle_missing(df, strategy=missing)
        df = self.drop_id_columns(df)

        keep = [self.config.outcome] + self.config.present(df.columns)
        return df[keep].reset_index(drop=True)

    # -------------------------------------------------------------------------
    # Joins
    # -------------------------------------------------------------------------

    @staticmethod
    def _left_join(df: pd.DataFrame, table: pd.DataFrame, key: str, columns: List[str]) -> pd.DataFrame:
        """Left join `columns` of `table` onto `df` by a unique key."""
        missing = [c for c in [key] + columns if c not in table.columns]
        if missing:
            raise ValueError(f"Auxiliary table missing columns: {missing}")
        if key not in df.columns:
            raise ValueError(f"Sample table has no join key '{key}'")

        # Joined columns replace any stale copies on the left
        left = df.drop(columns=[c for c in columns if c in df.columns])
        right = table[[key] + columns].copy()
        normalize = KEY_NORMALIZERS.get(key)
        if normalize is not None:
            left[key] = left[key].map(normalize).astype(object)
            right[key] = right[key].map(normalize).astype(object)
        right = right.dropna(subset=[key])

        dupes = right[key][right[key].duplicated()].unique().tolist()
        if dupes:
            raise ValueError(f"Duplicate join keys in '{key}': {dupes[:5]}")

        return left.merge(right, on=key, how="left", validate="many_to_one")

    def join_zip_population(self, df: pd.DataFrame, zip_population: pd.DataFrame) -> pd.DataFrame:
        """Attach ZIP-code population."""
        return self._left_join(df, zip_population, ZIP_KEY, ["population"])

    def join_tract_population(self, df: pd.DataFrame, tract_population: pd.DataFrame) -> pd.DataFrame:
        """Attach census-tract population."""
        return self._left_join(df, tract_population, TRACT_KEY, ["population"])

    def join_land_use(self, df: pd.DataFrame, land_use: pd.DataFrame) -> pd.DataFrame:
        """Attach land-use proportions for the sample's tract."""
        columns = [c for c in LANDUSE_COLUMNS if c in land_use.columns]
        if not columns:
            raise ValueError(f"Land-use table has none of {LANDUSE_COLUMNS}")
        return self._left_join(df, land_use, TRACT_KEY, columns)

    # -------------------------------------------------------------------------
    # Derived columns
    # -------------------------------------------------------------------------

    def add_facility_distance(
        self,
        df: pd.DataFrame,
        facilities: pd.DataFrame,
        lat_col: str = "latitude",
        lon_col: str = "longitude",
    ) -> pd.DataFrame:
        """Distance (km) from each sample to its nearest wastewater facility."""
        if facilities.empty:
            raise ValueError("Facility table is empty")
        for col in (lat_col, lon_col):
            if col not in df.columns or col not in facilities.columns:
                raise ValueError(f"Both tables need a '{col}' column")

        df = df.copy()
        sample_lat = df[lat_col].to_numpy(dtype=float)[:, None]
        sample_lon = df[lon_col].to_numpy(dtype=float)[:, None]
        fac_lat = facilities[lat_col].to_numpy(dtype=float)[None, :]
        fac_lon = facilities[lon_col].to_numpy(dtype=float)[None, :]

        # samples x facilities
        distances = haversine_km(sample_lat, sample_lon, fac_lat, fac_lon)
        df["facility_distance_km"] = distances.min(axis=1)
        if "name" in facilities.columns:
            df["nearest_facility"] = facilities["name"].to_numpy()[distances.argmin(axis=1)]
        return df

    # -------------------------------------------------------------------------
    # Cleaning
    # -------------------------------------------------------------------------

    def handle_missing(self, df: pd.DataFrame, strategy: str = "drop") -> pd.DataFrame:
        """Drop rows with a missing outcome, then apply the predictor strategy.

        "drop" removes rows with any missing predictor. "impute" keeps them
        for the model pipeline's imputer.
        """
        if strategy not in MISSING_STRATEGIES:
            raise ValueError(f"Unknown missing-value strategy: {strategy}. Use one of {MISSING_STRATEGIES}")
        if self.config.outcome not in df.columns:
            raise ValueError(f"Missing outcome column '{self.config.outcome}'")

        df = df.dropna(subset=[self.config.outcome])
        if strategy == "drop":
            df = df.dropna(subset=self.config.present(df.columns))
        return df

    def drop_id_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Remove identifier columns (site, coordinates, date)."""
        return df.drop(columns=[c for c in self.config.id_columns if c in df.columns])
