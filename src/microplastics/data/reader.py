"""Read-only access to cached sample and auxiliary tables.

Intermediate data frames are cached in the data directory under a short
name, in one of three formats. `.rds` snapshots come from earlier R
sessions; new snapshots are written as parquet.

Key Methods:
    load_dataset() - Load a cached frame by name
    list_datasets() - Names of cached frames
    load_zip_population() - Excel sheet of ZIP-code populations
    load_table() - Auxiliary CSV/parquet table with key normalization
    save_dataset() - Cache an intermediate frame as parquet

Usage:
    from microplastics.data import DataReader

    reader = DataReader()
    df = reader.load_dataset("samples_model")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
import pyreadr

from microplastics.config import DATA_DIR
from microplastics.features.definitions import TRACT_KEY, ZIP_KEY
from microplastics.features.wrangler import normalize_tract, normalize_zip

logger = logging.getLogger(__name__)

# Resolution order when a name exists in several formats
DATASET_SUFFIXES = (".rds", ".parquet", ".csv")


class DataReader:
    """Loader for cached analysis tables."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        if not self.data_dir.exists():
            raise FileNotFoundError(f"Data directory not found: {self.data_dir}")

    # -------------------------------------------------------------------------
    # Cached frames
    # -------------------------------------------------------------------------

    def resolve(self, name: str) -> Path:
        """Path of the cached frame called `name`."""
        for suffix in DATASET_SUFFIXES:
            path = self.data_dir / f"{name}{suffix}"
            if path.exists():
                return path
        raise FileNotFoundError(
            f"No cached dataset '{name}' in {self.data_dir} "
            f"(looked for {', '.join(DATASET_SUFFIXES)})"
        )

    def list_datasets(self) -> List[str]:
        """Names of all cached frames, sorted."""
        names = {
            p.stem for p in self.data_dir.iterdir()
            if p.is_file() and p.suffix in DATASET_SUFFIXES
        }
        return sorted(names)

    def load_dataset(self, name: str) -> pd.DataFrame:
        """Load a cached frame by name."""
        path = self.resolve(name)
        df = read_frame(path)
        logger.info(f"Loaded {name} ({path.suffix}): {len(df):,} rows, {len(df.columns)} columns")
        return df

    def save_dataset(self, df: pd.DataFrame, name: str) -> Path:
        """Cache a frame as parquet under `name`."""
        path = self.data_dir / f"{name}.parquet"
        df.to_parquet(path, index=False)
        logger.info(f"Saved {name}: {len(df):,} rows -> {path}")
        return path

    # -------------------------------------------------------------------------
    # Auxiliary tables
    # -------------------------------------------------------------------------

    def load_zip_population(
        self,
        path: Optional[Union[str, Path]] = None,
        sheet_name: Union[str, int] = 0,
        zip_col: str = "zip",
        population_col: str = "population",
    ) -> pd.DataFrame:
        """Load the ZIP-code population spreadsheet.

        Args:
            path: Excel file (default: data_dir/zip_population.xlsx)
            sheet_name: Sheet holding the table
            zip_col: Column with ZIP codes in the sheet
            population_col: Column with populations in the sheet

        Returns:
            DataFrame with columns [zip, population], ZIPs as 5-char strings.
        """
        path = Path(path) if path is not None else self.data_dir / "zip_population.xlsx"
        if not path.exists():
            raise FileNotFoundError(f"Missing {path}")

        raw = pd.read_excel(path, sheet_name=sheet_name, dtype={zip_col: str})
        missing = [c for c in (zip_col, population_col) if c not in raw.columns]
        if missing:
            raise ValueError(f"Missing columns in {path.name}: {missing}")

        df = pd.DataFrame({
            ZIP_KEY: raw[zip_col].map(normalize_zip),
            "population": pd.to_numeric(raw[population_col], errors="coerce"),
        })
        df = df.dropna(subset=[ZIP_KEY])
        logger.info(f"Loaded ZIP populations: {len(df):,} ZIP codes")
        return df

    def load_table(self, name: str) -> pd.DataFrame:
        """Load an auxiliary table by name, normalizing ZIP/tract keys."""
        df = self.load_dataset(name)
        if ZIP_KEY in df.columns:
            df[ZIP_KEY] = df[ZIP_KEY].map(normalize_zip)
        if TRACT_KEY in df.columns:
            df[TRACT_KEY] = df[TRACT_KEY].map(normalize_tract)
        return df


def read_frame(path: Union[str, Path]) -> pd.DataFrame:
    """Read one serialized frame, dispatching on suffix."""
    path = Path(path)
    if path.suffix == ".rds":
        result = pyreadr.read_r(str(path))
        # An .rds file holds exactly one object, keyed by None
        return next(iter(result.values()))
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported dataset format: {path.suffix}")
