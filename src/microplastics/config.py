"""Centralized configuration for the microplastics analysis.

All paths, resampling settings, and service endpoints in one place.
Environment variables can override defaults.

Path Constants:
    PROJECT_ROOT - Root directory of the project
    STORAGE_DIR - Storage for cached datasets and artifacts
    DATA_DIR - Cached sample and auxiliary tables (overridable)
    RESULTS_DIR - Plots, comparison tables, metrics (overridable)
    MODELS_DIR - Fitted model artifacts

Resampling Constants:
    RANDOM_SEED - Seed shared by the split, folds, and estimators
    TEST_PROPORTION - Share of rows held out for the final test
    CV_FOLDS / CV_REPEATS - Repeated k-fold settings
    STRATA_BINS - Quantile bins used to stratify the continuous outcome

Environment Variables:
    MICROPLASTICS_DATA_DIR - Override data directory
    MICROPLASTICS_RESULTS_DIR - Override results directory
    MICROPLASTICS_GEOCODER_URL - Reverse-geocoding endpoint
    MICROPLASTICS_GEOCODER_API_KEY - Reverse-geocoding credential
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root (src/microplastics/config.py -> microplastics -> src -> project_root)
PROJECT_ROOT = Path(__file__).parent.parent.parent
STORAGE_DIR = PROJECT_ROOT / "storage"

DATA_DIR = Path(os.environ.get("MICROPLASTICS_DATA_DIR", str(STORAGE_DIR / "data")))
RESULTS_DIR = Path(os.environ.get("MICROPLASTICS_RESULTS_DIR", str(STORAGE_DIR / "results")))
MODELS_DIR = STORAGE_DIR / "models"

# Default cached dataset (one of several snapshots in DATA_DIR)
DEFAULT_DATASET = "samples_model"

# Resampling
RANDOM_SEED = 42
TEST_PROPORTION = 0.25
CV_FOLDS = 10
CV_REPEATS = 5
STRATA_BINS = 4

# Reverse geocoding (archived ZIP lookup). The key is never stored in source.
GEOCODER_URL = os.environ.get(
    "MICROPLASTICS_GEOCODER_URL",
    "https://maps.googleapis.com/maps/api/geocode/json",
)
GEOCODER_API_KEY_ENV = "MICROPLASTICS_GEOCODER_API_KEY"
REQUEST_DELAY = 0.2
MAX_RETRIES = 5

# Earth radius for great-circle distances
EARTH_RADIUS_KM = 6371.0088
