"""Models module - splits, model families, and the null baseline.

This module contains:
- splits: Stratified train/test split and repeated k-fold partitions
- specs: Model families (linear, lasso, tree, forest, boosted) and grids
- baseline: Mean-only null model
"""

from microplastics.models.baseline import null_model, predict_baseline
from microplastics.models.splits import Folds, Split, initial_split, make_folds, strata_bins
from microplastics.models.specs import (
    DEFAULT_FAMILIES,
    ModelSpec,
    build_preprocessor,
    get_spec,
    list_families,
)

__all__ = [
    # Baseline
    "null_model",
    "predict_baseline",
    # Resampling
    "Split",
    "Folds",
    "initial_split",
    "make_folds",
    "strata_bins",
    # Families
    "ModelSpec",
    "DEFAULT_FAMILIES",
    "build_preprocessor",
    "get_spec",
    "list_families",
]
