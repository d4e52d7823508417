"""Model families and their tuning grids.

Each family is a scikit-learn Pipeline of a preprocessing step (dummy
encoding of categoricals, optional imputation and standardization) and a
regressor, plus a grid over the regressor's hyperparameters. Grid keys
use the Pipeline's "model__" prefix.

Families:
    linear  - Ordinary least squares (no tuning)
    lasso   - L1-penalized regression, standardized predictors
    tree    - CART decision tree with cost-complexity pruning
    forest  - Random forest
    boosted - LightGBM gradient-boosted trees

Key Functions:
    build_preprocessor() - ColumnTransformer for a predictor frame
    get_spec() - ModelSpec for a family
    list_families() - Available family names
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd
from lightgbm import LGBMRegressor
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestRegressor
from sklearn.impute import SimpleImputer
from sklearn.linear_model import Lasso, LinearRegression
from sklearn.pipeline import Pipeline as SkPipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.tree import DecisionTreeRegressor

from microplastics.config import RANDOM_SEED


@dataclass
class ModelSpec:
    """One model family ready for tuning.

    Attributes:
        name: Family name
        pipeline: Unfitted preprocessing + regressor Pipeline
        grid: Parameter grid (empty for untuned families)
        one_se_param: Parameter ordering configurations by simplicity,
            used by the one-standard-error selection rule
        one_se_larger_is_simpler: Direction of that ordering
    """

    name: str
    pipeline: SkPipeline
    grid: Dict[str, List[Any]] = field(default_factory=dict)
    one_se_param: Optional[str] = None
    one_se_larger_is_simpler: bool = True

    @property
    def n_candidates(self) -> int:
        n = 1
        for values in self.grid.values():
            n *= len(values)
        return n


def build_preprocessor(X: pd.DataFrame, scale: bool = False, impute: bool = True) -> ColumnTransformer:
    """Dummy-encode categoricals; optionally impute and standardize.

    With `scale`, numerics and dummy columns are both standardized.
    Unseen categories at predict time encode as the reference level.
    """
    num_cols = X.select_dtypes(include=[np.number, "bool"]).columns.tolist()
    cat_cols = [c for c in X.columns if c not in num_cols]

    num_steps = []
    if impute:
        num_steps.append(("impute", SimpleImputer(strategy="median")))
    if scale:
        num_steps.append(("scale", StandardScaler()))
    num_pipe = SkPipeline(num_steps) if num_steps else "passthrough"

    cat_steps = []
    if impute:
        cat_steps.append(("impute", SimpleImputer(strategy="most_frequent")))
    cat_steps.append((
        "dummy",
        OneHotEncoder(drop="first", handle_unknown="ignore", sparse_output=False),
    ))
    if scale:
        # Dummies on the same scale as numerics so coefficients compare
        cat_steps.append(("scale", StandardScaler()))

    transformers = []
    if num_cols:
        transformers.append(("num", num_pipe, num_cols))
    if cat_cols:
        transformers.append(("cat", SkPipeline(cat_steps), cat_cols))

    return ColumnTransformer(transformers, remainder="drop", verbose_feature_names_out=False)


def _linear(X: pd.DataFrame, seed: int, **_) -> ModelSpec:
    return ModelSpec(
        name="linear",
        pipeline=SkPipeline([("pre", build_preprocessor(X)), ("model", LinearRegression())]),
    )


def _lasso(X: pd.DataFrame, seed: int, **_) -> ModelSpec:
    return ModelSpec(
        name="lasso",
        pipeline=SkPipeline([
            ("pre", build_preprocessor(X, scale=True)),
            ("model", Lasso(max_iter=20000, random_state=seed)),
        ]),
        grid={"model__alpha": list(np.logspace(-10, 0, 50))},
        one_se_param="model__alpha",
        one_se_larger_is_simpler=True,
    )


def _tree(X: pd.DataFrame, seed: int, **_) -> ModelSpec:
    return ModelSpec(
        name="tree",
        pipeline=SkPipeline([
            ("pre", build_preprocessor(X)),
            ("model", DecisionTreeRegressor(random_state=seed)),
        ]),
        grid={
            "model__ccp_alpha": list(np.logspace(-10, -1, 4)),
            "model__max_depth": [1, 4, 8, 15],
            "model__min_samples_split": [2, 21, 40],
        },
        one_se_param="model__ccp_alpha",
        one_se_larger_is_simpler=True,
    )


def _forest(X: pd.DataFrame, seed: int, n_estimators: int = 1000, **_) -> ModelSpec:
    return ModelSpec(
        name="forest",
        pipeline=SkPipeline([
            ("pre", build_preprocessor(X)),
            ("model", RandomForestRegressor(
                n_estimators=n_estimators, random_state=seed, n_jobs=-1,
            )),
        ]),
        grid={
            "model__max_features": [0.33, 0.5, 0.75, 1.0],
            "model__min_samples_leaf": [1, 3, 5, 10],
        },
        one_se_param="model__min_samples_leaf",
        one_se_larger_is_simpler=True,
    )


def _boosted(X: pd.DataFrame, seed: int, n_estimators: int = 300, **_) -> ModelSpec:
    return ModelSpec(
        name="boosted",
        pipeline=SkPipeline([
            ("pre", build_preprocessor(X)),
            ("model", LGBMRegressor(
                n_estimators=n_estimators,
                min_child_samples=5,
                subsample=0.8,
                subsample_freq=5,
                colsample_bytree=0.8,
                random_state=seed,
                verbosity=-1,
            )),
        ]),
        grid={
            "model__num_leaves": [4, 8, 16],
            "model__learning_rate": [0.01, 0.05, 0.1],
        },
        one_se_param="model__num_leaves",
        one_se_larger_is_simpler=False,
    )


FAMILIES: Dict[str, Callable[..., ModelSpec]] = {
    "linear": _linear,
    "lasso": _lasso,
    "tree": _tree,
    "forest": _forest,
    "boosted": _boosted,
}

# Families run by default (boosted is opt-in)
DEFAULT_FAMILIES = ["linear", "lasso", "tree", "forest"]


def list_families() -> List[str]:
    return list(FAMILIES.keys())


def get_spec(
    name: str,
    X: pd.DataFrame,
    seed: int = RANDOM_SEED,
    grid: Optional[Dict[str, List[Any]]] = None,
    **kwargs,
) -> ModelSpec:
    """Build the ModelSpec for a family.

    Args:
        name: One of list_families()
        X: Predictor frame (column types drive the preprocessor)
        seed: Random seed for stochastic estimators
        grid: Replacement grid (e.g. a smaller one for quick runs)
        **kwargs: Family options (n_estimators for forest/boosted)

    Raises:
        ValueError: If the family is unknown.
    """
    if name not in FAMILIES:
        raise ValueError(f"Unknown model family: {name}. Must be one of: {list_families()}")

    spec = FAMILIES[name](X, seed, **kwargs)
    if grid is not None:
        spec.grid = dict(grid)
    return spec
