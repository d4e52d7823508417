"""Train/test split and repeated k-fold partitions.

The outcome is continuous, so stratification uses quantile bins of the
outcome. Bins are merged (fewer quantiles) until every bin has enough rows
for the requested partitioning; with too few rows stratification is
dropped altogether.

Key Classes:
    Split - Container for the train/test frames
    Folds - Repeated k-fold index pairs bound to one training frame

Key Functions:
    strata_bins() - Quantile bins of a continuous outcome
    initial_split() - Stratified train/test split
    make_folds() - Stratified repeated k-fold partitions

Usage:
    from microplastics.models.splits import initial_split, make_folds

    split = initial_split(df, "particle_concentration")
    folds = make_folds(split.train, "particle_concentration")
    folds.check(split.train)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import RepeatedKFold, RepeatedStratifiedKFold, train_test_split

from microplastics.config import CV_FOLDS, CV_REPEATS, RANDOM_SEED, STRATA_BINS, TEST_PROPORTION


def strata_bins(y, n_bins: int = STRATA_BINS, min_count: int = 2) -> Optional[np.ndarray]:
    """Quantile bin label per row, or None if stratifying is not possible.

    Args:
        y: Continuous outcome values
        n_bins: Preferred number of quantile bins
        min_count: Rows every bin must hold

    Returns:
        Integer bin labels, or None when even two bins are too small.
    """
    y = pd.Series(np.asarray(y, dtype=float))
    if y.nunique() < 2:
        return None
    for bins in range(n_bins, 1, -1):
        labels = pd.qcut(y, q=bins, labels=False, duplicates="drop")
        counts = labels.value_counts()
        if len(counts) > 1 and counts.min() >= min_count:
            return labels.to_numpy(dtype=int)
    return None


@dataclass
class Split:
    """Container for the train/test partition."""

    train: pd.DataFrame
    test: pd.DataFrame
    stratified: bool = True

    @property
    def summary(self) -> Dict[str, int]:
        return {"train_rows": len(self.train), "test_rows": len(self.test)}

    def print_summary(self) -> None:
        strat = "stratified" if self.stratified else "unstratified"
        print(f"Split ({strat}):")
        print(f"  Train: {len(self.train):,} rows")
        print(f"  Test:  {len(self.test):,} rows")


def initial_split(
    df: pd.DataFrame,
    outcome: str,
    prop: float = 1 - TEST_PROPORTION,
    seed: int = RANDOM_SEED,
    n_bins: int = STRATA_BINS,
) -> Split:
    """Split rows into train/test, stratified by outcome quantiles.

    Args:
        df: Model-ready frame
        outcome: Outcome column to stratify on
        prop: Share of rows kept for training
        seed: Random seed

    Returns:
        Split with reindexed train and test frames.
    """
    if outcome not in df.columns:
        raise ValueError(f"Missing outcome column '{outcome}'")
    if not 0 < prop < 1:
        raise ValueError(f"prop must be in (0, 1), got {prop}")
    if len(df) < 4:
        raise ValueError(f"Need at least 4 rows to split, got {len(df)}")

    # Each side needs at least one row per bin
    n_train = int(np.floor(prop * len(df)))
    n_test = len(df) - n_train
    bins = strata_bins(df[outcome], n_bins=min(n_bins, n_train, n_test))
    train, test = train_test_split(
        df, train_size=prop, random_state=seed, stratify=bins,
    )
    return Split(
        train=train.reset_index(drop=True),
        test=test.reset_index(drop=True),
        stratified=bins is not None,
    )


@dataclass
class Folds:
    """Repeated k-fold partitions over one training frame.

    Attributes:
        splits: (train_idx, validation_idx) positional index pairs
        n_rows: Row count of the frame the folds were built for
        n_folds / n_repeats: Partitioning shape
    """

    splits: List[Tuple[np.ndarray, np.ndarray]]
    n_rows: int
    n_folds: int
    n_repeats: int
    stratified: bool = True
    row_ids: Optional[np.ndarray] = field(default=None, repr=False)

    def __len__(self) -> int:
        return len(self.splits)

    def __iter__(self):
        return iter(self.splits)

    def check(self, df: pd.DataFrame) -> None:
        """Raise if these folds were built for a different frame.

        Folds are positional; reusing them after rows are dropped or added
        silently mixes up observations.
        """
        if len(df) != self.n_rows:
            raise ValueError(
                f"Folds were built for {self.n_rows} rows but the frame has {len(df)}. "
                "Rebuild folds with make_folds()."
            )
        if self.row_ids is not None and not np.array_equal(df.index.to_numpy(), self.row_ids):
            raise ValueError("Folds were built for a different frame index. Rebuild folds with make_folds().")

    def repeat(self, r: int) -> List[Tuple[np.ndarray, np.ndarray]]:
        """Index pairs of one repeat (each row validated exactly once)."""
        if not 0 <= r < self.n_repeats:
            raise IndexError(f"Repeat {r} out of range 0..{self.n_repeats - 1}")
        return self.splits[r * self.n_folds:(r + 1) * self.n_folds]


def make_folds(
    train: pd.DataFrame,
    outcome: str,
    n_folds: int = CV_FOLDS,
    n_repeats: int = CV_REPEATS,
    seed: int = RANDOM_SEED,
    n_bins: int = STRATA_BINS,
) -> Folds:
    """Build stratified repeated k-fold partitions over the training frame."""
    if outcome not in train.columns:
        raise ValueError(f"Missing outcome column '{outcome}'")
    if n_folds < 2:
        raise ValueError(f"n_folds must be >= 2, got {n_folds}")
    if len(train) < n_folds:
        raise ValueError(f"Cannot make {n_folds} folds from {len(train)} rows")

    bins = strata_bins(train[outcome], n_bins=n_bins, min_count=n_folds)
    X = np.zeros((len(train), 1))
    if bins is not None:
        cv = RepeatedStratifiedKFold(n_splits=n_folds, n_repeats=n_repeats, random_state=seed)
        splits = list(cv.split(X, bins))
    else:
        cv = RepeatedKFold(n_splits=n_folds, n_repeats=n_repeats, random_state=seed)
        splits = list(cv.split(X))

    return Folds(
        splits=splits,
        n_rows=len(train),
        n_folds=n_folds,
        n_repeats=n_repeats,
        stratified=bins is not None,
        row_ids=train.index.to_numpy().copy(),
    )
