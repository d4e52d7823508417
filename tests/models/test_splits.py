"""Tests for train/test splitting and repeated folds."""

import numpy as np
import pandas as pd
import pytest

from microplastics.models import Folds, initial_split, make_folds, strata_bins

OUTCOME = "particle_concentration"


class TestStrataBins:

    def test_quartiles(self):
        bins = strata_bins(np.arange(100), n_bins=4)
        assert sorted(set(bins)) == [0, 1, 2, 3]
        assert np.bincount(bins).tolist() == [25, 25, 25, 25]

    def test_reduces_bins_when_small(self):
        bins = strata_bins(np.arange(10), n_bins=4, min_count=4)
        assert len(set(bins)) == 2

    def test_constant_outcome_is_none(self):
        assert strata_bins(np.ones(20)) is None


class TestInitialSplit:

    def test_proportions(self, model_frame):
        split = initial_split(model_frame, OUTCOME, prop=0.75, seed=1)
        assert len(split.train) == 60
        assert len(split.test) == 20
        assert split.stratified
        assert split.summary == {"train_rows": 60, "test_rows": 20}

    def test_disjoint_and_complete(self, samples):
        split = initial_split(samples, OUTCOME)
        sites = set(split.train["site"]) | set(split.test["site"])
        assert sites == set(samples["site"])
        assert not set(split.train["site"]) & set(split.test["site"])

    def test_reproducible(self, model_frame):
        a = initial_split(model_frame, OUTCOME, seed=7)
        b = initial_split(model_frame, OUTCOME, seed=7)
        pd.testing.assert_frame_equal(a.train, b.train)

    def test_stratification_balances_outcome(self, model_frame):
        split = initial_split(model_frame, OUTCOME, seed=3)
        # Each quartile of the full outcome keeps ~25% of the test rows
        cuts = model_frame[OUTCOME].quantile([0.25, 0.5, 0.75]).to_numpy()
        counts = np.bincount(np.searchsorted(cuts, split.test[OUTCOME]), minlength=4)
        assert counts.min() >= 4

    def test_missing_outcome_raises(self, model_frame):
        with pytest.raises(ValueError, match="Missing outcome"):
            initial_split(model_frame.drop(columns=[OUTCOME]), OUTCOME)

    def test_bad_prop_raises(self, model_frame):
        with pytest.raises(ValueError, match="prop"):
            initial_split(model_frame, OUTCOME, prop=1.0)

    def test_too_few_rows_raises(self, model_frame):
        with pytest.raises(ValueError, match="at least 4"):
            initial_split(model_frame.head(3), OUTCOME)


class TestMakeFolds:

    def test_shape(self, model_frame):
        folds = make_folds(model_frame, OUTCOME, n_folds=5, n_repeats=2, seed=0)
        assert isinstance(folds, Folds)
        assert len(folds) == 10
        assert folds.stratified

    def test_each_repeat_partitions_rows(self, model_frame):
        folds = make_folds(model_frame, OUTCOME, n_folds=5, n_repeats=3)
        for r in range(3):
            held_out = np.concatenate([val for _, val in folds.repeat(r)])
            assert sorted(held_out.tolist()) == list(range(len(model_frame)))

    def test_train_and_validation_disjoint(self, model_frame):
        folds = make_folds(model_frame, OUTCOME, n_folds=4, n_repeats=1)
        for train_idx, val_idx in folds:
            assert not set(train_idx) & set(val_idx)

    def test_repeat_out_of_range(self, model_frame):
        folds = make_folds(model_frame, OUTCOME, n_folds=4, n_repeats=1)
        with pytest.raises(IndexError):
            folds.repeat(1)

    def test_check_detects_stale_folds(self, model_frame):
        folds = make_folds(model_frame, OUTCOME, n_folds=4, n_repeats=1)
        folds.check(model_frame)

        with pytest.raises(ValueError, match="Rebuild folds"):
            folds.check(model_frame.iloc[:-1])
        with pytest.raises(ValueError, match="Rebuild folds"):
            folds.check(model_frame.sample(frac=1.0, random_state=0))

    def test_unstratified_fallback(self):
        df = pd.DataFrame({OUTCOME: np.ones(12), "x": np.arange(12.0)})
        folds = make_folds(df, OUTCOME, n_folds=3, n_repeats=1)
        assert not folds.stratified
        assert len(folds) == 3

    def test_too_many_folds_raises(self, model_frame):
        with pytest.raises(ValueError, match="Cannot make"):
            make_folds(model_frame.head(5), OUTCOME, n_folds=10)

    def test_one_fold_raises(self, model_frame):
        with pytest.raises(ValueError, match="n_folds"):
            make_folds(model_frame, OUTCOME, n_folds=1)


class TestSmallSplits:

    @pytest.mark.parametrize("n_rows", [4, 5, 8])
    def test_small_frames_split(self, n_rows):
        df = pd.DataFrame({OUTCOME: np.arange(n_rows, dtype=float), "x": np.arange(n_rows)})
        split = initial_split(df, OUTCOME, prop=0.75, seed=0)
        assert len(split.train) + len(split.test) == n_rows
        assert len(split.test) >= 1

    def test_eight_rows_stratify_into_two_bins(self):
        df = pd.DataFrame({OUTCOME: np.arange(8, dtype=float)})
        split = initial_split(df, OUTCOME, prop=0.75, seed=0)
        assert len(split.train) == 6
        assert len(split.test) == 2
        assert split.stratified
        # One test row from each half of the outcome
        assert sorted(split.test[OUTCOME] < 4) == [False, True]

    def test_single_test_row_is_unstratified(self):
        df = pd.DataFrame({OUTCOME: np.arange(4, dtype=float)})
        split = initial_split(df, OUTCOME, prop=0.75, seed=0)
        assert len(split.test) == 1
        assert not split.stratified
