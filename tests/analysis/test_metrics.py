"""Tests for prediction metrics."""

import numpy as np
import pytest

from microplastics.analysis import evaluate_predictions, residuals, rmse


def test_rmse():
    assert rmse([0.0, 0.0], [3.0, 4.0]) == pytest.approx(np.sqrt(12.5))


def test_residuals_sign():
    assert residuals([5.0, 2.0], [4.0, 3.0]).tolist() == [1.0, -1.0]


def test_residuals_length_mismatch():
    with pytest.raises(ValueError, match="Length mismatch"):
        residuals([1.0, 2.0], [1.0])


def test_perfect_predictions():
    m = evaluate_predictions([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])
    assert m.rmse == 0.0
    assert m.mae == 0.0
    assert m.r2 == pytest.approx(1.0)
    assert m.n_samples == 3


def test_nan_pairs_ignored():
    m = evaluate_predictions([1.0, np.nan, 3.0], [2.0, 5.0, np.nan])
    assert m.n_samples == 1
    assert m.mae == 1.0


def test_empty_and_constant_outcome():
    assert evaluate_predictions([], []).n_samples == 0
    # Constant outcome: R² reported as 0 rather than undefined
    assert evaluate_predictions([2.0, 2.0], [1.0, 3.0]).r2 == 0.0


def test_to_dict_rounds():
    m = evaluate_predictions([1.0, 2.0, 4.0], [1.5, 2.0, 3.0])
    d = m.to_dict()
    assert set(d) == {"rmse", "mae", "r2", "n_samples"}
    assert d["mae"] == 0.5
