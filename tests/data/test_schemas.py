"""Tests for sample and facility validation."""

import numpy as np
import pandas as pd
import pytest

from microplastics.data import validate_facilities, validate_samples


def test_valid_samples_pass(samples):
    records = validate_samples(samples)
    assert len(records) == len(samples)
    assert records[0].site == "S000"
    assert records[0].date.isoformat() == "2023-01-01"


def test_missing_values_allowed(samples):
    df = samples.copy()
    df.loc[0, "turbidity"] = np.nan
    df.loc[1, "date"] = pd.NaT
    records = validate_samples(df)
    assert records[0].turbidity is None
    assert records[1].date is None


def test_bad_latitude_rejected(samples):
    df = samples.copy()
    df.loc[3, "latitude"] = 123.0
    with pytest.raises(ValueError, match=r"\[3\]"):
        validate_samples(df)


def test_negative_concentration_rejected(samples):
    df = samples.copy()
    df.loc[[2, 5], "particle_concentration"] = -1.0
    with pytest.raises(ValueError, match=r"\[2, 5\]"):
        validate_samples(df)


def test_numeric_site_ids_become_strings():
    df = pd.DataFrame({"site": [101, 102], "latitude": [28.0, 28.1], "longitude": [-82.0, -82.1]})
    records = validate_samples(df)
    assert [r.site for r in records] == ["101", "102"]


def test_validate_facilities(facilities):
    assert [f.name for f in validate_facilities(facilities)] == ["North WRF", "South WRF"]

    bad = facilities.assign(longitude=[-82.5, -200.0])
    with pytest.raises(ValueError, match="Invalid facility"):
        validate_facilities(bad)
