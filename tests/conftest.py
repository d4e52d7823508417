"""Pytest fixtures/config for microplastics tests."""

import os
import sys

import numpy as np
import pandas as pd
import pytest


def pytest_sessionstart(session) -> None:  # type: ignore[unused-argument]
    repo_root = os.path.dirname(os.path.dirname(__file__))
    src_path = os.path.join(repo_root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture
def samples():
    """Synthetic water samples: concentration driven by distance, turbidity, ecoli."""
    rng = np.random.default_rng(0)
    n = 80
    distance = rng.uniform(0.5, 30.0, n)
    turbidity = rng.gamma(2.0, 5.0, n)
    ecoli = rng.poisson(200, n).astype(float)
    water_body = rng.choice(["river", "lake", "canal"], n)
    concentration = (
        40.0
        - 1.0 * distance
        + 0.8 * turbidity
        + 0.02 * ecoli
        + np.where(water_body == "river", 5.0, 0.0)
        + rng.normal(0, 2.0, n)
    ).clip(min=0)

    return pd.DataFrame({
        "site": [f"S{i:03d}" for i in range(n)],
        "latitude": rng.uniform(27.8, 28.6, n),
        "longitude": rng.uniform(-82.8, -82.2, n),
        "date": pd.date_range("2023-01-01", periods=n, freq="D"),
        "particle_concentration": concentration,
        "visual_score": rng.integers(1, 6, n).astype(float),
        "turbidity": turbidity,
        "temperature": rng.normal(24, 3, n),
        "ecoli": ecoli,
        "facility_distance_km": distance,
        "water_body": water_body,
    })


@pytest.fixture
def model_frame(samples):
    """Samples with identifiers dropped."""
    return samples.drop(columns=["site", "latitude", "longitude", "date"])


@pytest.fixture
def facilities():
    return pd.DataFrame({
        "name": ["North WRF", "South WRF"],
        "latitude": [28.5, 27.9],
        "longitude": [-82.5, -82.5],
    })
