"""
Shared fixtures: synthetic monthly series and the NVDA-like fixture CSV
"""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

FIXTURES = Path(__file__).parent / "fixtures"

SEASONAL_AMPLITUDE = 10.0


def monthly_index(n: int, start: str = "2015-01-01") -> pd.DatetimeIndex:
    return pd.date_range(start, periods=n, freq="MS", name="ds")


@pytest.fixture
def linear_series() -> pd.Series:
    """Strictly increasing line, no noise (n=60)"""
    t = np.arange(60, dtype=float)
    return pd.Series(10.0 + 2.0 * t, index=monthly_index(60), name="adjusted_close")


@pytest.fixture
def seasonal_series() -> pd.Series:
    """Trend + additive sine season (period 12, amplitude 10) + small noise (n=120)"""
    rng = np.random.default_rng(0)
    t = np.arange(120, dtype=float)
    values = (
        100.0
        + 0.5 * t
        + SEASONAL_AMPLITUDE * np.sin(2 * np.pi * t / 12)
        + rng.normal(0, 0.5, size=120)
    )
    return pd.Series(values, index=monthly_index(120), name="adjusted_close")


@pytest.fixture
def random_walk() -> pd.Series:
    """Gaussian random walk around 100 (n=120)"""
    rng = np.random.default_rng(42)
    values = 100.0 + np.cumsum(rng.normal(0, 2, size=120))
    return pd.Series(values, index=monthly_index(120), name="adjusted_close")


@pytest.fixture
def white_noise() -> pd.Series:
    rng = np.random.default_rng(7)
    return pd.Series(rng.normal(0, 1, size=200), index=monthly_index(200, "2000-01-01"), name="noise")


@pytest.fixture
def fixture_csv() -> Path:
    """Yahoo-style monthly export, 2015-01 .. 2024-12 (120 rows)"""
    return FIXTURES / "nvda_monthly.csv"
