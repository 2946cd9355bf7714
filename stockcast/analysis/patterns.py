# file: stockcast/analysis/patterns.py
"""
Pattern diagnostics: ACF/PACF and STL decomposition.

Outputs are for inspection only; nothing downstream consumes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import STL
from statsmodels.tsa.stattools import acf, pacf

logger = logging.getLogger(__name__)


def autocorrelations(series: pd.Series, nlags: int = 24, z: float = 1.96) -> pd.DataFrame:
    """
    ACF and PACF up to nlags.

    Lags are capped at n // 2 - 1 so PACF stays defined. The confidence band
    is z / sqrt(n) (95% two-sided by default).

    Returns:
        DataFrame with columns [lag, acf, pacf, conf]
    """
    y = pd.to_numeric(series, errors="coerce").dropna()
    n = len(y)
    if n < 5:
        raise ValueError(f"Too few observations for ACF/PACF: {n}")

    lag_cap = max(1, min(int(nlags), n // 2 - 1))

    acf_vals = acf(y.to_numpy(), nlags=lag_cap, fft=True)
    pacf_vals = pacf(y.to_numpy(), nlags=lag_cap, method="ywmle")

    out = pd.DataFrame({
        "lag": np.arange(lag_cap + 1),
        "acf": acf_vals[: lag_cap + 1],
        "pacf": pacf_vals[: lag_cap + 1],
    })
    out["conf"] = float(z) / float(np.sqrt(n))

    logger.debug(f"[patterns] acf/pacf computed up to lag={lag_cap} (n={n})")
    return out


@dataclass
class DecompositionResult:
    """Additive STL components (each the length of the input)"""
    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    remainder: pd.Series
    period: int

    @property
    def trend_strength(self) -> float:
        """max(0, 1 - var(R) / var(T + R))"""
        return _strength(self.remainder, self.trend + self.remainder)

    @property
    def seasonal_strength(self) -> float:
        """max(0, 1 - var(R) / var(S + R))"""
        return _strength(self.remainder, self.seasonal + self.remainder)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "observed": self.observed,
            "trend": self.trend,
            "seasonal": self.seasonal,
            "remainder": self.remainder,
        })


def _strength(remainder: pd.Series, combined: pd.Series) -> float:
    denom = float(np.var(combined))
    if denom <= 0:
        return 0.0
    return max(0.0, 1.0 - float(np.var(remainder)) / denom)


def decompose(series: pd.Series, period: int = 12) -> DecompositionResult:
    """
    Additive seasonal-trend decomposition with a periodic seasonal window.

    A periodic window holds the seasonal pattern fixed across years
    (seasonal smoother span 10*n + 1, degree 0).
    """
    y = pd.to_numeric(series, errors="coerce")
    if y.isna().any():
        raise ValueError("STL requires a series without missing values")
    if len(y) < 2 * period:
        raise ValueError(f"Not enough data for STL with period={period}: n={len(y)} < {2 * period}")

    seasonal_window = 10 * len(y) + 1
    res = STL(y, period=int(period), seasonal=seasonal_window, seasonal_deg=0, robust=False).fit()

    # Average each cycle position so the season repeats exactly
    position = np.arange(len(y)) % int(period)
    seasonal = pd.Series(np.asarray(res.seasonal), index=y.index, name="seasonal")
    seasonal = seasonal.groupby(position).transform("mean")
    trend = pd.Series(np.asarray(res.trend), index=y.index, name="trend")

    result = DecompositionResult(
        observed=y,
        trend=trend,
        seasonal=seasonal,
        remainder=(y - trend - seasonal).rename("remainder"),
        period=int(period),
    )

    logger.info(
        f"[patterns] stl period={period}: trend_strength={result.trend_strength:.3f} "
        f"seasonal_strength={result.seasonal_strength:.3f}"
    )
    return result
