# file: stockcast/analysis/stationarity.py
"""
Stationarity checks (ADF + KPSS)

The two tests have opposite nulls:
- ADF:  H0 = unit root (non-stationary). We want p < alpha.
- KPSS: H0 = stationary. We want p > alpha.

A series is judged stationary only when both agree. The sweep runs the pair
on the raw series and once on the first difference; it never loops.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass, field
from typing import Dict, Optional

import pandas as pd
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import adfuller, kpss

from stockcast.data.prepare import difference

logger = logging.getLogger(__name__)

MIN_OBS = 10


@dataclass(frozen=True)
class StationarityConfig:
    alpha: float = 0.05

    # ADF with constant + trend, lag order trunc((n-1)^(1/3)) when None
    adf_regression: str = "ct"
    adf_maxlag: Optional[int] = None

    # KPSS level-stationary null, short truncation trunc(4*(n/100)^(1/4)) when None
    kpss_regression: str = "c"
    kpss_nlags: Optional[int] = None


@dataclass
class StatTestResult:
    """Statistic and p-value of one test"""
    name: str
    statistic: float
    p_value: float
    lags: int
    critical_values: Dict[str, float] = field(default_factory=dict)
    note: str = ""


@dataclass
class StationarityResult:
    """ADF + KPSS pair for one series variant"""
    label: str
    n_obs: int
    adf: StatTestResult
    kpss: StatTestResult
    alpha: float = 0.05

    @property
    def is_stationary(self) -> bool:
        return (self.adf.p_value < self.alpha) and (self.kpss.p_value > self.alpha)

    def as_row(self) -> Dict:
        return {
            "variant": self.label,
            "n_obs": self.n_obs,
            "adf_stat": self.adf.statistic,
            "adf_p": self.adf.p_value,
            "kpss_stat": self.kpss.statistic,
            "kpss_p": self.kpss.p_value,
            "is_stationary": self.is_stationary,
        }


def _clean(series: pd.Series) -> pd.Series:
    y = pd.to_numeric(series, errors="coerce").dropna()
    if len(y) < MIN_OBS:
        raise ValueError(f"Too few observations for stationarity tests: {len(y)} < {MIN_OBS}")
    return y


def adf_test(series: pd.Series, config: Optional[StationarityConfig] = None) -> StatTestResult:
    """Augmented Dickey-Fuller test with a fixed lag order."""
    config = config or StationarityConfig()
    y = _clean(series)

    maxlag = config.adf_maxlag
    if maxlag is None:
        maxlag = int(math.trunc((len(y) - 1) ** (1 / 3)))

    stat, p_value, used_lag, _nobs, crit = adfuller(
        y.to_numpy(),
        maxlag=maxlag,
        regression=config.adf_regression,
        autolag=None,
    )[:5]

    return StatTestResult(
        name="adf",
        statistic=float(stat),
        p_value=float(p_value),
        lags=int(used_lag),
        critical_values={k: float(v) for k, v in crit.items()},
    )


def kpss_test(series: pd.Series, config: Optional[StationarityConfig] = None) -> StatTestResult:
    """
    KPSS test.

    statsmodels bounds p-values to its lookup table [0.01, 0.1] and warns when
    the statistic falls outside it; the bound is kept and noted.
    """
    config = config or StationarityConfig()
    y = _clean(series)

    nlags = config.kpss_nlags
    if nlags is None:
        nlags = int(math.trunc(4 * (len(y) / 100) ** 0.25))

    note = ""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        stat, p_value, lags, crit = kpss(
            y.to_numpy(),
            regression=config.kpss_regression,
            nlags=nlags,
        )

    for w in caught:
        if issubclass(w.category, InterpolationWarning):
            note = str(w.message)
            logger.debug(f"[stationarity] kpss: {note}")
        else:
            logger.debug(f"[stationarity] kpss: {w.category.__name__}: {w.message}")

    return StatTestResult(
        name="kpss",
        statistic=float(stat),
        p_value=float(p_value),
        lags=int(lags),
        critical_values={k: float(v) for k, v in crit.items()},
        note=note,
    )


def check_stationarity(
    series: pd.Series,
    label: str = "raw",
    config: Optional[StationarityConfig] = None,
) -> StationarityResult:
    """Run ADF and KPSS on one series and apply the joint decision rule."""
    config = config or StationarityConfig()

    result = StationarityResult(
        label=label,
        n_obs=int(series.notna().sum()),
        adf=adf_test(series, config),
        kpss=kpss_test(series, config),
        alpha=config.alpha,
    )

    logger.info(
        f"[stationarity] {label}: adf_p={result.adf.p_value:.4g} "
        f"kpss_p={result.kpss.p_value:.4g} stationary={result.is_stationary}"
    )
    return result


def stationarity_sweep(
    series: pd.Series,
    config: Optional[StationarityConfig] = None,
) -> Dict[str, StationarityResult]:
    """
    Test the raw series, then the once-differenced series.

    Returns:
        {"raw": ..., "diff1": ...} in that order
    """
    return {
        "raw": check_stationarity(series, label="raw", config=config),
        "diff1": check_stationarity(difference(series), label="diff1", config=config),
    }


def stationarity_table(results: Dict[str, StationarityResult]) -> pd.DataFrame:
    """One row per tested variant (for rendering / export)"""
    return pd.DataFrame([r.as_row() for r in results.values()])
