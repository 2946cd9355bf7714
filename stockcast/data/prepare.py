"""
Data Step 3: Prepare the monthly series

Standardize provider rows to the canonical frame and build the series
the rest of the pipeline consumes:
- ds: month-start timestamp (timezone-naive)
- adjusted_close: numeric price
"""

import logging

import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset

logger = logging.getLogger(__name__)

MONTH_START = "MS"


def normalize_prices(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize raw provider rows to the canonical price frame.

    Steps:
    1. Parse Date (errors="raise") and snap to month start
    2. Convert adjusted close to numeric, drop missing rows
    3. Drop duplicate months (keep the last row)
    4. Sort by ds

    Args:
        raw: Provider table with a Date column and Adj Close (or Close)

    Returns:
        DataFrame with columns [ds, adjusted_close]
    """
    date_col = "Date" if "Date" in raw.columns else "ds"
    if date_col not in raw.columns:
        raise ValueError(f"Missing date column, got {raw.columns.tolist()}")

    if "Adj Close" in raw.columns:
        value_col = "Adj Close"
    elif "adjusted_close" in raw.columns:
        value_col = "adjusted_close"
    elif "Close" in raw.columns:
        logger.warning("[prepare] no adjusted close column, falling back to Close")
        value_col = "Close"
    else:
        raise ValueError(f"Missing price column, got {raw.columns.tolist()}")

    ds = pd.to_datetime(raw[date_col], errors="raise")
    if ds.dt.tz is not None:
        ds = ds.dt.tz_localize(None)

    df = pd.DataFrame({
        "ds": ds.dt.to_period("M").dt.to_timestamp(),
        "adjusted_close": pd.to_numeric(raw[value_col], errors="coerce"),
    })

    n_missing = int(df["adjusted_close"].isna().sum())
    if n_missing:
        logger.info(f"[prepare] dropping {n_missing} rows with missing adjusted close")
    df = df.dropna(subset=["adjusted_close"])

    n_dupes = int(df.duplicated(subset=["ds"]).sum())
    if n_dupes:
        logger.info(f"[prepare] dropping {n_dupes} duplicate months (keeping last)")
    df = df.drop_duplicates(subset=["ds"], keep="last")

    return df.sort_values("ds").reset_index(drop=True)


def to_monthly_series(df: pd.DataFrame, value_col: str = "adjusted_close") -> pd.Series:
    """
    Convert the canonical frame to a month-start indexed series (freq=MS).

    Fails loud on empty input, duplicate months or gaps: a fixed-frequency
    series cannot represent them.
    """
    if df.empty:
        raise ValueError("Cannot build a series from an empty frame")

    df = df.sort_values("ds")
    if df["ds"].duplicated().any():
        raise ValueError(f"Duplicate months: {df.loc[df['ds'].duplicated(), 'ds'].tolist()[:5]}")

    expected = pd.date_range(df["ds"].min(), df["ds"].max(), freq=MONTH_START)
    missing = expected.difference(pd.DatetimeIndex(df["ds"]))
    if len(missing) > 0:
        raise ValueError(f"Series has {len(missing)} missing months, first: {list(missing[:5])}")

    index = pd.DatetimeIndex(df["ds"].to_numpy(), freq=MONTH_START, name="ds")
    series = pd.Series(df[value_col].to_numpy(dtype=float), index=index, name=value_col)

    logger.info(f"[prepare] series: n={len(series)}, start={index[0]:%Y-%m}, freq=12/year")
    return series


def difference(series: pd.Series) -> pd.Series:
    """First difference with the undefined leading element dropped."""
    if len(series) < 2:
        raise ValueError(f"Need at least 2 observations to difference, got {len(series)}")

    # iloc keeps the index freq, dropna would not
    return series.diff().iloc[1:]


def integrate(diffed: pd.Series, first_value: float) -> pd.Series:
    """
    Inverse of difference(): cumulative sum plus the first value.

    The returned series starts one period before diffed, so
    integrate(difference(x), x.iloc[0]) reproduces x.
    """
    if len(diffed) == 0:
        raise ValueError("Cannot integrate an empty series")

    values = np.concatenate([
        [float(first_value)],
        float(first_value) + np.cumsum(diffed.to_numpy(dtype=float)),
    ])

    freq = diffed.index.freq if diffed.index.freq is not None else to_offset(MONTH_START)
    index = pd.date_range(end=diffed.index[-1], periods=len(values), freq=freq, name=diffed.index.name)

    return pd.Series(values, index=index, name=diffed.name)
