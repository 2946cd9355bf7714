"""
Data Step 4: Validate Monthly Series Integrity

Hard gates for data quality:
- Uniqueness: no duplicate months
- Frequency: expected month-start index vs observed
- Monotonic: increasing time
- Values: nulls, non-positive prices, bounds
"""

import logging
from dataclasses import dataclass
from typing import List

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Results of monthly frame validation"""
    is_valid: bool
    n_rows: int
    n_duplicates: int
    n_missing_months: int
    missing_months: List[pd.Timestamp]
    n_nulls: int
    n_non_positive: int
    value_min: float
    value_max: float
    is_monotonic: bool


def validate_monthly_frame(df: pd.DataFrame, value_col: str = "adjusted_close") -> ValidationResult:
    """
    Validate the canonical price frame before modeling.

    Checks:
    1. No duplicates on ds
    2. Expected month-start frequency vs observed (missing months)
    3. Monotonic increasing time
    4. Value sanity (nulls, non-positive, bounds)

    Non-positive prices do not invalidate the frame; they only rule out
    multiplicative models, which check for themselves.

    Args:
        df: DataFrame with columns [ds, adjusted_close]

    Returns:
        ValidationResult with detailed findings
    """
    # Check 1: Duplicates
    n_duplicates = int(df.duplicated(subset=["ds"], keep=False).sum())

    # Check 2: Missing months
    if df.empty:
        missing_months = []
    else:
        expected = pd.date_range(df["ds"].min(), df["ds"].max(), freq="MS")
        missing_months = sorted(set(expected) - set(df["ds"]))

    # Check 3: Monotonic (as delivered, not after sorting)
    is_monotonic = bool(df["ds"].is_monotonic_increasing)

    # Check 4: Values
    values = df[value_col]
    n_nulls = int(values.isna().sum())
    n_non_positive = int((values <= 0).sum())

    is_valid = (n_duplicates == 0) and (len(missing_months) == 0) and is_monotonic and not df.empty

    result = ValidationResult(
        is_valid=is_valid,
        n_rows=len(df),
        n_duplicates=n_duplicates,
        n_missing_months=len(missing_months),
        missing_months=missing_months[:10],  # First 10 only
        n_nulls=n_nulls,
        n_non_positive=n_non_positive,
        value_min=float(values.min()) if len(values) else float("nan"),
        value_max=float(values.max()) if len(values) else float("nan"),
        is_monotonic=is_monotonic,
    )

    status = "PASS" if result.is_valid else "FAIL"
    logger.info(
        f"[validate] {status}: rows={result.n_rows} dupes={result.n_duplicates} "
        f"missing_months={result.n_missing_months} nulls={result.n_nulls} "
        f"non_positive={result.n_non_positive}"
    )
    return result


def assert_monthly_contract(df: pd.DataFrame, value_col: str = "adjusted_close") -> None:
    """
    Raise a ValueError if the monthly frame contract is violated.
    """
    result = validate_monthly_frame(df, value_col=value_col)
    if not result.is_valid:
        raise ValueError(
            f"Invalid monthly frame: rows={result.n_rows}, "
            f"duplicates={result.n_duplicates}, "
            f"missing_months={result.n_missing_months}, "
            f"monotonic={result.is_monotonic}"
        )
