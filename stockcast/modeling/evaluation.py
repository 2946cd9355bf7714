# file: stockcast/modeling/evaluation.py
"""
Model Evaluation Metrics

Computes accuracy metrics with explicit NaN handling (fail-loud principle)
and builds the ordered model comparison table.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from .models import FittedModel

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = ["model", "rmse", "aic", "bic", "n_valid"]


class ForecastMetrics:
    """Compute forecasting evaluation metrics"""

    @staticmethod
    def _paired(y_true, y_pred):
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)
        if y_true.shape != y_pred.shape:
            raise ValueError(f"Shape mismatch: actual {y_true.shape} vs predicted {y_pred.shape}")
        valid_mask = np.isfinite(y_pred) & np.isfinite(y_true)
        return y_true[valid_mask], y_pred[valid_mask]

    @staticmethod
    def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Root Mean Squared Error

        Pairwise-complete (fail-loud):
        - Masks pairs where either side is NaN/inf, never zero-fills
        - Returns NaN if no valid pair remains
        """
        t, p = ForecastMetrics._paired(y_true, y_pred)

        if t.size == 0:
            return np.nan

        return float(np.sqrt(np.mean((p - t) ** 2)))

    @staticmethod
    def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Error

        Same masking as rmse().
        """
        t, p = ForecastMetrics._paired(y_true, y_pred)

        if t.size == 0:
            return np.nan

        return float(np.mean(np.abs(p - t)))

    @staticmethod
    def valid_count(y_true: np.ndarray, y_pred: np.ndarray) -> int:
        """Number of pairs used by the metrics"""
        t, _ = ForecastMetrics._paired(y_true, y_pred)
        return int(t.size)


@dataclass
class EvaluationRow:
    """One row of the comparison table"""
    model: str
    rmse: float
    aic: Optional[float] = None
    bic: Optional[float] = None
    n_valid: int = 0


def evaluate_fit(actual: pd.Series, fitted_model: FittedModel) -> EvaluationRow:
    """
    In-sample RMSE of a fitted model against the series it was fitted on.

    Fitted values are aligned on the index; undefined points (e.g. moving
    average edges) are excluded pairwise.
    """
    predicted = fitted_model.fitted.reindex(actual.index)

    row = EvaluationRow(
        model=fitted_model.name,
        rmse=ForecastMetrics.rmse(actual.to_numpy(), predicted.to_numpy()),
        aic=fitted_model.aic,
        bic=fitted_model.bic,
        n_valid=ForecastMetrics.valid_count(actual.to_numpy(), predicted.to_numpy()),
    )

    logger.debug(f"[evaluate] {row.model}: rmse={row.rmse:.4f} n_valid={row.n_valid}")
    return row


def build_comparison_table(rows: Iterable[EvaluationRow]) -> pd.DataFrame:
    """
    Ordered comparison table, one row per model in fitting order.

    AIC/BIC stay NaN for models without a likelihood.
    """
    records = [asdict(r) for r in rows]
    if not records:
        return pd.DataFrame(columns=COMPARISON_COLUMNS)

    table = pd.DataFrame.from_records(records, columns=COMPARISON_COLUMNS)
    table[["aic", "bic"]] = table[["aic", "bic"]].astype(float)
    return table
