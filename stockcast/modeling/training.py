"""
Model Bank and Train/Test Harness

Orchestrates full-series fitting, in-sample evaluation, holdout refits and
model selection. A model that fails to fit is logged and skipped; it never
aborts the run.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from stockcast.errors import ModelFitFailure

from .backtesting import DEFAULT_HORIZON, TrainTestSplit, train_test_split
from .evaluation import (EvaluationRow, ForecastMetrics, build_comparison_table,
                         evaluate_fit)
from .models import (ARIMA, ETS_HW_MULTIPLICATIVE, FittedModel, ModelSpec,
                     fit_model)

logger = logging.getLogger(__name__)

HOLDOUT_MODELS = (ARIMA, ETS_HW_MULTIPLICATIVE)
HOLDOUT_COLUMNS = ["model", "rmse", "mae", "n_valid", "aic_full", "bic_full"]


@dataclass
class BankResult:
    """Fits, evaluation rows and failures of one bank run"""
    fits: Dict[str, FittedModel] = field(default_factory=dict)
    rows: List[EvaluationRow] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    fit_times: Dict[str, float] = field(default_factory=dict)

    @property
    def comparison(self) -> pd.DataFrame:
        return build_comparison_table(self.rows)

    def forecasts(self, horizon: int) -> pd.DataFrame:
        """Point forecasts of every fitted model, one column per model"""
        columns = {}
        for name, fitted in self.fits.items():
            try:
                columns[name] = fitted.forecast(horizon)
            except (ModelFitFailure, ValueError) as e:
                logger.warning(f"[bank] {name}: forecast failed: {e}")
        return pd.DataFrame(columns)


class ModelBank:
    """Fits every candidate model on the full series"""

    def __init__(self, specs: List[ModelSpec]):
        """
        Initialize the bank

        Args:
            specs: Models to fit, in comparison-table order
        """
        names = [s.name for s in specs]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate model names: {names}")
        self.specs = specs

    def run(self, series: pd.Series) -> BankResult:
        """
        Fit all models and evaluate them in-sample.

        Args:
            series: Full monthly series

        Returns:
            BankResult; failed models appear only in `failures`
        """
        logger.info(f"[bank] fitting {len(self.specs)} models on n={len(series)}")
        result = BankResult()

        for spec in self.specs:
            start_time = time.time()
            try:
                fitted = fit_model(spec, series)
            except ModelFitFailure as e:
                logger.warning(f"[bank] skipping {spec.name}: {e.reason}")
                result.failures[spec.name] = e.reason
                continue

            result.fit_times[spec.name] = time.time() - start_time
            result.fits[spec.name] = fitted
            row = evaluate_fit(series, fitted)
            result.rows.append(row)

            aic = f"{row.aic:.2f}" if row.aic is not None else "n/a"
            logger.info(f"[bank] {spec.name}: rmse={row.rmse:.4f} aic={aic}")

        logger.info(f"[bank] fitted {len(result.fits)}/{len(self.specs)} models")
        return result


@dataclass
class HoldoutRow:
    """Out-of-sample result of one model refitted on the training prefix"""
    model: str
    rmse: float
    mae: float
    n_valid: int
    aic_full: Optional[float] = None
    bic_full: Optional[float] = None


@dataclass
class HoldoutResult:
    split: TrainTestSplit
    rows: List[HoldoutRow] = field(default_factory=list)
    forecasts: Dict[str, pd.Series] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def table(self) -> pd.DataFrame:
        if not self.rows:
            return pd.DataFrame(columns=HOLDOUT_COLUMNS)
        table = pd.DataFrame.from_records([asdict(r) for r in self.rows], columns=HOLDOUT_COLUMNS)
        table[["aic_full", "bic_full"]] = table[["aic_full", "bic_full"]].astype(float)
        return table


class TrainTestHarness:
    """Refits selected models on the training prefix and scores the horizon"""

    def __init__(self, horizon: int = DEFAULT_HORIZON, models: Iterable[str] = HOLDOUT_MODELS):
        """
        Initialize the harness

        Args:
            horizon: Test length h
            models: Names of the models to refit (looked up among the ModelSpecs)
        """
        self.horizon = horizon
        self.models = tuple(models)

    def run(
        self,
        series: pd.Series,
        specs: List[ModelSpec],
        full_fits: Optional[Dict[str, FittedModel]] = None,
    ) -> HoldoutResult:
        """
        Split, refit on train, forecast h, compare to test.

        The split is checked before any model is fitted.
        """
        split = train_test_split(series, horizon=self.horizon)
        result = HoldoutResult(split=split)
        full_fits = full_fits or {}

        by_name = {s.name: s for s in specs}
        for name in self.models:
            if name not in by_name:
                raise ValueError(f"Holdout model {name!r} not among specs {list(by_name)}")

            try:
                fitted = fit_model(by_name[name], split.train)
                forecast = fitted.forecast(self.horizon)
            except ModelFitFailure as e:
                logger.warning(f"[holdout] skipping {name}: {e.reason}")
                result.failures[name] = e.reason
                continue

            y_true = split.test.to_numpy()
            y_pred = forecast.to_numpy()
            full = full_fits.get(name)

            row = HoldoutRow(
                model=name,
                rmse=ForecastMetrics.rmse(y_true, y_pred),
                mae=ForecastMetrics.mae(y_true, y_pred),
                n_valid=ForecastMetrics.valid_count(y_true, y_pred),
                aic_full=full.aic if full is not None else None,
                bic_full=full.bic if full is not None else None,
            )
            result.rows.append(row)
            result.forecasts[name] = pd.Series(y_pred, index=split.test.index, name=name)
            logger.info(f"[holdout] {name}: rmse={row.rmse:.4f} mae={row.mae:.4f}")

        return result


class ModelSelector:
    """Select the preferred model from holdout results"""

    def select(self, rows: List[HoldoutRow]) -> Optional[HoldoutRow]:
        """
        Lowest out-of-sample RMSE wins; ties go to lower full-series AIC, then BIC.

        Rows without a finite RMSE are ignored. Returns None if nothing is left.
        """
        candidates = [r for r in rows if r.rmse is not None and np.isfinite(r.rmse)]
        if not candidates:
            logger.error("[holdout] no model with a finite out-of-sample RMSE")
            return None

        def _key(row: HoldoutRow):
            aic = row.aic_full if row.aic_full is not None else np.inf
            bic = row.bic_full if row.bic_full is not None else np.inf
            return (row.rmse, aic, bic)

        best = min(candidates, key=_key)
        logger.info(f"[holdout] selected {best.model} (rmse={best.rmse:.4f})")
        return best
