# file: stockcast/pipeline/tasks.py
"""
Pipeline Tasks

One function per stage, run strictly downstream:
load -> prepare -> diagnostics -> model bank -> holdout -> (export)

Data failures are fatal. Diagnostic and per-model failures are local to
their step and only logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from stockcast.analysis.patterns import (DecompositionResult, autocorrelations,
                                         decompose)
from stockcast.analysis.stationarity import (StationarityResult,
                                             stationarity_sweep,
                                             stationarity_table)
from stockcast.data.ingest import PriceProvider, load_monthly_prices
from stockcast.data.prepare import to_monthly_series
from stockcast.data.validate import (assert_monthly_contract,
                                     validate_monthly_frame)
from stockcast.errors import DataUnavailable
from stockcast.modeling.backtesting import train_test_split, validate_split
from stockcast.modeling.models import ModelSpec, default_model_specs
from stockcast.modeling.training import (BankResult, HoldoutResult, HoldoutRow,
                                         ModelBank, ModelSelector,
                                         TrainTestHarness)
from stockcast.pipeline.config import PipelineConfig
from stockcast.pipeline.io_utils import atomic_write_csv, atomic_write_json

logger = logging.getLogger(__name__)


@dataclass
class Diagnostics:
    stationarity: Dict[str, StationarityResult] = field(default_factory=dict)
    correlations: Optional[pd.DataFrame] = None
    decomposition: Optional[DecompositionResult] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def stationarity_frame(self) -> pd.DataFrame:
        return stationarity_table(self.stationarity)


@dataclass
class PipelineResult:
    run_id: str
    prices: pd.DataFrame
    series: pd.Series
    diagnostics: Diagnostics
    bank: BankResult
    holdout: HoldoutResult
    selected: Optional[HoldoutRow] = None

    @property
    def comparison(self) -> pd.DataFrame:
        return self.bank.comparison

    def summary(self) -> Dict:
        return {
            "run_id": self.run_id,
            "n_obs": int(len(self.series)),
            "start": f"{self.series.index[0]:%Y-%m}",
            "end": f"{self.series.index[-1]:%Y-%m}",
            "stationary": {k: v.is_stationary for k, v in self.diagnostics.stationarity.items()},
            "models_fitted": list(self.bank.fits),
            "models_failed": dict(self.bank.failures),
            "holdout_split": self.holdout.split.info,
            "holdout_failed": dict(self.holdout.failures),
            "selected_model": self.selected.model if self.selected else None,
            "selected_rmse": self.selected.rmse if self.selected else None,
        }


def model_specs(config: PipelineConfig) -> List[ModelSpec]:
    return default_model_specs(
        ma_window=config.ma_window,
        seasonal_period=config.seasonal_period,
        arima_stepwise=config.arima_stepwise,
    )


def load_prices(config: PipelineConfig, provider: Optional[PriceProvider] = None) -> pd.DataFrame:
    """
    Task 1: Pull monthly prices and enforce the monthly frame contract.

    Raises DataUnavailable when the provider has nothing, or when the
    history it returned has month gaps or duplicate months.
    """
    prices = load_monthly_prices(config.settings(), provider=provider)
    try:
        assert_monthly_contract(prices)
    except ValueError as e:
        check = validate_monthly_frame(prices)
        raise DataUnavailable(
            f"Partial data for {config.symbol}: {e}",
            {
                "symbol": config.symbol,
                "missing_months": [f"{m:%Y-%m}" for m in check.missing_months],
                "n_missing_months": check.n_missing_months,
                "duplicates": check.n_duplicates,
            },
        ) from e
    return prices


def prepare_series(prices: pd.DataFrame) -> pd.Series:
    """
    Task 2: Canonical frame -> month-start series
    """
    return to_monthly_series(prices)


def run_diagnostics(series: pd.Series, config: PipelineConfig) -> Diagnostics:
    """
    Task 3: Stationarity sweep, ACF/PACF and STL.

    Each step is independent; a failing step is recorded and skipped.
    """
    diag = Diagnostics()

    try:
        diag.stationarity = stationarity_sweep(series, config.stationarity())
    except ValueError as e:
        logger.warning(f"[diagnostics] stationarity skipped: {e}")
        diag.warnings.append(f"stationarity: {e}")

    try:
        diag.correlations = autocorrelations(series, nlags=config.acf_lags)
    except ValueError as e:
        logger.warning(f"[diagnostics] acf/pacf skipped: {e}")
        diag.warnings.append(f"acf_pacf: {e}")

    try:
        diag.decomposition = decompose(series, period=config.seasonal_period)
    except ValueError as e:
        logger.warning(f"[diagnostics] stl skipped: {e}")
        diag.warnings.append(f"stl: {e}")

    return diag


def fit_model_bank(series: pd.Series, config: PipelineConfig) -> BankResult:
    """
    Task 4: Fit all candidate models on the full series
    """
    return ModelBank(model_specs(config)).run(series)


def run_holdout(
    series: pd.Series,
    config: PipelineConfig,
    bank: Optional[BankResult] = None,
) -> HoldoutResult:
    """
    Task 5: Train/test split, refit on train, score the horizon.

    SplitInvariantViolation propagates: a broken split must stop the run.
    """
    harness = TrainTestHarness(horizon=config.horizon, models=config.holdout_models)
    result = harness.run(series, model_specs(config), full_fits=bank.fits if bank else None)

    if not validate_split(series, result.split):
        raise ValueError("Holdout split failed validation")
    return result


def export_results(result: PipelineResult, config: PipelineConfig) -> Dict[str, str]:
    """
    Task 6 (optional): write comparison, holdout, forecasts and summary
    """
    if config.output_path() is None:
        return {}

    atomic_write_csv(result.comparison, config.comparison_path())
    atomic_write_csv(result.holdout.table, config.holdout_path())

    forecasts = result.bank.forecasts(config.horizon)
    forecasts.index.name = "ds"
    atomic_write_csv(forecasts, config.forecasts_path(), index=True)

    atomic_write_json(result.summary(), config.summary_path())

    paths = {
        "comparison_path": str(config.comparison_path()),
        "holdout_path": str(config.holdout_path()),
        "forecasts_path": str(config.forecasts_path()),
        "summary_path": str(config.summary_path()),
    }
    logger.info(f"[export] wrote {len(paths)} files to {config.output_path()}")
    return paths


def run_full_pipeline(config: PipelineConfig, provider: Optional[PriceProvider] = None) -> PipelineResult:
    """
    Runs tasks in order and returns the full result.
    """
    logger.info("=" * 60)
    logger.info(f"START PIPELINE: {config.symbol} {config.start_date} to {config.end_date}")
    logger.info("=" * 60)

    run_id = config.run_id()
    logger.info(f"[pipeline] run_id={run_id}")

    prices = load_prices(config, provider=provider)
    series = prepare_series(prices)
    # horizon must fit inside the series before anything is fitted
    train_test_split(series, horizon=config.horizon)
    diagnostics = run_diagnostics(series, config)
    bank = fit_model_bank(series, config)
    holdout = run_holdout(series, config, bank=bank)
    selected = ModelSelector().select(holdout.rows)

    result = PipelineResult(
        run_id=run_id,
        prices=prices,
        series=series,
        diagnostics=diagnostics,
        bank=bank,
        holdout=holdout,
        selected=selected,
    )
    export_results(result, config)

    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("=" * 60)
    return result
