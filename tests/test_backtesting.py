"""
Modeling: Train/Test Split + Holdout Tests

Validates the split invariant, adjacency, and the selection rule.
"""

import numpy as np
import pandas as pd
import pytest

from stockcast.data.config import Settings
from stockcast.data.ingest import load_monthly_prices
from stockcast.data.prepare import to_monthly_series
from stockcast.errors import SplitInvariantViolation, StockcastError
from stockcast.modeling.backtesting import (TrainTestSplit, train_test_split,
                                            validate_split)
from stockcast.modeling.models import (ARIMA, ETS_HW_MULTIPLICATIVE,
                                       default_model_specs)
from stockcast.modeling.training import (HoldoutRow, ModelSelector,
                                         TrainTestHarness)


@pytest.mark.fail_loud
class TestSplitInvariant:
    """len(train) + len(test) == n with train immediately before test"""

    @pytest.mark.parametrize("n,h", [(60, 1), (60, 30), (120, 30), (31, 30)])
    def test_lengths_add_up(self, n, h):
        series = pd.Series(np.arange(n, dtype=float), index=pd.date_range("2015-01-01", periods=n, freq="MS"))

        split = train_test_split(series, horizon=h)

        assert split.train_size + split.test_size == n
        assert split.test_size == h
        assert validate_split(series, split)

    def test_adjacent(self, random_walk):
        split = train_test_split(random_walk, horizon=30)
        assert split.train.index[-1] + pd.offsets.MonthBegin(1) == split.test.index[0]

    def test_horizon_too_large_raises(self, random_walk):
        with pytest.raises(ValueError, match="horizon"):
            train_test_split(random_walk, horizon=len(random_walk))

    def test_non_positive_horizon_raises(self, random_walk):
        with pytest.raises(ValueError):
            train_test_split(random_walk, horizon=0)

    def test_overlap_rejected(self, random_walk):
        with pytest.raises(ValueError, match="leakage"):
            TrainTestSplit(train=random_walk.iloc[:95], test=random_walk.iloc[90:], horizon=30)

    def test_gap_fails_validation(self, random_walk):
        split = TrainTestSplit(train=random_walk.iloc[:80], test=random_walk.iloc[90:], horizon=30)
        assert not validate_split(random_walk, split)

    def test_violation_carries_context(self):
        err = SplitInvariantViolation("len(train) + len(test) != n", {"train": 89, "test": 30, "n": 120})
        assert isinstance(err, StockcastError)
        assert "n" in err.context
        assert "120" in str(err)

    def test_fixture_series(self, fixture_csv):
        """Scenario: NVDA-like 2015-2025 monthly series with h=30"""
        prices = load_monthly_prices(Settings(provider="csv", csv_path=str(fixture_csv)))
        series = to_monthly_series(prices)

        split = train_test_split(series, horizon=30)

        assert len(series) == 120
        assert split.train_size + split.test_size == len(series)
        assert split.train_size == 90
        assert split.info["test_start"].startswith("2022-07-01")
        assert validate_split(series, split)


class TestHoldout:
    """Refit on train, forecast h, score on test"""

    def test_harness_rows(self, seasonal_series):
        result = TrainTestHarness(horizon=30).run(seasonal_series, default_model_specs())

        assert [r.model for r in result.rows] == [ARIMA, ETS_HW_MULTIPLICATIVE]
        for row in result.rows:
            assert np.isfinite(row.rmse)
            assert row.n_valid == 30
        assert result.forecasts[ARIMA].index.equals(result.split.test.index)
        assert list(result.table.columns) == ["model", "rmse", "mae", "n_valid", "aic_full", "bic_full"]

    def test_failed_refit_skipped(self, seasonal_series):
        y = seasonal_series.copy()
        y.iloc[10] = 0.0

        result = TrainTestHarness(horizon=30, models=[ETS_HW_MULTIPLICATIVE]).run(y, default_model_specs())

        assert result.rows == []
        assert ETS_HW_MULTIPLICATIVE in result.failures

    @pytest.mark.fail_loud
    def test_unknown_model_raises(self, seasonal_series):
        with pytest.raises(ValueError, match="not among specs"):
            TrainTestHarness(models=["Prophet"]).run(seasonal_series, default_model_specs())


class TestModelSelector:
    """Lowest out-of-sample RMSE; ties by AIC then BIC"""

    def test_lowest_rmse(self):
        rows = [HoldoutRow("A", 3.0, 2.0, 30, 10.0, 12.0), HoldoutRow("B", 2.0, 1.5, 30, 50.0, 52.0)]
        assert ModelSelector().select(rows).model == "B"

    def test_tie_broken_by_aic(self):
        rows = [HoldoutRow("A", 2.0, 1.0, 30, 50.0, 40.0), HoldoutRow("B", 2.0, 1.0, 30, 45.0, 60.0)]
        assert ModelSelector().select(rows).model == "B"

    def test_tie_broken_by_bic(self):
        rows = [HoldoutRow("A", 2.0, 1.0, 30, 50.0, 60.0), HoldoutRow("B", 2.0, 1.0, 30, 50.0, 55.0)]
        assert ModelSelector().select(rows).model == "B"

    def test_nan_rmse_ignored(self):
        rows = [HoldoutRow("A", np.nan, np.nan, 0), HoldoutRow("B", 9.0, 8.0, 30)]
        assert ModelSelector().select(rows).model == "B"

    def test_nothing_to_select(self):
        assert ModelSelector().select([]) is None
