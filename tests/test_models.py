"""
Modeling: Model Bank Member Tests

Each candidate model either returns a FittedModel or raises
ModelFitFailure; it never returns a half-fitted result.
"""

import logging
import warnings
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest
from statsmodels.tsa.exponential_smoothing.ets import ETSModel

from stockcast.errors import ModelFitFailure
from stockcast.modeling.evaluation import evaluate_fit
from stockcast.modeling.models import (ARIMA, ETS_HW_ADDITIVE,
                                       ETS_HW_MULTIPLICATIVE, ETS_SIMPLE,
                                       LINEAR_REGRESSION, MOVING_AVERAGE,
                                       AutoARIMAModel,
                                       ExponentialSmoothingModel,
                                       LinearTrendModel, ModelFactory,
                                       ModelSpec, MovingAverageModel,
                                       centred_moving_average,
                                       default_model_specs, fit_model,
                                       future_index)

SEASONAL_AMPLITUDE = 10.0


def _spec(name):
    return {s.name: s for s in default_model_specs()}[name]


class TestMovingAverage:
    """Centred smoother, undefined at both ends"""

    def test_even_window_edges(self, linear_series):
        ma = centred_moving_average(linear_series, 10)

        assert ma.iloc[:5].isna().all()
        assert ma.iloc[-5:].isna().all()
        assert ma.iloc[5:-5].notna().all()

    def test_odd_window_edges(self, linear_series):
        ma = centred_moving_average(linear_series, 5)
        assert ma.isna().sum() == 4

    def test_centred_on_linear_trend(self, linear_series):
        ma = centred_moving_average(linear_series, 10).dropna()
        np.testing.assert_allclose(ma.to_numpy(), linear_series.loc[ma.index].to_numpy())

    def test_variance_bound(self):
        rng = np.random.default_rng(3)
        t = np.arange(120, dtype=float)
        y = pd.Series(50.0 + 0.2 * t + rng.normal(0, 3, size=120))

        ma = centred_moving_average(y, 10)
        defined = ma.notna()

        assert np.var(ma[defined]) <= np.var(y[defined])
        # Local variance (around the trend) shrinks too
        assert np.var(np.diff(ma[defined])) < np.var(np.diff(y[defined]))

    def test_fit_has_no_likelihood(self, linear_series):
        fitted = MovingAverageModel(window=10).fit(linear_series)

        assert fitted.name == MOVING_AVERAGE
        assert not fitted.has_likelihood
        assert fitted.valid_count == len(linear_series) - 10

    def test_forecast_carries_last_level(self, linear_series):
        fitted = MovingAverageModel(window=10).fit(linear_series)
        forecast = fitted.forecast(3)

        assert np.allclose(forecast.to_numpy(), fitted.fitted.dropna().iloc[-1])
        assert forecast.index[0] == linear_series.index[-1] + pd.offsets.MonthBegin(1)

    @pytest.mark.fail_loud
    def test_short_series_fails(self):
        with pytest.raises(ModelFitFailure):
            MovingAverageModel(window=10).fit(pd.Series(np.arange(10, dtype=float)))


class TestLinearTrend:
    """Scenario: exact line -> zero in-sample error"""

    def test_exact_fit(self, linear_series):
        fitted = LinearTrendModel().fit(linear_series)
        row = evaluate_fit(linear_series, fitted)

        assert row.model == LINEAR_REGRESSION
        assert row.rmse == pytest.approx(0.0, abs=1e-8)
        assert fitted.info["slope"] == pytest.approx(2.0)
        assert fitted.info["intercept"] == pytest.approx(8.0)
        assert fitted.info["r_squared"] == pytest.approx(1.0)

    def test_forecast_extrapolates(self, linear_series):
        forecast = LinearTrendModel().fit(linear_series).forecast(2)
        assert forecast.tolist() == pytest.approx([130.0, 132.0])


class TestExponentialSmoothing:
    """ETS family via statsmodels ETSModel"""

    def test_simple_lags_a_trend(self, linear_series):
        fitted = fit_model(_spec(ETS_SIMPLE), linear_series)
        row = evaluate_fit(linear_series, fitted)

        assert row.rmse > 0
        assert fitted.has_likelihood
        assert np.isfinite(fitted.aic) and np.isfinite(fitted.bic)
        assert fitted.info["model"] == "ETS(A,N,N)"

    def test_codes(self):
        assert ExponentialSmoothingModel("add", "add", None).code == "ETS(A,A,N)"
        hw_mul = ExponentialSmoothingModel("mul", "add", "mul")
        assert hw_mul.code == "ETS(M,A,M)"
        assert hw_mul.is_multiplicative

    def test_additive_recovers_seasonal_amplitude(self, seasonal_series):
        fitted = fit_model(_spec(ETS_HW_ADDITIVE), seasonal_series)

        season = fitted.components["season"].iloc[-12:]
        amplitude = (season.max() - season.min()) / 2
        assert amplitude == pytest.approx(SEASONAL_AMPLITUDE, rel=0.1)

    def test_multiplicative_fits_positive_series(self, seasonal_series):
        fitted = fit_model(_spec(ETS_HW_MULTIPLICATIVE), seasonal_series)

        assert fitted.info["model"] == "ETS(M,A,M)"
        assert len(fitted.forecast(12)) == 12

    @pytest.mark.fail_loud
    def test_multiplicative_rejects_non_positive(self, seasonal_series):
        y = seasonal_series.copy()
        y.iloc[40] = -1.0

        with pytest.raises(ModelFitFailure) as exc_info:
            fit_model(_spec(ETS_HW_MULTIPLICATIVE), y)

        assert exc_info.value.model_name == ETS_HW_MULTIPLICATIVE
        assert "positive" in exc_info.value.reason

    def test_non_convergence_warnings_logged_at_debug(self, linear_series, caplog):
        class NoisyETS(ETSModel):
            def fit(self, *args, **kwargs):
                warnings.warn("use_boxcox is deprecated", FutureWarning)
                return super().fit(*args, **kwargs)

        caplog.set_level(logging.DEBUG, logger="stockcast.modeling.models")
        with patch("stockcast.modeling.models.ETSModel", NoisyETS):
            fitted = fit_model(_spec(ETS_SIMPLE), linear_series)

        assert fitted.has_likelihood
        records = [r for r in caplog.records if "FutureWarning: use_boxcox is deprecated" in r.getMessage()]
        assert [r.levelno for r in records] == [logging.DEBUG]

    @pytest.mark.fail_loud
    def test_seasonal_needs_two_periods(self, seasonal_series):
        with pytest.raises(ModelFitFailure, match="insufficient length"):
            fit_model(_spec(ETS_HW_ADDITIVE), seasonal_series.iloc[:20])


class TestAutoARIMA:
    """statsforecast AutoARIMA with AIC/BIC exposed"""

    def test_fit_and_forecast(self, seasonal_series):
        fitted = AutoARIMAModel(season_length=12).fit(seasonal_series)

        assert fitted.name == ARIMA
        assert fitted.has_likelihood
        assert np.isfinite(fitted.aic) and np.isfinite(fitted.bic)
        assert len(fitted.info["order"]) == 3
        assert len(fitted.info["seasonal_order"]) == 4

        forecast = fitted.forecast(30)
        assert len(forecast) == 30
        assert forecast.notna().all()
        assert forecast.index[0] == pd.Timestamp("2025-01-01")

    @pytest.mark.smoke
    def test_exhaustive_search(self, seasonal_series):
        fitted = AutoARIMAModel(season_length=12, stepwise=False).fit(seasonal_series.iloc[:48])

        assert fitted.info["stepwise"] is False
        assert np.isfinite(fitted.aic) and np.isfinite(fitted.bic)
        assert fitted.forecast(12).notna().all()
        assert len(fitted.forecast(12)) == 12


class TestFactory:

    def test_default_specs_order(self):
        names = [s.name for s in default_model_specs()]
        assert names == [
            MOVING_AVERAGE,
            LINEAR_REGRESSION,
            ETS_SIMPLE,
            "ETS Holt",
            ETS_HW_ADDITIVE,
            ETS_HW_MULTIPLICATIVE,
            ARIMA,
        ]

    def test_spec_params_reach_model(self):
        spec = ModelSpec("MA-4", "moving_average", {"window": 4})
        fitted = fit_model(spec, pd.Series(np.arange(12, dtype=float)))
        assert fitted.name == "MA-4"
        assert fitted.info["window"] == 4

    def test_list_models(self):
        assert set(ModelFactory.list_models()) == {"moving_average", "linear_trend", "ets", "auto_arima"}

    @pytest.mark.fail_loud
    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown model kind"):
            ModelFactory.create("prophet")

    def test_future_index(self):
        index = pd.date_range("2024-01-01", periods=3, freq="MS")
        future = future_index(index, 2)
        assert future.tolist() == [pd.Timestamp("2024-04-01"), pd.Timestamp("2024-05-01")]

    @pytest.mark.fail_loud
    def test_non_positive_horizon_raises(self, linear_series):
        fitted = LinearTrendModel().fit(linear_series)
        with pytest.raises(ValueError):
            fitted.forecast(0)
