"""
Analysis Tests: stationarity, ACF/PACF, STL
"""

import logging
import warnings
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest
from statsmodels.tsa.stattools import kpss

from stockcast.analysis.patterns import autocorrelations, decompose
from stockcast.analysis.stationarity import (StationarityConfig, adf_test,
                                             check_stationarity, kpss_test,
                                             stationarity_sweep,
                                             stationarity_table)

SEASONAL_AMPLITUDE = 10.0


class TestStationarity:
    """ADF (H0 unit root) and KPSS (H0 stationary) with a joint decision"""

    def test_white_noise_rejects_unit_root(self, white_noise):
        result = adf_test(white_noise)
        assert result.name == "adf"
        assert result.p_value < 0.05
        assert set(result.critical_values) == {"1%", "5%", "10%"}

    def test_adf_lag_rule(self, white_noise):
        # trunc((200 - 1) ** (1/3)) == 5
        assert adf_test(white_noise).lags == 5

    def test_kpss_lag_rule(self, white_noise):
        # trunc(4 * (200 / 100) ** 0.25) == 4
        assert kpss_test(white_noise).lags == 4

    def test_random_walk_not_stationary(self, random_walk):
        result = check_stationarity(random_walk)
        assert result.label == "raw"
        assert result.n_obs == 120
        assert not result.is_stationary

    def test_sweep_raw_then_diff(self, random_walk):
        results = stationarity_sweep(random_walk)

        assert list(results) == ["raw", "diff1"]
        assert results["diff1"].n_obs == len(random_walk) - 1
        assert results["diff1"].adf.p_value < 0.05

    def test_decision_rule_needs_both_tests(self, white_noise):
        strict = StationarityConfig(alpha=0.0)
        # adf p < 0 is impossible, so nothing can be called stationary
        assert not check_stationarity(white_noise, config=strict).is_stationary

    def test_table_rows(self, random_walk):
        table = stationarity_table(stationarity_sweep(random_walk))

        assert table["variant"].tolist() == ["raw", "diff1"]
        assert {"adf_p", "kpss_p", "is_stationary"} <= set(table.columns)

    def test_kpss_logs_unexpected_warnings(self, white_noise, caplog):
        def noisy_kpss(*args, **kwargs):
            warnings.warn("nlags keyword is changing", FutureWarning)
            return kpss(*args, **kwargs)

        caplog.set_level(logging.DEBUG, logger="stockcast.analysis.stationarity")
        with patch("stockcast.analysis.stationarity.kpss", side_effect=noisy_kpss):
            result = kpss_test(white_noise)

        assert result.lags == 4
        assert "FutureWarning: nlags keyword is changing" in caplog.text

    @pytest.mark.fail_loud
    def test_too_short_raises(self):
        with pytest.raises(ValueError, match="Too few"):
            adf_test(pd.Series([1.0, 2.0, 3.0]))


class TestAutocorrelations:
    """ACF/PACF with a z / sqrt(n) band"""

    def test_shape_and_lag_zero(self, seasonal_series):
        out = autocorrelations(seasonal_series, nlags=24)

        assert list(out.columns) == ["lag", "acf", "pacf", "conf"]
        assert len(out) == 25
        assert out["acf"].iloc[0] == pytest.approx(1.0)
        assert out["conf"].iloc[0] == pytest.approx(1.96 / np.sqrt(120))

    def test_lags_capped_for_short_series(self):
        y = pd.Series(np.arange(20, dtype=float))
        out = autocorrelations(y, nlags=24)
        assert out["lag"].max() == 9

    def test_seasonal_peak_at_12(self, seasonal_series):
        detrended = seasonal_series.diff().dropna()
        out = autocorrelations(detrended, nlags=24).set_index("lag")

        assert out.loc[12, "acf"] > out.loc[6, "acf"]
        assert out.loc[12, "acf"] > out.loc[12, "conf"]


class TestDecomposition:
    """Additive STL with a periodic seasonal window"""

    def test_components_sum_to_observed(self, seasonal_series):
        result = decompose(seasonal_series, period=12)

        total = result.trend + result.seasonal + result.remainder
        np.testing.assert_allclose(total.to_numpy(), seasonal_series.to_numpy(), atol=1e-8)
        for component in (result.trend, result.seasonal, result.remainder):
            assert len(component) == len(seasonal_series)

    def test_periodic_season_repeats(self, seasonal_series):
        seasonal = decompose(seasonal_series).seasonal.to_numpy()
        np.testing.assert_allclose(seasonal[:12], seasonal[12:24], atol=1e-6)

    def test_recovers_amplitude(self, seasonal_series):
        seasonal = decompose(seasonal_series).seasonal
        amplitude = (seasonal.max() - seasonal.min()) / 2
        assert amplitude == pytest.approx(SEASONAL_AMPLITUDE, rel=0.1)

    def test_strengths(self, seasonal_series):
        result = decompose(seasonal_series)
        assert 0.0 <= result.trend_strength <= 1.0
        assert result.seasonal_strength > 0.9

    def test_to_frame(self, seasonal_series):
        frame = decompose(seasonal_series).to_frame()
        assert list(frame.columns) == ["observed", "trend", "seasonal", "remainder"]

    @pytest.mark.fail_loud
    def test_short_series_raises(self):
        y = pd.Series(np.arange(20, dtype=float), index=pd.date_range("2020-01-01", periods=20, freq="MS"))
        with pytest.raises(ValueError, match="Not enough data"):
            decompose(y, period=12)

    @pytest.mark.fail_loud
    def test_missing_values_raise(self, seasonal_series):
        y = seasonal_series.copy()
        y.iloc[5] = np.nan
        with pytest.raises(ValueError, match="missing"):
            decompose(y)
