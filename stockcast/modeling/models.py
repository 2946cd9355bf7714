"""
Model Implementations

Fits the candidate models for the monthly price series:
1. Moving average (centred, no likelihood)
2. Linear trend (OLS on a time index, no likelihood)
3. ETS Simple / Holt / Holt-Winters additive / Holt-Winters multiplicative
4. Auto-selected seasonal ARIMA (statsforecast)

Every model is configured by a ModelSpec and fitted by fit_model(), which
returns a FittedModel or raises ModelFitFailure.
"""

import logging
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm
from pandas.tseries.frequencies import to_offset
from statsmodels.tools.sm_exceptions import ConvergenceWarning
from statsmodels.tsa.exponential_smoothing.ets import ETSModel

from stockcast.errors import ModelFitFailure

logger = logging.getLogger(__name__)

MOVING_AVERAGE = "Moving Average"
LINEAR_REGRESSION = "Linear Regression"
ETS_SIMPLE = "ETS Simple"
ETS_HOLT = "ETS Holt"
ETS_HW_ADDITIVE = "ETS Holt-Winters Additive"
ETS_HW_MULTIPLICATIVE = "ETS Holt-Winters Multiplicative"
ARIMA = "ARIMA"


@dataclass(frozen=True)
class ModelSpec:
    """Explicit per-model configuration (no hidden global options)"""
    name: str
    kind: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FittedModel:
    """Result of a fit: in-sample values, information criteria, forecaster"""
    name: str
    fitted: pd.Series
    aic: Optional[float] = None
    bic: Optional[float] = None
    info: Dict[str, Any] = field(default_factory=dict)
    components: Dict[str, pd.Series] = field(default_factory=dict)
    forecaster: Optional[Callable[[int], np.ndarray]] = field(default=None, repr=False)

    @property
    def has_likelihood(self) -> bool:
        return self.aic is not None and self.bic is not None

    @property
    def valid_count(self) -> int:
        """Number of defined (finite) fitted values"""
        return int(np.isfinite(self.fitted.to_numpy(dtype=float)).sum())

    def forecast(self, horizon: int) -> pd.Series:
        """Point forecasts for the next `horizon` periods after the fit window"""
        if horizon <= 0:
            raise ValueError(f"horizon must be positive, got {horizon}")
        if self.forecaster is None:
            raise ValueError(f"{self.name} does not support forecasting")

        values = np.asarray(self.forecaster(horizon), dtype=float)
        if len(values) != horizon:
            raise ValueError(f"{self.name} returned {len(values)} forecasts, expected {horizon}")

        return pd.Series(values, index=future_index(self.fitted.index, horizon), name=self.name)


def future_index(index: pd.Index, horizon: int) -> pd.Index:
    """Index of the `horizon` periods that follow `index`"""
    if isinstance(index, pd.DatetimeIndex):
        freq = index.freq or to_offset("MS")
        return pd.date_range(start=index[-1] + freq, periods=horizon, freq=freq, name=index.name)
    start = len(index)
    return pd.RangeIndex(start, start + horizon)


def centred_moving_average(y: pd.Series, window: int) -> pd.Series:
    """
    Centred arithmetic mean.

    Odd windows use the plain centred mean. Even windows use the 2 x window
    average (half weight on both end points) so the result stays centred on
    an observation. Either way window // 2 points are undefined at each end.
    """
    if window < 2:
        raise ValueError(f"window must be >= 2, got {window}")

    if window % 2 == 1:
        return y.rolling(window, center=True).mean()

    return y.rolling(window).mean().rolling(2).mean().shift(-(window // 2))


def _as_series(y) -> pd.Series:
    if isinstance(y, pd.Series):
        return y.astype(float)
    return pd.Series(np.asarray(y, dtype=float))


def _usable_fit(fitted: pd.Series, aic, bic) -> bool:
    """Some defined fitted values and finite information criteria"""
    if aic is None or bic is None or not np.isfinite([aic, bic]).all():
        return False
    return bool(np.isfinite(fitted.to_numpy(dtype=float)).any())


class ForecastModel(ABC):
    """Base class for forecasting models"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def fit(self, y: pd.Series) -> FittedModel:
        """Fit model to the series and return the fitted result"""
        pass

    def get_name(self) -> str:
        return self.name


class MovingAverageModel(ForecastModel):
    """Centred moving average smoother"""

    def __init__(self, window: int = 10, name: str = MOVING_AVERAGE):
        super().__init__(name)
        self.window = window

    def fit(self, y: pd.Series) -> FittedModel:
        y = _as_series(y)
        if len(y) <= self.window:
            raise ModelFitFailure(self.name, f"series length {len(y)} <= window {self.window}")

        smoothed = centred_moving_average(y, self.window).rename(self.name)
        last_defined = float(smoothed.dropna().iloc[-1])

        return FittedModel(
            name=self.name,
            fitted=smoothed,
            info={"window": self.window, "undefined_each_end": self.window // 2},
            # No model of the future: carry the last smoothed level forward
            forecaster=lambda h: np.full(h, last_defined),
        )


class LinearTrendModel(ForecastModel):
    """OLS of price on the time index 1..n"""

    def __init__(self, name: str = LINEAR_REGRESSION):
        super().__init__(name)

    def fit(self, y: pd.Series) -> FittedModel:
        y = _as_series(y)
        n = len(y)
        if n < 3:
            raise ModelFitFailure(self.name, f"need at least 3 observations, got {n}")

        t = np.arange(1, n + 1, dtype=float)
        try:
            res = sm.OLS(y.to_numpy(), sm.add_constant(t)).fit()
        except Exception as e:
            raise ModelFitFailure(self.name, f"OLS failed: {e}") from e

        intercept, slope = float(res.params[0]), float(res.params[1])
        fitted = pd.Series(intercept + slope * t, index=y.index, name=self.name)

        return FittedModel(
            name=self.name,
            fitted=fitted,
            info={"intercept": intercept, "slope": slope, "r_squared": float(res.rsquared)},
            forecaster=lambda h: intercept + slope * np.arange(n + 1, n + h + 1, dtype=float),
        )


class ExponentialSmoothingModel(ForecastModel):
    """ETS state-space model (statsmodels ETSModel, MLE fit)"""

    def __init__(
        self,
        error: str = "add",
        trend: Optional[str] = None,
        seasonal: Optional[str] = None,
        seasonal_periods: int = 12,
        name: str = ETS_SIMPLE,
    ):
        super().__init__(name)
        self.error = error
        self.trend = trend
        self.seasonal = seasonal
        self.seasonal_periods = seasonal_periods

    @property
    def code(self) -> str:
        """ETS(error, trend, season) shorthand, e.g. ETS(M,A,M)"""
        letter = {None: "N", "add": "A", "mul": "M"}
        return f"ETS({letter[self.error]},{letter[self.trend]},{letter[self.seasonal]})"

    @property
    def is_multiplicative(self) -> bool:
        return "mul" in (self.error, self.trend, self.seasonal)

    def _check_input(self, y: pd.Series) -> None:
        if self.seasonal is not None and len(y) < 2 * self.seasonal_periods:
            raise ModelFitFailure(
                self.name,
                f"insufficient length for seasonal period {self.seasonal_periods}: "
                f"{len(y)} < {2 * self.seasonal_periods}",
            )
        if self.is_multiplicative and (y <= 0).any():
            raise ModelFitFailure(
                self.name,
                f"{self.code} requires strictly positive values "
                f"({int((y <= 0).sum())} non-positive)",
                {"min": float(y.min())},
            )

    def fit(self, y: pd.Series) -> FittedModel:
        y = _as_series(y)
        self._check_input(y)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                model = ETSModel(
                    y,
                    error=self.error,
                    trend=self.trend,
                    seasonal=self.seasonal,
                    seasonal_periods=self.seasonal_periods if self.seasonal else None,
                    damped_trend=False,
                )
                res = model.fit(disp=False)
            except Exception as e:
                raise ModelFitFailure(self.name, f"{self.code} fit failed: {e}") from e

        for w in caught:
            if issubclass(w.category, ConvergenceWarning):
                logger.warning(f"[bank] {self.name}: {w.message}")
            else:
                logger.debug(f"[bank] {self.name}: {w.category.__name__}: {w.message}")

        fitted = pd.Series(np.asarray(res.fittedvalues, dtype=float), index=y.index, name=self.name)
        aic, bic = float(res.aic), float(res.bic)
        if not _usable_fit(fitted, aic, bic):
            raise ModelFitFailure(self.name, f"{self.code} did not converge (non-finite fit)")

        components = {}
        for label, attr in (("level", "level"), ("trend", "slope"), ("season", "season")):
            values = getattr(res, attr, None)
            if values is not None:
                values = np.asarray(values, dtype=float)[-len(y):]
                components[label] = pd.Series(values, index=y.index, name=label)

        smoothing = {
            k: float(getattr(res, k))
            for k in ("smoothing_level", "smoothing_trend", "smoothing_seasonal")
            if getattr(res, k, None) is not None
        }

        return FittedModel(
            name=self.name,
            fitted=fitted,
            aic=aic,
            bic=bic,
            info={"model": self.code, **smoothing},
            components=components,
            forecaster=lambda h: np.asarray(res.forecast(h), dtype=float),
        )


class AutoARIMAModel(ForecastModel):
    """Seasonal ARIMA with orders chosen by information criterion (statsforecast)"""

    def __init__(
        self,
        season_length: int = 12,
        stepwise: bool = True,
        ic: str = "aicc",
        name: str = ARIMA,
    ):
        super().__init__(name)
        self.season_length = season_length
        self.stepwise = stepwise
        self.ic = ic

    def fit(self, y: pd.Series) -> FittedModel:
        from statsforecast.models import AutoARIMA

        y = _as_series(y)
        if len(y) < 3:
            raise ModelFitFailure(self.name, f"need at least 3 observations, got {len(y)}")

        model = AutoARIMA(season_length=self.season_length, stepwise=self.stepwise, ic=self.ic)
        try:
            model.fit(y.to_numpy(dtype=float))
            in_sample = model.predict_in_sample()["fitted"]
        except Exception as e:
            raise ModelFitFailure(self.name, f"auto ARIMA search failed: {e}") from e

        arima = model.model_
        aic, bic = arima.get("aic"), arima.get("bic")
        fitted = pd.Series(np.asarray(in_sample, dtype=float), index=y.index, name=self.name)
        if not _usable_fit(fitted, aic, bic):
            raise ModelFitFailure(self.name, "selected ARIMA has non-finite fit or information criteria")

        # statsforecast packs orders as (p, q, P, Q, m, d, D)
        p, q, P, Q, m, d, D = (int(v) for v in arima["arma"])
        order, seasonal_order = (p, d, q), (P, D, Q, m)
        logger.info(f"[bank] {self.name}: selected ARIMA{order}{seasonal_order} ({'stepwise' if self.stepwise else 'exhaustive'})")

        return FittedModel(
            name=self.name,
            fitted=fitted,
            aic=float(aic),
            bic=float(bic),
            info={"order": order, "seasonal_order": seasonal_order, "ic": self.ic, "stepwise": self.stepwise},
            forecaster=lambda h: np.asarray(model.predict(h=h)["mean"], dtype=float),
        )


class ModelFactory:
    """Factory for creating model instances"""

    _models = {
        "moving_average": MovingAverageModel,
        "linear_trend": LinearTrendModel,
        "ets": ExponentialSmoothingModel,
        "auto_arima": AutoARIMAModel,
    }

    @classmethod
    def create(cls, kind: str, **kwargs) -> ForecastModel:
        """Create model by kind"""
        if kind not in cls._models:
            raise ValueError(f"Unknown model kind: {kind}")

        return cls._models[kind](**kwargs)

    @classmethod
    def list_models(cls) -> List[str]:
        """List available model kinds"""
        return list(cls._models.keys())


def fit_model(spec: ModelSpec, y: pd.Series) -> FittedModel:
    """Fit one model from its spec. Raises ModelFitFailure on fit errors."""
    model = ModelFactory.create(spec.kind, name=spec.name, **spec.params)
    return model.fit(y)


def default_model_specs(
    ma_window: int = 10,
    seasonal_period: int = 12,
    arima_stepwise: bool = True,
) -> List[ModelSpec]:
    """The seven candidate models, in comparison-table order"""
    return [
        ModelSpec(MOVING_AVERAGE, "moving_average", {"window": ma_window}),
        ModelSpec(LINEAR_REGRESSION, "linear_trend"),
        ModelSpec(ETS_SIMPLE, "ets", {"error": "add"}),
        ModelSpec(ETS_HOLT, "ets", {"error": "add", "trend": "add"}),
        ModelSpec(
            ETS_HW_ADDITIVE,
            "ets",
            {"error": "add", "trend": "add", "seasonal": "add", "seasonal_periods": seasonal_period},
        ),
        ModelSpec(
            ETS_HW_MULTIPLICATIVE,
            "ets",
            {"error": "mul", "trend": "add", "seasonal": "mul", "seasonal_periods": seasonal_period},
        ),
        ModelSpec(ARIMA, "auto_arima", {"season_length": seasonal_period, "stepwise": arima_stepwise}),
    ]
