"""
Modeling layer: Model Bank, evaluation and holdout

Implements the model comparison framework:
- Model implementations (moving average, linear trend, ETS family, auto ARIMA)
- Evaluation metrics (RMSE, MAE) and the comparison table
- Time-based train/test split with explicit invariant checks
- Model bank, holdout harness and selection rule
"""

from .backtesting import (DEFAULT_HORIZON, TrainTestSplit, train_test_split,
                          validate_split)
from .evaluation import (EvaluationRow, ForecastMetrics, build_comparison_table,
                         evaluate_fit)
from .models import (AutoARIMAModel, ExponentialSmoothingModel, FittedModel,
                     ForecastModel, LinearTrendModel, ModelFactory, ModelSpec,
                     MovingAverageModel, centred_moving_average,
                     default_model_specs, fit_model)
from .training import (BankResult, HoldoutResult, HoldoutRow, ModelBank,
                       ModelSelector, TrainTestHarness)

__all__ = [
    # Split
    "DEFAULT_HORIZON",
    "TrainTestSplit",
    "train_test_split",
    "validate_split",
    # Models
    "ModelSpec",
    "FittedModel",
    "ForecastModel",
    "MovingAverageModel",
    "LinearTrendModel",
    "ExponentialSmoothingModel",
    "AutoARIMAModel",
    "ModelFactory",
    "fit_model",
    "default_model_specs",
    "centred_moving_average",
    # Evaluation
    "ForecastMetrics",
    "EvaluationRow",
    "evaluate_fit",
    "build_comparison_table",
    # Bank / holdout
    "ModelBank",
    "BankResult",
    "TrainTestHarness",
    "HoldoutResult",
    "HoldoutRow",
    "ModelSelector",
]
