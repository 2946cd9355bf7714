# file: stockcast/pipeline/config.py
"""
Pipeline Configuration
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from stockcast.analysis.stationarity import StationarityConfig
from stockcast.data.config import Settings, load_settings
from stockcast.modeling.models import ARIMA, ETS_HW_MULTIPLICATIVE


@dataclass(frozen=True)
class PipelineConfig:
    # Data parameters
    symbol: str = "NVDA"
    start_date: str = "2015-01-01"
    end_date: str = "2025-01-01"
    interval: str = "1mo"
    provider: Optional[str] = None  # None: STOCKCAST_PROVIDER or "yahoo"
    csv_path: Optional[str] = None

    # Diagnostics
    alpha: float = 0.05
    acf_lags: int = 24

    # Models
    ma_window: int = 10
    seasonal_period: int = 12
    arima_stepwise: bool = True

    # Holdout
    horizon: int = 30
    holdout_models: Tuple[str, ...] = (ARIMA, ETS_HW_MULTIPLICATIVE)

    # IO (nothing is written when output_dir is None)
    output_dir: Optional[str] = None

    def run_id(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def settings(self) -> Settings:
        return load_settings(
            symbol=self.symbol,
            start_date=self.start_date,
            end_date=self.end_date,
            interval=self.interval,
            provider=self.provider,
            csv_path=self.csv_path,
        )

    def stationarity(self) -> StationarityConfig:
        return StationarityConfig(alpha=self.alpha)

    def output_path(self) -> Optional[Path]:
        return Path(self.output_dir) if self.output_dir else None

    def comparison_path(self) -> Path:
        return self.output_path() / "comparison.csv"

    def holdout_path(self) -> Path:
        return self.output_path() / "holdout.csv"

    def forecasts_path(self) -> Path:
        return self.output_path() / "forecasts.csv"

    def summary_path(self) -> Path:
        return self.output_path() / "summary.json"
