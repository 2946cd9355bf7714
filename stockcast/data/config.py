"""
Data Step 1: Configuration

Data-source settings. Provider choice and an optional CSV path can be set in
env (prod) / .env (local) so every run logs the same config.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

PROVIDERS = ("yahoo", "csv")


@dataclass(frozen=True)
class Settings:
    """Configuration for the monthly price pull"""
    symbol: str = "NVDA"
    start_date: str = "2015-01-01"
    end_date: str = "2025-01-01"
    interval: str = "1mo"
    provider: str = "yahoo"
    csv_path: Optional[str] = None

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {self.provider} (expected one of {PROVIDERS})")
        if self.provider == "csv" and not self.csv_path:
            raise ValueError("csv provider requires csv_path")


def load_settings(
    symbol: str = "NVDA",
    start_date: str = "2015-01-01",
    end_date: str = "2025-01-01",
    interval: str = "1mo",
    provider: Optional[str] = None,
    csv_path: Optional[str] = None,
) -> Settings:
    """
    Load settings from arguments, falling back to the environment.

    Reads STOCKCAST_PROVIDER and STOCKCAST_CSV_PATH from .env or the
    environment when the caller does not pass them.
    """
    load_dotenv()

    provider = provider or os.getenv("STOCKCAST_PROVIDER", "yahoo")
    csv_path = csv_path or os.getenv("STOCKCAST_CSV_PATH")

    return Settings(
        symbol=symbol,
        start_date=start_date,
        end_date=end_date,
        interval=interval,
        provider=provider,
        csv_path=csv_path,
    )
