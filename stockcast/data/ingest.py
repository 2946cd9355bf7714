"""
Data Step 2: Ingest monthly prices

Providers return the raw Yahoo-style table
(Date, Open, High, Low, Close, Adj Close, Volume). load_monthly_prices
normalizes it to the canonical [ds, adjusted_close] frame and fails loud
when nothing usable comes back.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import pandas as pd
import yfinance as yf

from stockcast.errors import DataUnavailable

from .config import Settings
from .prepare import normalize_prices

logger = logging.getLogger(__name__)


class PriceProvider(ABC):
    """Base class for market data providers"""

    @abstractmethod
    def fetch(self, symbol: str, start_date: str, end_date: str, interval: str = "1mo") -> pd.DataFrame:
        """Return raw OHLC rows with a Date column (may be empty)"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Provider name"""
        pass


class YahooFinanceProvider(PriceProvider):
    """Yahoo Finance via yfinance (end date is exclusive)"""

    def fetch(self, symbol: str, start_date: str, end_date: str, interval: str = "1mo") -> pd.DataFrame:
        logger.info(f"[ingest] yahoo: {symbol} {start_date} to {end_date} ({interval})")

        raw = yf.download(
            symbol,
            start=start_date,
            end=end_date,
            interval=interval,
            auto_adjust=False,
            actions=False,
            progress=False,
        )

        if raw is None or raw.empty:
            return pd.DataFrame()

        # Recent yfinance returns (Price, Ticker) columns even for one symbol
        if isinstance(raw.columns, pd.MultiIndex):
            raw = raw.copy()
            raw.columns = raw.columns.get_level_values(0)

        raw = raw.reset_index()
        if "Date" not in raw.columns:
            raw = raw.rename(columns={raw.columns[0]: "Date"})

        return raw

    def get_name(self) -> str:
        return "yahoo"


class CsvPriceProvider(PriceProvider):
    """Yahoo-style CSV export on disk, filtered to [start_date, end_date)"""

    def __init__(self, path: str):
        self.path = Path(path)

    def fetch(self, symbol: str, start_date: str, end_date: str, interval: str = "1mo") -> pd.DataFrame:
        if not self.path.exists():
            raise FileNotFoundError(f"Price CSV not found: {self.path}")

        logger.info(f"[ingest] csv: {self.path} ({symbol}) {start_date} to {end_date}")

        raw = pd.read_csv(self.path)
        if "Date" not in raw.columns:
            raise ValueError(f"Expected a Date column in {self.path}, got {raw.columns.tolist()}")

        dates = pd.to_datetime(raw["Date"], errors="raise")
        mask = (dates >= pd.Timestamp(start_date)) & (dates < pd.Timestamp(end_date))
        return raw.loc[mask].reset_index(drop=True)

    def get_name(self) -> str:
        return "csv"


def get_provider(settings: Settings) -> PriceProvider:
    """Create the provider named in settings"""
    if settings.provider == "csv":
        return CsvPriceProvider(settings.csv_path)
    return YahooFinanceProvider()


def load_monthly_prices(settings: Settings, provider: PriceProvider = None) -> pd.DataFrame:
    """
    Pull monthly prices and return the canonical frame.

    Args:
        settings: Symbol, date range and provider configuration
        provider: Optional provider instance (defaults to get_provider(settings))

    Returns:
        DataFrame with columns [ds, adjusted_close], one row per month

    Raises:
        DataUnavailable: provider failed, or returned no usable rows
    """
    provider = provider or get_provider(settings)

    try:
        raw = provider.fetch(
            settings.symbol,
            settings.start_date,
            settings.end_date,
            interval=settings.interval,
        )
    except DataUnavailable:
        raise
    except Exception as e:
        raise DataUnavailable(
            f"Provider '{provider.get_name()}' failed for {settings.symbol}: {e}",
            {"symbol": settings.symbol, "provider": provider.get_name()},
        ) from e

    if raw is None or raw.empty:
        raise DataUnavailable(
            f"No rows returned for {settings.symbol}",
            {
                "symbol": settings.symbol,
                "start_date": settings.start_date,
                "end_date": settings.end_date,
                "provider": provider.get_name(),
            },
        )

    prices = normalize_prices(raw)

    if prices.empty:
        raise DataUnavailable(
            f"No adjusted close values for {settings.symbol}",
            {"symbol": settings.symbol, "raw_rows": int(len(raw))},
        )

    logger.info(
        f"[ingest] {settings.symbol}: {len(prices)} months, "
        f"{prices['ds'].min():%Y-%m} to {prices['ds'].max():%Y-%m}"
    )
    return prices
