"""
Data layer: load and prepare the monthly price series

Simple, step-by-step functions:
1. config - Symbol, date range and provider settings
2. ingest - Provider fetch (yfinance or CSV) with fail-loud empty checks
3. prepare - Canonical [ds, adjusted_close] frame, monthly series, differencing
4. validate - Check monthly series integrity
"""

from .config import Settings, load_settings
from .ingest import (CsvPriceProvider, PriceProvider, YahooFinanceProvider,
                     get_provider, load_monthly_prices)
from .prepare import difference, integrate, normalize_prices, to_monthly_series
from .validate import (ValidationResult, assert_monthly_contract,
                       validate_monthly_frame)

__all__ = [
    "Settings",
    "load_settings",
    "PriceProvider",
    "YahooFinanceProvider",
    "CsvPriceProvider",
    "get_provider",
    "load_monthly_prices",
    "normalize_prices",
    "to_monthly_series",
    "difference",
    "integrate",
    "ValidationResult",
    "validate_monthly_frame",
    "assert_monthly_contract",
]
