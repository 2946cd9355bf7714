"""
Analysis layer: diagnostics before modeling

- stationarity: ADF + KPSS on the raw and once-differenced series
- patterns: ACF/PACF and additive STL decomposition
"""

from .patterns import DecompositionResult, autocorrelations, decompose
from .stationarity import (StationarityConfig, StationarityResult,
                           StatTestResult, adf_test, check_stationarity,
                           kpss_test, stationarity_sweep, stationarity_table)

__all__ = [
    "StationarityConfig",
    "StationarityResult",
    "StatTestResult",
    "adf_test",
    "kpss_test",
    "check_stationarity",
    "stationarity_sweep",
    "stationarity_table",
    "autocorrelations",
    "decompose",
    "DecompositionResult",
]
