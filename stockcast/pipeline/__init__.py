"""
Pipeline: end-to-end orchestration

This module provides:
1. Pipeline configuration (config.py)
2. Ordered pipeline tasks (tasks.py)
3. Typer CLI for local execution (cli.py)

Usage (CLI):
    python -m stockcast.pipeline.cli run --symbol NVDA --horizon 30
    python -m stockcast.pipeline.cli diagnose --provider csv --csv-path prices.csv

Usage (Python):
    from stockcast.pipeline import PipelineConfig, run_full_pipeline
"""

from .config import PipelineConfig
from .tasks import (Diagnostics, PipelineResult, export_results,
                    fit_model_bank, load_prices, prepare_series,
                    run_diagnostics, run_full_pipeline, run_holdout)

__all__ = [
    "PipelineConfig",
    "Diagnostics",
    "PipelineResult",
    "load_prices",
    "prepare_series",
    "run_diagnostics",
    "fit_model_bank",
    "run_holdout",
    "export_results",
    "run_full_pipeline",
]
