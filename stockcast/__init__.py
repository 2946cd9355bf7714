"""
Stockcast - Monthly stock price forecasting

Modules:
- data: Price ingestion, monthly series preparation and validation
- analysis: Stationarity tests, ACF/PACF and STL decomposition
- modeling: Model bank, evaluation metrics and train/test holdout
- pipeline: Orchestration (tasks + Typer CLI)
"""

__version__ = "0.1.0"
