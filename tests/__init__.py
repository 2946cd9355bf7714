"""
Stockcast Test Suite

Tests organized by layer:
- test_data_ingest.py - providers and fail-loud ingest
- test_data_prepare.py - monthly series, differencing, validation gates
- test_analysis.py - stationarity tests, ACF/PACF and STL
- test_models.py - model bank members and fit failures
- test_evaluation.py - RMSE/MAE masking and the comparison table
- test_backtesting.py - train/test split invariants and holdout selection
- test_pipeline.py - end-to-end runs on the fixture CSV and the CLI
"""
