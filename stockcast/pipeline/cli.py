# file: stockcast/pipeline/cli.py
from __future__ import annotations

import logging
import sys
from typing import Optional

import numpy as np
import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from stockcast.errors import DataUnavailable, SplitInvariantViolation
from stockcast.pipeline.config import PipelineConfig
from stockcast.pipeline.tasks import (load_prices, prepare_series,
                                      run_diagnostics, run_full_pipeline)

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _strip_ipykernel_args(argv: list[str]) -> list[str]:
    """Jupyter/ipykernel injects `-f <connection_file>` into sys.argv."""
    out = [argv[0]]
    i = 1
    while i < len(argv):
        a = argv[i]
        if a in ("-f", "--f"):
            i += 2  # skip flag + value
            continue
        if a.startswith("--f="):
            i += 1
            continue
        out.append(a)
        i += 1
    return out


def _fmt(value) -> str:
    if value is None:
        return "n/a"
    if isinstance(value, (float, np.floating)):
        return "n/a" if not np.isfinite(value) else f"{value:.4f}"
    return str(value)


def _frame_table(df: pd.DataFrame, title: str) -> Table:
    table = Table(title=title)
    for i, col in enumerate(df.columns):
        table.add_column(str(col), style="cyan" if i == 0 else "green")
    for record in df.itertuples(index=False):
        table.add_row(*[_fmt(v) for v in record])
    return table


@app.command()
def run(
    symbol: str = "NVDA",
    start_date: str = "2015-01-01",
    end_date: str = "2025-01-01",
    horizon: int = 30,
    ma_window: int = 10,
    provider: Optional[str] = None,
    csv_path: Optional[str] = None,
    output_dir: Optional[str] = None,
    stepwise: bool = True,
):
    cfg = PipelineConfig(
        symbol=symbol,
        start_date=start_date,
        end_date=end_date,
        horizon=horizon,
        ma_window=ma_window,
        provider=provider,
        csv_path=csv_path,
        output_dir=output_dir,
        arima_stepwise=stepwise,
    )

    try:
        result = run_full_pipeline(cfg)
    except (DataUnavailable, SplitInvariantViolation, ValueError) as e:
        console.print(f"[red]Pipeline failed:[/red] {e}")
        raise typer.Exit(code=1)

    if result.diagnostics.stationarity:
        console.print(_frame_table(result.diagnostics.stationarity_frame, "Stationarity (ADF / KPSS)"))
    console.print(_frame_table(result.comparison, "In-sample Comparison"))
    console.print(_frame_table(result.holdout.table, f"Holdout (h={cfg.horizon})"))

    if result.selected is not None:
        console.print(f"[bold]Selected model:[/bold] {result.selected.model} (rmse={result.selected.rmse:.4f})")
    else:
        console.print("[yellow]No model could be selected[/yellow]")

    table = Table(title="Pipeline Results")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in result.summary().items():
        table.add_row(str(k), str(v))

    console.print(table)


@app.command()
def diagnose(
    symbol: str = "NVDA",
    start_date: str = "2015-01-01",
    end_date: str = "2025-01-01",
    provider: Optional[str] = None,
    csv_path: Optional[str] = None,
    acf_lags: int = 24,
):
    cfg = PipelineConfig(
        symbol=symbol,
        start_date=start_date,
        end_date=end_date,
        provider=provider,
        csv_path=csv_path,
        acf_lags=acf_lags,
    )

    try:
        series = prepare_series(load_prices(cfg))
    except (DataUnavailable, ValueError) as e:
        console.print(f"[red]No data:[/red] {e}")
        raise typer.Exit(code=1)

    diag = run_diagnostics(series, cfg)

    if diag.stationarity:
        console.print(_frame_table(diag.stationarity_frame, "Stationarity (ADF / KPSS)"))

    if diag.correlations is not None:
        console.print(_frame_table(diag.correlations.head(13), "ACF / PACF"))

    if diag.decomposition is not None:
        table = Table(title=f"STL (period={diag.decomposition.period})")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("trend_strength", _fmt(diag.decomposition.trend_strength))
        table.add_row("seasonal_strength", _fmt(diag.decomposition.seasonal_strength))
        console.print(table)

    for w in diag.warnings:
        console.print(f"[yellow]{w}[/yellow]")


if __name__ == "__main__":
    sys.argv = _strip_ipykernel_args(sys.argv)
    app(standalone_mode=False)  # <-- prevents SystemExit in Jupyter
