# file: stockcast/pipeline/io_utils.py
"""
Atomic export helpers: each file is written next to its target and moved
into place with os.replace, so readers never see a partial export.
"""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator

import numpy as np
import pandas as pd


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


@contextmanager
def _staged(path: Path) -> Iterator[Path]:
    """Yield a temp path beside `path`; promote it on success, remove it on error."""
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        yield tmp
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return str(value)


def atomic_write_csv(df: pd.DataFrame, path: Path, index: bool = False) -> None:
    with _staged(path) as tmp:
        df.to_csv(tmp, index=index)


def atomic_write_json(payload: Dict[str, Any], path: Path) -> None:
    with _staged(path) as tmp:
        tmp.write_text(json.dumps(payload, indent=2, default=_json_default), encoding="utf-8")
