"""
Train/Test Split

Time-based holdout for fair out-of-sample comparison:
- Train: the first n - h observations
- Test: the last h observations (the forecast horizon)

Never random: a shuffled split would leak the future into training.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import pandas as pd

from stockcast.errors import SplitInvariantViolation

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = 30


@dataclass
class TrainTestSplit:
    """Represents the single train/test split"""
    train: pd.Series
    test: pd.Series
    horizon: int

    def __post_init__(self):
        """Validate no leakage"""
        if len(self.train) and len(self.test) and self.train.index[-1] >= self.test.index[0]:
            raise ValueError(
                f"Train/test leakage: train_end ({self.train.index[-1]}) >= "
                f"test_start ({self.test.index[0]})"
            )

    @property
    def train_size(self) -> int:
        """Number of training observations"""
        return len(self.train)

    @property
    def test_size(self) -> int:
        """Number of test observations"""
        return len(self.test)

    @property
    def info(self) -> Dict:
        """Serialize split info"""
        return {
            "horizon": self.horizon,
            "train_start": str(self.train.index[0]),
            "train_end": str(self.train.index[-1]),
            "test_start": str(self.test.index[0]),
            "test_end": str(self.test.index[-1]),
            "train_size": self.train_size,
            "test_size": self.test_size,
        }


def train_test_split(series: pd.Series, horizon: int = DEFAULT_HORIZON) -> TrainTestSplit:
    """
    Split at index n - h.

    Args:
        series: Full monthly series
        horizon: Test length h (forecast horizon)

    Returns:
        TrainTestSplit with train ++ test == series

    Raises:
        ValueError: horizon not in [1, n - 1]
        SplitInvariantViolation: lengths do not add back up to n
    """
    n = len(series)
    if horizon <= 0 or horizon >= n:
        raise ValueError(f"horizon must be in [1, {n - 1}] for a series of length {n}, got {horizon}")

    cut = n - horizon
    train = series.iloc[:cut]
    test = series.iloc[cut:]

    if len(train) + len(test) != n:
        raise SplitInvariantViolation(
            "len(train) + len(test) != n",
            {"train": len(train), "test": len(test), "n": n, "horizon": horizon},
        )

    split = TrainTestSplit(train=train, test=test, horizon=horizon)
    logger.info(
        f"[holdout] split: train={split.train_size} "
        f"({split.info['train_start'][:7]}..{split.info['train_end'][:7]}), "
        f"test={split.test_size} ({split.info['test_start'][:7]}..{split.info['test_end'][:7]})"
    )
    return split


def validate_split(series: pd.Series, split: TrainTestSplit) -> bool:
    """
    Validate a split against the series it came from.

    Checks:
    1. Length: len(train) + len(test) == n
    2. Test size equals the horizon
    3. Adjacency: train ends exactly one period before test starts
    4. Content: train ++ test reproduces the series
    """
    is_valid = True

    if split.train_size + split.test_size != len(series):
        logger.error("[holdout] split loses or duplicates observations")
        is_valid = False

    if split.test_size != split.horizon:
        logger.error(f"[holdout] test size {split.test_size} != horizon {split.horizon}")
        is_valid = False

    if split.train_size and split.test_size:
        pos_end = series.index.get_loc(split.train.index[-1])
        pos_start = series.index.get_loc(split.test.index[0])
        if pos_start != pos_end + 1:
            logger.error("[holdout] gap or overlap between train and test")
            is_valid = False

    if is_valid and not pd.concat([split.train, split.test]).equals(series):
        logger.error("[holdout] train ++ test differs from the series")
        is_valid = False

    return is_valid
