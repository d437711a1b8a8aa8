"""
Per-instrument price history and the two continuous signals the adaptive
policy discretizes: z-score of the latest YES price and one-step momentum.
Also the mean-reversion-time helpers used to pick a pair hedge ratio.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass

import numpy as np

from scanner.models import MarketSnapshot

HISTORY_LIMIT = 1000
HEDGE_MIN_SAMPLES = 10


@dataclass(frozen=True)
class PriceSignals:
    z_score: float = 0.0
    momentum: float = 0.0


def compute_signals(prices: list[float]) -> PriceSignals:
    """
    z-score of the last price against the whole window (population stddev)
    and (last - prev) / prev. Both are 0 with fewer than two prices.
    """
    if len(prices) < 2:
        return PriceSignals()

    arr = np.asarray(prices, dtype=float)
    last = float(arr[-1])
    prev = float(arr[-2])
    std = float(arr.std())
    z_score = (last - float(arr.mean())) / std if std > 0 else 0.0
    momentum = (last - prev) / prev if prev > 0 else 0.0
    return PriceSignals(z_score=z_score, momentum=momentum)


def mean_reversion_time(prices: list[float] | np.ndarray) -> float:
    """
    Empirical mean reversion time: average number of steps between
    changes of direction. A non-rising step counts as a fall. A series that
    never turns returns its own length; fewer than two prices return 0.
    """
    if len(prices) < 2:
        return 0.0
    trend = np.where(np.diff(np.asarray(prices, dtype=float)) > 0, 1, -1)
    turns = np.flatnonzero(trend[1:] != trend[:-1]) + 2
    if turns.size == 0:
        return float(len(prices))
    return float(np.diff(np.concatenate(([0], turns))).mean())


def find_hedge_ratio(asset1: list[float], asset2: list[float]) -> float:
    """
    Integer ratio a in [-3, 3] whose spread a*asset1 + asset2 reverts
    fastest. Ties go to the larger ratio. 1.0 for mismatched or short
    (< HEDGE_MIN_SAMPLES) series.
    """
    if len(asset1) != len(asset2) or len(asset1) < HEDGE_MIN_SAMPLES:
        return 1.0
    x = np.asarray(asset1, dtype=float)
    y = np.asarray(asset2, dtype=float)
    best_ratio, best_time = 1.0, math.inf
    for ratio in range(-3, 4):
        reversion = mean_reversion_time(ratio * x + y)
        if reversion <= best_time:
            best_ratio, best_time = float(ratio), reversion
    return best_ratio


class PriceHistory:
    """Bounded YES-price history per instrument."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self._limit = limit
        self._prices: dict[str, deque[float]] = {}

    def record(self, snapshots: list[MarketSnapshot]) -> None:
        for snap in snapshots:
            history = self._prices.get(snap.instrument_id)
            if history is None:
                history = deque(maxlen=self._limit)
                self._prices[snap.instrument_id] = history
            history.append(snap.price_yes)

    def prices(self, instrument_id: str) -> list[float]:
        return list(self._prices.get(instrument_id, ()))

    def signals(self, instrument_id: str) -> PriceSignals:
        return compute_signals(self.prices(instrument_id))
