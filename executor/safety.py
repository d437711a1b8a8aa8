"""
Risk manager: streaming trade statistics and circuit breakers.

Nothing here raises on a tripped breaker; can_trade() is consulted once per
cycle and a False answer is an ordinary outcome of the control loop.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

HISTORY_CAPACITY = 1000
VAR_MIN_SAMPLES = 20
SHARPE_MIN_SAMPLES = 10
VAR_CONFIDENCE = 0.95
# Annualization treats every recorded trade as one trading day.
TRADING_DAYS_PER_YEAR = 252


@dataclass(frozen=True)
class RiskLimits:
    daily_loss_limit: float = 50.0
    max_consecutive_losses: int = 5
    max_drawdown: float = 0.15


@dataclass(frozen=True)
class RiskStatus:
    can_trade: bool
    consecutive_losses: int
    daily_loss: float
    daily_loss_pct: float
    current_drawdown_pct: float
    var_95: float
    sharpe_ratio: float
    tripped: str | None = None


def value_at_risk(history: list[float] | deque[float], confidence: float = VAR_CONFIDENCE) -> float:
    """
    Historical VaR over the loss samples. Needs VAR_MIN_SAMPLES trades; returns
    the loss magnitude at floor(confidence * n_losses) in ascending order.
    """
    if len(history) < VAR_MIN_SAMPLES:
        return 0.0
    losses = sorted(p for p in history if p < 0)
    index = math.floor(len(losses) * confidence)
    if index < len(losses):
        return -losses[index]
    return 0.0


def sharpe_ratio(history: list[float] | deque[float]) -> float:
    """Annualized mean/stddev of per-trade profit. 0 below SHARPE_MIN_SAMPLES or on zero variance."""
    if len(history) < SHARPE_MIN_SAMPLES:
        return 0.0
    arr = np.asarray(history, dtype=float)
    std = float(arr.std())
    if std < 1e-9:
        return 0.0
    return float(arr.mean()) / std * math.sqrt(TRADING_DAYS_PER_YEAR)


class RiskManager:
    """
    Tracks realized profit per cycle and capital high/low water marks.
    Single writer: only update() and reset_daily() mutate state.
    """

    def __init__(self, limits: RiskLimits | None = None, capacity: int = HISTORY_CAPACITY) -> None:
        self.limits = limits or RiskLimits()
        self._history: deque[float] = deque(maxlen=capacity)
        self.consecutive_losses = 0
        self.daily_loss = 0.0
        self.peak_capital = 0.0
        self.trough_capital = 0.0
        self.current_drawdown = 0.0
        self.var_95 = 0.0
        self.sharpe_ratio = 0.0

    @property
    def history(self) -> list[float]:
        return list(self._history)

    def update(self, profit: float, capital: float) -> None:
        """Record one realized profit and the capital that resulted from it."""
        self._history.append(profit)

        if profit < 0:
            self.consecutive_losses += 1
            self.daily_loss += abs(profit)
        else:
            self.consecutive_losses = 0

        if capital > self.peak_capital:
            self.peak_capital = capital
            self.trough_capital = capital
        elif capital < self.trough_capital:
            self.trough_capital = capital

        if self.peak_capital > 0:
            self.current_drawdown = (self.peak_capital - capital) / self.peak_capital
        else:
            self.current_drawdown = 0.0

        self.var_95 = value_at_risk(self._history)
        self.sharpe_ratio = sharpe_ratio(self._history)

        tripped = self.tripped_breaker()
        if tripped:
            logger.warning(
                "Circuit breaker tripped (%s): daily_loss=$%.2f losses=%d drawdown=%.1f%%",
                tripped, self.daily_loss, self.consecutive_losses, self.current_drawdown * 100,
            )

    def tripped_breaker(self) -> str | None:
        """Name of the first breaker whose limit is reached, else None."""
        if self.daily_loss >= self.limits.daily_loss_limit:
            return "daily_loss"
        if self.consecutive_losses >= self.limits.max_consecutive_losses:
            return "consecutive_losses"
        if self.current_drawdown >= self.limits.max_drawdown:
            return "drawdown"
        return None

    def can_trade(self) -> bool:
        return self.tripped_breaker() is None

    def reset_daily(self) -> None:
        """Clear the daily loss accumulator. The caller owns the day boundary."""
        logger.info("Daily loss reset (was $%.2f)", self.daily_loss)
        self.daily_loss = 0.0

    def status(self) -> RiskStatus:
        tripped = self.tripped_breaker()
        daily_loss_pct = (self.daily_loss / self.peak_capital * 100.0) if self.peak_capital > 0 else 0.0
        return RiskStatus(
            can_trade=tripped is None,
            consecutive_losses=self.consecutive_losses,
            daily_loss=self.daily_loss,
            daily_loss_pct=daily_loss_pct,
            current_drawdown_pct=self.current_drawdown * 100.0,
            var_95=self.var_95,
            sharpe_ratio=self.sharpe_ratio,
            tripped=tripped,
        )
