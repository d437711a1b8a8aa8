"""
Position sizing. Two policies, chosen by config.sizing_policy:

- liquidity_cap: min(capital * max_position_fraction, 10% of book liquidity)
- kelly: fractional Kelly from realized win/loss statistics, still capped at
  10% of book liquidity

Both feed the same minimum-viable-size check in the execution simulator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from scanner.models import ArbitrageOpportunity

logger = logging.getLogger(__name__)

SizingPolicy = Literal["liquidity_cap", "kelly"]

# Never take more than this share of the quoted book
LIQUIDITY_TAKE_FRACTION = 0.1


def kelly_pct(win_rate: float, win_loss_ratio: float) -> float:
    """
    Kelly criterion: f* = (b*p - q) / b
    where b = avg win / avg loss, p = win rate, q = 1-p.
    """
    return (win_rate * win_loss_ratio - (1.0 - win_rate)) / win_loss_ratio


@dataclass(frozen=True)
class PositionSizer:
    kelly_fraction: float = 0.25
    max_position_pct: float = 0.05
    min_position: float = 10.0

    def calculate_position(
        self,
        capital: float,
        win_rate: float,
        avg_win: float,
        avg_loss: float,
        confidence: float,
    ) -> float:
        """
        Fractional Kelly scaled by confidence, capped at max_position_pct of
        capital and floored at min_position. Without loss statistics there is
        nothing to size from, so the minimum is returned.
        """
        if win_rate <= 0 or avg_loss <= 0:
            return self.min_position

        f = kelly_pct(win_rate, avg_win / avg_loss)
        adjusted = f * self.kelly_fraction * confidence
        position = capital * min(adjusted, self.max_position_pct)
        return max(position, self.min_position)


def liquidity_cap(opp: ArbitrageOpportunity) -> float:
    return opp.liquidity * LIQUIDITY_TAKE_FRACTION


def compute_position_size(
    opp: ArbitrageOpportunity,
    capital: float,
    max_position_fraction: float,
    policy: SizingPolicy = "liquidity_cap",
    sizer: PositionSizer | None = None,
    win_rate: float = 0.0,
    avg_win: float = 0.0,
    avg_loss: float = 0.0,
) -> float:
    """Dollar position for one opportunity under the selected policy."""
    if policy == "liquidity_cap":
        position = min(capital * max_position_fraction, liquidity_cap(opp))
    elif policy == "kelly":
        sizer = sizer or PositionSizer()
        kelly_position = sizer.calculate_position(
            capital, win_rate, avg_win, avg_loss, opp.confidence,
        )
        position = min(kelly_position, liquidity_cap(opp))
    else:
        raise ValueError(f"Unknown sizing policy: {policy}")

    logger.debug(
        "Sizing (%s): capital=$%.2f liquidity=%.0f position=$%.2f",
        policy, capital, opp.liquidity, position,
    )
    return position
