"""
Data models for the decision engine. Pure data, no behavior.
"""

from __future__ import annotations

import time
from enum import Enum
from dataclasses import dataclass, field


class TokenSide(Enum):
    YES = "YES"
    NO = "NO"


class Direction(Enum):
    BUY = "BUY"
    SELL = "SELL"


class ArbKind(Enum):
    SIMPLE_COMPLEMENTARY = "simple_complementary"
    GRAPH_CYCLE = "graph_cycle"


@dataclass(frozen=True)
class MarketSnapshot:
    """One quote of a binary market. Supplied by a feed, never mutated here."""
    instrument_id: str
    question: str
    price_yes: float
    price_no: float
    liquidity_yes: float = 0.0
    liquidity_no: float = 0.0
    volume_24h: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def total_liquidity(self) -> float:
        return self.liquidity_yes + self.liquidity_no

    def price(self, side: TokenSide) -> float:
        if side is TokenSide.YES:
            return self.price_yes
        if side is TokenSide.NO:
            return self.price_no
        raise ValueError(f"Unknown token side: {side}")


@dataclass(frozen=True)
class Leg:
    instrument_id: str
    side: TokenSide
    direction: Direction
    price: float
    quantity: float = 0.0  # 0 until sized


@dataclass(frozen=True)
class ArbitrageOpportunity:
    instrument_ids: tuple[str, ...]
    kind: ArbKind
    profit: float       # per $1 of payout, currency-normalized
    roi_pct: float
    confidence: float   # 0.0-1.0
    price_yes: float
    price_no: float
    liquidity: float
    question: str = ""
    legs: tuple[Leg, ...] | None = None
    path: tuple[str, ...] | None = None
    timestamp: float = field(default_factory=time.time)

    @property
    def instrument_id(self) -> str:
        """Primary instrument (the first one touched)."""
        return self.instrument_ids[0] if self.instrument_ids else ""

    @property
    def sum_price(self) -> float:
        return self.price_yes + self.price_no


@dataclass(frozen=True)
class TradeExecutionRecord:
    trade_id: str
    instrument_id: str
    kind: ArbKind
    legs: tuple[Leg, ...]
    total_investment: float
    expected_return: float
    actual_return: float
    profit: float
    roi_pct: float
    entry_time: float
    exit_time: float
    execution_time_ms: float
    slippage_pct: float
    gas_cost: float
    fees: float

    @property
    def net_profit(self) -> float:
        """Profit after the recorded gas and fees."""
        return self.profit - self.gas_cost - self.fees

    @property
    def is_win(self) -> bool:
        return self.profit > 0
