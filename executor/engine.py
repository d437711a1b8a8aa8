"""
Paper execution engine. Simulates filling the two legs of a complementary
arbitrage at VWAP-tracked prices with random slippage, and records the trade.
"""

from __future__ import annotations

import logging
import random
import time

from executor.sizing import PositionSizer, SizingPolicy, compute_position_size
from executor.vwap import DEFAULT_WINDOW, VwapTracker
from monitor.pnl import ExecutionLedger
from scanner.models import (
    ArbitrageOpportunity,
    Direction,
    Leg,
    MarketSnapshot,
    TokenSide,
    TradeExecutionRecord,
)

logger = logging.getLogger(__name__)

MIN_TRADE_SIZE = 10.0
DEFAULT_LEG_PRICE = 0.5
MAX_SLIPPAGE = 0.005
GAS_COST_PER_TRADE = 0.02
FEE_RATE = 0.002


class ExecutionSimulator:
    """
    Owns the VWAP history and the execution ledger. One call to execute()
    simulates one trade; nothing here touches capital.
    """

    def __init__(
        self,
        max_position_fraction: float = 0.1,
        vwap_window: int = DEFAULT_WINDOW,
        sizing_policy: SizingPolicy = "liquidity_cap",
        sizer: PositionSizer | None = None,
        rng: random.Random | None = None,
        ledger: ExecutionLedger | None = None,
    ) -> None:
        self.max_position_fraction = max_position_fraction
        self.sizing_policy = sizing_policy
        self.sizer = sizer or PositionSizer()
        self.vwap = VwapTracker(vwap_window)
        self.ledger = ledger if ledger is not None else ExecutionLedger()
        self._rng = rng or random.Random()

    def observe(self, snapshots: list[MarketSnapshot]) -> None:
        """Feed current quotes into the VWAP windows."""
        for snap in snapshots:
            self.vwap.update(snap.instrument_id, TokenSide.YES, snap.price_yes)
            self.vwap.update(snap.instrument_id, TokenSide.NO, snap.price_no)

    def position_size(self, opportunity: ArbitrageOpportunity, capital: float) -> float:
        return compute_position_size(
            opportunity,
            capital,
            self.max_position_fraction,
            policy=self.sizing_policy,
            sizer=self.sizer,
            win_rate=self.ledger.win_rate,
            avg_win=self.ledger.avg_win,
            avg_loss=self.ledger.avg_loss,
        )

    def execute(
        self,
        opportunity: ArbitrageOpportunity,
        capital: float,
    ) -> TradeExecutionRecord | None:
        """
        Simulate buying both sides of the opportunity's primary instrument.
        Returns None when the sized position is below MIN_TRADE_SIZE.
        """
        start = time.perf_counter()
        entry_time = time.time()

        position = self.position_size(opportunity, capital)
        if position < MIN_TRADE_SIZE:
            logger.info(
                "No trade for %s: position $%.2f below minimum $%.2f",
                opportunity.instrument_id, position, MIN_TRADE_SIZE,
            )
            return None

        instrument_id = opportunity.instrument_id
        leg_notional = position / 2.0

        legs: list[Leg] = []
        for side in (TokenSide.YES, TokenSide.NO):
            price = self.vwap.get_vwap(instrument_id, side)
            if price is None:
                price = DEFAULT_LEG_PRICE
            if price <= 0:
                logger.warning(
                    "No trade for %s: non-positive %s price %.4f",
                    instrument_id, side.value, price,
                )
                return None
            legs.append(Leg(
                instrument_id=instrument_id,
                side=side,
                direction=Direction.BUY,
                price=price,
                quantity=leg_notional / price,
            ))

        total_investment = sum(leg.price * leg.quantity for leg in legs)
        expected_return = _expected_settlement(legs)

        # uniform in [0, MAX_SLIPPAGE)
        slippage = self._rng.random() * MAX_SLIPPAGE
        actual_return = expected_return * (1.0 - slippage)
        profit = actual_return - total_investment
        roi_pct = (profit / total_investment * 100.0) if total_investment > 0 else 0.0

        trade = TradeExecutionRecord(
            trade_id=f"trade_{len(self.ledger) + 1}",
            instrument_id=instrument_id,
            kind=opportunity.kind,
            legs=tuple(legs),
            total_investment=total_investment,
            expected_return=expected_return,
            actual_return=actual_return,
            profit=profit,
            roi_pct=roi_pct,
            entry_time=entry_time,
            exit_time=time.time(),
            execution_time_ms=(time.perf_counter() - start) * 1000,
            slippage_pct=slippage * 100.0,
            gas_cost=GAS_COST_PER_TRADE,
            fees=total_investment * FEE_RATE,
        )
        self.ledger.record(trade)

        logger.info(
            "[PAPER] Executed %s on %s: invest=$%.2f return=$%.2f pnl=$%.4f slip=%.3f%%",
            opportunity.kind.value, instrument_id, total_investment,
            actual_return, profit, trade.slippage_pct,
        )
        return trade


def _expected_settlement(legs: list[Leg]) -> float:
    """
    Each unit pays $1 if its side resolves. Sides are weighted by their
    normalized implied probability price / (price_yes + price_no).
    Unlike a flat model (expected return == position), an underpriced book
    settles above the stake and a fair one returns it exactly.
    """
    price_sum = sum(leg.price for leg in legs)
    if price_sum <= 0:
        return 0.0
    return sum(leg.quantity * (leg.price / price_sum) for leg in legs)
