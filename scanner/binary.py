"""
Binary market complementary-price scanner.
Detects when YES + NO < 1.0: buying one of each guarantees $1.00 at resolution.
"""

from __future__ import annotations

import logging

from scanner.models import (
    ArbitrageOpportunity,
    ArbKind,
    Direction,
    Leg,
    MarketSnapshot,
    TokenSide,
)

logger = logging.getLogger(__name__)

# Confidence normalizers: a factor saturates at 1.0 once it reaches these
_FULL_LIQUIDITY = 10_000.0
_FULL_PROFIT = 0.05
_FULL_VOLUME = 50_000.0

W_LIQUIDITY = 0.3
W_PROFIT = 0.5
W_VOLUME = 0.2


def arb_confidence(total_liquidity: float, profit: float, volume_24h: float) -> float:
    liquidity_score = min(total_liquidity / _FULL_LIQUIDITY, 1.0)
    profit_score = min(profit / _FULL_PROFIT, 1.0)
    volume_score = min(volume_24h / _FULL_VOLUME, 1.0)
    return W_LIQUIDITY * liquidity_score + W_PROFIT * profit_score + W_VOLUME * volume_score


def check_complementary_arb(
    snapshot: MarketSnapshot,
    min_profit: float,
    min_liquidity: float,
) -> ArbitrageOpportunity | None:
    """
    Check if buying both YES and NO is cheaper than $1.00.
    Returns None when there is no edge or it fails the profit/liquidity floors.
    """
    sum_price = snapshot.price_yes + snapshot.price_no
    if sum_price >= 1.0:
        return None

    profit = 1.0 - sum_price
    if profit < min_profit:
        return None

    total_liquidity = snapshot.total_liquidity
    if total_liquidity < min_liquidity:
        return None

    confidence = arb_confidence(total_liquidity, profit, snapshot.volume_24h)

    logger.debug(
        "COMPLEMENTARY ARB: %s | sum=%.4f profit=%.4f liq=%.0f conf=%.2f",
        snapshot.question[:60], sum_price, profit, total_liquidity, confidence,
    )

    return ArbitrageOpportunity(
        instrument_ids=(snapshot.instrument_id,),
        kind=ArbKind.SIMPLE_COMPLEMENTARY,
        profit=profit,
        roi_pct=profit * 100.0,
        confidence=confidence,
        price_yes=snapshot.price_yes,
        price_no=snapshot.price_no,
        liquidity=total_liquidity,
        question=snapshot.question,
        legs=(
            Leg(snapshot.instrument_id, TokenSide.YES, Direction.BUY, snapshot.price_yes),
            Leg(snapshot.instrument_id, TokenSide.NO, Direction.BUY, snapshot.price_no),
        ),
        timestamp=snapshot.timestamp,
    )


def scan_snapshots(
    snapshots: list[MarketSnapshot],
    min_profit: float,
    min_liquidity: float,
) -> list[ArbitrageOpportunity]:
    """Run the complementary check over every snapshot. Keeps input order."""
    opportunities: list[ArbitrageOpportunity] = []
    for snapshot in snapshots:
        opp = check_complementary_arb(snapshot, min_profit, min_liquidity)
        if opp:
            opportunities.append(opp)
    return opportunities
