"""
Simulated market feed for paper runs and tests. Generates a universe of
binary markets and random-walks their quotes on every fetch, occasionally
pushing YES + NO below 1 to create arbitrage.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import replace

from scanner.models import MarketSnapshot

logger = logging.getLogger(__name__)

_QUESTIONS = (
    "Will BTC exceed $100k by end of year?",
    "Will ETH flip BTC market cap?",
    "Will SOL reach $500?",
    "Will AVAX staking APY exceed 15%?",
    "Will DOT governance proposal pass?",
    "Will LINK oracle integration complete?",
    "Will MATIC achieve 100k TPS?",
    "Will UNI v4 launch this quarter?",
    "Will AAVE deploy on new chain?",
    "Will SUSHI governance token burn occur?",
)

PRICE_FLOOR = 0.01
PRICE_CEIL = 0.99
INITIAL_MISPRICING_PROB = 0.30
STEP_MISPRICING_PROB = 0.10
MAX_STEP_MOVE = 0.02


class SimulatedFeed:
    """Seedable in-memory feed. Snapshots are replaced wholesale per fetch."""

    def __init__(self, n_markets: int = 50, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._markets: list[MarketSnapshot] = [self._generate(i) for i in range(n_markets)]
        logger.info("Simulated feed: %d markets (seed=%s)", n_markets, seed)

    @property
    def markets(self) -> list[MarketSnapshot]:
        return list(self._markets)

    def _mispricing(self) -> float:
        return self._rng.uniform(0.01, 0.05)

    def _generate(self, index: int) -> MarketSnapshot:
        rng = self._rng
        price_yes = rng.uniform(0.3, 0.7)
        price_no = 1.0 - price_yes
        if rng.random() < INITIAL_MISPRICING_PROB:
            m = self._mispricing()
            price_yes = max(price_yes - m * 0.5, PRICE_FLOOR)
            price_no = max(price_no - m * 0.5, PRICE_FLOOR)

        return MarketSnapshot(
            instrument_id=f"market_{index}",
            question=_QUESTIONS[index % len(_QUESTIONS)],
            price_yes=price_yes,
            price_no=price_no,
            liquidity_yes=rng.uniform(5_000.0, 50_000.0),
            liquidity_no=rng.uniform(5_000.0, 50_000.0),
            volume_24h=rng.uniform(10_000.0, 100_000.0),
        )

    def _step(self, snap: MarketSnapshot) -> MarketSnapshot:
        rng = self._rng
        # sides move independently so mispricings can persist
        price_yes = _clamp(snap.price_yes * (1.0 + rng.uniform(-MAX_STEP_MOVE, MAX_STEP_MOVE)))
        price_no = _clamp(snap.price_no * (1.0 + rng.uniform(-MAX_STEP_MOVE, MAX_STEP_MOVE)))

        if rng.random() < STEP_MISPRICING_PROB:
            m = self._mispricing()
            price_yes = max(price_yes - m * 0.5, PRICE_FLOOR)
            price_no = max(price_no - m * 0.5, PRICE_FLOOR)

        return replace(
            snap,
            price_yes=price_yes,
            price_no=price_no,
            liquidity_yes=snap.liquidity_yes * rng.uniform(0.95, 1.05),
            liquidity_no=snap.liquidity_no * rng.uniform(0.95, 1.05),
            volume_24h=snap.volume_24h * rng.uniform(0.99, 1.01),
            timestamp=time.time(),
        )

    def fetch(self) -> list[MarketSnapshot]:
        self._markets = [self._step(s) for s in self._markets]
        return list(self._markets)


def _clamp(price: float) -> float:
    return min(max(price, PRICE_FLOOR), PRICE_CEIL)
