"""
Multi-cycle runner: drives step() against a feed for N cycles, resets the
daily loss window on a cycle cadence, and aggregates the cycle summaries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from client.feed import SnapshotFeed, SnapshotFetchError
from pipeline.cycle import CycleSummary, EngineState, step

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    num_steps: int
    initial_capital: float
    final_capital: float
    total_profit: float
    total_roi: float
    total_trades: int
    successful_trades: int
    win_rate: float
    skipped_cycles: int = 0
    risk_blocked_cycles: int = 0
    steps: list[CycleSummary] = field(default_factory=list)


def run_simulation(
    feed: SnapshotFeed,
    state: EngineState,
    steps: int,
    cycles_per_day: int = 0,
    interval_sec: float = 0.0,
    on_cycle: Callable[[CycleSummary], None] | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> SimulationResult:
    """
    Run `steps` cycles. A failed fetch skips that cycle (logged) instead of
    ending the run. cycles_per_day > 0 resets the daily loss accumulator
    every that many cycles; 0 never resets.

    interval_sec paces cycles against wall-clock time (live feeds).
    should_stop is polled before each cycle; a True ends the run early and
    num_steps reports the cycles actually attempted.
    """
    if steps < 0:
        raise ValueError(f"steps must be >= 0, got {steps}")

    initial_capital = state.capital
    summaries: list[CycleSummary] = []
    skipped = 0
    attempted = 0

    for i in range(steps):
        if should_stop is not None and should_stop():
            logger.info("Stop requested after %d cycles", attempted)
            break
        attempted += 1
        cycle_start = time.time()
        if cycles_per_day > 0 and i > 0 and i % cycles_per_day == 0:
            state.risk.reset_daily()
            logger.info("Daily risk window reset at cycle %d", state.cycle + 1)
        try:
            summary = step(feed, state)
        except SnapshotFetchError as e:
            skipped += 1
            logger.warning("Skipping cycle: %s", e)
            _sleep_remaining(cycle_start, interval_sec)
            continue
        summaries.append(summary)
        if on_cycle is not None:
            on_cycle(summary)
        if i < steps - 1:
            _sleep_remaining(cycle_start, interval_sec)

    ledger = state.executor.ledger
    total_profit = state.capital - initial_capital
    total_roi = total_profit / initial_capital * 100 if initial_capital > 0 else 0.0

    result = SimulationResult(
        num_steps=attempted,
        initial_capital=initial_capital,
        final_capital=state.capital,
        total_profit=total_profit,
        total_roi=total_roi,
        total_trades=ledger.total_trades,
        successful_trades=ledger.winning_trades,
        win_rate=ledger.win_rate,
        skipped_cycles=skipped,
        risk_blocked_cycles=sum(1 for s in summaries if s.risk_blocked),
        steps=summaries,
    )
    logger.info(
        "Simulation done: %d cycles, %d trades, profit $%.2f (%.2f%%), win rate %.1f%%",
        attempted, result.total_trades, total_profit, total_roi, result.win_rate * 100,
    )
    return result


def _sleep_remaining(cycle_start: float, interval: float) -> None:
    remaining = interval - (time.time() - cycle_start)
    if remaining > 0:
        logger.debug("Sleeping %.1fs until next cycle...", remaining)
        time.sleep(remaining)
