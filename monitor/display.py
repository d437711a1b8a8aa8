"""
Console output for engine runs.

Pure formatting functions that emit log lines using box-drawing characters.
No side effects beyond logging. All data arrives via arguments.
"""

from __future__ import annotations

import logging

from config import Config
from executor.safety import RiskStatus
from pipeline.cycle import CycleSummary
from pipeline.simulation import SimulationResult

logger = logging.getLogger(__name__)

_TOP = "┌"
_MID = "│"
_BOT = "└"
_DASH = "─"

_LINE_WIDTH = 60


def print_startup(cfg: Config, source: str) -> None:
    """Config block emitted once before the first cycle."""
    logger.info("  Source: %-10s Capital: $%.2f", source, cfg.initial_capital)
    logger.info(
        "  Profit >= %.3f  Liquidity >= $%.0f  Top %d  Sizing: %s",
        cfg.min_profit_threshold, cfg.min_liquidity, cfg.max_pairs, cfg.sizing_policy,
    )
    logger.info(
        "  Breakers: daily loss $%.0f  %d losses  drawdown %.0f%%",
        cfg.daily_loss_limit, cfg.max_consecutive_losses, cfg.max_drawdown * 100,
    )
    logger.info(
        "  Policy: epsilon=%.2f alpha=%.2f gamma=%.2f",
        cfg.epsilon, cfg.alpha, cfg.gamma,
    )


def format_cycle(summary: CycleSummary) -> str:
    if summary.risk_blocked:
        outcome = "BLOCKED"
    elif summary.trades_executed:
        outcome = f"trade ${summary.profit:+.4f}"
    else:
        outcome = "no trade"
    return (
        f"{_MID} #{summary.cycle:<5d} opps={summary.opportunities_found:<4d} "
        f"{outcome:<18s} capital=${summary.capital:,.2f} win={summary.win_rate * 100:.1f}%"
    )


def print_cycle(summary: CycleSummary) -> None:
    logger.info("  %s", format_cycle(summary))


def print_risk_status(status: RiskStatus) -> None:
    gate = "OPEN" if status.can_trade else f"CLOSED ({status.tripped})"
    logger.info(
        "  %s Risk: gate %s  losses=%d  daily=$%.2f  drawdown=%.2f%%  VaR95=$%.4f  Sharpe=%.2f",
        _MID, gate, status.consecutive_losses, status.daily_loss,
        status.current_drawdown_pct, status.var_95, status.sharpe_ratio,
    )


def print_summary(result: SimulationResult, status: RiskStatus) -> None:
    """Close the session box with run totals."""
    logger.info("  %s%s", _TOP, _DASH * _LINE_WIDTH)
    logger.info(
        "  %s Cycles: %d (%d skipped, %d risk-blocked)",
        _MID, result.num_steps, result.skipped_cycles, result.risk_blocked_cycles,
    )
    logger.info(
        "  %s Capital: $%.2f -> $%.2f  (P&L $%+.2f, ROI %+.2f%%)",
        _MID, result.initial_capital, result.final_capital, result.total_profit, result.total_roi,
    )
    logger.info(
        "  %s Trades: %d  wins %d  win rate %.1f%%",
        _MID, result.total_trades, result.successful_trades, result.win_rate * 100,
    )
    print_risk_status(status)
    logger.info("  %s%s", _BOT, _DASH * _LINE_WIDTH)
