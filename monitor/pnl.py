"""
In-memory execution ledger with aggregate P&L statistics.
Records are append-only for the lifetime of the engine.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from scanner.models import TradeExecutionRecord

logger = logging.getLogger(__name__)


@dataclass
class ExecutionLedger:
    """Every simulated trade, in execution order, plus running totals."""

    total_profit: float = 0.0
    total_investment: float = 0.0
    winning_trades: int = 0
    losing_trades: int = 0
    _records: list[TradeExecutionRecord] = field(default_factory=list)
    _win_sum: float = 0.0
    _loss_sum: float = 0.0
    _session_start: float = field(default_factory=time.time)

    def record(self, trade: TradeExecutionRecord) -> None:
        self._records.append(trade)
        self.total_profit += trade.profit
        self.total_investment += trade.total_investment

        if trade.is_win:
            self.winning_trades += 1
            self._win_sum += trade.profit
        else:
            self.losing_trades += 1
            self._loss_sum += abs(trade.profit)

        logger.info(
            "Ledger: trade=%s pnl=$%.4f total=$%.2f trades=%d win_rate=%.1f%%",
            trade.trade_id, trade.profit, self.total_profit, self.total_trades,
            self.win_rate * 100,
            extra={"trade_id": trade.trade_id, "instrument_id": trade.instrument_id},
        )

    @property
    def records(self) -> list[TradeExecutionRecord]:
        return list(self._records)

    @property
    def total_trades(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def win_rate(self) -> float:
        """Fraction (0-1) of trades with positive profit."""
        if not self._records:
            return 0.0
        return self.winning_trades / len(self._records)

    @property
    def avg_win(self) -> float:
        if self.winning_trades == 0:
            return 0.0
        return self._win_sum / self.winning_trades

    @property
    def avg_loss(self) -> float:
        """Average loss magnitude (positive)."""
        if self.losing_trades == 0:
            return 0.0
        return self._loss_sum / self.losing_trades

    @property
    def session_duration_sec(self) -> float:
        return time.time() - self._session_start

    def summary(self) -> dict:
        return {
            "total_profit": round(self.total_profit, 4),
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate_pct": round(self.win_rate * 100, 1),
            "avg_win": round(self.avg_win, 4),
            "avg_loss": round(self.avg_loss, 4),
            "total_investment": round(self.total_investment, 2),
            "session_duration_sec": round(self.session_duration_sec, 0),
        }
