"""
Unit tests for monitor/pnl.py -- execution ledger.
"""

import pytest

from monitor.pnl import ExecutionLedger
from scanner.models import ArbKind, TradeExecutionRecord


def _make_trade(trade_id="trade_1", profit=1.0, investment=100.0):
    return TradeExecutionRecord(
        trade_id=trade_id,
        instrument_id="m1",
        kind=ArbKind.SIMPLE_COMPLEMENTARY,
        legs=(),
        total_investment=investment,
        expected_return=investment + profit,
        actual_return=investment + profit,
        profit=profit,
        roi_pct=profit / investment * 100,
        entry_time=1000.0,
        exit_time=1000.1,
        execution_time_ms=0.1,
        slippage_pct=0.0,
        gas_cost=0.02,
        fees=0.2,
    )


class TestExecutionLedger:
    def test_empty(self):
        ledger = ExecutionLedger()
        assert ledger.total_trades == 0
        assert ledger.win_rate == 0.0
        assert ledger.avg_win == 0.0
        assert ledger.avg_loss == 0.0

    def test_record_accumulates(self):
        ledger = ExecutionLedger()
        ledger.record(_make_trade("t1", profit=2.0))
        ledger.record(_make_trade("t2", profit=-1.0))
        ledger.record(_make_trade("t3", profit=4.0))

        assert ledger.total_trades == 3
        assert len(ledger) == 3
        assert ledger.total_profit == pytest.approx(5.0)
        assert ledger.total_investment == pytest.approx(300.0)
        assert ledger.winning_trades == 2
        assert ledger.losing_trades == 1
        assert ledger.win_rate == pytest.approx(2 / 3)
        assert ledger.avg_win == pytest.approx(3.0)
        assert ledger.avg_loss == pytest.approx(1.0)

    def test_records_in_order_and_copied(self):
        ledger = ExecutionLedger()
        trades = [_make_trade(f"t{i}") for i in range(3)]
        for t in trades:
            ledger.record(t)
        records = ledger.records
        assert records == trades
        records.clear()
        assert ledger.total_trades == 3

    def test_breakeven_is_not_a_win(self):
        ledger = ExecutionLedger()
        ledger.record(_make_trade(profit=0.0))
        assert ledger.winning_trades == 0
        assert ledger.win_rate == 0.0

    def test_summary(self):
        ledger = ExecutionLedger()
        ledger.record(_make_trade(profit=1.5))
        summary = ledger.summary()
        assert summary["total_trades"] == 1
        assert summary["win_rate_pct"] == 100.0
        assert summary["total_profit"] == 1.5
