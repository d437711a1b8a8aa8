"""
Integration tests for pipeline/cycle.py -- one decision cycle end to end.
"""

import random

import pytest

from client.feed import SnapshotFetchError
from config import Config
from executor.engine import ExecutionSimulator
from executor.safety import RiskLimits, RiskManager
from pipeline.cycle import EngineState, build_engine, get_risk_status, run_cycle, step
from scanner.graph import GraphScanner
from scanner.models import MarketSnapshot
from scanner.rl_strategy import AdaptivePolicy


def _make_snapshot(instrument_id, price_yes, price_no, liquidity=10000.0, volume=30000.0):
    return MarketSnapshot(
        instrument_id=instrument_id,
        question=f"Question for {instrument_id}?",
        price_yes=price_yes,
        price_no=price_no,
        liquidity_yes=liquidity,
        liquidity_no=liquidity,
        volume_24h=volume,
    )


def _make_state(capital=1000.0, max_position_fraction=0.5, risk=None, seed=1):
    return EngineState(
        capital=capital,
        executor=ExecutionSimulator(
            max_position_fraction=max_position_fraction, rng=random.Random(seed),
        ),
        risk=risk or RiskManager(),
        policy=AdaptivePolicy(epsilon=0.0, rng=random.Random(seed)),
        graph=GraphScanner(),
    )


class _StaticFeed:
    def __init__(self, snapshots):
        self.snapshots = snapshots

    def fetch(self):
        return list(self.snapshots)


class _FailingFeed:
    def fetch(self):
        raise SnapshotFetchError("upstream down")


class TestRunCycle:
    def test_two_opportunities_one_trade(self):
        state = _make_state()
        snaps = [
            _make_snapshot("a", 0.40, 0.55),
            _make_snapshot("b", 0.45, 0.53),
        ]

        summary = run_cycle(snaps, state)

        assert summary.cycle == 1
        assert summary.opportunities_found == 2
        assert summary.trades_executed == 1
        assert summary.risk_blocked is False
        assert state.capital == 1000.0 + summary.profit
        assert summary.capital == state.capital

        trades = state.executor.ledger.records
        assert len(trades) == 1
        # a has the larger edge and ranks first
        assert trades[0].instrument_id == "a"
        # min(1000 * 0.5, 10% of 20000)
        assert trades[0].total_investment == pytest.approx(500.0)

    def test_feedback_reaches_risk_and_policy(self):
        state = _make_state()
        summary = run_cycle([_make_snapshot("a", 0.40, 0.55)], state)

        assert state.risk.history == [pytest.approx(summary.profit)]
        assert state.policy.stats["total_updates"] == 1
        assert summary.policy_action == 0
        assert summary.win_rate == state.executor.ledger.win_rate

    def test_no_opportunities(self):
        state = _make_state()
        summary = run_cycle([_make_snapshot("a", 0.50, 0.50)], state)
        assert summary.opportunities_found == 0
        assert summary.trades_executed == 0
        assert summary.profit == 0.0
        assert state.capital == 1000.0
        assert state.risk.history == []

    def test_empty_snapshot_list(self):
        state = _make_state()
        summary = run_cycle([], state)
        assert summary.cycle == 1
        assert summary.opportunities_found == 0

    def test_optimizer_rejects_everything(self):
        """0.6% edge passes the scanner but not the optimizer's ROI floor."""
        state = _make_state()
        summary = run_cycle([_make_snapshot("a", 0.497, 0.497)], state)
        assert summary.opportunities_found == 1
        assert summary.trades_executed == 0
        assert state.capital == 1000.0

    def test_risk_gate_blocks_execution(self):
        risk = RiskManager(RiskLimits(max_consecutive_losses=1))
        risk.update(-1.0, 999.0)
        state = _make_state(capital=999.0, risk=risk)

        summary = run_cycle([_make_snapshot("a", 0.40, 0.55)], state)

        assert summary.risk_blocked is True
        assert summary.trades_executed == 0
        assert summary.opportunities_found == 1
        assert state.capital == 999.0
        assert len(state.executor.ledger) == 0
        assert risk.history == [-1.0]

    def test_position_below_minimum_records_flat_outcome(self):
        state = _make_state(capital=15.0, max_position_fraction=0.5)
        summary = run_cycle([_make_snapshot("a", 0.40, 0.55)], state)
        assert summary.trades_executed == 0
        assert summary.policy_action is not None
        assert state.capital == 15.0
        assert state.risk.history == [0.0]
        assert state.policy.stats["total_updates"] == 0

    def test_declined_trade_resets_loss_streak(self):
        risk = RiskManager(RiskLimits(max_consecutive_losses=5))
        for _ in range(4):
            risk.update(-0.01, 15.0)
        state = _make_state(capital=15.0, max_position_fraction=0.5, risk=risk)

        # position 7.5 is under the $10 minimum, so nothing executes
        summary = run_cycle([_make_snapshot("a", 0.40, 0.55)], state)

        assert summary.trades_executed == 0
        assert risk.history[-1] == 0.0
        assert risk.consecutive_losses == 0
        assert len(state.executor.ledger) == 0

    def test_graph_scanner_tracks_snapshots(self):
        state = _make_state()
        run_cycle([_make_snapshot("a", 0.40, 0.55), _make_snapshot("b", 1.0, 0.5)], state)
        assert set(state.graph.markets) == {"a"}

    def test_graph_forgets_instruments_missing_from_cycle(self):
        state = _make_state()
        run_cycle([_make_snapshot("a", 0.40, 0.55), _make_snapshot("b", 0.45, 0.53)], state)
        run_cycle([_make_snapshot("b", 0.45, 0.53)], state)
        assert set(state.graph.markets) == {"b"}

    def test_cycle_counter_increments(self):
        state = _make_state()
        for _ in range(3):
            summary = run_cycle([], state)
        assert summary.cycle == 3


class TestStep:
    def test_fetch_and_run(self):
        state = _make_state()
        summary = step(_StaticFeed([_make_snapshot("a", 0.40, 0.55)]), state)
        assert summary.trades_executed == 1

    def test_fetch_error_leaves_state_untouched(self):
        state = _make_state()
        with pytest.raises(SnapshotFetchError):
            step(_FailingFeed(), state)
        assert state.cycle == 0
        assert state.capital == 1000.0
        assert state.graph.markets == {}
        assert len(state.executor.ledger) == 0


class TestBuildEngine:
    def test_wired_from_config(self):
        cfg = Config(_env_file=None, initial_capital=2500.0, max_pairs=7, max_consecutive_losses=3)
        state = build_engine(cfg, seed=5)
        assert state.capital == 2500.0
        assert state.max_pairs == 7
        assert state.risk.limits.max_consecutive_losses == 3
        assert state.executor.sizing_policy == cfg.sizing_policy
        assert get_risk_status(state).can_trade is True

    def test_seed_reproducible(self):
        cfg = Config(_env_file=None)
        snaps = [_make_snapshot("a", 0.40, 0.55)]
        profits = []
        for _ in range(2):
            state = build_engine(cfg, seed=9)
            profits.append(run_cycle(snaps, state).profit)
        assert profits[0] == profits[1]
