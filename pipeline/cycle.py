"""
Per-cycle decision loop:

  snapshots -> {complementary scan, graph scan} -> select/rank/cap -> projection
  -> risk gate -> execute top opportunity -> capital -> risk + policy feedback

Exactly one opportunity is executed per cycle at most, and capital changes
only by that trade's realized profit. Once the gate is open the risk manager
sees every cycle (0.0 when the simulator declines); the policy learns only
from executed trades. All mutable state lives in EngineState,
which the caller owns and passes in; nothing here locks it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from client.feed import SnapshotFeed, SnapshotFetchError
from config import Config
from executor.engine import ExecutionSimulator
from executor.safety import RiskLimits, RiskManager, RiskStatus
from executor.sizing import PositionSizer
from scanner.binary import scan_snapshots
from scanner.graph import GraphScanner
from scanner.models import MarketSnapshot
from scanner.rl_strategy import AdaptivePolicy, discretize_state, trade_reward
from scanner.scorer import project_consistent, select_opportunities
from scanner.signals import PriceHistory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleSummary:
    cycle: int
    opportunities_found: int
    trades_executed: int
    profit: float
    capital: float
    win_rate: float
    risk_blocked: bool = False
    policy_action: int | None = None


@dataclass
class EngineState:
    capital: float
    executor: ExecutionSimulator
    risk: RiskManager
    policy: AdaptivePolicy
    graph: GraphScanner
    min_profit: float = 0.005
    min_liquidity: float = 1000.0
    optimizer_min_liquidity: float = 500.0
    max_pairs: int = 20
    cycle: int = 0
    price_history: PriceHistory = field(default_factory=PriceHistory)

    @property
    def win_rate(self) -> float:
        return self.executor.ledger.win_rate


def build_engine(cfg: Config, seed: int | None = None) -> EngineState:
    """Wire every component from config. seed makes slippage and exploration reproducible."""
    rng = random.Random(seed)
    sizer = PositionSizer(
        kelly_fraction=cfg.kelly_fraction,
        max_position_pct=cfg.max_position_pct,
        min_position=cfg.min_position,
    )
    return EngineState(
        capital=cfg.initial_capital,
        executor=ExecutionSimulator(
            max_position_fraction=cfg.max_position_fraction,
            vwap_window=cfg.vwap_window,
            sizing_policy=cfg.sizing_policy,
            sizer=sizer,
            rng=random.Random(rng.random()),
        ),
        risk=RiskManager(RiskLimits(
            daily_loss_limit=cfg.daily_loss_limit,
            max_consecutive_losses=cfg.max_consecutive_losses,
            max_drawdown=cfg.max_drawdown,
        )),
        policy=AdaptivePolicy(
            epsilon=cfg.epsilon,
            alpha=cfg.alpha,
            gamma=cfg.gamma,
            rng=random.Random(rng.random()),
        ),
        graph=GraphScanner(max_nodes=cfg.max_graph_nodes),
        min_profit=cfg.min_profit_threshold,
        min_liquidity=cfg.min_liquidity,
        optimizer_min_liquidity=cfg.optimizer_min_liquidity,
        max_pairs=cfg.max_pairs,
    )


def _summary(
    state: EngineState,
    opportunities: int,
    trades: int = 0,
    profit: float = 0.0,
    risk_blocked: bool = False,
    action: int | None = None,
) -> CycleSummary:
    return CycleSummary(
        cycle=state.cycle,
        opportunities_found=opportunities,
        trades_executed=trades,
        profit=profit,
        capital=state.capital,
        win_rate=state.win_rate,
        risk_blocked=risk_blocked,
        policy_action=action,
    )


def run_cycle(snapshots: list[MarketSnapshot], state: EngineState) -> CycleSummary:
    """Run one full decision cycle over the given snapshots."""
    state.cycle += 1

    state.price_history.record(snapshots)
    state.executor.observe(snapshots)
    state.graph.retain({snap.instrument_id for snap in snapshots})
    for snap in snapshots:
        state.graph.add(snap)

    simple_opps = scan_snapshots(snapshots, state.min_profit, state.min_liquidity)
    graph_opps = state.graph.scan()
    all_opps = simple_opps + graph_opps
    if not all_opps:
        logger.debug("Cycle %d: no opportunities in %d snapshots", state.cycle, len(snapshots))
        return _summary(state, 0)

    selected = select_opportunities(all_opps, state.optimizer_min_liquidity, state.max_pairs)
    projected = project_consistent(selected)
    logger.info(
        "Cycle %d: %d opportunities (%d simple, %d graph), %d after optimizer, %d after projection",
        state.cycle, len(all_opps), len(simple_opps), len(graph_opps),
        len(selected), len(projected),
        extra={"cycle": state.cycle},
    )
    if not projected:
        return _summary(state, len(all_opps))

    if not state.risk.can_trade():
        logger.warning(
            "Cycle %d: risk gate closed (%s), skipping execution",
            state.cycle, state.risk.tripped_breaker(),
            extra={"cycle": state.cycle},
        )
        return _summary(state, len(all_opps), risk_blocked=True)

    top = projected[0]
    signals = state.price_history.signals(top.instrument_id)
    policy_state = discretize_state(signals.z_score, signals.momentum, arb_available=True)
    action = state.policy.select(policy_state)

    trade = state.executor.execute(top, state.capital)
    if trade is None:
        # a declined trade still counts as a flat outcome for the risk gate
        state.risk.update(0.0, state.capital)
        return _summary(state, len(all_opps), action=action)

    state.capital += trade.profit
    state.risk.update(trade.profit, state.capital)
    state.policy.update(policy_state, action, trade_reward(trade.profit))

    return _summary(state, len(all_opps), trades=1, profit=trade.profit, action=action)


def step(feed: SnapshotFeed, state: EngineState) -> CycleSummary:
    """
    Fetch snapshots and run one cycle. A SnapshotFetchError propagates to the
    caller before any engine state has been touched.
    """
    try:
        snapshots = feed.fetch()
    except SnapshotFetchError:
        logger.error("Snapshot fetch failed; cycle %d aborted", state.cycle + 1)
        raise
    return run_cycle(snapshots, state)


def get_risk_status(state: EngineState) -> RiskStatus:
    return state.risk.status()
