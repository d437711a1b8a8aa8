#!/usr/bin/env python3
"""
Binary-market arbitrage engine -- command-line runner.

Wires config, a snapshot feed and the per-cycle decision loop:
  1. Fetch snapshots (simulated or Gamma API)
  2. Scan (complementary + graph), rank, risk-gate
  3. Size + simulate execution of the top opportunity
  4. Feed realized profit back to risk manager and policy
  5. Repeat for --steps cycles

Usage:
  python run.py                          # 100 simulated cycles
  python run.py --steps 500 --seed 7     # reproducible simulated run
  python run.py --gamma --steps 10       # read live Gamma quotes, simulate fills
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from pydantic import ValidationError

from client.gamma import GammaFeed
from client.simulated import SimulatedFeed
from config import Config, load_config
from monitor.display import print_cycle, print_startup, print_summary
from monitor.logger import setup_logging
from pipeline.cycle import build_engine, get_risk_status
from pipeline.simulation import run_simulation

logger = logging.getLogger(__name__)


_BANNER = "Binary Arbitrage Engine v0.1"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Binary-market arbitrage decision engine")
    parser.add_argument("--steps", type=int, default=100, help="Number of cycles to run (default: 100)")
    parser.add_argument("--markets", type=int, default=None, help="Simulated market count (default: SIM_MARKETS)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the simulated feed, slippage and exploration")
    parser.add_argument("--gamma", action="store_true", help="Read snapshots from the Gamma API instead of simulating")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between cycles (default: CYCLE_INTERVAL_SEC)")
    parser.add_argument("--json-log", type=str, default=None, help="Path to JSON log file for machine-readable output")
    parser.add_argument("--quiet", action="store_true", help="Only print the final summary")
    return parser.parse_args(argv)


def _apply_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    """CLI flags win over env. Returns a new Config (immutable)."""
    updates = {}
    if args.markets is not None:
        updates["sim_markets"] = args.markets
    if args.interval is not None:
        updates["cycle_interval_sec"] = args.interval
    if not updates:
        return cfg
    return cfg.model_copy(update=updates)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.steps < 0:
        print("--steps must be >= 0", file=sys.stderr)
        return 2

    try:
        cfg = load_config()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2
    cfg = _apply_overrides(cfg, args)

    log_path = setup_logging(cfg.log_level, json_log_file=args.json_log)
    logger.info(_BANNER)
    logger.info("  Log file: %s", log_path)

    if args.gamma:
        feed = GammaFeed(cfg.gamma_host, limit=cfg.gamma_limit)
        source = "gamma"
    else:
        feed = SimulatedFeed(n_markets=cfg.sim_markets, seed=args.seed)
        source = "simulated"
    print_startup(cfg, source)

    state = build_engine(cfg, seed=args.seed)

    shutdown_requested = False

    def handle_signal(signum, frame):
        nonlocal shutdown_requested
        shutdown_requested = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    result = run_simulation(
        feed,
        state,
        steps=args.steps,
        cycles_per_day=cfg.cycles_per_day,
        interval_sec=cfg.cycle_interval_sec,
        on_cycle=None if args.quiet else print_cycle,
        should_stop=lambda: shutdown_requested,
    )
    print_summary(result, get_risk_status(state))
    return 0


if __name__ == "__main__":
    sys.exit(main())
