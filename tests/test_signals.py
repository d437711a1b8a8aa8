"""
Unit tests for scanner/signals.py -- price history and policy signals.
"""

import pytest

from scanner.models import MarketSnapshot
from scanner.signals import PriceHistory, compute_signals, find_hedge_ratio, mean_reversion_time


def _snap(instrument_id, price_yes):
    return MarketSnapshot(instrument_id=instrument_id, question="", price_yes=price_yes, price_no=0.5)


class TestComputeSignals:
    def test_short_history_is_neutral(self):
        assert compute_signals([]).z_score == 0.0
        assert compute_signals([0.5]).momentum == 0.0

    def test_z_score_and_momentum(self):
        signals = compute_signals([0.4, 0.6])
        # mean 0.5, population std 0.1
        assert signals.z_score == pytest.approx(1.0)
        assert signals.momentum == pytest.approx(0.5)

    def test_flat_prices(self):
        signals = compute_signals([0.5] * 10)
        assert signals.z_score == 0.0
        assert signals.momentum == 0.0


class TestPriceHistory:
    def test_records_yes_price_per_instrument(self):
        history = PriceHistory()
        history.record([_snap("a", 0.40), _snap("b", 0.70)])
        history.record([_snap("a", 0.42)])
        assert history.prices("a") == [0.40, 0.42]
        assert history.prices("b") == [0.70]
        assert history.prices("c") == []

    def test_bounded(self):
        history = PriceHistory(limit=3)
        for p in (0.1, 0.2, 0.3, 0.4):
            history.record([_snap("a", p)])
        assert history.prices("a") == [0.2, 0.3, 0.4]

    def test_signals_from_history(self):
        history = PriceHistory()
        history.record([_snap("a", 0.4)])
        history.record([_snap("a", 0.6)])
        assert history.signals("a").z_score == pytest.approx(1.0)


class TestMeanReversionTime:
    def test_short_series(self):
        assert mean_reversion_time([]) == 0.0
        assert mean_reversion_time([0.5]) == 0.0

    def test_never_turns(self):
        assert mean_reversion_time([0.1, 0.2, 0.3]) == 3.0
        # flat steps count as falls
        assert mean_reversion_time([0.5, 0.5, 0.5, 0.5]) == 4.0

    def test_average_run_length(self):
        # turns at steps 2 and 3
        assert mean_reversion_time([1.0, 2.0, 1.0, 2.0]) == pytest.approx(1.5)
        assert mean_reversion_time([1.0, 2.0, 1.0]) == pytest.approx(2.0)


class TestFindHedgeRatio:
    def test_short_or_mismatched_defaults_to_one(self):
        assert find_hedge_ratio([0.1] * 9, [0.2] * 9) == 1.0
        assert find_hedge_ratio([0.1] * 10, [0.2] * 11) == 1.0

    def test_picks_ratio_that_cancels_trend(self):
        asset1 = [float(t) for t in range(10)]
        wiggle = [0.0, 0.5] * 5
        asset2 = [-2.0 * t + w for t, w in zip(range(10), wiggle)]
        # only 2 * asset1 + asset2 oscillates; every other spread trends
        assert find_hedge_ratio(asset1, asset2) == 2.0

    def test_ties_go_to_larger_ratio(self):
        flat = [1.0] * 10
        assert find_hedge_ratio(flat, flat) == 3.0
