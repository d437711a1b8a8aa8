"""
Unit tests for scanner/scorer.py -- opportunity filter, score and rank.
"""

import math

import pytest

from scanner.models import ArbitrageOpportunity, ArbKind
from scanner.scorer import (
    passes_filter,
    project_consistent,
    rank_opportunities,
    score_opportunity,
    select_opportunities,
)


def _make_opp(instrument_id="m1", roi_pct=5.0, confidence=0.8, liquidity=10000.0):
    return ArbitrageOpportunity(
        instrument_ids=(instrument_id,),
        kind=ArbKind.SIMPLE_COMPLEMENTARY,
        profit=roi_pct / 100,
        roi_pct=roi_pct,
        confidence=confidence,
        price_yes=0.45,
        price_no=0.50,
        liquidity=liquidity,
    )


class TestFilter:
    def test_roi_must_exceed_one_percent(self):
        assert passes_filter(_make_opp(roi_pct=1.0), 500) is False
        assert passes_filter(_make_opp(roi_pct=1.01), 500) is True

    def test_liquidity_floor_inclusive(self):
        assert passes_filter(_make_opp(liquidity=500), 500) is True
        assert passes_filter(_make_opp(liquidity=499.99), 500) is False


class TestScore:
    def test_formula(self):
        opp = _make_opp(roi_pct=4.0, confidence=0.5, liquidity=10000)
        assert score_opportunity(opp) == pytest.approx(4.0 * 0.5 * math.sqrt(10000) / 100)

    def test_deep_book_beats_thin_high_roi(self):
        thin = _make_opp("thin", roi_pct=10.0, confidence=0.8, liquidity=600)
        deep = _make_opp("deep", roi_pct=3.0, confidence=0.8, liquidity=40000)
        assert score_opportunity(deep) > score_opportunity(thin)


class TestRank:
    def test_sorted_descending(self):
        opps = [
            _make_opp("low", roi_pct=2.0),
            _make_opp("high", roi_pct=8.0),
            _make_opp("mid", roi_pct=5.0),
        ]
        ranked = rank_opportunities(opps)
        assert [s.opportunity.instrument_id for s in ranked] == ["high", "mid", "low"]
        assert ranked[0].score >= ranked[1].score >= ranked[2].score

    def test_capped_at_max_pairs(self):
        opps = [_make_opp(f"m{i}", roi_pct=2.0 + i) for i in range(30)]
        assert len(rank_opportunities(opps, max_pairs=20)) == 20
        assert len(rank_opportunities(opps, max_pairs=3)) == 3

    def test_ties_keep_discovery_order(self):
        opps = [_make_opp(f"m{i}") for i in range(5)]
        ranked = rank_opportunities(opps)
        assert [s.opportunity.instrument_id for s in ranked] == ["m0", "m1", "m2", "m3", "m4"]

    def test_filtered_out(self):
        opps = [_make_opp("ok"), _make_opp("tiny", roi_pct=0.5), _make_opp("thin", liquidity=100)]
        assert [s.opportunity.instrument_id for s in rank_opportunities(opps)] == ["ok"]

    def test_empty(self):
        assert rank_opportunities([]) == []


class TestSelect:
    def test_result_is_subset_of_input(self):
        opps = [_make_opp(f"m{i}", roi_pct=0.5 + i) for i in range(10)]
        selected = select_opportunities(opps, min_liquidity=500, max_pairs=4)
        assert len(selected) <= 4
        assert all(any(s is o for o in opps) for s in selected)

    def test_projection_is_identity(self):
        opps = [_make_opp("a"), _make_opp("b")]
        assert project_consistent(opps) is opps
        assert project_consistent([]) == []
