"""
Opportunity selection: filter, score, rank and cap the merged candidate list.

score = roi_pct * confidence * sqrt(liquidity) / 100

A high-ROI edge on a thin book scores below a modest edge on a deep one,
since only ~10% of the book is ever taken.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from scanner.models import ArbitrageOpportunity

logger = logging.getLogger(__name__)

MIN_ROI_PCT = 1.0
DEFAULT_MIN_LIQUIDITY = 500.0
DEFAULT_MAX_PAIRS = 20


@dataclass(frozen=True)
class ScoredOpportunity:
    """An opportunity with its ranking score."""
    opportunity: ArbitrageOpportunity
    score: float


def passes_filter(opp: ArbitrageOpportunity, min_liquidity: float) -> bool:
    return opp.roi_pct > MIN_ROI_PCT and opp.liquidity >= min_liquidity


def score_opportunity(opp: ArbitrageOpportunity) -> float:
    return opp.roi_pct * opp.confidence * math.sqrt(max(opp.liquidity, 0.0)) / 100.0


def rank_opportunities(
    opps: list[ArbitrageOpportunity],
    min_liquidity: float = DEFAULT_MIN_LIQUIDITY,
    max_pairs: int = DEFAULT_MAX_PAIRS,
) -> list[ScoredOpportunity]:
    """
    Filter, score and rank. Returns at most max_pairs, best first.
    The sort is stable: equal scores keep discovery order.
    """
    if not opps:
        return []

    scored = [
        ScoredOpportunity(opportunity=opp, score=score_opportunity(opp))
        for opp in opps
        if passes_filter(opp, min_liquidity)
    ]
    scored.sort(key=lambda s: s.score, reverse=True)

    if len(scored) < len(opps):
        logger.debug("Optimizer filter kept %d/%d opportunities", len(scored), len(opps))
    return scored[:max_pairs]


def select_opportunities(
    opps: list[ArbitrageOpportunity],
    min_liquidity: float = DEFAULT_MIN_LIQUIDITY,
    max_pairs: int = DEFAULT_MAX_PAIRS,
) -> list[ArbitrageOpportunity]:
    return [s.opportunity for s in rank_opportunities(opps, min_liquidity, max_pairs)]


def project_consistent(opps: list[ArbitrageOpportunity]) -> list[ArbitrageOpportunity]:
    """
    Consistency projection over the selected set. Currently the identity:
    the input list is returned unchanged. A replacement must only drop or
    adjust entries, never introduce new ones.
    """
    return opps
