"""
Graph-based arbitrage scanner.

Each instrument contributes two nodes, "<id>-YES" and "<id>-NO". The edge
YES -> NO carries -ln(price_yes) and NO -> YES carries -ln(price_no), so a
product of prices below 1 around a cycle becomes a negative-weight cycle.

Edges only join the two sides of the same instrument. For prices in (0, 1)
every such edge is positive, so cross-instrument cycles only exist when the
caller supplies extra edges with add_edge().

Cost is O(V^2 * E) (Bellman-Ford restarted from every node), so the graph is
capped at max_nodes.
"""

from __future__ import annotations

import logging
import math

from scanner.models import ArbitrageOpportunity, ArbKind, MarketSnapshot, TokenSide

logger = logging.getLogger(__name__)

# adjacency: src node -> {dst node: weight}
PriceGraph = dict[str, dict[str, float]]

MIN_CYCLE_PROFIT = 0.001
GRAPH_CONFIDENCE = 0.7
DEFAULT_MAX_NODES = 200


def node_id(instrument_id: str, side: TokenSide) -> str:
    return f"{instrument_id}-{side.value}"


def parse_node(node: str) -> tuple[str, TokenSide] | None:
    """Split "<instrument>-<SIDE>" on the last dash. None if malformed."""
    instrument_id, sep, side_str = node.rpartition("-")
    if not sep or not instrument_id:
        return None
    try:
        return instrument_id, TokenSide(side_str)
    except ValueError:
        return None


def is_valid_price(price: float) -> bool:
    """ln(price) must be defined and finite, which needs 0 < price < 1."""
    return math.isfinite(price) and 0.0 < price < 1.0


def extract_cycle(pred: dict[str, str | None], start: str) -> list[str] | None:
    """
    Walk the predecessor chain from start until a node repeats. The cycle is
    the part of the walk from the first occurrence of the repeated node.
    Returns None if the chain runs out before anything repeats.
    """
    walk: list[str] = []
    visited: set[str] = set()
    current: str | None = start
    while current is not None:
        if current in visited:
            return walk[walk.index(current):]
        visited.add(current)
        walk.append(current)
        current = pred.get(current)
    return None


def _canonical(cycle: list[str]) -> tuple[str, ...]:
    """Rotate so the smallest node leads; identifies a cycle regardless of entry point."""
    i = cycle.index(min(cycle))
    return tuple(cycle[i:] + cycle[:i])


def find_negative_cycles(graph: PriceGraph) -> list[list[str]]:
    """
    Bellman-Ford seeded from every node in turn. After |V| relaxation passes,
    any edge that still relaxes sits downstream of a negative cycle; the
    cycle is recovered from the predecessor map.
    """
    nodes: list[str] = []
    seen_nodes: set[str] = set()
    for u, neighbors in graph.items():
        for n in (u, *neighbors):
            if n not in seen_nodes:
                seen_nodes.add(n)
                nodes.append(n)
    edges = [(u, v, w) for u, neighbors in graph.items() for v, w in neighbors.items()]

    cycles: list[list[str]] = []
    found: set[tuple[str, ...]] = set()

    for start in nodes:
        dist = dict.fromkeys(nodes, math.inf)
        pred: dict[str, str | None] = dict.fromkeys(nodes)
        dist[start] = 0.0

        for _ in range(len(nodes)):
            relaxed = False
            for u, v, w in edges:
                if dist[u] + w < dist[v]:
                    dist[v] = dist[u] + w
                    pred[v] = u
                    relaxed = True
            if not relaxed:
                break

        for u, v, w in edges:
            if dist[u] + w < dist[v]:
                cycle = extract_cycle(pred, v)
                if not cycle:
                    continue
                key = _canonical(cycle)
                if key in found:
                    continue
                found.add(key)
                cycles.append(cycle)

    return cycles


class GraphScanner:
    """
    Holds the latest snapshot per instrument and searches the price graph for
    negative cycles. Snapshots are only replaced through add() and dropped
    through retain(). The max_nodes cap keeps the earliest-added instruments,
    so callers with a changing universe should retain() the live set each cycle.
    """

    def __init__(self, max_nodes: int = DEFAULT_MAX_NODES) -> None:
        self._max_nodes = max_nodes
        self._markets: dict[str, MarketSnapshot] = {}
        self._extra_edges: PriceGraph = {}

    @property
    def markets(self) -> dict[str, MarketSnapshot]:
        return dict(self._markets)

    def add(self, snapshot: MarketSnapshot) -> bool:
        """Store snapshot as the instrument's latest quote. Rejects prices outside (0, 1)."""
        if not (is_valid_price(snapshot.price_yes) and is_valid_price(snapshot.price_no)):
            logger.warning(
                "Graph scanner rejected %s: prices out of (0, 1) yes=%r no=%r",
                snapshot.instrument_id, snapshot.price_yes, snapshot.price_no,
            )
            self._markets.pop(snapshot.instrument_id, None)
            return False
        self._markets[snapshot.instrument_id] = snapshot
        return True

    def retain(self, instrument_ids: set[str]) -> int:
        """Drop instruments not in instrument_ids. Returns how many were dropped."""
        stale = [i for i in self._markets if i not in instrument_ids]
        for instrument_id in stale:
            del self._markets[instrument_id]
        if stale:
            logger.debug("Graph scanner dropped %d stale instruments", len(stale))
        return len(stale)

    def add_edge(self, src: str, dst: str, weight: float) -> None:
        """Caller-supplied edge, e.g. linking sides of two related instruments."""
        if not math.isfinite(weight):
            raise ValueError(f"Edge weight must be finite, got {weight!r}")
        self._extra_edges.setdefault(src, {})[dst] = weight

    def clear_edges(self) -> None:
        self._extra_edges.clear()

    def build_price_graph(self) -> PriceGraph:
        graph: PriceGraph = {}
        nodes: set[str] = set()
        dropped = 0

        for instrument_id, snap in self._markets.items():
            if len(nodes) + 2 > self._max_nodes:
                dropped += 1
                continue
            yes = node_id(instrument_id, TokenSide.YES)
            no = node_id(instrument_id, TokenSide.NO)
            graph.setdefault(yes, {})[no] = -math.log(snap.price_yes)
            graph.setdefault(no, {})[yes] = -math.log(snap.price_no)
            nodes.update((yes, no))

        for src, neighbors in self._extra_edges.items():
            for dst, weight in neighbors.items():
                new_nodes = {src, dst} - nodes
                if len(nodes) + len(new_nodes) > self._max_nodes:
                    dropped += 1
                    continue
                graph.setdefault(src, {})[dst] = weight
                nodes.update(new_nodes)

        if dropped:
            logger.warning(
                "Price graph capped at %d nodes: %d instruments/edges left out",
                self._max_nodes, dropped,
            )
        return graph

    def scan(self) -> list[ArbitrageOpportunity]:
        """Detect negative cycles and convert each into an opportunity."""
        if not self._markets and not self._extra_edges:
            return []
        graph = self.build_price_graph()
        opportunities: list[ArbitrageOpportunity] = []
        for cycle in find_negative_cycles(graph):
            opp = self._cycle_to_opportunity(cycle)
            if opp:
                opportunities.append(opp)
        return opportunities

    def _cycle_to_opportunity(self, cycle: list[str]) -> ArbitrageOpportunity | None:
        if len(cycle) < 2:
            return None

        product = 1.0
        instruments: list[str] = []
        for node in cycle:
            parsed = self._resolve(node)
            if parsed is None:
                continue
            snap, side = parsed
            product *= snap.price(side)
            if snap.instrument_id not in instruments:
                instruments.append(snap.instrument_id)

        profit = 1.0 - product
        if profit <= MIN_CYCLE_PROFIT:
            return None

        snaps = [self._markets[i] for i in instruments]
        first = snaps[0]
        logger.info(
            "GRAPH CYCLE ARB: %s | product=%.4f profit=%.4f",
            " -> ".join(cycle), product, profit,
        )
        return ArbitrageOpportunity(
            instrument_ids=tuple(instruments),
            kind=ArbKind.GRAPH_CYCLE,
            profit=profit,
            roi_pct=profit * 100.0,
            confidence=GRAPH_CONFIDENCE,
            price_yes=first.price_yes,
            price_no=first.price_no,
            liquidity=min(s.total_liquidity for s in snaps),
            question="Graph arbitrage",
            path=tuple(cycle),
        )

    def _resolve(self, node: str) -> tuple[MarketSnapshot, TokenSide] | None:
        parsed = parse_node(node)
        if parsed is None:
            logger.debug("Skipping malformed graph node %r", node)
            return None
        instrument_id, side = parsed
        snap = self._markets.get(instrument_id)
        if snap is None:
            logger.debug("Skipping graph node %r: unknown instrument", node)
            return None
        return snap, side
