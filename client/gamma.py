"""
Gamma API snapshot source. Read-only REST, no SDK dependency.
Turns active binary markets into MarketSnapshots.
"""

from __future__ import annotations

import json
import logging
import time

import httpx

from client.feed import SnapshotFetchError
from scanner.models import MarketSnapshot

logger = logging.getLogger(__name__)

_TIMEOUT = 30.0


def _get(base_url: str, path: str, params: dict | None = None) -> dict | list:
    """GET from the Gamma API. Any transport, status or decode failure becomes SnapshotFetchError."""
    url = f"{base_url}{path}"
    try:
        resp = httpx.get(url, params=params, timeout=_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except httpx.HTTPStatusError as e:
        raise SnapshotFetchError(f"Gamma API returned {e.response.status_code} for {url}") from e
    except httpx.HTTPError as e:
        raise SnapshotFetchError(f"Gamma API request failed for {url}: {e}") from e
    except ValueError as e:
        raise SnapshotFetchError(f"Gamma API returned invalid JSON for {url}") from e


def _parse_prices(raw) -> tuple[float, float] | None:
    # outcomePrices may be a JSON string or a list
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return None
    if not isinstance(raw, list) or len(raw) != 2:
        return None
    try:
        return float(raw[0]), float(raw[1])
    except (TypeError, ValueError):
        return None


def parse_snapshot(m: dict, now: float | None = None) -> MarketSnapshot | None:
    """One Gamma market dict -> snapshot. None for non-binary or unparsable markets."""
    prices = _parse_prices(m.get("outcomePrices") or m.get("outcome_prices"))
    if prices is None:
        return None
    instrument_id = str(m.get("conditionId") or m.get("condition_id") or m.get("id") or "")
    if not instrument_id:
        return None

    try:
        liquidity = float(m.get("liquidityNum", m.get("liquidity", 0)) or 0)
        volume = float(m.get("volume24hr", m.get("volume24hrClob", 0)) or 0)
    except (TypeError, ValueError):
        return None

    # Gamma reports one liquidity figure per market; split it across the sides
    return MarketSnapshot(
        instrument_id=instrument_id,
        question=m.get("question", ""),
        price_yes=prices[0],
        price_no=prices[1],
        liquidity_yes=liquidity / 2.0,
        liquidity_no=liquidity / 2.0,
        volume_24h=volume,
        timestamp=now if now is not None else time.time(),
    )


class GammaFeed:
    """Snapshot feed backed by GET /markets."""

    def __init__(self, gamma_host: str, limit: int = 100) -> None:
        self._host = gamma_host
        self._limit = limit

    def fetch(self) -> list[MarketSnapshot]:
        params = {"active": "true", "closed": "false", "limit": self._limit}
        raw_markets = _get(self._host, "/markets", params)
        if not isinstance(raw_markets, list):
            raise SnapshotFetchError(f"Unexpected Gamma /markets payload: {type(raw_markets).__name__}")

        now = time.time()
        snapshots = []
        skipped = 0
        for m in raw_markets:
            snap = parse_snapshot(m, now) if isinstance(m, dict) else None
            if snap is None:
                skipped += 1
                continue
            snapshots.append(snap)

        logger.info("Gamma: %d snapshots (%d markets skipped)", len(snapshots), skipped)
        return snapshots
