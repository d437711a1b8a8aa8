"""
Snapshot feed interface. The engine only needs something that returns the
current list of snapshots or raises SnapshotFetchError.
"""

from __future__ import annotations

from typing import Protocol

from scanner.models import MarketSnapshot


class SnapshotFetchError(Exception):
    """Raised when a feed cannot produce snapshots. The cycle is aborted untouched."""
    pass


class SnapshotFeed(Protocol):
    def fetch(self) -> list[MarketSnapshot]:
        ...
