"""
Rolling execution-price tracker. "VWAP" here is an unweighted mean over the
last N observed prices per instrument and side.
"""

from __future__ import annotations

from collections import deque

from scanner.models import TokenSide

DEFAULT_WINDOW = 20


class VwapTracker:
    """Price window keyed by (instrument_id, side). Oldest price evicted first."""

    def __init__(self, window_size: int = DEFAULT_WINDOW) -> None:
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self._window = window_size
        self._history: dict[tuple[str, TokenSide], deque[float]] = {}

    @property
    def window_size(self) -> int:
        return self._window

    def update(self, instrument_id: str, side: TokenSide, price: float) -> None:
        key = (instrument_id, side)
        history = self._history.get(key)
        if history is None:
            history = deque(maxlen=self._window)
            self._history[key] = history
        history.append(price)

    def get_vwap(self, instrument_id: str, side: TokenSide) -> float | None:
        """Mean of retained prices, or None with no history. Read-only."""
        history = self._history.get((instrument_id, side))
        if not history:
            return None
        return sum(history) / len(history)

    def history(self, instrument_id: str, side: TokenSide) -> list[float]:
        return list(self._history.get((instrument_id, side), ()))
