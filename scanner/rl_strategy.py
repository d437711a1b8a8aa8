"""
Tabular Q-learning policy. Learns action values per discretized market state
from the win/loss outcome of each executed trade.

Runs in shadow mode: the selected action is reported in the cycle summary
but does not change sizing. Epsilon is fixed for the life of the engine.
"""

from __future__ import annotations

import logging
import random

logger = logging.getLogger(__name__)

N_ACTIONS = 3
ACTIONS = tuple(range(N_ACTIONS))

Z_SCORE_THRESHOLD = 2.0
MOMENTUM_THRESHOLD = 0.01


def discretize_state(z_score: float, momentum: float, arb_available: bool) -> str:
    """State key "<z>_<momentum>_<arb>", e.g. "mid_up_yes"."""
    if z_score > Z_SCORE_THRESHOLD:
        z_bucket = "high"
    elif z_score < -Z_SCORE_THRESHOLD:
        z_bucket = "low"
    else:
        z_bucket = "mid"

    if momentum > MOMENTUM_THRESHOLD:
        m_bucket = "up"
    elif momentum < -MOMENTUM_THRESHOLD:
        m_bucket = "down"
    else:
        m_bucket = "flat"

    arb = "yes" if arb_available else "no"
    return f"{z_bucket}_{m_bucket}_{arb}"


def trade_reward(profit: float) -> float:
    """Binary reward: +1 for a profitable trade, -1 otherwise."""
    return 1.0 if profit > 0 else -1.0


class AdaptivePolicy:
    """
    Epsilon-greedy Q-learning over 3 actions.

    State space: 3 z-score buckets x 3 momentum buckets x 2 = 18 keys
    Q-table: state key -> [q0, q1, q2], created on first visit, never pruned.
    """

    def __init__(
        self,
        epsilon: float = 0.1,
        alpha: float = 0.1,
        gamma: float = 0.95,
        rng: random.Random | None = None,
    ) -> None:
        self.epsilon = epsilon
        self.alpha = alpha
        self.gamma = gamma
        self._rng = rng or random.Random()
        self._q_table: dict[str, list[float]] = {}
        self._total_updates = 0

    def _values(self, state: str) -> list[float]:
        values = self._q_table.get(state)
        if values is None:
            values = [0.0] * N_ACTIONS
            self._q_table[state] = values
        return values

    def select(self, state: str) -> int:
        """Epsilon-greedy; greedy ties go to the lowest action index."""
        values = self._values(state)
        if self._rng.random() < self.epsilon:
            return self._rng.randrange(N_ACTIONS)
        best = 0
        for action in ACTIONS[1:]:
            if values[action] > values[best]:
                best = action
        return best

    def update(
        self,
        state: str,
        action: int,
        reward: float,
        next_state: str | None = None,
    ) -> None:
        """
        One-step Q-learning:
            Q(s,a) += alpha * (r + gamma * max_a' Q(s',a') - Q(s,a))
        s' defaults to s.
        """
        if action not in ACTIONS:
            raise ValueError(f"Action must be in 0..{N_ACTIONS - 1}, got {action}")
        values = self._values(state)
        next_values = values if next_state is None else self._values(next_state)

        old_q = values[action]
        td_target = reward + self.gamma * max(next_values)
        values[action] = old_q + self.alpha * (td_target - old_q)
        self._total_updates += 1

        logger.debug(
            "Policy update: state=%s action=%d reward=%+.0f q=%.4f->%.4f",
            state, action, reward, old_q, values[action],
        )

    def get_q_values(self, state: str) -> list[float] | None:
        values = self._q_table.get(state)
        return list(values) if values is not None else None

    @property
    def table_size(self) -> int:
        return len(self._q_table)

    @property
    def stats(self) -> dict:
        return {
            "epsilon": self.epsilon,
            "total_updates": self._total_updates,
            "q_table_size": len(self._q_table),
        }
