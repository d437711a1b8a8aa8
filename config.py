"""
Configuration loaded from environment variables (or .env). Fail-fast on invalid values.
"""

from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True, "extra": "ignore"}

    # Capital
    initial_capital: float = Field(default=1000.0, gt=0)

    # Simple scanner thresholds
    min_profit_threshold: float = Field(default=0.005, ge=0)
    min_liquidity: float = Field(default=1000.0, ge=0)

    # Optimizer
    optimizer_min_liquidity: float = Field(default=500.0, ge=0)
    max_pairs: int = Field(default=20, ge=1)

    # Graph scanner: Bellman-Ford is O(V^2 * E), keep the graph small
    max_graph_nodes: int = Field(default=200, ge=2)

    # Sizing
    # liquidity_cap: min(capital * max_position_fraction, 10% of liquidity)
    # kelly: fractional Kelly from realized trade stats, capped at 10% of liquidity
    sizing_policy: Literal["liquidity_cap", "kelly"] = "liquidity_cap"
    max_position_fraction: float = Field(default=0.1, gt=0, le=1.0)
    kelly_fraction: float = Field(default=0.25, gt=0, le=1.0)
    max_position_pct: float = Field(default=0.05, gt=0, le=1.0)
    min_position: float = Field(default=10.0, ge=0)

    # Circuit breakers
    daily_loss_limit: float = Field(default=50.0, gt=0)
    max_consecutive_losses: int = Field(default=10, gt=0)
    max_drawdown: float = Field(default=0.15, gt=0, le=1.0)

    # Execution simulator
    vwap_window: int = Field(default=20, ge=1)

    # Adaptive policy
    epsilon: float = Field(default=0.1, ge=0, le=1.0)
    alpha: float = Field(default=0.1, gt=0, le=1.0)
    gamma: float = Field(default=0.95, ge=0, le=1.0)

    # Simulation / feeds
    sim_markets: int = Field(default=50, ge=1)
    cycles_per_day: int = Field(default=0, ge=0)  # 0 = never reset daily loss
    cycle_interval_sec: float = Field(default=0.0, ge=0)
    gamma_host: str = "https://gamma-api.polymarket.com"
    gamma_limit: int = Field(default=100, ge=1, le=500)

    # Logging
    log_level: str = "INFO"


def load_config() -> Config:
    """Load and validate config from environment. Raises ValidationError on bad values."""
    return Config()
