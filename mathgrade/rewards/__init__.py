"""Rewards package: reward tables and the scoring engine"""

from .tables import RewardTables, StreakTier, load_reward_tables
from .scoring import (
    CoinBonus,
    CoinBreakdown,
    RewardOutcome,
    ScoringEngine,
    XPBreakdown,
    get_scoring_engine,
    round_half_up,
)

__all__ = [
    "RewardTables",
    "StreakTier",
    "load_reward_tables",
    "CoinBonus",
    "CoinBreakdown",
    "RewardOutcome",
    "ScoringEngine",
    "XPBreakdown",
    "get_scoring_engine",
    "round_half_up",
]
