"""
Reward tables.

Immutable configuration for the scoring engine, loaded from YAML once per
process and shared by reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from mathgrade.core.config import get_settings
from mathgrade.core.errors import ConfigurationError
from mathgrade.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TABLES_PATH = Path(__file__).with_name("reward_tables.yaml")
SUPPORTED_VERSION = 1


@dataclass(frozen=True)
class StreakTier:
    """Bonus fraction for streaks of at least ``min_streak``."""

    min_streak: int
    bonus: float


@dataclass(frozen=True)
class RewardTables:
    """
    Reward configuration.

    Attributes:
        version: Table format version
        base_xp: Base XP by difficulty
        base_coins: Base coins by difficulty
        default_base_xp: Base XP for a difficulty outside the table
        default_base_coins: Base coins for a difficulty outside the table
        hint_multipliers: XP multiplier by hints used (capped at the max key)
        seconds_per_difficulty: Expected seconds per difficulty level
        fast_fraction: Share of the expected time that counts as fast
        time_bonus: Bonus fraction of base XP for a fast answer
        streak_tiers: Streak bonuses, highest threshold first
        algebraic_bonus: Bonus fraction of base XP for algebraic equivalence
        streak_freeze_min_streak: Shortest streak a freeze protects
        first_question_multiplier: Coin multiplier for the day's first question
        daily_streak_multiplier: Coin multiplier for a long daily streak
        perfect_multiplier: Coin multiplier for a fast answer without hints
        daily_streak_threshold: Daily streak needed for its multiplier
    """

    version: int
    base_xp: Mapping[int, int]
    base_coins: Mapping[int, int]
    default_base_xp: int
    default_base_coins: int
    hint_multipliers: Mapping[int, float]
    seconds_per_difficulty: float
    fast_fraction: float
    time_bonus: float
    streak_tiers: tuple[StreakTier, ...]
    algebraic_bonus: float
    streak_freeze_min_streak: int
    first_question_multiplier: float
    daily_streak_multiplier: float
    perfect_multiplier: float
    daily_streak_threshold: int

    @property
    def max_hints(self) -> int:
        return max(self.hint_multipliers)

    def xp_for(self, difficulty: int) -> int:
        return self.base_xp.get(difficulty, self.default_base_xp)

    def coins_for(self, difficulty: int) -> int:
        return self.base_coins.get(difficulty, self.default_base_coins)

    def hint_multiplier(self, hints_used: int) -> float:
        return self.hint_multipliers[min(hints_used, self.max_hints)]

    def expected_seconds(self, difficulty: int) -> float:
        return difficulty * self.seconds_per_difficulty

    def streak_bonus(self, correct_streak: int) -> float:
        for tier in self.streak_tiers:
            if correct_streak >= tier.min_streak:
                return tier.bonus
        return 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RewardTables":
        """
        Build tables from parsed YAML.

        Raises:
            TypeError: If the document is not a mapping
            ValueError: If the format version is not SUPPORTED_VERSION
        """
        if not isinstance(data, Mapping):
            raise TypeError("Reward tables must be a mapping")

        version = data.get("version")
        if version != SUPPORTED_VERSION:
            raise ValueError(
                f"Unsupported reward table version {version!r} (expected {SUPPORTED_VERSION})"
            )

        tiers = sorted(
            (StreakTier(int(t["min_streak"]), float(t["bonus"])) for t in data["streak_tiers"]),
            key=lambda tier: tier.min_streak,
            reverse=True,
        )
        coin_multipliers = data["coin_multipliers"]

        hint_multipliers = {int(k): float(v) for k, v in data["hint_multipliers"].items()}
        if sorted(hint_multipliers) != list(range(len(hint_multipliers))):
            raise ValueError("hint_multipliers must cover 0..n without gaps")

        return cls(
            version=version,
            base_xp=MappingProxyType({int(k): int(v) for k, v in data["base_xp"].items()}),
            base_coins=MappingProxyType({int(k): int(v) for k, v in data["base_coins"].items()}),
            default_base_xp=int(data["default_base_xp"]),
            default_base_coins=int(data["default_base_coins"]),
            hint_multipliers=MappingProxyType(hint_multipliers),
            seconds_per_difficulty=float(data["seconds_per_difficulty"]),
            fast_fraction=float(data["fast_fraction"]),
            time_bonus=float(data["time_bonus"]),
            streak_tiers=tuple(tiers),
            algebraic_bonus=float(data["algebraic_bonus"]),
            streak_freeze_min_streak=int(data["streak_freeze_min_streak"]),
            first_question_multiplier=float(coin_multipliers["first_question_today"]),
            daily_streak_multiplier=float(coin_multipliers["daily_streak"]),
            perfect_multiplier=float(coin_multipliers["perfect_answer"]),
            daily_streak_threshold=int(data["daily_streak_threshold"]),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RewardTables":
        """
        Load tables from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            return cls.from_dict(data)
        except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(str(path), repr(e)) from e


@lru_cache()
def load_reward_tables(path: str | None = None) -> RewardTables:
    """
    Load reward tables once per path.

    Args:
        path: YAML file; defaults to the REWARD_TABLES_FILE setting, then to
            the packaged reward_tables.yaml

    Returns:
        Shared, immutable tables
    """
    source = path or get_settings().REWARD_TABLES_FILE or DEFAULT_TABLES_PATH
    tables = RewardTables.from_yaml(source)
    logger.info("Reward tables loaded", extra_data={"source": str(source)})
    return tables
