"""
Scoring engine.

Turns an evaluation verdict plus question metadata into an XP and coin award
with an itemized breakdown. Every breakdown total is derived from its
components and validated against them, so the displayed breakdown and the
awarded total cannot drift apart.

XP for a correct answer accumulates in a fixed order:

1. base XP (by difficulty) times the hint multiplier
2. + time bonus (fraction of base) for a fast answer
3. + streak bonus (fraction of the running total)
4. + algebraic equivalence bonus (fraction of base)

Coins use an independent multiplicative chain.
"""

from __future__ import annotations

import math
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from mathgrade.answer.equivalence import EquivalenceMethod
from mathgrade.core.logging import get_logger

from .tables import RewardTables, load_reward_tables

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from minus infinity."""
    return int(math.floor(value + 0.5))


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class XPBreakdown(_Record):
    """
    Itemized XP award.

    Penalties and the forfeit are non-positive, so ``total`` is the plain sum
    of the other fields.
    """

    base: int = 0
    hint_penalty: int = 0
    time_penalty: int = 0
    time_bonus: int = 0
    streak_bonus: int = 0
    equivalence_bonus: int = 0
    forfeit: int = 0
    total: int = 0

    @property
    def components(self) -> tuple[int, ...]:
        return (
            self.base,
            self.hint_penalty,
            self.time_penalty,
            self.time_bonus,
            self.streak_bonus,
            self.equivalence_bonus,
            self.forfeit,
        )

    @model_validator(mode="after")
    def _total_is_sum(self) -> "XPBreakdown":
        if self.total != sum(self.components):
            raise ValueError(
                f"XP total {self.total} does not match its components {self.components}"
            )
        return self


class CoinBonus(_Record):
    """A named coin multiplier that was applied."""

    type: str
    magnitude: float


class CoinBreakdown(_Record):
    """Itemized coin award: ``total == round_half_up(base * multiplier)``."""

    base: int = 0
    multiplier: float = 1.0
    bonuses: list[CoinBonus] = Field(default_factory=list)
    total: int = 0

    @model_validator(mode="after")
    def _total_is_product(self) -> "CoinBreakdown":
        if self.total != round_half_up(self.base * self.multiplier):
            raise ValueError(
                f"Coin total {self.total} does not match {self.base} x {self.multiplier}"
            )
        return self


class RewardOutcome(_Record):
    """XP and coins awarded for one answer."""

    xp: XPBreakdown
    coins: CoinBreakdown
    streak_frozen: bool = False


class ScoringEngine:
    """
    Converts verdicts into rewards.

    The engine holds a reference to immutable reward tables and no other
    state; ``score`` is a pure function of its arguments.
    """

    def __init__(self, tables: RewardTables | None = None):
        self.tables = tables or load_reward_tables()

    def is_fast(self, difficulty: int, time_spent_seconds: float | None) -> bool:
        """Whether the answer came in under the fast fraction of the expected time."""
        if time_spent_seconds is None:
            return False
        threshold = self.tables.fast_fraction * self.tables.expected_seconds(difficulty)
        return time_spent_seconds < threshold

    def score(
        self,
        difficulty: int,
        hints_used: int = 0,
        time_spent_seconds: float | None = None,
        correct_streak: int = 0,
        is_correct: bool = False,
        equivalence_method: EquivalenceMethod | str | None = None,
        is_first_question_today: bool = False,
        daily_streak: int = 0,
        skipped: bool = False,
        streak_freeze_available: bool = False,
    ) -> RewardOutcome:
        """
        Score one answer.

        Args:
            difficulty: Question difficulty (1-10; others use table defaults)
            hints_used: Hints the student opened
            time_spent_seconds: Time taken, None if unknown
            correct_streak: Consecutive correct answers before this one
            is_correct: Verdict of the evaluation
            equivalence_method: Tier that accepted the answer
            is_first_question_today: First answered question of the day
            daily_streak: Consecutive days with activity
            skipped: The student skipped the question
            streak_freeze_available: The student owns a streak freeze

        Returns:
            RewardOutcome with itemized XP and coins

        Raises:
            ValueError: On negative counters or time
        """
        if hints_used < 0 or correct_streak < 0 or daily_streak < 0:
            raise ValueError("hints_used, correct_streak and daily_streak must be non-negative")
        if time_spent_seconds is not None and time_spent_seconds < 0:
            raise ValueError("time_spent_seconds must be non-negative")

        base_xp = self.tables.xp_for(difficulty)
        base_coins = self.tables.coins_for(difficulty)

        if skipped or not is_correct:
            streak_frozen = (
                not skipped
                and streak_freeze_available
                and correct_streak >= self.tables.streak_freeze_min_streak
            )
            return RewardOutcome(
                xp=XPBreakdown(base=base_xp, forfeit=-base_xp, total=0),
                coins=CoinBreakdown(base=base_coins, multiplier=0.0, total=0),
                streak_frozen=streak_frozen,
            )

        method = EquivalenceMethod(equivalence_method) if equivalence_method else EquivalenceMethod.NONE
        fast = self.is_fast(difficulty, time_spent_seconds)

        xp = self._score_xp(base_xp, hints_used, fast, correct_streak, method)
        coins = self._score_coins(
            base_coins,
            is_first_question_today=is_first_question_today,
            daily_streak=daily_streak,
            perfect=hints_used == 0 and fast,
        )

        logger.debug(
            "Answer scored",
            extra_data={"difficulty": difficulty, "xp": xp.total, "coins": coins.total},
        )
        return RewardOutcome(xp=xp, coins=coins)

    def _score_xp(
        self,
        base: int,
        hints_used: int,
        fast: bool,
        correct_streak: int,
        method: EquivalenceMethod,
    ) -> XPBreakdown:
        running = base * self.tables.hint_multiplier(hints_used)
        hint_delta = running - base

        time_bonus = self.tables.time_bonus * base if fast else 0.0
        running += time_bonus

        streak_bonus = running * self.tables.streak_bonus(correct_streak)
        running += streak_bonus

        equivalence_bonus = (
            self.tables.algebraic_bonus * base
            if method == EquivalenceMethod.ALGEBRAIC
            else 0.0
        )

        base_r, hint_r, time_r, streak_r, equivalence_r = _round_cumulative(
            [float(base), hint_delta, time_bonus, streak_bonus, equivalence_bonus]
        )
        return XPBreakdown(
            base=base_r,
            hint_penalty=hint_r,
            time_bonus=time_r,
            streak_bonus=streak_r,
            equivalence_bonus=equivalence_r,
            total=base_r + hint_r + time_r + streak_r + equivalence_r,
        )

    def _score_coins(
        self,
        base: int,
        is_first_question_today: bool,
        daily_streak: int,
        perfect: bool,
    ) -> CoinBreakdown:
        bonuses: list[CoinBonus] = []
        if is_first_question_today:
            bonuses.append(CoinBonus(type="first_question_today", magnitude=self.tables.first_question_multiplier))
        if daily_streak >= self.tables.daily_streak_threshold:
            bonuses.append(CoinBonus(type="daily_streak", magnitude=self.tables.daily_streak_multiplier))
        if perfect:
            bonuses.append(CoinBonus(type="perfect_answer", magnitude=self.tables.perfect_multiplier))

        multiplier = math.prod(bonus.magnitude for bonus in bonuses)
        return CoinBreakdown(
            base=base,
            multiplier=multiplier,
            bonuses=bonuses,
            total=round_half_up(base * multiplier),
        )


def _round_cumulative(components: list[float]) -> list[int]:
    """
    Round components so that they sum to the rounded total.

    Each rounded component is the step between consecutive rounded running
    sums, so rounding errors never accumulate in the displayed breakdown.
    """
    rounded: list[int] = []
    running = 0.0
    previous = 0
    for component in components:
        running += component
        current = round_half_up(running)
        rounded.append(current - previous)
        previous = current
    return rounded


@lru_cache()
def get_scoring_engine() -> ScoringEngine:
    """Get the process-wide scoring engine"""
    return ScoringEngine(load_reward_tables())
