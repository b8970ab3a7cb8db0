"""
Domain models for answer evaluation.

Request and result records exchanged with the request-handling layer.
Field names are snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from mathgrade.answer.equivalence import EquivalenceMethod, EquivalenceVerdict
from mathgrade.answer.misconceptions import Misconception
from mathgrade.rewards.scoring import CoinBreakdown, XPBreakdown

MAX_ANSWER_LENGTH = 10000

RawAnswer = Union[str, List[str], Dict[Union[int, str], str]]


def _number_to_text(v: Any) -> Any:
    # Booleans are left alone so they still fail validation
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    if isinstance(v, list):
        return [_number_to_text(item) for item in v]
    if isinstance(v, dict):
        return {key: _number_to_text(value) for key, value in v.items()}
    return v


class QuestionType(str, Enum):
    """Question types the orchestrator dispatches on"""
    MULTIPLE_CHOICE = "multiple-choice"
    FREE_FORM = "free-form"
    NUMERIC = "numeric"
    FILL_IN = "fill-in"
    STEP_BY_STEP = "step-by-step"

    @property
    def is_single_answer(self) -> bool:
        return self is not QuestionType.STEP_BY_STEP


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EvaluationRequest(_WireModel):
    """A student's answer together with the question metadata needed to grade it"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore"
    )

    question_type: QuestionType
    difficulty: int
    expected_answer: Optional[str] = None
    steps: Optional[List[str]] = None
    user_answer: Optional[RawAnswer] = None
    hints_used: int = Field(default=0, ge=0)
    time_spent_seconds: Optional[float] = Field(default=None, ge=0)
    skipped: bool = False
    correct_streak: int = Field(default=0, ge=0)
    streak_freeze_available: bool = False
    is_first_question_today: bool = False
    daily_streak: int = Field(default=0, ge=0)
    tolerance: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("expected_answer", "user_answer", "steps", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        """Accept JSON numbers wherever answer text is expected"""
        return _number_to_text(v)

    @field_validator("user_answer")
    @classmethod
    def limit_answer_length(cls, v: Optional[RawAnswer]) -> Optional[RawAnswer]:
        """Reject oversized answers"""
        parts = [v] if isinstance(v, str) else list(v.values()) if isinstance(v, dict) else v or []
        if any(len(part) > MAX_ANSWER_LENGTH for part in parts):
            raise ValueError(f"Answer too long (max {MAX_ANSWER_LENGTH} characters)")
        if isinstance(v, dict):
            try:
                return {int(key): value for key, value in v.items()}
            except ValueError:
                raise ValueError("Step answer keys must be step indices") from None
        return v

    @model_validator(mode="after")
    def require_expected_answer(self) -> "EvaluationRequest":
        """Each question type needs its own kind of expected answer"""
        if self.question_type.is_single_answer:
            if self.expected_answer is None or not self.expected_answer.strip():
                raise ValueError(
                    f"expectedAnswer is required for {self.question_type.value} questions"
                )
        elif not self.steps:
            raise ValueError("steps is required for step-by-step questions")
        return self

    def step_answers(self) -> List[str]:
        """
        The student's answer for every expected step, in order.

        Accepts a list or a mapping keyed by 0-based step index; a missing
        step is an empty answer.
        """
        steps = self.steps or []
        answer = self.user_answer

        if isinstance(answer, dict):
            return [answer.get(i, "") for i in range(len(steps))]
        if isinstance(answer, list):
            return [answer[i] if i < len(answer) else "" for i in range(len(steps))]
        if isinstance(answer, str):
            return [answer] + [""] * (len(steps) - 1)
        return [""] * len(steps)

    def single_answer(self) -> str:
        """The student's answer to a single-answer question"""
        answer = self.user_answer
        if isinstance(answer, str):
            return answer
        if isinstance(answer, list):
            return answer[0] if answer else ""
        if isinstance(answer, dict):
            return next(iter(answer.values()), "")
        return ""


class StepResult(_WireModel):
    """Verdict for one step of a step-by-step question"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    step_number: int = Field(..., ge=1)
    correct: bool
    expected: str
    actual: str
    equivalence_method: EquivalenceMethod
    is_close: bool = False
    misconceptions: List[Misconception] = Field(default_factory=list)


class EvaluationResult(_WireModel):
    """Everything the caller needs to show and persist for one answer"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    is_correct: bool
    feedback_text: str
    correct_answer: Union[str, List[str]]
    xp: XPBreakdown
    coins: CoinBreakdown
    misconceptions: List[Misconception] = Field(default_factory=list)
    equivalence: Union[EquivalenceVerdict, List[StepResult]]
    streak_frozen: bool = False
    next_difficulty: int = Field(..., ge=1, le=10)

    @property
    def xp_earned(self) -> int:
        return self.xp.total

    def to_response(self) -> Dict[str, Any]:
        """JSON-ready camelCase payload"""
        return self.model_dump(mode="json", by_alias=True)
