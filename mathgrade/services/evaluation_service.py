"""
Evaluation service.

Dispatches an evaluation request by question type, runs the equivalence
resolver and misconception detector, scores the verdict and assembles the
result record.
"""

from typing import Any, Dict, List, Mapping, Union

from pydantic import ValidationError

from ..answer.equivalence import (
    EquivalenceMethod,
    ExactMatch,
    NoEquivalence,
    check_equivalence,
)
from ..answer.misconceptions import Misconception, detect_misconceptions
from ..core.config import Settings, get_settings
from ..core.errors import InvalidRequestError
from ..core.logging import get_logger
from ..models.domain import EvaluationRequest, EvaluationResult, QuestionType, StepResult
from ..rewards.scoring import RewardOutcome, ScoringEngine, get_scoring_engine

logger = get_logger(__name__)

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10


class EvaluationService:
    """
    Service for answer evaluation.

    Stateless apart from its configuration: the same request always yields
    the same result.
    """

    def __init__(
        self,
        scoring_engine: ScoringEngine | None = None,
        settings: Settings | None = None
    ):
        self.scoring_engine = scoring_engine or get_scoring_engine()
        self.settings = settings or get_settings()

    def evaluate(
        self, request: Union[EvaluationRequest, Mapping[str, Any]]
    ) -> EvaluationResult:
        """
        Evaluate a student's answer.

        Args:
            request: Validated request, or a camelCase/snake_case mapping

        Returns:
            EvaluationResult

        Raises:
            InvalidRequestError: If the request is malformed
        """
        if not isinstance(request, EvaluationRequest):
            request = self.parse_request(request)

        if request.question_type is QuestionType.STEP_BY_STEP:
            result = self._evaluate_steps(request)
        else:
            result = self._evaluate_single(request)

        logger.info(
            "Answer evaluated",
            extra_data={
                "question_type": request.question_type.value,
                "difficulty": request.difficulty,
                "is_correct": result.is_correct,
                "skipped": request.skipped,
                "xp": result.xp.total,
                "coins": result.coins.total,
                "misconceptions": [m.id for m in result.misconceptions],
            }
        )
        return result

    @staticmethod
    def parse_request(data: Mapping[str, Any]) -> EvaluationRequest:
        """
        Validate a raw request mapping.

        Raises:
            InvalidRequestError: With the pydantic error list as details
        """
        try:
            return EvaluationRequest.model_validate(data)
        except ValidationError as e:
            errors = e.errors(include_url=False, include_context=False)
            first = errors[0] if errors else {}
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidRequestError(
                first.get("msg", "Invalid evaluation request"),
                field=field,
                errors=errors,
            ) from e

    def _tolerance(self, request: EvaluationRequest) -> float:
        if request.tolerance is not None:
            return request.tolerance
        return self.settings.DEFAULT_QUESTION_TOLERANCE

    def _evaluate_single(self, request: EvaluationRequest) -> EvaluationResult:
        expected = request.expected_answer
        answer = request.single_answer()

        if request.question_type is QuestionType.MULTIPLE_CHOICE:
            chosen = answer.strip().casefold()
            verdict = ExactMatch() if chosen == expected.strip().casefold() else NoEquivalence()
        else:
            verdict = check_equivalence(
                answer,
                expected,
                tolerance=self._tolerance(request),
                close_factor=self.settings.CLOSE_TOLERANCE_FACTOR,
                algebraic_tolerance=self.settings.ALGEBRAIC_TOLERANCE,
            )

        is_correct = verdict.is_equivalent and not request.skipped

        misconceptions: List[Misconception] = []
        if (
            not verdict.is_equivalent
            and not request.skipped
            and request.question_type is not QuestionType.MULTIPLE_CHOICE
        ):
            misconceptions = detect_misconceptions(
                answer, expected, tolerance=self.settings.MISCONCEPTION_TOLERANCE
            )

        outcome = self._score(request, is_correct, verdict.equivalence_method)

        return EvaluationResult(
            is_correct=is_correct,
            feedback_text=self._single_feedback(
                request, is_correct, verdict.is_close, misconceptions, outcome
            ),
            correct_answer=expected,
            xp=outcome.xp,
            coins=outcome.coins,
            misconceptions=misconceptions,
            equivalence=verdict,
            streak_frozen=outcome.streak_frozen,
            next_difficulty=self._next_difficulty(request, is_correct),
        )

    def _evaluate_steps(self, request: EvaluationRequest) -> EvaluationResult:
        tolerance = self._tolerance(request)
        step_results: List[StepResult] = []

        for index, (expected, actual) in enumerate(zip(request.steps, request.step_answers())):
            verdict = check_equivalence(
                actual,
                expected,
                tolerance=tolerance,
                close_factor=self.settings.CLOSE_TOLERANCE_FACTOR,
                algebraic_tolerance=self.settings.ALGEBRAIC_TOLERANCE,
            )
            misconceptions: List[Misconception] = []
            if not verdict.is_equivalent and not request.skipped:
                misconceptions = detect_misconceptions(
                    actual, expected, tolerance=self.settings.MISCONCEPTION_TOLERANCE
                )

            step_results.append(
                StepResult(
                    step_number=index + 1,
                    correct=verdict.is_equivalent,
                    expected=expected,
                    actual=actual,
                    equivalence_method=verdict.equivalence_method,
                    is_close=verdict.is_close,
                    misconceptions=misconceptions,
                )
            )

        is_correct = all(step.correct for step in step_results) and not request.skipped
        misconceptions = [m for step in step_results for m in step.misconceptions]

        method = (
            EquivalenceMethod.ALGEBRAIC
            if any(step.equivalence_method is EquivalenceMethod.ALGEBRAIC for step in step_results)
            else EquivalenceMethod.EXACT
        )
        outcome = self._score(request, is_correct, method)

        return EvaluationResult(
            is_correct=is_correct,
            feedback_text=self._step_feedback(request, is_correct, step_results, outcome),
            correct_answer=list(request.steps),
            xp=outcome.xp,
            coins=outcome.coins,
            misconceptions=misconceptions,
            equivalence=step_results,
            streak_frozen=outcome.streak_frozen,
            next_difficulty=self._next_difficulty(request, is_correct),
        )

    def _score(
        self,
        request: EvaluationRequest,
        is_correct: bool,
        method: EquivalenceMethod
    ) -> RewardOutcome:
        return self.scoring_engine.score(
            difficulty=request.difficulty,
            hints_used=request.hints_used,
            time_spent_seconds=request.time_spent_seconds,
            correct_streak=request.correct_streak,
            is_correct=is_correct,
            equivalence_method=method,
            is_first_question_today=request.is_first_question_today,
            daily_streak=request.daily_streak,
            skipped=request.skipped,
            streak_freeze_available=request.streak_freeze_available,
        )

    def _next_difficulty(self, request: EvaluationRequest, is_correct: bool) -> int:
        """Suggest the next difficulty: up after a clean fast answer, down after a miss."""
        difficulty = request.difficulty
        if request.skipped or not is_correct:
            difficulty -= 1
        elif request.hints_used == 0 and self.scoring_engine.is_fast(
            request.difficulty, request.time_spent_seconds
        ):
            difficulty += 1
        return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, difficulty))

    # Feedback

    def _single_feedback(
        self,
        request: EvaluationRequest,
        is_correct: bool,
        is_close: bool,
        misconceptions: List[Misconception],
        outcome: RewardOutcome
    ) -> str:
        expected = request.expected_answer

        if request.skipped:
            return f"Question skipped. The correct answer is {expected}."

        if is_correct:
            parts = ["Correct!"]
        elif is_close:
            parts = [f"Very close! Check your rounding. The correct answer is {expected}."]
        else:
            parts = [f"Not quite. The correct answer is {expected}."]

        parts.extend(m.remediation_hint for m in _unique(misconceptions))
        parts.extend(_reward_notes(outcome))
        return " ".join(parts)

    def _step_feedback(
        self,
        request: EvaluationRequest,
        is_correct: bool,
        step_results: List[StepResult],
        outcome: RewardOutcome
    ) -> str:
        if request.skipped:
            return "Question skipped. Review the worked solution step by step."

        if is_correct:
            parts = [f"Correct! All {len(step_results)} steps are right."]
        else:
            wrong = [step for step in step_results if not step.correct]
            numbers = ", ".join(str(step.step_number) for step in wrong)
            if len(wrong) == 1:
                parts = [f"Step {numbers} needs another look."]
            else:
                parts = [f"Steps {numbers} need another look."]
            parts.extend(
                f"Step {step.step_number} is very close, check your rounding."
                for step in wrong
                if step.is_close
            )
            misconceptions = [m for step in wrong for m in step.misconceptions]
            parts.extend(m.remediation_hint for m in _unique(misconceptions))

        parts.extend(_reward_notes(outcome))
        return " ".join(parts)


def _unique(misconceptions: List[Misconception]) -> List[Misconception]:
    """Deduplicate by id, keeping first occurrence order."""
    seen: Dict[str, Misconception] = {}
    for misconception in misconceptions:
        seen.setdefault(misconception.id, misconception)
    return list(seen.values())


def _reward_notes(outcome: RewardOutcome) -> List[str]:
    notes = []
    if outcome.xp.total:
        notes.append(f"+{outcome.xp.total} XP.")
    if outcome.streak_frozen:
        notes.append("Your streak freeze kept your streak alive.")
    return notes


# Factory function
def get_evaluation_service() -> EvaluationService:
    """Create evaluation service instance"""
    return EvaluationService()


def evaluate_answer(
    request: Union[EvaluationRequest, Mapping[str, Any]]
) -> EvaluationResult:
    """Evaluate one answer with the default service."""
    return get_evaluation_service().evaluate(request)
