"""Domain models package"""

from .domain import (
    QuestionType,
    RawAnswer,
    EvaluationRequest,
    StepResult,
    EvaluationResult,
)

__all__ = [
    "QuestionType",
    "RawAnswer",
    "EvaluationRequest",
    "StepResult",
    "EvaluationResult",
]
