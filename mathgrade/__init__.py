"""
mathgrade - Answer evaluation engine for a math-tutoring backend

Decides whether a free-form answer is correct using tiered equivalence
(exact, numeric, algebraic), explains wrong answers with a misconception
catalog, and converts the verdict into XP and coins with an itemized
breakdown.
"""

from .answer import check_equivalence, detect_misconceptions, evaluate_to_number, normalize, parse_algebraic
from .models import EvaluationRequest, EvaluationResult, QuestionType, StepResult
from .rewards import ScoringEngine
from .services import EvaluationService, evaluate_answer

__version__ = "1.0.0"

__all__ = [
    "normalize",
    "evaluate_to_number",
    "parse_algebraic",
    "check_equivalence",
    "detect_misconceptions",
    "ScoringEngine",
    "EvaluationRequest",
    "EvaluationResult",
    "QuestionType",
    "StepResult",
    "EvaluationService",
    "evaluate_answer",
]
