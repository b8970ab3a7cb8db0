"""Services package"""

from .evaluation_service import EvaluationService, evaluate_answer, get_evaluation_service

__all__ = [
    "EvaluationService",
    "evaluate_answer",
    "get_evaluation_service",
]
