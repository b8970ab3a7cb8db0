"""
Engine exceptions.

Defines the error taxonomy surfaced to callers. Only invalid input and broken
configuration are errors; an answer that cannot be interpreted is not.
"""

from http import HTTPStatus
from typing import Any, Dict, Optional

from .logging import get_logger

logger = get_logger(__name__)


class MathGradeError(Exception):
    """Base exception for engine errors"""

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = int(status_code)
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, include_details: bool = True) -> Dict[str, Any]:
        """Standardized error body for the request-handling layer"""
        error_data: Dict[str, Any] = {
            "error": {
                "type": self.__class__.__name__,
                "message": self.message,
            }
        }
        if include_details and self.details:
            error_data["error"]["details"] = self.details
        return error_data


class InvalidRequestError(MathGradeError):
    """Raised when an evaluation request is malformed"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[list] = None
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(
            message=message,
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            details=details
        )
        logger.warning(
            "Invalid evaluation request",
            extra_data={"field": field, "error": message}
        )


class ConfigurationError(MathGradeError):
    """Raised when reward tables or settings cannot be loaded"""

    def __init__(self, source: str, error: str):
        super().__init__(
            message=f"Invalid configuration in '{source}': {error}",
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            details={"source": source, "error": error}
        )
