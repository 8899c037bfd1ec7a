"""
KPI engine error handling.

Validation failures at the scoring boundary are returned as failure results;
these exceptions are raised inside the analytics layer and converted back into
failure results by the report builder.
"""

from typing import Any, Dict, List, Optional


class EngineError(Exception):
    """
    Base exception for all KPI engine errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error string."""
        parts = [self.message]
        if self.context:
            parts.append(f"Context: {self.context}")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(EngineError):
    """
    Error raised when engine inputs fail range, enum or finiteness checks.

    Each entry of ``validation_errors`` carries the path to the offending
    field, a message and the rule that failed.
    """

    def __init__(
        self,
        message: str,
        validation_errors: List[Dict[str, Any]],
        validation_type: str = "inputs",
    ):
        super().__init__(
            message=message,
            context={
                "validation_errors": validation_errors,
                "validation_type": validation_type,
            },
        )
        self.validation_errors = validation_errors
        self.validation_type = validation_type

    def get_error_summary(self) -> str:
        """Get a human-readable summary of validation errors."""
        lines = [f"{self.validation_type.capitalize()} validation failed", "", "Errors:"]
        for i, error in enumerate(self.validation_errors, 1):
            path = error.get("path", "root")
            message = error.get("message", "Unknown error")
            lines.append(f"  {i}. {path}: {message}")
        return "\n".join(lines)
