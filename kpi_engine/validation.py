"""
Input validation for the KPI engine.

Day inputs and record series are serialized to plain dicts and checked against
JSON Schemas (Draft 7) before any scoring runs. Draft 7 accepts NaN and
infinity as numbers, so the validator is extended with a ``finite`` keyword.
Every violation is reported with the path to the offending field.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import ValidationError as JsonSchemaValidationError

from .config import (
    MAX_TASKS_PER_DAY,
    PILLAR_MAX,
    PILLAR_MIN,
    PRIORITY_LEVELS,
    QUADRANT_ORDER,
    QUALITY_CONFIG,
    TASK_LIMIT_MESSAGE,
)
from .errors import ValidationError
from .models import DailyRecord, Habit, HabitRecord, PillarScores, Task

logger = logging.getLogger(__name__)


def _finite(validator, finite, instance, schema):
    """Reject NaN and infinite numbers when ``finite`` is true."""
    if finite and validator.is_type(instance, "number") and not math.isfinite(instance):
        yield JsonSchemaValidationError(f"{instance!r} is not a finite number")


EngineValidator = validators.extend(Draft7Validator, {"finite": _finite})

MINUTES = {"type": "number", "minimum": 0, "finite": True}
OPTIONAL_MINUTES = {"type": ["number", "null"], "minimum": 0, "finite": True}
PILLAR = {"type": "number", "minimum": PILLAR_MIN, "maximum": PILLAR_MAX, "finite": True}

HABIT_RECORD_SCHEMA = {
    "type": "object",
    "required": ["habit_id", "actual_minutes"],
    "properties": {
        "habit_id": {"type": "string"},
        "actual_minutes": MINUTES,
        "quality_score": {
            "type": ["integer", "null"],
            "minimum": QUALITY_CONFIG["min"],
            "maximum": QUALITY_CONFIG["max"],
        },
    },
}

TASK_SCHEMA = {
    "type": "object",
    "required": ["title", "priority"],
    "properties": {
        "title": {"type": "string", "pattern": r"\S"},
        "priority": {"enum": list(PRIORITY_LEVELS)},
        "completed": {"type": "boolean"},
        "estimated_minutes": OPTIONAL_MINUTES,
        "actual_minutes": OPTIONAL_MINUTES,
    },
}

HABIT_SCHEMA = {
    "type": "object",
    "required": ["id", "target_minutes"],
    "properties": {
        "id": {"type": "string"},
        "target_minutes": MINUTES,
        "eisenhower_quadrant": {"enum": [*QUADRANT_ORDER, None]},
    },
}

DAY_SCHEMA = {
    "type": "object",
    "required": ["habit_records", "tasks", "pillar_scores"],
    "properties": {
        "habit_records": {"type": "array", "items": HABIT_RECORD_SCHEMA},
        "tasks": {"type": "array", "maxItems": MAX_TASKS_PER_DAY, "items": TASK_SCHEMA},
        "habits": {"type": "array", "items": HABIT_SCHEMA},
        "pillar_scores": {
            "type": "object",
            "required": ["deliverables", "skills", "culture"],
            "properties": {
                "deliverables": PILLAR,
                "skills": PILLAR,
                "culture": PILLAR,
            },
        },
    },
}

SERIES_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "total_kpi": {"type": ["number", "null"], "finite": True},
            "habit_records": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"actual_minutes": MINUTES},
                },
            },
        },
    },
}

VALUES_SCHEMA = {"type": "array", "items": {"type": "number", "finite": True}}

# Friendlier wording for the rules whose default jsonschema message is opaque
_MESSAGES = {
    "maxItems": TASK_LIMIT_MESSAGE,
    "pattern": "Task title must not be empty",
}


@dataclass
class ValidationResult:
    """
    Result of a validation operation.

    Contains validation status and the normalized errors.
    """

    valid: bool
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow using ValidationResult in boolean context."""
        return self.valid

    def get_error_messages(self) -> List[str]:
        return [f"{e.get('path', 'root')}: {e.get('message', 'Unknown error')}" for e in self.errors]


def _normalize_errors(errors: Iterable[JsonSchemaValidationError]) -> List[Dict[str, Any]]:
    """Convert jsonschema errors into path/message/validator dicts."""
    normalized = []
    for error in errors:
        path = "/" + "/".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        normalized.append(
            {
                "path": path,
                "message": _MESSAGES.get(error.validator, error.message),
                "validator": error.validator,
                "validator_value": error.validator_value,
            }
        )
    return normalized


def validate_payload(data: Any, schema: Dict[str, Any]) -> ValidationResult:
    """Validate arbitrary data against one of the engine schemas."""
    errors = _normalize_errors(EngineValidator(schema).iter_errors(data))
    if errors:
        logger.warning(f"Validation failed with {len(errors)} issue(s): {errors[0]['path']}")
        return ValidationResult(valid=False, errors=errors)
    return ValidationResult(valid=True)


def build_day_payload(
    habit_records: List[HabitRecord],
    tasks: List[Task],
    pillar_scores: Optional[PillarScores],
    habits: Optional[List[Habit]] = None,
) -> Dict[str, Any]:
    """Serialize a day's typed inputs into the dict shape the schema checks."""
    return {
        "habit_records": [r.to_dict() for r in habit_records],
        "tasks": [t.to_dict() for t in tasks],
        "habits": [h.to_dict() for h in habits or []],
        "pillar_scores": pillar_scores.to_dict() if pillar_scores is not None else None,
    }


def validate_inputs(
    habit_records: List[HabitRecord],
    tasks: List[Task],
    pillar_scores: Optional[PillarScores],
    habits: Optional[List[Habit]] = None,
) -> ValidationResult:
    """
    Validate one day's scoring inputs.

    Checks quality scores (1-5), non-negative finite minutes, pillar scores
    (0-100), task priority and title, and the daily task limit.
    """
    return validate_payload(build_day_payload(habit_records, tasks, pillar_scores, habits), DAY_SCHEMA)


def validate_series(records: List[DailyRecord]) -> ValidationResult:
    """Validate that every KPI and minute value in a series is finite."""
    return validate_payload([r.to_dict() for r in records], SERIES_SCHEMA)


def require_valid(result: ValidationResult, message: str, validation_type: str = "inputs") -> None:
    """Raise ValidationError when a validation result failed."""
    if not result.valid:
        raise ValidationError(message, validation_errors=result.errors, validation_type=validation_type)


def require_finite_values(values: List[float]) -> None:
    require_valid(validate_payload(list(values), VALUES_SCHEMA), "Series contains non-finite values", "series")


def require_finite_series(records: List[DailyRecord]) -> None:
    require_valid(validate_series(records), "Record series contains invalid numbers", "series")
