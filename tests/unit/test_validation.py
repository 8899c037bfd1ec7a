#!/usr/bin/env python3
"""
Tests for input validation and the error hierarchy.
"""

import math

import pytest

from kpi_engine.errors import EngineError, ValidationError
from kpi_engine.models import Habit, HabitRecord, PillarScores, Quadrant, Task, TaskPriority
from kpi_engine.validation import (
    ValidationResult,
    require_finite_values,
    require_valid,
    validate_inputs,
    validate_series,
)


@pytest.fixture
def pillars():
    return PillarScores(deliverables=50, skills=50, culture=50)


class TestValidateInputs:
    """Test day-level validation."""

    def test_valid_day(self, habits, pillars):
        result = validate_inputs(
            [HabitRecord("h-english", 45, quality_score=5)],
            [Task("Plan", "medium", estimated_minutes=30)],
            pillars,
            habits,
        )
        assert result.valid is True
        assert bool(result) is True
        assert result.errors == []

    def test_boundaries_accepted(self, pillars):
        result = validate_inputs(
            [HabitRecord("h", 0, quality_score=1), HabitRecord("h", 0, quality_score=5)],
            [Task(f"T{i}", "low") for i in range(5)],
            PillarScores(deliverables=0, skills=100, culture=100),
        )
        assert result.valid is True

    def test_quality_must_be_integer(self, pillars):
        result = validate_inputs([HabitRecord("h", 30, quality_score=3.5)], [], pillars)
        assert result.errors[0]["validator"] == "type"

    def test_infinite_pillar(self):
        result = validate_inputs([], [], PillarScores(deliverables=math.inf, skills=0, culture=0))
        validators = {e["validator"] for e in result.errors}
        assert "finite" in validators

    def test_negative_task_minutes(self, pillars):
        result = validate_inputs([], [Task("T", "high", estimated_minutes=-10)], pillars)
        assert result.errors[0]["path"] == "/tasks/0/estimated_minutes"

    def test_invalid_habit_quadrant(self, pillars):
        habits = [Habit(id="h", name="H", target_minutes=30, eisenhower_quadrant="Q5")]
        result = validate_inputs([], [], pillars, habits)
        assert result.errors[0]["path"] == "/habits/0/eisenhower_quadrant"

    def test_every_enum_value_accepted(self, pillars):
        habits = [
            Habit(id=q.value, name=q.value, target_minutes=30, eisenhower_quadrant=q.value) for q in Quadrant
        ]
        tasks = [Task(p.value, p.value) for p in TaskPriority]
        assert validate_inputs([], tasks, pillars, habits).valid is True

    def test_error_messages(self, pillars):
        result = validate_inputs([], [Task("", "high")], pillars)
        assert result.get_error_messages() == ["/tasks/0/title: Task title must not be empty"]


class TestValidateSeries:
    """Test record-series validation."""

    def test_finite_series(self, make_records):
        assert validate_series(make_records([80, None, 90])).valid is True

    def test_nan_kpi(self, make_records):
        result = validate_series(make_records([80, math.nan]))
        assert result.errors[0]["path"] == "/1/total_kpi"

    def test_nan_minutes(self, make_records):
        result = validate_series(make_records([80], minutes={"h": [math.nan]}))
        assert result.errors[0]["path"] == "/0/habit_records/0/actual_minutes"


class TestErrors:
    """Test the exception hierarchy."""

    def test_require_valid_raises(self):
        failed = ValidationResult(valid=False, errors=[{"path": "/x", "message": "bad"}])
        with pytest.raises(ValidationError) as exc_info:
            require_valid(failed, "Broken input")

        error = exc_info.value
        assert isinstance(error, EngineError)
        assert error.validation_errors == [{"path": "/x", "message": "bad"}]
        assert "1. /x: bad" in error.get_error_summary()

    def test_require_valid_passes(self):
        require_valid(ValidationResult(valid=True), "unused")

    def test_require_finite_values(self):
        require_finite_values([1, 2.5, 0])
        with pytest.raises(ValidationError):
            require_finite_values([1, -math.inf])

    def test_to_dict(self):
        error = ValidationError("Bad series", validation_errors=[], validation_type="series")
        data = error.to_dict()

        assert data["error_type"] == "ValidationError"
        assert data["message"] == "Bad series"
        assert data["context"]["validation_type"] == "series"

    def test_str_includes_context(self):
        error = EngineError("Failure", context={"day": "2024-01-01"})
        assert str(error) == "Failure Context: {'day': '2024-01-01'}"
