"""
Pytest configuration and shared fixtures for KPI engine tests.
"""

from datetime import date, timedelta
from pathlib import Path
import sys

import pytest


# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from kpi_engine.models import DailyRecord, Habit, HabitRecord, PillarScores, Task  # noqa: E402


MONDAY = date(2024, 1, 15)
SATURDAY = date(2024, 1, 20)


@pytest.fixture
def monday():
    return MONDAY


@pytest.fixture
def saturday():
    return SATURDAY


@pytest.fixture
def habits():
    """A small habit set covering every category the engine treats specially."""
    return [
        Habit(
            id="h-sleep",
            name="Sleep",
            target_minutes=480,
            category="health",
            skill_level=3,
            eisenhower_quadrant="Q2",
        ),
        Habit(
            id="h-english",
            name="English",
            target_minutes=60,
            category="skills",
            skill_level=2,
            eisenhower_quadrant="Q2",
        ),
        Habit(
            id="h-work",
            name="Work",
            target_minutes=360,
            category="career",
            skill_level=4,
            eisenhower_quadrant="Q1",
            is_weekday_only=True,
        ),
        Habit(
            id="h-social",
            name="Social media",
            target_minutes=30,
            category="other",
            skill_level=1,
            eisenhower_quadrant="Q3",
        ),
    ]


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults."""
    def _make(title="Task", priority="medium", completed=False, estimated=None, actual=None, **kwargs):
        return Task(
            title=title,
            priority=priority,
            completed=completed,
            estimated_minutes=estimated,
            actual_minutes=actual,
            **kwargs,
        )
    return _make


@pytest.fixture
def neutral_pillars():
    return PillarScores(deliverables=0, skills=0, culture=0)


@pytest.fixture
def make_records():
    """
    Factory for a date-ordered series of daily records.

    Args:
        kpis: One total KPI per day (None leaves the day unscored).
        minutes: Optional mapping of habit id to per-day minutes; None skips that day.
        start: Date of the first record.
    """
    def _make(kpis, minutes=None, start=date(2024, 1, 1)):
        records = []
        for i, kpi in enumerate(kpis):
            habit_records = []
            for habit_id, values in (minutes or {}).items():
                if i < len(values) and values[i] is not None:
                    habit_records.append(HabitRecord(habit_id=habit_id, actual_minutes=values[i], quality_score=4))
            records.append(
                DailyRecord(
                    date=start + timedelta(days=i),
                    habit_records=habit_records,
                    total_kpi=kpi,
                )
            )
        return records
    return _make
