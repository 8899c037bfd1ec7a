#!/usr/bin/env python3
"""
Tests for pillar scorecard derivation.
"""

import pytest

from kpi_engine.models import HabitRecord, PillarScores, Task
from kpi_engine.pillars import (
    adjusted_target,
    calculate_culture,
    calculate_daily_scorecard,
    calculate_deliverables,
    calculate_monthly_skill_progression,
    calculate_revolut_score,
    calculate_skills,
)


class TestRevolutScore:
    def test_weights(self):
        assert calculate_revolut_score(PillarScores(100, 0, 0)) == pytest.approx(40)
        assert calculate_revolut_score(PillarScores(0, 100, 0)) == pytest.approx(30)
        assert calculate_revolut_score(PillarScores(50, 50, 50)) == pytest.approx(50)


class TestAdjustedTarget:
    def test_weekday_only_halved_on_weekend(self, habits, monday, saturday):
        work = habits[2]
        assert adjusted_target(work, monday) == 360
        assert adjusted_target(work, saturday) == 180

    def test_regular_habit_unchanged(self, habits, saturday):
        assert adjusted_target(habits[0], saturday) == 480


class TestDeliverables:
    """Deliverables blend habit completion (70%) with task completion (30%)."""

    def test_habit_and_task_blend(self, habits, monday):
        records = [HabitRecord("h-english", 30)]
        tasks = [Task("A", "high", completed=True), Task("B", "low")]
        # 50% habit completion, 50% task completion
        assert calculate_deliverables(records, tasks, habits, monday) == pytest.approx(50)

    def test_no_tasks_counts_as_complete(self, habits, monday):
        records = [HabitRecord("h-english", 120)]
        # Habit completion caps at 100%
        assert calculate_deliverables(records, [], habits, monday) == pytest.approx(100)


class TestSkills:
    def test_default_without_skill_habits(self, habits):
        assert calculate_skills([HabitRecord("h-sleep", 480)], habits) == 50

    def test_from_skill_habit_performance(self, habits):
        records = [HabitRecord("h-english", 60, quality_score=4)]
        assert calculate_skills(records, habits) == pytest.approx(80)

    def test_from_skill_deltas(self, habits):
        assert calculate_skills([], habits, {"h-english": 1, "h-sleep": 3}) == pytest.approx(70)

    def test_deltas_for_non_skill_habits_ignored(self, habits):
        assert calculate_skills([], habits, {"h-sleep": 3}) == 50


class TestCulture:
    def test_balanced_day(self, habits):
        records = [
            HabitRecord("h-sleep", 480),
            HabitRecord("h-english", 66),
            HabitRecord("h-work", 360),
        ]
        tasks = [Task("Ship feature", "high", completed=True)]
        # Q2 share 546/906 is in the 60-70% sweet spot, balance 3/4 -> 75, consistency 100,
        # growth 50 + 20 + 10 -> 80, compound all within 100-110% -> 100
        assert calculate_culture(records, tasks, habits) == pytest.approx((100 + 75 + 100 + 80 + 100) / 5)

    def test_empty_day(self, habits):
        # Q2 default 50, balance 0, consistency 0, growth 50, compound default 50
        assert calculate_culture([], [], habits) == pytest.approx(30)


class TestDailyScorecard:
    def test_pillars_clamped(self, habits, monday):
        records = [HabitRecord("h-english", 90, quality_score=5)]
        pillars = calculate_daily_scorecard(records, [], habits, day=monday)

        assert pillars.skills == 100
        assert 0 <= pillars.deliverables <= 100
        assert 0 <= pillars.culture <= 100

    def test_negative_deltas_floor_at_zero(self, habits):
        pillars = calculate_daily_scorecard([], [], habits, skill_level_deltas={"h-english": -5})
        assert pillars.skills == 0


def test_monthly_skill_progression():
    deltas = calculate_monthly_skill_progression({"a": 2, "b": 3}, {"a": 4})
    assert deltas == {"a": 2, "b": 0}
