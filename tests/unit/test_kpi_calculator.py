#!/usr/bin/env python3
"""
Tests for the daily KPI calculator.

Tests cover:
- Quality multiplier and single-peaked efficiency curve
- Base score capping and weekday-only weekend targets
- Full breakdowns, the [0, 150] clamp and streak compound effect
- Boundary validation failures with field paths
- Scoring stored records and whole series
"""

import logging
import math

import pytest

from kpi_engine.kpi_calculator import KPICalculator, clamp_kpi, efficiency_curve, quality_multiplier
from kpi_engine.models import DailyRecord, HabitRecord, PillarScores
from kpi_engine.pillars import calculate_daily_scorecard, calculate_revolut_score


@pytest.fixture
def calculator():
    return KPICalculator()


# ============================================================================
# Building blocks
# ============================================================================


class TestEfficiencyCurve:
    """Test the actual-vs-planned efficiency curve."""

    def test_peak_at_plan(self):
        assert efficiency_curve(1.0) == pytest.approx(10.0)

    def test_zero_at_tolerance_edges(self):
        assert efficiency_curve(0.5) == pytest.approx(0.0)
        assert efficiency_curve(1.5) == pytest.approx(0.0)

    def test_symmetric(self):
        assert efficiency_curve(0.8) == pytest.approx(efficiency_curve(1.2))
        assert efficiency_curve(0.7) == pytest.approx(efficiency_curve(1.3))

    def test_single_peaked(self):
        ratios = [0.6, 0.8, 0.9, 1.0]
        values = [efficiency_curve(r) for r in ratios]
        assert values == sorted(values)
        assert efficiency_curve(1.1) > efficiency_curve(1.4)

    def test_penalty_floor(self):
        assert efficiency_curve(0.0) == -5.0
        assert efficiency_curve(3.0) == -5.0


class TestQualityMultiplier:
    @pytest.mark.parametrize("quality,expected", [(None, 1.0), (3, 1.0), (5, 1.1), (1, 0.9), (4, 1.05)])
    def test_values(self, quality, expected):
        assert quality_multiplier(quality) == pytest.approx(expected)


def test_clamp_kpi():
    assert clamp_kpi(-3) == 0
    assert clamp_kpi(75.5) == 75.5
    assert clamp_kpi(212) == 150


# ============================================================================
# Base score
# ============================================================================


class TestBaseScore:
    """Test habit completion scoring."""

    def test_full_completion(self, calculator, habits, monday):
        records = [HabitRecord("h-english", 60, quality_score=3)]
        assert calculator.calculate_base_score(records, habits, monday) == pytest.approx(100)

    def test_overshoot_capped(self, calculator, habits, monday):
        records = [HabitRecord("h-english", 150, quality_score=5)]
        assert calculator.calculate_base_score(records, habits, monday) == pytest.approx(150)

    def test_quality_weighting(self, calculator, habits, monday):
        records = [HabitRecord("h-english", 60, quality_score=5)]
        assert calculator.calculate_base_score(records, habits, monday) == pytest.approx(110)

    def test_mean_across_habits(self, calculator, habits, monday):
        records = [
            HabitRecord("h-english", 30),
            HabitRecord("h-sleep", 480),
        ]
        assert calculator.calculate_base_score(records, habits, monday) == pytest.approx(75)

    def test_weekday_only_habit_on_weekend(self, calculator, habits, monday, saturday):
        records = [HabitRecord("h-work", 180)]
        assert calculator.calculate_base_score(records, habits, saturday) == pytest.approx(100)
        assert calculator.calculate_base_score(records, habits, monday) == pytest.approx(50)

    def test_unknown_habit_skipped(self, calculator, habits, monday, caplog):
        records = [HabitRecord("h-english", 60), HabitRecord("h-ghost", 10)]
        with caplog.at_level(logging.WARNING, logger="kpi_engine.kpi_calculator"):
            score = calculator.calculate_base_score(records, habits, monday)

        assert score == pytest.approx(100)
        assert "h-ghost" in caplog.text

    def test_no_records(self, calculator, habits, monday):
        assert calculator.calculate_base_score([], habits, monday) == 0.0


# ============================================================================
# Full calculation
# ============================================================================


class TestCalculateDailyKPI:
    """Test the complete daily breakdown."""

    def test_breakdown_components(self, calculator, habits, make_task, monday):
        records = [HabitRecord("h-english", 30, quality_score=3)]
        tasks = [make_task("Write report", "medium", completed=True, estimated=60, actual=60)]
        pillars = PillarScores(deliverables=20, skills=20, culture=20)

        result = calculator.calculate_daily_kpi(records, tasks, habits, pillars, day=monday)

        assert result.success is True
        breakdown = result.data
        assert breakdown.base_score == pytest.approx(50)
        assert breakdown.efficiency_coefficients.habits == {"h-english": pytest.approx(0.0)}
        assert breakdown.efficiency_coefficients.task_average == pytest.approx(10.0)
        assert breakdown.task_bonus == 10
        assert breakdown.q2_focus_bonus == 25
        assert breakdown.strategic_bonus == 0
        assert breakdown.priority_bonus == 35
        assert breakdown.revolut_score == pytest.approx(20)
        assert breakdown.total_kpi == pytest.approx(115)

    def test_total_clamped_to_150(self, calculator, habits, make_task, monday):
        records = [HabitRecord("h-english", 60, quality_score=5)]
        tasks = [make_task("Learn english grammar", "high", completed=True, estimated=30, actual=30)]
        pillars = PillarScores(deliverables=90, skills=90, culture=90)

        result = calculator.calculate_daily_kpi(records, tasks, habits, pillars, day=monday)

        assert result.data.strategic_bonus == 10
        assert result.data.total_kpi == 150

    def test_total_clamped_to_zero(self, calculator, habits, neutral_pillars, monday):
        records = [HabitRecord("h-english", 0)]

        result = calculator.calculate_daily_kpi(records, [], habits, neutral_pillars, day=monday)

        assert result.data.efficiency_coefficients.total == pytest.approx(-5)
        assert result.data.total_kpi == 0

    def test_skipped_habits_reported(self, calculator, habits, neutral_pillars, monday):
        records = [HabitRecord("h-ghost", 10)]

        result = calculator.calculate_daily_kpi(records, [], habits, neutral_pillars, day=monday)

        assert result.success is True
        assert result.data.skipped_habit_ids == ["h-ghost"]
        assert result.data.base_score == 0

    def test_task_efficiency_needs_estimate_and_actual(self, calculator, habits, make_task, neutral_pillars):
        tasks = [
            make_task("A", "low", completed=True, estimated=30),
            make_task("B", "low", completed=False, estimated=30, actual=30),
            make_task("C", "low", completed=True, estimated=40, actual=60),
        ]
        result = calculator.calculate_daily_kpi([], tasks, habits, neutral_pillars)

        assert result.data.efficiency_coefficients.tasks == [pytest.approx(0.0)]

    def test_compound_effect_from_streaks(self, calculator, habits, neutral_pillars, monday):
        result = calculator.calculate_daily_kpi(
            [], [], habits, neutral_pillars, day=monday, streaks={"h-english": 21, "h-sleep": 7}
        )
        assert result.data.efficiency_coefficients.compound_effect == 15
        assert result.data.total_kpi == 15

    def test_compound_effect_capped(self, calculator, habits):
        streaks = {"h-english": 100, "h-sleep": 66, "h-ghost": 365}
        assert calculator.calculate_compound_effect(streaks, habits) == 25

    def test_to_dict_serializable(self, calculator, habits, neutral_pillars, monday):
        result = calculator.calculate_daily_kpi([HabitRecord("h-english", 60)], [], habits, neutral_pillars, day=monday)
        data = result.to_dict()

        assert data["success"] is True
        assert data["data"]["total_kpi"] == result.data.total_kpi
        assert "priority_bonus" in data["data"]
        assert data["data"]["efficiency_coefficients"]["total"] == pytest.approx(10)


# ============================================================================
# Validation at the boundary
# ============================================================================


class TestKPIValidation:
    """Invalid inputs produce failure results, never partial scores."""

    def _paths(self, result):
        return {e["path"] for e in result.errors}

    def test_quality_out_of_range(self, calculator, habits, neutral_pillars):
        result = calculator.calculate_daily_kpi(
            [HabitRecord("h-english", 60, quality_score=6)], [], habits, neutral_pillars
        )
        assert result.success is False
        assert result.data is None
        assert "/habit_records/0/quality_score" in self._paths(result)

    def test_negative_minutes(self, calculator, habits, neutral_pillars):
        result = calculator.calculate_daily_kpi([HabitRecord("h-english", -5)], [], habits, neutral_pillars)
        assert "/habit_records/0/actual_minutes" in self._paths(result)

    def test_nan_minutes(self, calculator, habits, neutral_pillars):
        result = calculator.calculate_daily_kpi([HabitRecord("h-english", math.nan)], [], habits, neutral_pillars)
        assert result.success is False
        assert result.errors[0]["validator"] == "finite"

    def test_pillar_out_of_range(self, calculator, habits):
        pillars = PillarScores(deliverables=120, skills=50, culture=-1)
        result = calculator.calculate_daily_kpi([], [], habits, pillars)
        assert self._paths(result) == {"/pillar_scores/deliverables", "/pillar_scores/culture"}

    def test_missing_pillars(self, calculator, habits):
        result = calculator.calculate_daily_kpi([], [], habits, None)
        assert result.success is False
        assert "/pillar_scores" in self._paths(result)

    def test_unknown_priority(self, calculator, habits, make_task, neutral_pillars):
        result = calculator.calculate_daily_kpi([], [make_task("A", "urgent")], habits, neutral_pillars)
        assert "/tasks/0/priority" in self._paths(result)

    def test_empty_title(self, calculator, habits, make_task, neutral_pillars):
        result = calculator.calculate_daily_kpi([], [make_task("   ", "high")], habits, neutral_pillars)
        assert "/tasks/0/title" in self._paths(result)
        assert result.errors[0]["message"] == "Task title must not be empty"

    def test_too_many_tasks(self, calculator, habits, make_task, neutral_pillars):
        tasks = [make_task(f"T{i}", "low") for i in range(6)]
        result = calculator.calculate_daily_kpi([], tasks, habits, neutral_pillars)
        assert "/tasks" in self._paths(result)
        assert "Maximum 5 tasks" in result.error or any("Maximum 5 tasks" in e["message"] for e in result.errors)

    def test_all_violations_reported(self, calculator, habits, make_task):
        result = calculator.calculate_daily_kpi(
            [HabitRecord("h-english", -1, quality_score=0)],
            [make_task("", "urgent")],
            habits,
            PillarScores(deliverables=101, skills=0, culture=0),
        )
        assert len(result.errors) == 5


# ============================================================================
# Records and series
# ============================================================================


class TestScoreRecords:
    """Test scoring stored daily records."""

    def test_score_record_derives_missing_pillars(self, calculator, habits, monday):
        record = DailyRecord(date=monday, habit_records=[HabitRecord("h-english", 60, quality_score=4)])

        result = calculator.score_record(record, habits)

        expected = calculate_revolut_score(calculate_daily_scorecard(record.habit_records, [], habits, day=monday))
        assert result.success is True
        assert result.data.revolut_score == pytest.approx(round(expected, 2))

    def test_score_record_uses_stored_pillars(self, calculator, habits, monday):
        record = DailyRecord(date=monday, pillar_scores=PillarScores(100, 100, 100))
        assert calculator.score_record(record, habits).data.revolut_score == pytest.approx(100)

    def test_score_series(self, calculator, habits, make_records):
        records = make_records([None, 88.0, None], minutes={"h-english": [60, 60, 60]})
        records[2].habit_records[0].quality_score = 9

        scored, failures = calculator.score_series(records, habits)

        assert scored[0].total_kpi is not None
        assert scored[1].total_kpi == 88.0
        assert scored[2].total_kpi is None
        assert list(failures) == [records[2].date.isoformat()]
        assert records[0].total_kpi is None

    def test_series_streaks_feed_compound_effect(self, calculator, habits, make_records, mocker):
        spy = mocker.spy(calculator, "score_record")
        records = make_records([None] * 8, minutes={"h-english": [60] * 8})

        calculator.score_series(records, habits)

        last_streaks = spy.call_args_list[-1].args[-1]
        assert last_streaks["h-english"] == 8
