"""
Daily KPI calculation.

Combines habit performance, task-priority bonuses and pillar ratings into one
score clamped to [0, 150]:

    total = base score + efficiency coefficients + priority bonus + revolut score

Inputs are validated before anything is scored; invalid input returns a
failed EngineResult listing every offending field.
"""

import logging
from dataclasses import replace
from datetime import date
from statistics import mean
from typing import Dict, List, Optional, Tuple

from .config import (
    COMPOUND_EFFECT_CAP,
    EFFICIENCY_CONFIG,
    HABIT_COMPLETION_CAP,
    KPI_MAX,
    KPI_MIN,
    QUALITY_CONFIG,
)
from .models import (
    DailyRecord,
    EfficiencyCoefficients,
    EngineResult,
    Habit,
    HabitRecord,
    KPIBreakdown,
    PillarScores,
    Task,
)
from .pillars import adjusted_target, calculate_daily_scorecard, calculate_revolut_score
from .priority import PriorityClassifier
from .streaks import calculate_current_streaks, calculate_streak_bonus
from .validation import validate_inputs

logger = logging.getLogger(__name__)


def quality_multiplier(quality_score: Optional[int]) -> float:
    """1.0 at quality 3, +/-5% per step; neutral when quality was not rated."""
    if quality_score is None:
        return 1.0
    return 1 + (quality_score - QUALITY_CONFIG["neutral"]) * QUALITY_CONFIG["step"]


def efficiency_curve(ratio: float) -> float:
    """
    Single-peaked efficiency of actual vs planned minutes.

    Peaks at ratio 1.0, falls linearly to 0 at 1 +/- tolerance on either side
    and bottoms out at the penalty floor. Symmetric, so overshooting by 20%
    scores the same as delivering 80%.
    """
    cfg = EFFICIENCY_CONFIG
    value = cfg["peak"] * (1 - abs(ratio - 1) / cfg["tolerance"])
    return max(value, cfg["penalty_floor"])


def clamp_kpi(value: float) -> float:
    return max(KPI_MIN, min(KPI_MAX, value))


class KPICalculator:
    """
    Scores one day of activity.

    The priority classifier supplies the task, Q2-focus and strategic
    bonuses; the streak tracker supplies the compound-effect term.
    """

    def __init__(self, classifier: Optional[PriorityClassifier] = None):
        self.classifier = classifier or PriorityClassifier()

    def _scorable(
        self, habit_records: List[HabitRecord], habits: List[Habit]
    ) -> Tuple[List[Tuple[HabitRecord, Habit]], List[str]]:
        """Pair records with known habits; collect ids that cannot be scored."""
        habits_by_id = {h.id: h for h in habits}
        pairs = []
        skipped = []
        for record in habit_records:
            habit = habits_by_id.get(record.habit_id)
            if habit is None or habit.target_minutes <= 0:
                skipped.append(record.habit_id)
                continue
            pairs.append((record, habit))
        if skipped:
            logger.warning(f"Skipping habit records without a scorable habit: {skipped}")
        return pairs, skipped

    def calculate_base_score(
        self, habit_records: List[HabitRecord], habits: List[Habit], day: Optional[date] = None
    ) -> float:
        """Mean quality-weighted completion percentage, each capped at 150."""
        pairs, _ = self._scorable(habit_records, habits)
        return self._base_score(pairs, day)

    def _base_score(self, pairs: List[Tuple[HabitRecord, Habit]], day: Optional[date]) -> float:
        scores = []
        for record, habit in pairs:
            completion = min(record.actual_minutes / adjusted_target(habit, day) * 100, HABIT_COMPLETION_CAP)
            scores.append(min(completion * quality_multiplier(record.quality_score), HABIT_COMPLETION_CAP))
        return mean(scores) if scores else 0.0

    def calculate_efficiency_coefficients(
        self,
        habit_records: List[HabitRecord],
        tasks: List[Task],
        habits: List[Habit],
        day: Optional[date] = None,
        streaks: Optional[Dict[str, int]] = None,
    ) -> EfficiencyCoefficients:
        pairs, _ = self._scorable(habit_records, habits)
        return self._efficiency(pairs, tasks, habits, day, streaks)

    def _efficiency(
        self,
        pairs: List[Tuple[HabitRecord, Habit]],
        tasks: List[Task],
        habits: List[Habit],
        day: Optional[date],
        streaks: Optional[Dict[str, int]],
    ) -> EfficiencyCoefficients:
        habit_values = {
            habit.id: round(efficiency_curve(record.actual_minutes / adjusted_target(habit, day)), 2)
            for record, habit in pairs
        }
        task_values = [
            round(efficiency_curve(t.actual_minutes / t.estimated_minutes), 2)
            for t in tasks
            if t.completed and t.estimated_minutes and t.actual_minutes
        ]
        return EfficiencyCoefficients(
            habits=habit_values,
            tasks=task_values,
            habit_average=round(mean(habit_values.values()), 2) if habit_values else 0.0,
            task_average=round(mean(task_values), 2) if task_values else 0.0,
            compound_effect=self.calculate_compound_effect(streaks, habits),
        )

    def calculate_compound_effect(self, streaks: Optional[Dict[str, int]], habits: List[Habit]) -> float:
        """Sum of streak milestone bonuses for known habits, capped."""
        if not streaks:
            return 0.0
        known = {h.id for h in habits}
        total = sum(calculate_streak_bonus(days) for habit_id, days in streaks.items() if habit_id in known)
        return float(min(total, COMPOUND_EFFECT_CAP))

    def calculate_daily_kpi(
        self,
        habit_records: List[HabitRecord],
        tasks: List[Task],
        habits: List[Habit],
        pillar_scores: PillarScores,
        day: Optional[date] = None,
        streaks: Optional[Dict[str, int]] = None,
    ) -> EngineResult:
        """
        Calculate the KPI breakdown for one day.

        Args:
            habit_records: The day's habit measurements.
            tasks: The day's tasks (at most 5).
            habits: Habit definitions referenced by the records.
            pillar_scores: Deliverables/skills/culture ratings, 0-100 each.
            day: Date being scored; decides weekend targets. Defaults to today.
            streaks: Current streak length per habit id, for the compound effect.

        Returns:
            EngineResult with a KPIBreakdown, or a failure listing invalid fields.
        """
        validation = validate_inputs(habit_records, tasks, pillar_scores, habits)
        if not validation:
            return EngineResult.fail("Invalid KPI inputs", errors=validation.errors)

        pairs, skipped = self._scorable(habit_records, habits)

        base_score = self._base_score(pairs, day)
        efficiency = self._efficiency(pairs, tasks, habits, day, streaks)
        task_bonus = self.classifier.calculate_priority_bonus(tasks)
        q2_bonus = self.classifier.calculate_q2_focus_bonus(tasks, habits)
        strategic_bonus = self.classifier.calculate_strategic_bonus(tasks)
        revolut_score = calculate_revolut_score(pillar_scores)

        raw_total = (
            base_score + efficiency.total + task_bonus + q2_bonus + strategic_bonus + revolut_score
        )
        breakdown = KPIBreakdown(
            base_score=round(base_score, 2),
            efficiency_coefficients=efficiency,
            task_bonus=task_bonus,
            q2_focus_bonus=q2_bonus,
            strategic_bonus=strategic_bonus,
            revolut_score=round(revolut_score, 2),
            total_kpi=round(clamp_kpi(raw_total), 2),
            skipped_habit_ids=skipped,
        )
        logger.debug(f"KPI {breakdown.total_kpi} (raw {raw_total:.2f}) for {day or 'today'}")
        return EngineResult.ok(breakdown)

    def score_record(
        self, record: DailyRecord, habits: List[Habit], streaks: Optional[Dict[str, int]] = None
    ) -> EngineResult:
        """Score a stored day, deriving pillar ratings when none were entered."""
        pillars = record.pillar_scores or calculate_daily_scorecard(
            record.habit_records, record.tasks, habits, day=record.date
        )
        return self.calculate_daily_kpi(
            record.habit_records, record.tasks, habits, pillars, day=record.date, streaks=streaks
        )

    def score_series(
        self, records: List[DailyRecord], habits: List[Habit]
    ) -> Tuple[List[DailyRecord], Dict[str, EngineResult]]:
        """
        Fill in ``total_kpi`` for every unscored record of a date-ordered series.

        Streaks are recomputed from the records up to each day. Returns new
        records plus failures keyed by ISO date; failed days keep no KPI.
        """
        scored = []
        failures = {}
        for i, record in enumerate(records):
            if record.total_kpi is not None:
                scored.append(record)
                continue
            streaks = calculate_current_streaks([r.habit_records for r in records[: i + 1]], habits)
            result = self.score_record(record, habits, streaks)
            if result.success:
                scored.append(replace(record, total_kpi=result.data.total_kpi))
            else:
                failures[record.date.isoformat()] = result
                scored.append(record)
        return scored, failures
