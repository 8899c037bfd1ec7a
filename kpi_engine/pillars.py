"""
Pillar scorecard: Deliverables (40%) + Skills (30%) + Culture (30%).

Derives the three 0-100 pillar ratings from a day's habit and task data for
callers without manual ratings, and combines pillar ratings into the revolut
score used by the KPI calculator.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from .config import PILLAR_MAX, PILLAR_MIN, PILLAR_WEIGHTS, WEEKEND_TARGET_FACTOR
from .models import Habit, HabitRecord, PillarScores, Quadrant, Task

logger = logging.getLogger(__name__)

SKILL_CATEGORIES = ("skills", "learning")
BALANCE_CATEGORIES = ("health", "skills", "career", "learning")


def calculate_revolut_score(pillars: PillarScores) -> float:
    """Weighted combination of the three pillar ratings."""
    return (
        pillars.deliverables * PILLAR_WEIGHTS["deliverables"]
        + pillars.skills * PILLAR_WEIGHTS["skills"]
        + pillars.culture * PILLAR_WEIGHTS["culture"]
    )


def adjusted_target(habit: Habit, day: Optional[date] = None) -> float:
    """Weekday-only habits ask for half their target on weekends."""
    day = day or date.today()
    if habit.is_weekday_only and day.weekday() >= 5:
        return habit.target_minutes * WEEKEND_TARGET_FACTOR
    return habit.target_minutes


def _clamp(value: float) -> float:
    return round(max(PILLAR_MIN, min(PILLAR_MAX, value)), 2)


def _known_records(habit_records: List[HabitRecord], habits_by_id: Dict[str, Habit]):
    for record in habit_records:
        habit = habits_by_id.get(record.habit_id)
        if habit is not None and habit.target_minutes > 0:
            yield record, habit


def calculate_deliverables(
    habit_records: List[HabitRecord], tasks: List[Task], habits: List[Habit], day: Optional[date] = None
) -> float:
    habits_by_id = {h.id: h for h in habits}
    completions = [
        min(record.actual_minutes / adjusted_target(habit, day), 1.0) * 100
        for record, habit in _known_records(habit_records, habits_by_id)
    ]
    habit_completion = sum(completions) / len(completions) if completions else 0.0

    if tasks:
        task_completion = sum(1 for t in tasks if t.completed) / len(tasks) * 100
    else:
        task_completion = 100.0

    return habit_completion * 0.7 + task_completion * 0.3


def calculate_skills(
    habit_records: List[HabitRecord],
    habits: List[Habit],
    skill_level_deltas: Optional[Dict[str, float]] = None,
) -> float:
    """
    Skills pillar from monthly skill-level deltas when available, otherwise
    from today's skill-building habits. Defaults to 50 with nothing to measure.
    """
    habits_by_id = {h.id: h for h in habits}

    if skill_level_deltas:
        deltas = [
            delta for habit_id, delta in skill_level_deltas.items()
            if habit_id in habits_by_id and habits_by_id[habit_id].category in SKILL_CATEGORIES
        ]
        if deltas:
            average_delta = sum(deltas) / len(deltas)
            return average_delta / 5 * 100 + 50

    scores = []
    for record, habit in _known_records(habit_records, habits_by_id):
        if habit.category not in SKILL_CATEGORIES:
            continue
        completion = min(record.actual_minutes / habit.target_minutes, 1.5)
        quality = record.quality_score / 5 if record.quality_score else 1.0
        scores.append(completion * quality * 100)

    return sum(scores) / len(scores) if scores else 50.0


def _q2_time_score(habit_records: List[HabitRecord], habits_by_id: Dict[str, Habit]) -> float:
    total = 0.0
    q2_time = 0.0
    for record in habit_records:
        habit = habits_by_id.get(record.habit_id)
        if habit is None:
            continue
        total += record.actual_minutes
        if habit.eisenhower_quadrant == Quadrant.Q2.value:
            q2_time += record.actual_minutes

    if total == 0:
        return 50.0

    # Sweet spot is 60-70% of habit time in Q2
    share = q2_time / total * 100
    if 60 <= share <= 70:
        return 100.0
    if 50 <= share < 80:
        return 80.0
    if 40 <= share < 90:
        return 60.0
    return 40.0


def _balance_score(habit_records: List[HabitRecord], habits_by_id: Dict[str, Habit]) -> float:
    active = set()
    for record in habit_records:
        habit = habits_by_id.get(record.habit_id)
        if habit is not None and record.actual_minutes > 0:
            active.add(habit.category or "other")
    covered = len(active.intersection(BALANCE_CATEGORIES))
    return covered / len(BALANCE_CATEGORIES) * 100


def _consistency_score(habit_records: List[HabitRecord]) -> float:
    if not habit_records:
        return 0.0
    done = sum(1 for r in habit_records if r.actual_minutes > 0)
    return done / len(habit_records) * 100


def _growth_score(tasks: List[Task], habit_records: List[HabitRecord], habits_by_id: Dict[str, Habit]) -> float:
    score = 50.0
    if any(t.priority == "high" for t in tasks):
        score += 20
    for record in habit_records:
        habit = habits_by_id.get(record.habit_id)
        if habit and habit.category in SKILL_CATEGORIES and record.actual_minutes > habit.target_minutes:
            score += 10
            break
    return min(score, 100.0)


def _compound_score(habit_records: List[HabitRecord], habits_by_id: Dict[str, Habit]) -> float:
    scores = []
    for record, habit in _known_records(habit_records, habits_by_id):
        ratio = record.actual_minutes / habit.target_minutes
        if 1.0 <= ratio <= 1.1:
            scores.append(100)
        elif 0.9 <= ratio < 1.0:
            scores.append(80)
        elif 0.8 <= ratio < 0.9:
            scores.append(60)
        else:
            scores.append(40)
    return sum(scores) / len(scores) if scores else 50.0


def calculate_culture(habit_records: List[HabitRecord], tasks: List[Task], habits: List[Habit]) -> float:
    """Mean of five factor scores: Q2 time focus, life balance, consistency,
    growth mindset and compound thinking."""
    habits_by_id = {h.id: h for h in habits}
    factors = [
        _q2_time_score(habit_records, habits_by_id),
        _balance_score(habit_records, habits_by_id),
        _consistency_score(habit_records),
        _growth_score(tasks, habit_records, habits_by_id),
        _compound_score(habit_records, habits_by_id),
    ]
    return sum(factors) / len(factors)


def calculate_daily_scorecard(
    habit_records: List[HabitRecord],
    tasks: List[Task],
    habits: List[Habit],
    day: Optional[date] = None,
    skill_level_deltas: Optional[Dict[str, float]] = None,
) -> PillarScores:
    """
    Derive all three pillars for a day.

    Each pillar is clamped into 0-100 so the result always passes input
    validation when fed back into the KPI calculator.
    """
    pillars = PillarScores(
        deliverables=_clamp(calculate_deliverables(habit_records, tasks, habits, day)),
        skills=_clamp(calculate_skills(habit_records, habits, skill_level_deltas)),
        culture=_clamp(calculate_culture(habit_records, tasks, habits)),
    )
    logger.debug(f"Derived pillar scores: {pillars.to_dict()}")
    return pillars


def calculate_monthly_skill_progression(
    start_levels: Dict[str, float], end_levels: Dict[str, float]
) -> Dict[str, float]:
    """Skill-level change per habit over a month; missing end levels count as unchanged."""
    return {
        habit_id: end_levels.get(habit_id, start_level) - start_level
        for habit_id, start_level in start_levels.items()
    }
