"""
Habit streak tracking.

A streak is the run of most recent consecutive days on which a habit reached
80% of its target. Streak lengths feed the KPI calculator's compound-effect
coefficient and produce milestone bonuses, statistics and insights.
"""

import logging
from typing import Dict, List, Optional

from .config import STREAK_COMPLETION_RATIO, STREAK_MILESTONES
from .models import Habit, HabitRecord, StreakInsights, StreakPrediction, StreakStatistics

logger = logging.getLogger(__name__)

MILESTONE_DESCRIPTIONS = {
    7: "1 week streak - Building momentum",
    21: "3 weeks streak - Habit formation",
    30: "1 month streak - Consistency established",
    66: "66 days streak - Habit automation",
    100: "100 days streak - Mastery level",
    365: "1 year streak - Lifestyle integration",
}

DISTRIBUTION_BUCKETS = ("0 days", "1-7 days", "8-21 days", "22-66 days", "67+ days")


def is_habit_completed(record: HabitRecord, habit: Habit) -> bool:
    """A day counts toward the streak once 80% of the target is reached."""
    return (record.actual_minutes or 0) >= habit.target_minutes * STREAK_COMPLETION_RATIO


def calculate_current_streaks(
    daily_habit_records: List[List[HabitRecord]], habits: List[Habit]
) -> Dict[str, int]:
    """
    Count each habit's current streak.

    Args:
        daily_habit_records: One list of habit records per day, oldest first.
        habits: Habit definitions.

    Returns:
        Dict of habit id to streak length in days (0 when broken today).
    """
    streaks = {}
    for habit in habits:
        streak = 0
        for day_records in reversed(daily_habit_records):
            record = next((r for r in day_records if r.habit_id == habit.id), None)
            if record is None or not is_habit_completed(record, habit):
                break
            streak += 1
        streaks[habit.id] = streak
    return streaks


def calculate_streak_bonus(streak_days: int) -> int:
    """Bonus of the highest milestone reached."""
    bonus = 0
    for days, milestone_bonus in sorted(STREAK_MILESTONES.items()):
        if streak_days < days:
            break
        bonus = milestone_bonus
    return bonus


def get_streak_milestones() -> List[Dict]:
    return [
        {'days': days, 'bonus': bonus, 'description': MILESTONE_DESCRIPTIONS[days]}
        for days, bonus in sorted(STREAK_MILESTONES.items())
    ]


def _bucket(days: int) -> str:
    if days == 0:
        return "0 days"
    if days <= 7:
        return "1-7 days"
    if days <= 21:
        return "8-21 days"
    if days <= 66:
        return "22-66 days"
    return "67+ days"


def get_streak_statistics(streaks: Dict[str, int], habits: List[Habit]) -> StreakStatistics:
    """Summarize active streaks, the longest one and the length distribution."""
    habits_by_id = {h.id: h for h in habits}
    active = [days for days in streaks.values() if days > 0]

    longest_days = 0
    longest_habit: Optional[str] = None
    for habit_id, days in streaks.items():
        if days > longest_days:
            longest_days = days
            habit = habits_by_id.get(habit_id)
            longest_habit = habit.name if habit else "Unknown"

    distribution = {bucket: 0 for bucket in DISTRIBUTION_BUCKETS}
    for days in streaks.values():
        distribution[_bucket(days)] += 1

    average = sum(active) / len(active) if active else 0.0

    return StreakStatistics(
        total_active_streaks=len(active),
        longest_streak=longest_days,
        longest_streak_habit=longest_habit,
        average_streak_length=round(average, 1),
        streak_distribution=distribution,
    )


def predict_streak_continuation(current_streak: int, habit: Habit) -> StreakPrediction:
    """
    Estimate the chance a streak survives the next day.

    Longer streaks are more automatic; low skill level, skill-building
    categories and weekday-only schedules add risk. Probability is clamped
    to [0.1, 0.95].
    """
    prediction = StreakPrediction(probability=0.0)

    if current_streak >= 66:
        probability = 0.9
    elif current_streak >= 21:
        probability = 0.8
    elif current_streak >= 7:
        probability = 0.75
    elif current_streak >= 3:
        probability = 0.6
    else:
        probability = 0.4
        prediction.risk_factors.append("Very short streak - high risk of breaking")
        prediction.recommendations.append("Focus on making the habit as easy as possible")

    if habit.skill_level <= 2:
        probability -= 0.1
        prediction.risk_factors.append("Low skill level - challenging habit")
        prediction.recommendations.append("Consider breaking down into smaller steps")

    if habit.category in ("skills", "learning"):
        probability -= 0.05
        prediction.risk_factors.append("Skill-building habits require more mental energy")
        prediction.recommendations.append("Schedule during your peak energy hours")

    if habit.is_weekday_only:
        prediction.risk_factors.append("Weekday-only habit - weekend disruption risk")
        prediction.recommendations.append("Plan weekend alternatives or maintenance activities")

    if current_streak < 21:
        prediction.recommendations.extend([
            "Focus on consistency over intensity",
            "Use habit stacking to link with existing routines",
        ])
    elif current_streak < 66:
        prediction.recommendations.extend([
            "You're in the habit formation zone - stay consistent",
            "Start gradually increasing intensity or duration",
        ])
    else:
        prediction.recommendations.extend([
            "Habit is well-established - consider optimization",
            "You can handle small variations without breaking the streak",
        ])

    prediction.probability = round(max(0.1, min(0.95, probability)), 2)
    return prediction


def generate_streak_insights(streaks: Dict[str, int], habits: List[Habit]) -> StreakInsights:
    """Turn streak lengths into achievements, warnings, insights and advice."""
    habits_by_id = {h.id: h for h in habits}
    stats = get_streak_statistics(streaks, habits)
    result = StreakInsights()

    for habit_id, days in streaks.items():
        habit = habits_by_id.get(habit_id)
        if habit is None:
            continue
        if days >= 100:
            result.achievements.append(f"🏆 {habit.name}: 100+ day streak! Mastery level achieved")
        elif days >= 66:
            result.achievements.append(f"🎯 {habit.name}: 66+ day streak! Habit is automated")
        elif days >= 21:
            result.achievements.append(f"✨ {habit.name}: 21+ day streak! Habit is forming")
        elif days >= 7:
            result.achievements.append(f"🌱 {habit.name}: 1 week streak! Building momentum")

    struggling = [
        habits_by_id[habit_id].name
        for habit_id, days in streaks.items()
        if days < 3 and habit_id in habits_by_id
    ]
    if struggling:
        result.warnings.append(f"⚠️ Struggling habits: {', '.join(struggling)}")
        result.recommendations.append("Focus on making struggling habits easier to start")

    if stats.average_streak_length > 14:
        result.insights.append(f"📈 Excellent consistency! Average streak: {stats.average_streak_length} days")
    elif stats.average_streak_length > 7:
        result.insights.append(f"📊 Good consistency! Average streak: {stats.average_streak_length} days")
    else:
        result.insights.append(f"📉 Room for improvement. Average streak: {stats.average_streak_length} days")
        result.recommendations.append("Focus on building consistency before intensity")

    if habits and stats.total_active_streaks == len(habits):
        result.insights.append("🎉 All habits have active streaks!")
    else:
        inactive = len(habits) - stats.total_active_streaks
        result.insights.append(f"{stats.total_active_streaks}/{len(habits)} habits have active streaks")
        if inactive > 0:
            result.recommendations.append(f"Restart {inactive} inactive habit{'s' if inactive > 1 else ''}")

    return result
