"""
Eisenhower priority classification for daily tasks.

Assigns tasks to urgency/importance quadrants and derives the task, Q2-focus
and strategic bonuses used by the KPI calculator, plus time-allocation advice.
All methods are pure and return new collections.
"""

import logging
import re
from typing import Dict, List, Optional

from .config import (
    MAX_TASKS_PER_DAY,
    PRIORITY_BONUS,
    PRIORITY_QUADRANTS,
    Q2_FOCUS_CONFIG,
    QUADRANT_ORDER,
    STRATEGIC_BONUS_PER_TASK,
    STRATEGIC_KEYWORDS,
    TASK_LIMIT_MESSAGE,
    TIME_ALLOCATION_CONFIG,
)
from .models import (
    Habit,
    PriorityRecommendations,
    Quadrant,
    QuadrantStats,
    Task,
    TaskLimitValidation,
    TaskPriority,
    TimeDistribution,
)

logger = logging.getLogger(__name__)


def task_minutes(task: Task) -> float:
    """Minutes a task occupies: actual when recorded, else the estimate."""
    return task.actual_minutes or task.estimated_minutes or 0


def _tier_points(value: float, tiers) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


class PriorityClassifier:
    """
    Scores a day's task composition with the Eisenhower matrix.

    Task priority maps high to Q1, medium to Q2 and low to Q4. A low-priority
    task linked to a habit tagged Q3 is the only way into Q3.
    """

    def __init__(self, keywords: Optional[List[str]] = None):
        """Initialize the classifier."""
        keywords = keywords or STRATEGIC_KEYWORDS
        self.strategic_pattern = re.compile(
            '|'.join(re.escape(k) for k in keywords), re.IGNORECASE
        )

    def quadrant_for(self, task: Task, habits_by_id: Optional[Dict[str, Habit]] = None) -> str:
        """Return the quadrant label for a single task."""
        if task.priority == TaskPriority.LOW.value and task.habit_id and habits_by_id:
            habit = habits_by_id.get(task.habit_id)
            if habit is not None and habit.eisenhower_quadrant == Quadrant.Q3.value:
                return Quadrant.Q3.value
        return PRIORITY_QUADRANTS.get(task.priority, Quadrant.Q4.value)

    def classify_by_eisenhower_matrix(
        self, tasks: List[Task], habits: Optional[List[Habit]] = None
    ) -> Dict[str, List[Task]]:
        """
        Bucket tasks into Q1..Q4.

        Args:
            tasks: Tasks for the day.
            habits: Habit definitions, used to resolve Q3 links.

        Returns:
            Dict keyed by quadrant label; each bucket keeps input order.
        """
        habits_by_id = {h.id: h for h in habits or []}
        buckets: Dict[str, List[Task]] = {q: [] for q in QUADRANT_ORDER}
        for task in tasks:
            buckets[self.quadrant_for(task, habits_by_id)].append(task)
        return buckets

    def calculate_priority_bonus(self, tasks: List[Task]) -> int:
        """Sum of per-priority points over completed tasks."""
        return sum(PRIORITY_BONUS.get(t.priority, 0) for t in tasks if t.completed)

    def calculate_q2_focus_bonus(self, tasks: List[Task], habits: Optional[List[Habit]] = None) -> int:
        """
        Reward both the share of Q2 tasks and how many of them were finished.

        Returns 0 when the day has no Q2 tasks.
        """
        if not tasks:
            return 0

        q2_tasks = self.classify_by_eisenhower_matrix(tasks, habits)[Quadrant.Q2.value]
        if not q2_tasks:
            return 0

        ratio = len(q2_tasks) / len(tasks)
        completion = sum(1 for t in q2_tasks if t.completed) / len(q2_tasks)

        return (
            _tier_points(ratio, Q2_FOCUS_CONFIG["ratio_tiers"])
            + _tier_points(completion, Q2_FOCUS_CONFIG["completion_tiers"])
        )

    def analyze_time_distribution(
        self, tasks: List[Task], habits: Optional[List[Habit]] = None
    ) -> TimeDistribution:
        """
        Break a day's task minutes down by quadrant.

        Percentages are left unrounded so they sum to 100 whenever any time
        was recorded; with no recorded time every percentage is 0.
        """
        buckets = self.classify_by_eisenhower_matrix(tasks, habits)
        quadrants = {}
        for quadrant, bucket in buckets.items():
            quadrants[quadrant] = QuadrantStats(
                tasks=len(bucket),
                minutes=sum(task_minutes(t) for t in bucket),
            )

        total = sum(stats.minutes for stats in quadrants.values())
        if total > 0:
            for stats in quadrants.values():
                stats.percentage = stats.minutes / total * 100

        return TimeDistribution(quadrants=quadrants, total_minutes=total)

    def calculate_strategic_bonus(self, tasks: List[Task]) -> int:
        """+10 per completed high-priority task whose title names a strategic goal."""
        matches = [
            t for t in tasks
            if t.completed and t.priority == "high" and self.strategic_pattern.search(t.title or "")
        ]
        return len(matches) * STRATEGIC_BONUS_PER_TASK

    def validate_task_limits(self, tasks: List[Task]) -> TaskLimitValidation:
        if len(tasks) > MAX_TASKS_PER_DAY:
            return TaskLimitValidation(is_valid=False, message=TASK_LIMIT_MESSAGE)
        return TaskLimitValidation(is_valid=True)

    def sort_tasks_by_priority(self, tasks: List[Task], habits: Optional[List[Habit]] = None) -> List[Task]:
        """Return a new list ordered Q1..Q4; ties keep their input order."""
        habits_by_id = {h.id: h for h in habits or []}
        return sorted(tasks, key=lambda t: QUADRANT_ORDER.index(self.quadrant_for(t, habits_by_id)))

    def generate_recommendations(
        self, tasks: List[Task], habits: Optional[List[Habit]] = None
    ) -> PriorityRecommendations:
        """
        Advise on time allocation across quadrants.

        Corrective messages come first (reduce Q1, raise Q2, trim Q3, drop
        Q4), followed by positive feedback. A day with no recorded time gets
        no messages.
        """
        cfg = TIME_ALLOCATION_CONFIG
        distribution = self.analyze_time_distribution(tasks, habits)
        q1 = distribution[Quadrant.Q1.value].percentage
        q2 = distribution[Quadrant.Q2.value].percentage
        q3 = distribution[Quadrant.Q3.value].percentage
        q4 = distribution[Quadrant.Q4.value].percentage

        result = PriorityRecommendations(
            current_q2_focus=round(q2, 2),
            target_q2_focus=cfg["q2_target"],
        )
        if distribution.total_minutes <= 0:
            return result

        if q1 > cfg["q1_max"]:
            result.recommendations.append("🚨 Reduce Q1 activities by better planning and prevention")
            result.action_items.extend([
                "Identify root causes of recurring urgent tasks",
                "Implement preventive measures to avoid future crises",
            ])

        if q2 < cfg["q2_target"]:
            result.recommendations.append("🎯 Increase focus on Q2 activities (Important, Not Urgent)")
            result.action_items.extend([
                "Schedule more time for skill development and learning",
                "Plan strategic activities that prevent future Q1 crises",
            ])

        if q3 > cfg["q3_max"]:
            result.recommendations.append("⚡ Minimize Q3 activities (Urgent but not Important)")
            result.action_items.append("Delegate or batch urgent but unimportant requests")

        if q4 > cfg["q4_max"]:
            result.recommendations.append("🗑️ Eliminate Q4 activities (Neither Urgent nor Important)")
            result.action_items.append("Drop or time-box low-value activities")

        if q2 > cfg["q2_excellent"]:
            result.recommendations.append("✅ Excellent Q2 focus! Keep prioritizing important activities")

        if q1 < cfg["balance_q1_max"] and q2 > cfg["balance_q2_min"]:
            result.recommendations.append("🎉 Great balance between proactive (Q2) and reactive (Q1) work")

        logger.debug(f"Q2 focus {q2:.1f}% produced {len(result.recommendations)} recommendation(s)")
        return result
