"""
Configuration for the KPI engine.

Scoring parameters are fixed design constants shared by the classifier, the
calculator and the analytics module. Only the log level is read from the
environment (``KPI_ENGINE_LOG_LEVEL``, optionally from a ``.env`` file).
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .models import Quadrant, TaskPriority

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

LOG_LEVEL = os.getenv("KPI_ENGINE_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Task priorities and quadrants
PRIORITY_LEVELS = tuple(p.value for p in TaskPriority)
QUADRANT_ORDER = tuple(q.value for q in Quadrant)
PRIORITY_QUADRANTS = {
    TaskPriority.HIGH.value: Quadrant.Q1.value,
    TaskPriority.MEDIUM.value: Quadrant.Q2.value,
    TaskPriority.LOW.value: Quadrant.Q4.value,
}

# Bonus points per completed task
PRIORITY_BONUS = {
    TaskPriority.HIGH.value: 20,
    TaskPriority.MEDIUM.value: 10,
    TaskPriority.LOW.value: 0,
}

MAX_TASKS_PER_DAY = 5
TASK_LIMIT_MESSAGE = (
    f"Maximum {MAX_TASKS_PER_DAY} tasks allowed per day to maintain focus and avoid overwhelm"
)

# Q2 focus bonus: (minimum ratio, points), checked highest first
Q2_FOCUS_CONFIG = {
    "ratio_tiers": [(0.6, 15), (0.4, 10), (0.2, 5)],
    "completion_tiers": [(0.8, 10), (0.6, 5)],
}

STRATEGIC_BONUS_PER_TASK = 10
STRATEGIC_KEYWORDS = [
    "relocation",
    "visa",
    "business",
    "english",
    "language",
    "networking",
    "portfolio",
    "skills",
    "learning",
    "strategy",
    "переезд",
    "виза",
    "бизнес",
    "английский",
    "портфолио",
    "навыки",
    "обучение",
]

# Time allocation thresholds (percent of recorded time)
TIME_ALLOCATION_CONFIG = {
    "q2_target": 60,
    "q1_max": 40,
    "q3_max": 20,
    "q4_max": 15,
    "q2_excellent": 50,
    "balance_q1_max": 30,
    "balance_q2_min": 40,
}

# KPI calculation
KPI_MIN = 0
KPI_MAX = 150
HABIT_COMPLETION_CAP = 150
WEEKEND_TARGET_FACTOR = 0.5
QUALITY_CONFIG = {
    "min": 1,
    "max": 5,
    "neutral": 3,
    "step": 0.05,
}

# Single-peaked efficiency curve over actual/planned minutes
EFFICIENCY_CONFIG = {
    "peak": 10.0,
    "tolerance": 0.5,
    "penalty_floor": -5.0,
}

COMPOUND_EFFECT_CAP = 25

PILLAR_MIN = 0
PILLAR_MAX = 100
PILLAR_WEIGHTS = {
    "deliverables": 0.4,
    "skills": 0.3,
    "culture": 0.3,
}

# Streaks
STREAK_COMPLETION_RATIO = 0.8
STREAK_MILESTONES = {
    7: 5,
    21: 10,
    30: 12,
    66: 15,
    100: 20,
    365: 25,
}

# Analytics
TOP_HABITS_LIMIT = 5
IMPROVEMENT_COMPLETION_THRESHOLD = 70
MIN_TREND_RECORDS = 7
TREND_NOISE_PERCENT = 1.0

HABIT_GUIDANCE_CONFIG = {
    "low_consistency": 50,
    "declining_percent": 10,
    "improving_percent": 15,
    "high_consistency": 80,
}

RECOMMENDATION_CONFIG = {
    "low_consistency": 50,
    "min_acceptable_kpi": 80,
    "skill_level_ceiling": 4,
}

FORECAST_CONFIG = {
    "min_history_days": 7,
    "window_days": 14,
    "min_daily_rate": 0.001,
    "max_daily_rate": 0.02,
    "hours_rate_factor": 0.5,
    "full_confidence_days": 30,
}

FORECAST_PERIOD_DAYS = {
    "month": 30,
    "quarter": 90,
    "year": 365,
}

COMPARISON_BANDS = {
    "kpi": 5,
    "hours": 10,
    "completion": 10,
}

RECOMMENDATION_PRIORITY_ORDER = {
    "high": 0,
    "medium": 1,
    "low": 2,
}


def configure_logging(level: str = None) -> None:
    """Apply the configured log level and format to the root logger."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING),
        format=LOG_FORMAT,
    )
