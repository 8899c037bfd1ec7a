"""KPI Productivity Engine

Score daily habit, task and pillar data into a bounded KPI, classify tasks with
the Eisenhower matrix, and analyse record series for trends, forecasts and
recommendations.
"""

from .errors import EngineError, ValidationError

from .models import (
    Quadrant,
    TaskPriority,
    TrendDirection,
    RecommendationType,
    RecommendationPriority,
    Habit,
    HabitRecord,
    Task,
    PillarScores,
    DailyRecord,
    QuadrantStats,
    TimeDistribution,
    TaskLimitValidation,
    PriorityRecommendations,
    EfficiencyCoefficients,
    KPIBreakdown,
    TrendAnalysis,
    ForecastData,
    PersonalizedRecommendation,
    HabitSummary,
    SummaryStats,
    PeriodMetrics,
    PeriodComparison,
    AnalyticsReport,
    StreakStatistics,
    StreakPrediction,
    StreakInsights,
    EngineResult,
)

from .validation import (
    ValidationResult,
    validate_inputs,
    validate_series,
)

from .priority import PriorityClassifier, task_minutes

from .kpi_calculator import (
    KPICalculator,
    efficiency_curve,
    quality_multiplier,
)

from .pillars import (
    calculate_daily_scorecard,
    calculate_monthly_skill_progression,
    calculate_revolut_score,
)

from .streaks import (
    calculate_current_streaks,
    calculate_streak_bonus,
    get_streak_milestones,
    get_streak_statistics,
    predict_streak_continuation,
    generate_streak_insights,
)

from .analytics import (
    calculate_summary_stats,
    calculate_trend,
    analyze_trends,
    generate_forecast,
    generate_recommendations,
    calculate_period_metrics,
    generate_comparison_insights,
    generate_habit_recommendation,
    compare_periods,
    generate_report,
)

__all__ = [
    # Errors
    'EngineError',
    'ValidationError',
    # Models
    'Quadrant',
    'TaskPriority',
    'TrendDirection',
    'RecommendationType',
    'RecommendationPriority',
    'Habit',
    'HabitRecord',
    'Task',
    'PillarScores',
    'DailyRecord',
    'QuadrantStats',
    'TimeDistribution',
    'TaskLimitValidation',
    'PriorityRecommendations',
    'EfficiencyCoefficients',
    'KPIBreakdown',
    'TrendAnalysis',
    'ForecastData',
    'PersonalizedRecommendation',
    'HabitSummary',
    'SummaryStats',
    'PeriodMetrics',
    'PeriodComparison',
    'AnalyticsReport',
    'StreakStatistics',
    'StreakPrediction',
    'StreakInsights',
    'EngineResult',
    # Validation
    'ValidationResult',
    'validate_inputs',
    'validate_series',
    # Priority classifier
    'PriorityClassifier',
    'task_minutes',
    # KPI calculator
    'KPICalculator',
    'efficiency_curve',
    'quality_multiplier',
    # Pillars
    'calculate_daily_scorecard',
    'calculate_monthly_skill_progression',
    'calculate_revolut_score',
    # Streaks
    'calculate_current_streaks',
    'calculate_streak_bonus',
    'get_streak_milestones',
    'get_streak_statistics',
    'predict_streak_continuation',
    'generate_streak_insights',
    # Analytics
    'calculate_summary_stats',
    'calculate_trend',
    'analyze_trends',
    'generate_forecast',
    'generate_recommendations',
    'calculate_period_metrics',
    'generate_comparison_insights',
    'generate_habit_recommendation',
    'compare_periods',
    'generate_report',
]

__version__ = '1.0.0'
