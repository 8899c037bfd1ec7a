"""
Analytics over a date-ordered series of daily records.

Summary statistics, per-habit trend classification, compound-growth
forecasts, ranked recommendations and two-period comparison. Every function
is a pure transformation of its arguments. Series are trusted to be in date
order; nothing here re-sorts by date.

Empty or short history degrades to neutral output. Non-finite numbers raise
``kpi_engine.errors.ValidationError``.
"""

import logging
from datetime import date
from statistics import linear_regression, mean
from typing import Dict, List, Optional, Tuple, Union

from .config import (
    COMPARISON_BANDS,
    FORECAST_CONFIG,
    FORECAST_PERIOD_DAYS,
    HABIT_GUIDANCE_CONFIG,
    IMPROVEMENT_COMPLETION_THRESHOLD,
    KPI_MAX,
    MIN_TREND_RECORDS,
    RECOMMENDATION_CONFIG,
    RECOMMENDATION_PRIORITY_ORDER,
    TOP_HABITS_LIMIT,
    TREND_NOISE_PERCENT,
)
from .errors import ValidationError
from .models import (
    AnalyticsReport,
    DailyRecord,
    EngineResult,
    ForecastData,
    Habit,
    HabitSummary,
    PeriodComparison,
    PeriodMetrics,
    PersonalizedRecommendation,
    Quadrant,
    RecommendationPriority,
    RecommendationType,
    SummaryStats,
    TrendAnalysis,
    TrendDirection,
)
from .validation import require_finite_series, require_finite_values

logger = logging.getLogger(__name__)


# ============================================================================
# Helpers
# ============================================================================


def _in_window(records: List[DailyRecord], start: date, end: date) -> List[DailyRecord]:
    return [r for r in records if start <= r.date <= end]


def _calendar_days(start: date, end: date) -> int:
    """Inclusive day count; an inverted window has no days."""
    return max((end - start).days + 1, 0)


def _kpi_values(records: List[DailyRecord]) -> List[float]:
    return [r.total_kpi for r in records if r.total_kpi is not None]


def _total_hours(records: List[DailyRecord]) -> float:
    return sum(r.total_minutes for r in records) / 60


# ============================================================================
# Summary and period metrics
# ============================================================================


def _habit_summaries(records: List[DailyRecord], habits: Optional[List[Habit]]) -> List[HabitSummary]:
    names = {h.id: h.name for h in habits or []}
    totals: Dict[str, Dict] = {}
    for record in records:
        for hr in record.habit_records:
            entry = totals.setdefault(hr.habit_id, {"minutes": 0.0, "count": 0, "qualities": []})
            entry["minutes"] += hr.actual_minutes
            entry["count"] += 1
            if hr.quality_score:
                entry["qualities"].append(hr.quality_score)

    summaries = [
        HabitSummary(
            habit_id=habit_id,
            habit_name=names.get(habit_id, habit_id),
            total_minutes=round(entry["minutes"], 2),
            average_minutes=round(entry["minutes"] / entry["count"], 2),
            completion_rate=round(min(entry["count"] / len(records) * 100, 100.0), 2),
            average_quality=round(mean(entry["qualities"]), 2) if entry["qualities"] else 0.0,
        )
        for habit_id, entry in totals.items()
    ]
    summaries.sort(key=lambda s: s.total_minutes, reverse=True)
    return summaries[:TOP_HABITS_LIMIT]


def calculate_summary_stats(
    records: List[DailyRecord], start: date, end: date, habits: Optional[List[Habit]] = None
) -> SummaryStats:
    """
    Aggregate a date window.

    Args:
        records: Daily records, date-ordered.
        start: First day of the window (inclusive).
        end: Last day of the window (inclusive).
        habits: Habit definitions, used for display names.

    Returns:
        SummaryStats with the top 5 habits by minutes and the habits among
        them performed on fewer than 70% of recorded days.
    """
    require_finite_series(records)
    window = _in_window(records, start, end)
    kpis = _kpi_values(window)

    top_habits = _habit_summaries(window, habits)
    improvement_areas = [
        h.habit_name for h in top_habits if h.completion_rate < IMPROVEMENT_COMPLETION_THRESHOLD
    ]

    return SummaryStats(
        average_kpi=round(mean(kpis), 2) if kpis else 0.0,
        total_hours=round(_total_hours(window), 2),
        completed_days=len(window),
        total_days=_calendar_days(start, end),
        top_habits=top_habits,
        improvement_areas=improvement_areas,
    )


def calculate_period_metrics(records: List[DailyRecord], start: date, end: date) -> PeriodMetrics:
    """Average KPI, hours and the share of calendar days that have a record."""
    require_finite_series(records)
    window = _in_window(records, start, end)
    days = _calendar_days(start, end)
    kpis = _kpi_values(window)

    return PeriodMetrics(
        average_kpi=round(mean(kpis), 2) if kpis else 0.0,
        total_hours=round(_total_hours(window), 2),
        completion_rate=round(len(window) / days * 100, 2) if days else 0.0,
    )


# ============================================================================
# Trends
# ============================================================================


def calculate_trend(values: List[float]) -> Tuple[TrendDirection, float]:
    """
    Classify the direction of an ordered series.

    Fits a least-squares line over the series index. The slope is expressed
    as a percentage of the series mean (a mean below 1 counts as 1); anything
    under the noise band is stable with percentage 0.

    Returns:
        (direction, percentage) with the percentage rounded to 2 decimals.
    """
    require_finite_values(values)
    if len(values) < 2:
        return TrendDirection.STABLE, 0.0

    slope, _ = linear_regression(range(len(values)), values)
    percentage = abs(slope) / max(abs(mean(values)), 1) * 100

    if percentage < TREND_NOISE_PERCENT:
        return TrendDirection.STABLE, 0.0
    direction = TrendDirection.IMPROVING if slope > 0 else TrendDirection.DECLINING
    return direction, round(percentage, 2)


def generate_habit_recommendation(
    habit: Union[Habit, str],
    trend: Union[TrendDirection, str],
    trend_percentage: float,
    consistency: float,
) -> str:
    """Guidance text for one habit's trend and consistency."""
    cfg = HABIT_GUIDANCE_CONFIG
    name = habit.name if isinstance(habit, Habit) else habit
    trend = TrendDirection(trend)

    if consistency < cfg["low_consistency"]:
        return (
            f"Focus on consistency for {name}. "
            "Try habit stacking or reducing the target to build momentum."
        )
    if trend == TrendDirection.DECLINING and trend_percentage > cfg["declining_percent"]:
        return (
            f"{name} is declining by {trend_percentage:.1f}%. "
            "Consider reviewing your approach or adjusting the target."
        )
    if trend == TrendDirection.IMPROVING and trend_percentage > cfg["improving_percent"]:
        return f"Great progress on {name}! Consider gradually increasing the target to maintain growth."
    if trend == TrendDirection.STABLE and consistency > cfg["high_consistency"]:
        return f"{name} is stable with good consistency. Consider optimizing quality or efficiency."
    return f"Continue current approach for {name}. Monitor for changes in the coming weeks."


def analyze_trends(records: List[DailyRecord], habits: List[Habit]) -> List[TrendAnalysis]:
    """
    Trend analysis for every habit with at least 7 recorded days.

    Consistency is the share of records in the series that include the
    habit. Results are ordered by trend magnitude, largest first.
    """
    require_finite_series(records)
    if not records:
        return []

    trends = []
    for habit in habits:
        values = []
        for record in records:
            match = next((hr for hr in record.habit_records if hr.habit_id == habit.id), None)
            if match is not None:
                values.append(match.actual_minutes)

        if len(values) < MIN_TREND_RECORDS:
            continue

        direction, percentage = calculate_trend(values)
        consistency = round(len(values) / len(records) * 100, 2)
        trends.append(TrendAnalysis(
            habit_id=habit.id,
            habit_name=habit.name,
            trend=direction,
            trend_percentage=percentage,
            average_minutes=round(mean(values), 2),
            consistency=consistency,
            recommendation=generate_habit_recommendation(habit, direction, percentage, consistency),
        ))

    trends.sort(key=lambda t: t.trend_percentage, reverse=True)
    return trends


# ============================================================================
# Forecast
# ============================================================================


def generate_forecast(records: List[DailyRecord], period: str = "month") -> ForecastData:
    """
    Project KPI and daily hours forward with compound growth.

    The daily growth rate compares the mean KPI of the last 14 scored days
    with the first 14, spread over 14 days and clamped to [0.1%, 2%]. Hours
    compound at half that rate. Predicted KPI stays within the KPI ceiling
    and predicted hours within a day. Confidence reaches 100 at 30 days of
    history. With fewer than 7 scored days every prediction is 0.

    Args:
        records: Daily records, date-ordered.
        period: "month", "quarter" or "year".
    """
    if period not in FORECAST_PERIOD_DAYS:
        raise ValidationError(
            f"Unknown forecast period '{period}'",
            validation_errors=[{
                "path": "period",
                "message": f"must be one of {sorted(FORECAST_PERIOD_DAYS)}",
                "validator": "enum",
            }],
        )
    require_finite_series(records)

    label = f"next_{period}"
    cfg = FORECAST_CONFIG
    scored = [r for r in records if r.total_kpi is not None]
    if len(scored) < cfg["min_history_days"]:
        return ForecastData(
            period=label,
            predicted_kpi=0.0,
            predicted_hours=0.0,
            confidence=0.0,
            based_on_days=len(scored),
            compound_growth_rate=0.0,
        )

    kpis = [r.total_kpi for r in scored]
    current_kpi = mean(kpis)
    hours_per_day = _total_hours(scored) / len(scored)

    early = mean(kpis[: cfg["window_days"]])
    recent = mean(kpis[-cfg["window_days"]:])
    growth = (recent - early) / early if early > 0 else 0.0
    daily_rate = max(cfg["min_daily_rate"], min(cfg["max_daily_rate"], growth / cfg["window_days"]))

    days = FORECAST_PERIOD_DAYS[period]
    predicted_kpi = min(current_kpi * (1 + daily_rate) ** days, KPI_MAX)
    predicted_hours = min(hours_per_day * (1 + daily_rate * cfg["hours_rate_factor"]) ** days, 24.0)
    confidence = min(100.0, len(scored) / cfg["full_confidence_days"] * 100)

    return ForecastData(
        period=label,
        predicted_kpi=round(predicted_kpi, 2),
        predicted_hours=round(predicted_hours, 2),
        confidence=round(confidence, 2),
        based_on_days=len(scored),
        compound_growth_rate=round(daily_rate * 100, 2),
    )


# ============================================================================
# Recommendations
# ============================================================================


def generate_recommendations(
    records: List[DailyRecord], trends: List[TrendAnalysis], habits: List[Habit]
) -> List[PersonalizedRecommendation]:
    """
    Ranked recommendations from trends, KPI history and habit metadata.

    High priority items come before medium, medium before low; ties keep the
    order in which they were generated.
    """
    cfg = RECOMMENDATION_CONFIG
    recommendations = []

    declining = [t for t in trends if TrendDirection(t.trend) == TrendDirection.DECLINING]
    if declining:
        recommendations.append(PersonalizedRecommendation(
            type=RecommendationType.HABIT_FOCUS,
            priority=RecommendationPriority.HIGH,
            title="Address Declining Habits",
            description=(
                f"{len(declining)} habit(s) are showing declining trends. "
                "Focus on these to prevent further drops."
            ),
            action_items=[f"Review and adjust approach for {t.habit_name}" for t in declining],
            expected_impact="Prevent 10-20% KPI decline",
            habit_ids=[t.habit_id for t in declining],
        ))

    inconsistent = [t for t in trends if t.consistency < cfg["low_consistency"]]
    if inconsistent:
        recommendations.append(PersonalizedRecommendation(
            type=RecommendationType.TIME_OPTIMIZATION,
            priority=RecommendationPriority.MEDIUM,
            title="Improve Habit Consistency",
            description="Several habits have low consistency rates. Consider time blocking or habit stacking.",
            action_items=[
                "Use time blocking for low-consistency habits",
                "Try habit stacking to link habits together",
                "Reduce targets temporarily to build momentum",
            ],
            expected_impact="Increase overall consistency by 15-25%",
            habit_ids=[t.habit_id for t in inconsistent],
        ))

    kpis = _kpi_values(records)
    if kpis and mean(kpis) < cfg["min_acceptable_kpi"]:
        recommendations.append(PersonalizedRecommendation(
            type=RecommendationType.PRIORITY_ADJUSTMENT,
            priority=RecommendationPriority.HIGH,
            title="Focus on Q2 Activities",
            description="Your KPI is below optimal. Increase focus on important but not urgent activities (Q2).",
            action_items=[
                "Allocate more time to Q2 habits (important, not urgent)",
                "Reduce time spent on Q3/Q4 activities",
                "Set specific Q2 goals for the next week",
            ],
            expected_impact="Potential 15-30% KPI improvement",
            habit_ids=[h.id for h in habits if h.eisenhower_quadrant == Quadrant.Q2.value],
        ))

    low_skills = [
        h for h in habits if h.category == "skills" and h.skill_level < cfg["skill_level_ceiling"]
    ]
    if low_skills:
        recommendations.append(PersonalizedRecommendation(
            type=RecommendationType.SKILL_DEVELOPMENT,
            priority=RecommendationPriority.MEDIUM,
            title="Accelerate Skill Development",
            description="You have skills below level 4. Focus on these for career advancement.",
            action_items=[
                "Take monthly skill assessments",
                "Increase practice time for low-level skills",
                "Find mentors or courses for skill development",
            ],
            expected_impact="Improve skills pillar by 20-40%",
            habit_ids=[h.id for h in low_skills],
        ))

    return sorted(recommendations, key=lambda r: RECOMMENDATION_PRIORITY_ORDER[r.priority.value])


# ============================================================================
# Comparison and reports
# ============================================================================


def generate_comparison_insights(kpi_delta: float, hours_delta: float, completion_delta: float) -> List[str]:
    """Qualitative messages for period-over-period changes; bands are symmetric."""
    insights = []

    if kpi_delta > COMPARISON_BANDS["kpi"]:
        insights.append(f"Excellent KPI improvement of {kpi_delta:.1f} points! Keep up the momentum.")
    elif kpi_delta < -COMPARISON_BANDS["kpi"]:
        insights.append(f"KPI declined by {abs(kpi_delta):.1f} points. Review recent changes and adjust strategy.")
    else:
        insights.append("KPI remained relatively stable. Consider optimizing for breakthrough improvements.")

    if hours_delta > COMPARISON_BANDS["hours"]:
        insights.append(
            f"Significant increase in activity hours (+{hours_delta:.1f}h). Ensure this is sustainable."
        )
    elif hours_delta < -COMPARISON_BANDS["hours"]:
        insights.append(f"Activity hours decreased by {abs(hours_delta):.1f}h. Focus on consistency.")

    if completion_delta > COMPARISON_BANDS["completion"]:
        insights.append(
            f"Great improvement in completion rate (+{completion_delta:.1f}%). Consistency is key to success."
        )
    elif completion_delta < -COMPARISON_BANDS["completion"]:
        insights.append(
            f"Completion rate dropped by {abs(completion_delta):.1f}%. Consider reducing targets temporarily."
        )

    return insights


def compare_periods(
    current_records: List[DailyRecord],
    current_start: date,
    current_end: date,
    previous_records: List[DailyRecord],
    previous_start: date,
    previous_end: date,
) -> PeriodComparison:
    """Metrics for two windows, their deltas and the matching insights."""
    current = calculate_period_metrics(current_records, current_start, current_end)
    previous = calculate_period_metrics(previous_records, previous_start, previous_end)
    comparison = PeriodComparison(current=current, previous=previous)

    changes = comparison.changes
    comparison.insights = generate_comparison_insights(
        changes["kpi_change"], changes["hours_change"], changes["completion_change"]
    )
    return comparison


def generate_report(
    records: List[DailyRecord],
    habits: List[Habit],
    start: date,
    end: date,
    report_type: str = "month",
) -> EngineResult:
    """
    Build the full analytics report for a window.

    Returns:
        EngineResult wrapping an AnalyticsReport, or a failure carrying the
        validation errors when the series holds invalid numbers.
    """
    try:
        window = _in_window(records, start, end)
        trends = analyze_trends(window, habits)
        report = AnalyticsReport(
            start=start,
            end=end,
            report_type=report_type,
            summary=calculate_summary_stats(records, start, end, habits),
            trends=trends,
            forecast=generate_forecast(window, report_type),
            recommendations=generate_recommendations(window, trends, habits),
        )
    except ValidationError as e:
        logger.warning(e.get_error_summary())
        return EngineResult.fail(e.message, errors=e.validation_errors)

    logger.debug(f"Report {start}..{end}: {len(trends)} trend(s), {len(report.recommendations)} recommendation(s)")
    return EngineResult.ok(report)
