"""Data models for the KPI engine.

Input records (habits, habit records, tasks, pillar scores, daily records) are
plain dataclasses that stay permissive on construction: range and enum checks
belong to ``kpi_engine.validation`` so that bad input can be reported as a
failure result instead of blowing up in ``__init__``.

Derived records (breakdowns, distributions, trends, forecasts,
recommendations) serialize with ``to_dict()`` for the calling API layer.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Quadrant(Enum):
    """Eisenhower urgency/importance bucket."""
    Q1 = "Q1"  # urgent + important
    Q2 = "Q2"  # important, not urgent
    Q3 = "Q3"  # urgent, not important
    Q4 = "Q4"  # neither


class TaskPriority(Enum):
    """Known task priority levels."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TrendDirection(Enum):
    """Direction of a habit trend."""
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class RecommendationType(Enum):
    """Kinds of personalized recommendations."""
    HABIT_FOCUS = "habit_focus"
    TIME_OPTIMIZATION = "time_optimization"
    PRIORITY_ADJUSTMENT = "priority_adjustment"
    SKILL_DEVELOPMENT = "skill_development"


class RecommendationPriority(Enum):
    """Urgency tier of a recommendation."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _pick(data: Dict[str, Any], snake: str, camel: Optional[str] = None, default: Any = None) -> Any:
    """Read a key in snake_case, falling back to its camelCase API spelling."""
    if snake in data:
        return data[snake]
    if camel and camel in data:
        return data[camel]
    return default


def parse_date(value: Any) -> date:
    """Coerce an ISO string, datetime or date into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


# ============================================================================
# Input records
# ============================================================================


@dataclass
class Habit:
    """A tracked habit with a daily minutes target."""
    id: str
    name: str
    target_minutes: float
    category: str = "general"  # e.g. health, skills, learning, career
    skill_level: int = 1  # tier 1-5
    eisenhower_quadrant: Optional[str] = None  # "Q1".."Q4"
    is_weekday_only: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'target_minutes': self.target_minutes,
            'category': self.category,
            'skill_level': self.skill_level,
            'eisenhower_quadrant': self.eisenhower_quadrant,
            'is_weekday_only': self.is_weekday_only,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Habit':
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            target_minutes=_pick(data, 'target_minutes', 'targetMinutes', 0),
            category=data.get('category', 'general'),
            skill_level=_pick(data, 'skill_level', 'skillLevel', 1),
            eisenhower_quadrant=_pick(data, 'eisenhower_quadrant', 'eisenhowerQuadrant'),
            is_weekday_only=bool(_pick(data, 'is_weekday_only', 'isWeekdayOnly', False)),
        )


@dataclass
class HabitRecord:
    """One day's measurement of a habit."""
    habit_id: str
    actual_minutes: float
    quality_score: Optional[int] = None  # 1-5
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'habit_id': self.habit_id,
            'actual_minutes': self.actual_minutes,
            'quality_score': self.quality_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HabitRecord':
        return cls(
            habit_id=str(_pick(data, 'habit_id', 'habitId')),
            actual_minutes=_pick(data, 'actual_minutes', 'actualMinutes', 0),
            quality_score=_pick(data, 'quality_score', 'qualityScore'),
            id=data.get('id'),
        )


@dataclass
class Task:
    """A discrete unit of work planned for a day."""
    title: str
    priority: str  # "high" | "medium" | "low"
    completed: bool = False
    estimated_minutes: Optional[float] = None
    actual_minutes: Optional[float] = None
    id: Optional[str] = None
    habit_id: Optional[str] = None  # links a low-priority task to a habit's quadrant tag

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'priority': self.priority,
            'completed': self.completed,
            'estimated_minutes': self.estimated_minutes,
            'actual_minutes': self.actual_minutes,
            'habit_id': self.habit_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        return cls(
            title=data.get('title', ''),
            priority=data.get('priority', ''),
            completed=bool(data.get('completed', False)),
            estimated_minutes=_pick(data, 'estimated_minutes', 'estimatedMinutes'),
            actual_minutes=_pick(data, 'actual_minutes', 'actualMinutes'),
            id=data.get('id'),
            habit_id=_pick(data, 'habit_id', 'habitId'),
        )


@dataclass
class PillarScores:
    """Three 0-100 qualitative ratings for a day."""
    deliverables: float = 0.0
    skills: float = 0.0
    culture: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'deliverables': self.deliverables,
            'skills': self.skills,
            'culture': self.culture,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PillarScores':
        return cls(
            deliverables=data.get('deliverables', 0.0),
            skills=data.get('skills', 0.0),
            culture=data.get('culture', 0.0),
        )


@dataclass
class DailyRecord:
    """Everything recorded for one calendar date.

    ``total_kpi`` stays None until the day has been scored. ``exception_type``
    (illness, travel, ...) is carried through untouched.
    """
    date: date
    habit_records: List[HabitRecord] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    pillar_scores: Optional[PillarScores] = None
    total_kpi: Optional[float] = None
    exception_type: Optional[str] = None

    @property
    def total_minutes(self) -> float:
        return sum(r.actual_minutes or 0 for r in self.habit_records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'habit_records': [r.to_dict() for r in self.habit_records],
            'tasks': [t.to_dict() for t in self.tasks],
            'pillar_scores': self.pillar_scores.to_dict() if self.pillar_scores else None,
            'total_kpi': self.total_kpi,
            'exception_type': self.exception_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DailyRecord':
        pillars = _pick(data, 'pillar_scores', 'pillarScores')
        if pillars is None and any(k in data for k in ('deliverables', 'skills', 'culture')):
            pillars = {k: data.get(k, 0.0) for k in ('deliverables', 'skills', 'culture')}
        return cls(
            date=parse_date(data['date']),
            habit_records=[
                HabitRecord.from_dict(r) for r in _pick(data, 'habit_records', 'habitRecords', [])
            ],
            tasks=[Task.from_dict(t) for t in data.get('tasks', [])],
            pillar_scores=PillarScores.from_dict(pillars) if pillars is not None else None,
            total_kpi=_pick(data, 'total_kpi', 'totalKpi'),
            exception_type=_pick(data, 'exception_type', 'exceptionType'),
        )


# ============================================================================
# Priority classifier outputs
# ============================================================================


@dataclass
class QuadrantStats:
    """Task count, minutes and share of time for one quadrant."""
    tasks: int = 0
    minutes: float = 0.0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tasks': self.tasks,
            'minutes': self.minutes,
            'percentage': self.percentage,
        }


@dataclass
class TimeDistribution:
    """Per-quadrant time allocation for a day."""
    quadrants: Dict[str, QuadrantStats]
    total_minutes: float = 0.0

    def __getitem__(self, quadrant: str) -> QuadrantStats:
        return self.quadrants[quadrant]

    def to_dict(self) -> Dict[str, Any]:
        result = {q: stats.to_dict() for q, stats in self.quadrants.items()}
        result['total_minutes'] = self.total_minutes
        return result


@dataclass
class TaskLimitValidation:
    is_valid: bool
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'message': self.message,
        }


@dataclass
class PriorityRecommendations:
    """Time-allocation advice derived from the quadrant distribution."""
    current_q2_focus: float
    target_q2_focus: float
    recommendations: List[str] = field(default_factory=list)
    action_items: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current_q2_focus': self.current_q2_focus,
            'target_q2_focus': self.target_q2_focus,
            'recommendations': list(self.recommendations),
            'action_items': list(self.action_items),
        }


# ============================================================================
# KPI calculator outputs
# ============================================================================


@dataclass
class EfficiencyCoefficients:
    """Efficiency curve values per habit and per task plus the streak term."""
    habits: Dict[str, float] = field(default_factory=dict)
    tasks: List[float] = field(default_factory=list)
    habit_average: float = 0.0
    task_average: float = 0.0
    compound_effect: float = 0.0

    @property
    def total(self) -> float:
        return self.habit_average + self.task_average + self.compound_effect

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habits': dict(self.habits),
            'tasks': list(self.tasks),
            'habit_average': self.habit_average,
            'task_average': self.task_average,
            'compound_effect': self.compound_effect,
            'total': self.total,
        }


@dataclass
class KPIBreakdown:
    """Every component of a day's KPI."""
    base_score: float
    efficiency_coefficients: EfficiencyCoefficients
    task_bonus: float
    q2_focus_bonus: float
    strategic_bonus: float
    revolut_score: float
    total_kpi: float
    skipped_habit_ids: List[str] = field(default_factory=list)

    @property
    def priority_bonus(self) -> float:
        return self.task_bonus + self.q2_focus_bonus + self.strategic_bonus

    def to_dict(self) -> Dict[str, Any]:
        return {
            'base_score': self.base_score,
            'efficiency_coefficients': self.efficiency_coefficients.to_dict(),
            'task_bonus': self.task_bonus,
            'q2_focus_bonus': self.q2_focus_bonus,
            'strategic_bonus': self.strategic_bonus,
            'priority_bonus': self.priority_bonus,
            'revolut_score': self.revolut_score,
            'total_kpi': self.total_kpi,
            'skipped_habit_ids': list(self.skipped_habit_ids),
        }


# ============================================================================
# Analytics outputs
# ============================================================================


@dataclass
class TrendAnalysis:
    """Trend classification of one habit across a record series."""
    habit_id: str
    habit_name: str
    trend: TrendDirection
    trend_percentage: float
    average_minutes: float
    consistency: float  # 0-100
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habit_id': self.habit_id,
            'habit_name': self.habit_name,
            'trend': self.trend.value,
            'trend_percentage': self.trend_percentage,
            'average_minutes': self.average_minutes,
            'consistency': self.consistency,
            'recommendation': self.recommendation,
        }


@dataclass
class ForecastData:
    """Compound-growth projection for a future period."""
    period: str
    predicted_kpi: float
    predicted_hours: float
    confidence: float  # 0-100
    based_on_days: int
    compound_growth_rate: float  # percent per day

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period,
            'predicted_kpi': self.predicted_kpi,
            'predicted_hours': self.predicted_hours,
            'confidence': self.confidence,
            'based_on_days': self.based_on_days,
            'compound_growth_rate': self.compound_growth_rate,
        }


@dataclass
class PersonalizedRecommendation:
    """A ranked, actionable suggestion."""
    type: RecommendationType
    priority: RecommendationPriority
    title: str
    description: str
    action_items: List[str] = field(default_factory=list)
    expected_impact: str = ""
    habit_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'priority': self.priority.value,
            'title': self.title,
            'description': self.description,
            'action_items': list(self.action_items),
            'expected_impact': self.expected_impact,
            'habit_ids': list(self.habit_ids),
        }


@dataclass
class HabitSummary:
    habit_id: str
    habit_name: str
    total_minutes: float
    average_minutes: float
    completion_rate: float
    average_quality: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habit_id': self.habit_id,
            'habit_name': self.habit_name,
            'total_minutes': self.total_minutes,
            'average_minutes': self.average_minutes,
            'completion_rate': self.completion_rate,
            'average_quality': self.average_quality,
        }


@dataclass
class SummaryStats:
    """Aggregate statistics for a date window."""
    average_kpi: float
    total_hours: float
    completed_days: int
    total_days: int
    top_habits: List[HabitSummary] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'average_kpi': self.average_kpi,
            'total_hours': self.total_hours,
            'completed_days': self.completed_days,
            'total_days': self.total_days,
            'top_habits': [h.to_dict() for h in self.top_habits],
            'improvement_areas': list(self.improvement_areas),
        }


@dataclass
class PeriodMetrics:
    average_kpi: float
    total_hours: float
    completion_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'average_kpi': self.average_kpi,
            'total_hours': self.total_hours,
            'completion_rate': self.completion_rate,
        }


@dataclass
class PeriodComparison:
    """Side-by-side metrics for two periods with their deltas."""
    current: PeriodMetrics
    previous: PeriodMetrics
    insights: List[str] = field(default_factory=list)

    @property
    def changes(self) -> Dict[str, float]:
        return {
            'kpi_change': round(self.current.average_kpi - self.previous.average_kpi, 2),
            'hours_change': round(self.current.total_hours - self.previous.total_hours, 2),
            'completion_change': round(
                self.current.completion_rate - self.previous.completion_rate, 2
            ),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': self.current.to_dict(),
            'previous': self.previous.to_dict(),
            'changes': self.changes,
            'insights': list(self.insights),
        }


@dataclass
class AnalyticsReport:
    """Summary, trends, forecast and recommendations for one window."""
    start: date
    end: date
    report_type: str
    summary: SummaryStats
    trends: List[TrendAnalysis]
    forecast: ForecastData
    recommendations: List[PersonalizedRecommendation]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'report_type': self.report_type,
            'summary': self.summary.to_dict(),
            'trends': [t.to_dict() for t in self.trends],
            'forecast': self.forecast.to_dict(),
            'recommendations': [r.to_dict() for r in self.recommendations],
        }


# ============================================================================
# Streak outputs
# ============================================================================


@dataclass
class StreakStatistics:
    total_active_streaks: int
    longest_streak: int
    longest_streak_habit: Optional[str]
    average_streak_length: float
    streak_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_active_streaks': self.total_active_streaks,
            'longest_streak': self.longest_streak,
            'longest_streak_habit': self.longest_streak_habit,
            'average_streak_length': self.average_streak_length,
            'streak_distribution': dict(self.streak_distribution),
        }


@dataclass
class StreakPrediction:
    """Likelihood that a streak survives the next day."""
    probability: float  # 0.1 to 0.95
    risk_factors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'probability': self.probability,
            'risk_factors': list(self.risk_factors),
            'recommendations': list(self.recommendations),
        }


@dataclass
class StreakInsights:
    insights: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'insights': list(self.insights),
            'warnings': list(self.warnings),
            'achievements': list(self.achievements),
            'recommendations': list(self.recommendations),
        }


# ============================================================================
# Result wrapper
# ============================================================================


@dataclass
class EngineResult:
    """Tagged success/failure value returned at the scoring boundary."""

    success: bool
    data: Any
    error: Optional[str] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        data = self.data.to_dict() if hasattr(self.data, 'to_dict') else self.data
        return {
            'success': self.success,
            'data': data,
            'error': self.error,
            'errors': list(self.errors),
            'metadata': self.metadata,
        }

    @classmethod
    def ok(cls, data: Any, **metadata) -> 'EngineResult':
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, errors: Optional[List[Dict[str, Any]]] = None, **metadata) -> 'EngineResult':
        """Create a failed result."""
        return cls(success=False, data=None, error=error, errors=list(errors or []), metadata=metadata)
