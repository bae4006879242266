"""Immutable data snapshots consumed and produced by the analytics engine."""

from __future__ import annotations

import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Return ``value`` as a timezone-aware datetime in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Snapshot(BaseModel):
    """Base for frozen models accepting camelCase or snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class _LowerEnum(str, Enum):
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class SetType(str, Enum):
    NORMAL = "N"
    WARMUP = "W"
    DROP = "D"
    FAILURE = "F"


class SessionStatus(_LowerEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TEMPLATE = "template"
    DRAFT = "draft"


class ExperienceLevel(_LowerEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Gender(_LowerEnum):
    MALE = "male"
    FEMALE = "female"


class Confidence(_LowerEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class SetLog(Snapshot):
    id: str = ""
    weight: float = Field(0.0, ge=0)
    reps: int = Field(0, ge=0)
    rpe: Optional[float] = Field(None, ge=1, le=10)
    set_type: SetType = Field(SetType.NORMAL, alias="type")
    completed: bool = True

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    @property
    def contributes(self) -> bool:
        """Whether the set counts towards volume, PRs and fatigue."""
        return self.completed and self.weight > 0 and self.reps > 0

    @property
    def is_working(self) -> bool:
        return self.completed and self.set_type != SetType.WARMUP


class ExerciseLog(Snapshot):
    id: str = ""
    exercise_id: str
    sets: List[SetLog] = Field(default_factory=list)
    notes: Optional[str] = None
    superset_id: Optional[str] = None


class WorkoutSession(Snapshot):
    id: str = ""
    name: str = ""
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    status: SessionStatus = SessionStatus.COMPLETED
    logs: List[ExerciseLog] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _utc(cls, value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
        return as_utc(value) if value is not None else None

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    @property
    def completed_at(self) -> datetime.datetime:
        return self.end_time or self.start_time

    @property
    def duration_minutes(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() / 60.0

    def log_for(self, exercise_id: str) -> Optional[ExerciseLog]:
        for log in self.logs:
            if log.exercise_id == exercise_id:
                return log
        return None


class DailyLog(Snapshot):
    date: datetime.date
    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    sleep_quality: Optional[int] = None
    stress_level: Optional[float] = None
    muscle_soreness: Optional[float] = None
    bodyweight: Optional[float] = None


class PersonalRecord(Snapshot):
    value: float
    date: datetime.datetime
    type: str
    reps: Optional[int] = None
    weight: Optional[float] = None

    @field_validator("date")
    @classmethod
    def _utc(cls, value: datetime.datetime) -> datetime.datetime:
        return as_utc(value)


class ExercisePRHistory(Snapshot):
    exercise_id: str
    records: List[PersonalRecord] = Field(default_factory=list)
    best_weight: Optional[PersonalRecord] = None
    best_volume: Optional[PersonalRecord] = None
    best_reps: Optional[PersonalRecord] = None


class TrainingMaxHistory(Snapshot):
    value: float
    date: datetime.datetime
    source: str = "manual"
    reason: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _utc(cls, value: datetime.datetime) -> datetime.datetime:
        return as_utc(value)


class TrainingMax(Snapshot):
    exercise_id: str
    value: float
    last_updated: datetime.datetime
    history: List[TrainingMaxHistory] = Field(default_factory=list)

    @field_validator("last_updated")
    @classmethod
    def _utc(cls, value: datetime.datetime) -> datetime.datetime:
        return as_utc(value)


class SuggestionFeedback(Snapshot):
    exercise_id: str
    suggested_weight: float
    actual_weight: float
    suggested_reps: Tuple[int, int]
    actual_reps: int
    accepted: bool
    timestamp: datetime.datetime
    confidence: Confidence

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime.datetime) -> datetime.datetime:
        return as_utc(value)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class OneRepMax(Snapshot):
    estimated_1rm: float
    from_weight: float
    from_reps: int
    formula: str


class ProgressiveSuggestion(Snapshot):
    weight: float
    reps: Tuple[int, int]
    reasoning: str
    confidence: Confidence
    recovery_score: float
    should_deload: bool = False
    estimated_1rm: Optional[float] = None
    alternative: Optional[float] = None
    explanation: Optional[str] = None


class PRDetection(Snapshot):
    type: str
    value: float
    previous_best: float
    improvement: float
    improvement_percent: float
    message: str


class ExerciseStall(Snapshot):
    exercise_id: str
    stall_duration: int
    current_weight: float
    stalled_at: datetime.datetime
    previous_peak: float
    percentage_from_peak: float


class FatigueIndicator(Snapshot):
    type: str
    severity: str
    description: str
    value: float
    baseline: float


class DeloadProtocol(Snapshot):
    duration_days: int = 0
    volume_reduction: int = 0
    intensity_reduction: int = 0
    focus_areas: List[str] = Field(default_factory=list)
    activities: List[str] = Field(default_factory=list)


class DeloadRecommendation(Snapshot):
    urgency: str
    score: int
    days_since_last_deload: int
    weeks_since_last_deload: int
    stalled_exercises: List[ExerciseStall] = Field(default_factory=list)
    fatigue_indicators: List[FatigueIndicator] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    suggested_deload_type: str
    deload_protocol: DeloadProtocol


class ProjectionPoint(Snapshot):
    date: datetime.datetime
    weight: float


class PRForecast(Snapshot):
    exercise_id: str
    exercise_name: str
    current_pr: float
    predicted_pr: float
    predicted_date: datetime.datetime
    weeks_to_target: int
    confidence: float
    reasoning: str
    projection_curve: List[ProjectionPoint] = Field(default_factory=list)
    is_achievable: bool


class StrengthStandard(Snapshot):
    exercise_id: str
    current_1rm: float
    level: str
    next_level_target: float
    percent_to_next_level: float


class PerformancePoint(Snapshot):
    date: datetime.datetime
    weight: float
    reps: int
    volume: float
    estimated_1rm: float
    rpe: Optional[float] = None
    sets: int


class TrendLine(Snapshot):
    slope: float
    slope_per_week: float
    r2_score: float
