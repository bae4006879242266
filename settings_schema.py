from pydantic import BaseModel, ConfigDict, Field, ValidationError


class OverloadPolicy(BaseModel):
    """Thresholds used by the progressive overload advisor."""

    model_config = ConfigDict(frozen=True)

    baseline_recovery: float = 7.0
    low_recovery_threshold: float = 5.0
    adequate_recovery: float = 7.0
    rep_progression_recovery: float = 6.0
    rest_bonus_start_days: int = 2
    rest_bonus_per_day: float = 0.5
    rest_bonus_cap: float = 1.0
    deload_factor: float = 0.85
    push_rpe_below: float = 7.0
    very_high_rpe: float = 9.5
    high_rep_threshold: int = 12
    feedback_window: int = 5
    feedback_min_entries: int = 3
    feedback_underload_ratio: float = 0.97
    feedback_min_acceptance: float = 0.5


class DeloadPolicy(BaseModel):
    """Detection thresholds for the deload analyzer."""

    model_config = ConfigDict(frozen=True)

    min_sessions: int = 4
    lookback_days: int = 56
    stall_threshold_weeks: int = 3
    stall_min_sessions: int = 4
    rpe_creep_threshold: float = 0.5
    rpe_creep_moderate: float = 0.7
    rpe_creep_severe: float = 1.0
    volume_drop_threshold: float = 0.15
    volume_drop_moderate: float = 0.20
    volume_drop_severe: float = 0.25
    missed_reps_threshold: float = 0.10
    missed_reps_moderate: float = 0.15
    missed_reps_severe: float = 0.20
    frequency_drop_threshold: float = 0.25
    duration_increase_threshold: float = 0.20
    duration_increase_moderate: float = 0.25
    duration_increase_severe: float = 0.35
    implied_deload_gap_days: int = 7
    interval_beginner: int = 56
    interval_intermediate: int = 35
    interval_advanced: int = 28
    max_recommendations: int = 6

    def interval_for(self, level: str) -> int:
        return {
            "beginner": self.interval_beginner,
            "advanced": self.interval_advanced,
        }.get(level, self.interval_intermediate)


class ForecastPolicy(BaseModel):
    """Parameters of the PR forecaster."""

    model_config = ConfigDict(frozen=True)

    lookback_weeks: int = 12
    min_points: int = 4
    min_r2: float = 0.3
    sample_saturation: int = 12
    consistency_std_ceiling: float = 20.0
    achievability_factor: float = 1.5
    min_weekly_slope: float = 0.1


class EngineSettings(BaseModel):
    weight_unit: str = "lbs"
    overload: OverloadPolicy = Field(default_factory=OverloadPolicy)
    deload: DeloadPolicy = Field(default_factory=DeloadPolicy)
    forecast: ForecastPolicy = Field(default_factory=ForecastPolicy)


def validate_settings(data: dict) -> EngineSettings:
    try:
        return EngineSettings(**data)
    except ValidationError as e:
        raise ValueError(str(e))
