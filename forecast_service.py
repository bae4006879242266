"""PR forecasting by fitting a saturating growth curve to estimated 1RMs.

Strength gains taper over time, so progress is modelled as
``y = a * (1 - exp(-b * x)) + c`` where ``x`` is days since the first data
point and ``c`` is fixed at the lowest observed 1RM. ``a`` and ``b`` come
from a fixed candidate grid and the pair with the best R^2 wins. The grid
keeps forecasts reproducible; low-R^2 fits are reported with zero
confidence instead of being reshaped.
"""

from __future__ import annotations

import datetime
import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

import numpy as np

from algorithms.math_tools import MathTools
from constants import (
    FORECAST_AMPLITUDE_MULTIPLIERS,
    FORECAST_EXPERIENCE_BONUS,
    FORECAST_GROWTH_RATES,
    FORECAST_GROWTH_SEEDS,
)
from models import (
    ExperienceLevel,
    PerformancePoint,
    PRForecast,
    ProjectionPoint,
    WorkoutSession,
    as_utc,
    utc_now,
)
from settings_schema import ForecastPolicy
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExponentialModel:
    a: float
    b: float
    c: float
    r2_score: float

    def predict(self, days: float) -> float:
        return self.a * (1 - math.exp(-self.b * days)) + self.c


class PRForecaster:
    """Project future PRs for one exercise."""

    def __init__(self, policy: Optional[ForecastPolicy] = None, unit: str = "lbs") -> None:
        self.policy = policy or ForecastPolicy()
        self.unit = unit

    @staticmethod
    def fit_exponential_model(
        points: List[PerformancePoint], experience_level: ExperienceLevel
    ) -> ExponentialModel:
        x = np.array(StatisticsService.days_since_first(points), dtype=float)
        y = np.array([p.estimated_1rm for p in points], dtype=float)
        y_min = float(np.min(y))
        y_range = float(np.max(y)) - y_min

        seed_b = FORECAST_GROWTH_SEEDS[experience_level.value]
        best = ExponentialModel(a=y_range * 2, b=seed_b, c=y_min, r2_score=0.0)
        best_r2 = -math.inf
        for mult in FORECAST_AMPLITUDE_MULTIPLIERS:
            a = y_range * mult
            for b in FORECAST_GROWTH_RATES:
                predictions = a * (1 - np.exp(-b * x)) + y_min
                r2 = MathTools.r_squared(y, predictions)
                if r2 > best_r2:
                    best_r2 = r2
                    best = ExponentialModel(a=a, b=b, c=y_min, r2_score=r2)
        return ExponentialModel(
            a=best.a, b=best.b, c=best.c, r2_score=MathTools.clamp(best_r2, 0.0, 1.0)
        )

    def data_consistency(self, points: List[PerformancePoint]) -> float:
        """1.0 for perfectly even week-to-week changes, falling to 0."""
        if len(points) < 3:
            return 0.0
        std = MathTools.std_of_deltas([p.estimated_1rm for p in points])
        return max(0.0, 1 - std / self.policy.consistency_std_ceiling)

    def calculate_confidence(
        self,
        model: ExponentialModel,
        points: List[PerformancePoint],
        experience_level: ExperienceLevel,
    ) -> float:
        confidence = model.r2_score * 40
        confidence += self.data_consistency(points) * 30
        confidence += min(1.0, len(points) / self.policy.sample_saturation) * 20
        confidence += FORECAST_EXPERIENCE_BONUS[experience_level.value]
        return MathTools.clamp(confidence, 0.0, 100.0) / 100

    def _reasoning(
        self,
        gain_needed: float,
        slope_per_week: float,
        confidence: float,
        is_achievable: bool,
        experience_level: ExperienceLevel,
    ) -> str:
        unit = self.unit
        if gain_needed <= 0:
            return "Maintain current training approach. Focus on consistency and progressive overload."
        if confidence < 0.3:
            return "Progress data is inconsistent. Focus on regular training and tracking before forecasting."
        if not is_achievable:
            return (
                f"Target requires {gain_needed:.0f}{unit} gain, but current rate is "
                f"{slope_per_week:.1f}{unit}/week. Adjust expectations or increase training volume."
            )
        timeframe = math.ceil(gain_needed / max(self.policy.min_weekly_slope, slope_per_week))
        if confidence >= 0.7:
            return (
                f"Strong forecast: Current progress ({slope_per_week:.1f}{unit}/week) projects "
                f"{gain_needed:.0f}{unit} gain in {timeframe} weeks with "
                f"{experience_level.value} programming."
            )
        if confidence >= 0.5:
            return (
                f"Moderate confidence: Projected {gain_needed:.0f}{unit} gain in ~{timeframe} weeks. "
                "Progress may vary based on recovery and consistency."
            )
        return (
            f"Low confidence: Estimated {timeframe} weeks to target. Results depend heavily "
            "on training consistency and recovery quality."
        )

    def forecast(
        self,
        exercise_id: str,
        exercise_name: str,
        history: Iterable[WorkoutSession],
        experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
        weeks_to_project: int = 8,
        now: Optional[datetime.datetime] = None,
    ) -> Optional[PRForecast]:
        if weeks_to_project < 0:
            raise ValueError("weeks_to_project must be non-negative")
        level = ExperienceLevel(experience_level or ExperienceLevel.INTERMEDIATE)
        now = as_utc(now) if now is not None else utc_now()
        stats = StatisticsService(history, now)
        points = stats.exercise_time_series(exercise_id, self.policy.lookback_weeks)
        if len(points) < self.policy.min_points:
            logger.debug(
                "forecast %s skipped: %d data points", exercise_id, len(points)
            )
            return None

        current_pr = max(p.estimated_1rm for p in points)
        model = self.fit_exponential_model(points, level)
        horizon_end = now + datetime.timedelta(weeks=weeks_to_project)

        if model.r2_score < self.policy.min_r2:
            logger.debug("forecast %s low fit r2=%.3f", exercise_id, model.r2_score)
            return PRForecast(
                exercise_id=exercise_id,
                exercise_name=exercise_name,
                current_pr=current_pr,
                predicted_pr=current_pr,
                predicted_date=horizon_end,
                weeks_to_target=weeks_to_project,
                confidence=0.0,
                reasoning=(
                    "Insufficient consistent progress data for reliable forecast. "
                    "Continue training and track progress."
                ),
                projection_curve=[],
                is_achievable=False,
            )

        days_since_start = (now - points[0].date).total_seconds() / 86400.0
        curve: List[ProjectionPoint] = []
        for week in range(weeks_to_project + 1):
            projected = model.predict(days_since_start + week * 7)
            curve.append(
                ProjectionPoint(
                    date=now + datetime.timedelta(weeks=week),
                    weight=float(MathTools.round_half_up(projected)),
                )
            )

        predicted_pr = curve[-1].weight
        confidence = self.calculate_confidence(model, points, level)
        gain_needed = predicted_pr - current_pr
        slope_per_week = StatisticsService.calculate_trend(points).slope_per_week
        expected_gain = slope_per_week * weeks_to_project
        is_achievable = (
            gain_needed > 0
            and gain_needed <= expected_gain * self.policy.achievability_factor
        )

        weeks_to_target = weeks_to_project
        if gain_needed > 0 and slope_per_week > self.policy.min_weekly_slope:
            weeks_to_target = min(weeks_to_project, math.ceil(gain_needed / slope_per_week))

        logger.debug(
            "forecast %s: a=%.1f b=%.2f r2=%.3f predicted=%s confidence=%.2f",
            exercise_id,
            model.a,
            model.b,
            model.r2_score,
            predicted_pr,
            confidence,
        )
        return PRForecast(
            exercise_id=exercise_id,
            exercise_name=exercise_name,
            current_pr=current_pr,
            predicted_pr=predicted_pr,
            predicted_date=curve[weeks_to_target].date,
            weeks_to_target=weeks_to_target,
            confidence=confidence,
            reasoning=self._reasoning(
                gain_needed, slope_per_week, confidence, is_achievable, level
            ),
            projection_curve=curve,
            is_achievable=is_achievable,
        )


def forecast_pr(
    exercise_id: str,
    exercise_name: str,
    history: Iterable[WorkoutSession],
    experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
    weeks_to_project: int = 8,
    *,
    now: Optional[datetime.datetime] = None,
    policy: Optional[ForecastPolicy] = None,
    unit: str = "lbs",
) -> Optional[PRForecast]:
    return PRForecaster(policy, unit).forecast(
        exercise_id, exercise_name, history, experience_level, weeks_to_project, now
    )


def forecast_multiple_exercises(
    exercises: Mapping[str, str],
    history: Iterable[WorkoutSession],
    experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
    *,
    now: Optional[datetime.datetime] = None,
    policy: Optional[ForecastPolicy] = None,
) -> List[PRForecast]:
    """Forecast each ``{exercise_id: name}`` entry, skipping sparse ones."""
    history = list(history)
    forecaster = PRForecaster(policy)
    forecasts: List[PRForecast] = []
    for exercise_id, name in exercises.items():
        result = forecaster.forecast(exercise_id, name, history, experience_level, 8, now)
        if result is not None:
            forecasts.append(result)
    return forecasts


def get_quick_forecast(
    exercise_id: str,
    exercise_name: str,
    history: Iterable[WorkoutSession],
    experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
    *,
    now: Optional[datetime.datetime] = None,
) -> Optional[dict]:
    forecast = forecast_pr(
        exercise_id, exercise_name, history, experience_level, 4, now=now
    )
    if forecast is None:
        return None
    if forecast.confidence >= 0.7:
        label = "High"
    elif forecast.confidence >= 0.5:
        label = "Medium"
    else:
        label = "Low"
    return {
        "predicted": forecast.predicted_pr,
        "confidence": label,
        "weeks": forecast.weeks_to_target,
    }
