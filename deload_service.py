"""Deload detection from stalls, fatigue trends and time since the last deload."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from algorithms.math_tools import MathTools
from constants import DELOAD_PROTOCOLS, FATIGUE_SEVERITY_POINTS
from models import (
    DeloadProtocol,
    DeloadRecommendation,
    ExerciseStall,
    ExperienceLevel,
    FatigueIndicator,
    WorkoutSession,
    as_utc,
    utc_now,
)
from settings_schema import DeloadPolicy

logger = logging.getLogger(__name__)

DAY = datetime.timedelta(days=1)
WEEK = datetime.timedelta(weeks=1)

FATIGUE_ADVICE = {
    "rpe_creep": "Rising RPE at same weights indicates accumulated fatigue - deload to reset",
    "volume_drop": "Declining volume suggests you're fighting fatigue - a strategic rest will help",
    "missed_reps": "Missing planned reps is a clear sign of overreaching",
    "session_frequency_drop": "Reduced training frequency may indicate your body is asking for rest",
    "workout_duration_increase": "Longer sessions for the same work point to slower recovery between sets",
}


@dataclass
class SessionAggregate:
    date: datetime.datetime
    max_weight: float
    total_volume: float
    avg_rpe: Optional[float]
    completed_sets: int
    missed_reps: int


@dataclass
class ExercisePerformance:
    exercise_id: str
    sessions: List[SessionAggregate] = field(default_factory=list)


def _severity(value: float, moderate: float, severe: float) -> str:
    if value >= severe:
        return "severe"
    if value >= moderate:
        return "moderate"
    return "mild"


class DeloadAnalyzer:
    """Score deload need over a workout history snapshot."""

    def __init__(
        self, policy: Optional[DeloadPolicy] = None, now: Optional[datetime.datetime] = None
    ) -> None:
        self.policy = policy or DeloadPolicy()
        self.now = as_utc(now) if now is not None else utc_now()

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------
    def recent_workouts(self, history: Iterable[WorkoutSession]) -> List[WorkoutSession]:
        cutoff = self.now - self.policy.lookback_days * DAY
        workouts = [w for w in history if w.is_completed and w.completed_at >= cutoff]
        workouts.sort(key=lambda w: w.completed_at)
        return workouts

    @staticmethod
    def exercise_performance(workouts: Iterable[WorkoutSession]) -> Dict[str, ExercisePerformance]:
        data: Dict[str, ExercisePerformance] = {}
        for workout in workouts:
            for log in workout.logs:
                max_weight = 0.0
                volume = 0.0
                rpes: List[float] = []
                completed = 0
                missed = 0
                for s in log.sets:
                    if s.completed:
                        max_weight = max(max_weight, s.weight)
                        volume += s.volume
                        completed += 1
                        if s.rpe is not None:
                            rpes.append(s.rpe)
                    else:
                        missed += s.reps
                if completed == 0:
                    continue
                perf = data.setdefault(log.exercise_id, ExercisePerformance(log.exercise_id))
                perf.sessions.append(
                    SessionAggregate(
                        date=workout.completed_at,
                        max_weight=max_weight,
                        total_volume=volume,
                        avg_rpe=MathTools.mean(rpes),
                        completed_sets=completed,
                        missed_reps=missed,
                    )
                )
        for perf in data.values():
            perf.sessions.sort(key=lambda s: s.date)
        return data

    # ------------------------------------------------------------------
    # Stalls
    # ------------------------------------------------------------------
    def detect_stalls(self, performance: Dict[str, ExercisePerformance]) -> List[ExerciseStall]:
        p = self.policy
        window_start = self.now - p.stall_threshold_weeks * WEEK
        stalls: List[ExerciseStall] = []
        for perf in performance.values():
            if len(perf.sessions) < p.stall_min_sessions:
                continue
            recent = [s for s in perf.sessions if s.date >= window_start]
            if len(recent) < 2:
                continue
            peak = max(s.max_weight for s in perf.sessions)
            if peak <= 0:
                continue
            # Sessions are sorted, so this is the first time the peak was hit.
            peak_date = next(s.date for s in perf.sessions if s.max_weight == peak)
            duration = int((self.now - peak_date) // WEEK)
            if duration < p.stall_threshold_weeks:
                continue
            recent_max = max(s.max_weight for s in recent)
            pct = (peak - recent_max) / peak * 100
            stalls.append(
                ExerciseStall(
                    exercise_id=perf.exercise_id,
                    stall_duration=duration,
                    current_weight=recent_max,
                    stalled_at=peak_date,
                    previous_peak=peak,
                    percentage_from_peak=MathTools.round_half_up(pct * 10) / 10,
                )
            )
        stalls.sort(key=lambda s: s.stall_duration, reverse=True)
        return stalls

    # ------------------------------------------------------------------
    # Fatigue
    # ------------------------------------------------------------------
    @staticmethod
    def average_rpe(workouts: List[WorkoutSession]) -> Optional[float]:
        return MathTools.mean(
            [
                s.rpe
                for w in workouts
                for log in w.logs
                for s in log.sets
                if s.completed and s.rpe is not None
            ]
        )

    @staticmethod
    def average_volume(workouts: List[WorkoutSession]) -> float:
        if not workouts:
            return 0.0
        total = sum(s.volume for w in workouts for log in w.logs for s in log.sets if s.completed)
        return total / len(workouts)

    @staticmethod
    def missed_reps_ratio(workouts: List[WorkoutSession]) -> float:
        planned = 0
        missed = 0
        for w in workouts:
            for log in w.logs:
                for s in log.sets:
                    planned += s.reps
                    if not s.completed:
                        missed += s.reps
        return missed / planned if planned > 0 else 0.0

    @staticmethod
    def average_duration(workouts: List[WorkoutSession]) -> float:
        durations = [w.duration_minutes for w in workouts if w.duration_minutes is not None]
        return MathTools.mean(durations) or 0.0

    def detect_fatigue(self, workouts: List[WorkoutSession]) -> List[FatigueIndicator]:
        p = self.policy
        two_weeks_ago = self.now - 2 * WEEK
        four_weeks_ago = self.now - 4 * WEEK
        recent = [w for w in workouts if w.completed_at >= two_weeks_ago]
        baseline = [w for w in workouts if four_weeks_ago <= w.completed_at < two_weeks_ago]
        if len(recent) < 2 or len(baseline) < 2:
            return []

        indicators: List[FatigueIndicator] = []

        recent_rpe = self.average_rpe(recent)
        baseline_rpe = self.average_rpe(baseline)
        if recent_rpe is not None and baseline_rpe is not None:
            creep = recent_rpe - baseline_rpe
            if creep >= p.rpe_creep_threshold:
                indicators.append(
                    FatigueIndicator(
                        type="rpe_creep",
                        severity=_severity(creep, p.rpe_creep_moderate, p.rpe_creep_severe),
                        description=(
                            f"Average RPE increased from {baseline_rpe:.1f} to {recent_rpe:.1f}"
                        ),
                        value=recent_rpe,
                        baseline=baseline_rpe,
                    )
                )

        recent_volume = self.average_volume(recent)
        baseline_volume = self.average_volume(baseline)
        change = MathTools.relative_change(recent_volume, baseline_volume)
        if change is not None and -change >= p.volume_drop_threshold:
            drop = -change
            indicators.append(
                FatigueIndicator(
                    type="volume_drop",
                    severity=_severity(drop, p.volume_drop_moderate, p.volume_drop_severe),
                    description=f"Training volume dropped by {MathTools.round_half_up(drop * 100)}%",
                    value=recent_volume,
                    baseline=baseline_volume,
                )
            )

        recent_missed = self.missed_reps_ratio(recent)
        baseline_missed = self.missed_reps_ratio(baseline)
        if recent_missed > p.missed_reps_threshold and recent_missed > baseline_missed:
            indicators.append(
                FatigueIndicator(
                    type="missed_reps",
                    severity=_severity(recent_missed, p.missed_reps_moderate, p.missed_reps_severe),
                    description=(
                        f"{MathTools.round_half_up(recent_missed * 100)}% of planned reps missed"
                    ),
                    value=recent_missed,
                    baseline=baseline_missed,
                )
            )

        recent_freq = len(recent) / 2
        baseline_freq = len(baseline) / 2
        change = MathTools.relative_change(recent_freq, baseline_freq)
        if change is not None and -change >= p.frequency_drop_threshold:
            indicators.append(
                FatigueIndicator(
                    type="session_frequency_drop",
                    severity="severe" if recent_freq <= baseline_freq * 0.5 else "moderate",
                    description=(
                        f"Workout frequency dropped from {baseline_freq:.1f} to "
                        f"{recent_freq:.1f} per week"
                    ),
                    value=recent_freq,
                    baseline=baseline_freq,
                )
            )

        recent_duration = self.average_duration(recent)
        baseline_duration = self.average_duration(baseline)
        change = MathTools.relative_change(recent_duration, baseline_duration)
        if change is not None and change >= p.duration_increase_threshold:
            indicators.append(
                FatigueIndicator(
                    type="workout_duration_increase",
                    severity=_severity(
                        change, p.duration_increase_moderate, p.duration_increase_severe
                    ),
                    description=(
                        f"Average workout duration increased by {MathTools.round_half_up(change * 100)}%"
                    ),
                    value=recent_duration,
                    baseline=baseline_duration,
                )
            )
        return indicators

    # ------------------------------------------------------------------
    # Timing, scoring and advice
    # ------------------------------------------------------------------
    def days_since_implied_deload(self, history: Iterable[WorkoutSession]) -> int:
        """Days since the last break longer than the gap threshold ended."""
        dates = sorted((w.completed_at for w in history if w.is_completed), reverse=True)
        if not dates:
            return 0
        gap = self.policy.implied_deload_gap_days * DAY
        for newer, older in zip(dates, dates[1:]):
            if newer - older > gap:
                return max(0, int((self.now - newer) // DAY))
        return max(0, int((self.now - dates[-1]) // DAY))

    def score(
        self,
        stalls: List[ExerciseStall],
        fatigue: List[FatigueIndicator],
        days_since_deload: int,
        experience_level: ExperienceLevel,
    ) -> int:
        interval = self.policy.interval_for(experience_level.value)
        time_score = min(30.0, days_since_deload / interval * 30)
        stall_score = min(30, len(stalls) * 10 + sum(s.stall_duration * 2 for s in stalls))
        fatigue_score = min(40, sum(FATIGUE_SEVERITY_POINTS[f.severity] for f in fatigue))
        total = min(100.0, time_score + stall_score + fatigue_score)
        logger.debug(
            "deload score: time %.1f, stalls %d, fatigue %d", time_score, stall_score, fatigue_score
        )
        return MathTools.round_half_up(total)

    @staticmethod
    def urgency(score: int) -> str:
        if score >= 80:
            return "critical"
        if score >= 60:
            return "recommended"
        if score >= 40:
            return "soon"
        return "none"

    @staticmethod
    def deload_type(fatigue: List[FatigueIndicator], stalls: List[ExerciseStall]) -> str:
        severe = sum(1 for f in fatigue if f.severity == "severe")
        if severe >= 2 or len(stalls) >= 3:
            return "full"
        types = {f.type for f in fatigue}
        if "rpe_creep" in types and "volume_drop" not in types:
            return "volume"
        if "volume_drop" in types:
            return "intensity"
        return "active_recovery"

    @staticmethod
    def protocol(deload_type: str) -> DeloadProtocol:
        spec = DELOAD_PROTOCOLS[deload_type]
        return DeloadProtocol(
            duration_days=spec["duration_days"],
            volume_reduction=spec["volume_reduction"],
            intensity_reduction=spec["intensity_reduction"],
            focus_areas=list(spec["focus_areas"]),
            activities=list(spec["activities"]),
        )

    def recommendations(
        self, stalls: List[ExerciseStall], fatigue: List[FatigueIndicator], urgency: str
    ) -> List[str]:
        recs: List[str] = []
        if urgency == "critical":
            recs.append("Take a full deload week immediately - your body needs recovery")
            recs.append("Reduce training volume by 50-60% for the next 5-7 days")
        elif urgency == "recommended":
            recs.append("Plan a deload within the next week")
            recs.append("Consider reducing volume by 40% or taking extra rest days")
        elif urgency == "soon":
            recs.append("Schedule a deload within the next 2 weeks")

        if stalls:
            top = stalls[0]
            recs.append(
                f"{top.exercise_id} has stalled for {top.stall_duration} weeks - "
                "consider exercise variation after deload"
            )
            if len(stalls) > 2:
                recs.append("Multiple lifts stalling suggests systemic fatigue - prioritize recovery")

        for indicator in fatigue:
            recs.append(FATIGUE_ADVICE[indicator.type])

        if urgency == "none":
            recs.append("No deload needed yet - keep training and monitor fatigue")
        else:
            recs.append("Prioritize sleep (7-9 hours) and nutrition during deload")
            recs.append("Light cardio and mobility work can aid recovery")
        return recs[: self.policy.max_recommendations]

    # ------------------------------------------------------------------
    def analyze(
        self,
        history: Iterable[WorkoutSession],
        experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
        last_deload_date: Optional[datetime.datetime] = None,
    ) -> DeloadRecommendation:
        history = list(history)
        level = ExperienceLevel(experience_level or ExperienceLevel.INTERMEDIATE)
        workouts = self.recent_workouts(history)
        if len(workouts) < self.policy.min_sessions:
            logger.debug("deload analysis skipped: %d recent sessions", len(workouts))
            return empty_recommendation()

        performance = self.exercise_performance(workouts)
        stalls = self.detect_stalls(performance)
        fatigue = self.detect_fatigue(workouts)
        if last_deload_date is not None:
            days = max(0, int((self.now - as_utc(last_deload_date)) // DAY))
        else:
            days = self.days_since_implied_deload(history)

        score = self.score(stalls, fatigue, days, level)
        urgency = self.urgency(score)
        deload_type = self.deload_type(fatigue, stalls)
        logger.debug(
            "deload %s (score %d): %d stalls, %d fatigue indicators, %d days",
            urgency,
            score,
            len(stalls),
            len(fatigue),
            days,
        )
        return DeloadRecommendation(
            urgency=urgency,
            score=score,
            days_since_last_deload=days,
            weeks_since_last_deload=days // 7,
            stalled_exercises=stalls,
            fatigue_indicators=fatigue,
            recommendations=self.recommendations(stalls, fatigue, urgency),
            suggested_deload_type=deload_type,
            deload_protocol=self.protocol(deload_type),
        )


def empty_recommendation() -> DeloadRecommendation:
    return DeloadRecommendation(
        urgency="none",
        score=0,
        days_since_last_deload=0,
        weeks_since_last_deload=0,
        recommendations=["Continue training as normal", "Track RPE to monitor fatigue"],
        suggested_deload_type="active_recovery",
        deload_protocol=DeloadProtocol(),
    )


def analyze_deload_need(
    history: Iterable[WorkoutSession],
    experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
    last_deload_date: Optional[datetime.datetime] = None,
    *,
    now: Optional[datetime.datetime] = None,
    policy: Optional[DeloadPolicy] = None,
) -> DeloadRecommendation:
    return DeloadAnalyzer(policy, now).analyze(history, experience_level, last_deload_date)
