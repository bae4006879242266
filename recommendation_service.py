from __future__ import annotations

import datetime
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from algorithms.math_tools import MathTools
from algorithms.one_rep_max import OneRepMaxEstimator
from constants import PROGRESSION_STEPS, STARTING_WEIGHTS
from models import (
    Confidence,
    DailyLog,
    ExerciseLog,
    ExperienceLevel,
    ProgressiveSuggestion,
    SetLog,
    SetType,
    SuggestionFeedback,
    WorkoutSession,
    as_utc,
    utc_now,
)
from settings_schema import OverloadPolicy

logger = logging.getLogger(__name__)

_LOWER_CONFIDENCE = {
    Confidence.HIGH: Confidence.MEDIUM,
    Confidence.MEDIUM: Confidence.LOW,
    Confidence.LOW: Confidence.LOW,
}


def _fmt(value: float) -> str:
    return f"{value:g}"


class ProgressiveOverloadAdvisor:
    """Suggest the next working weight and rep range for an exercise."""

    def __init__(self, policy: Optional[OverloadPolicy] = None) -> None:
        self.policy = policy or OverloadPolicy()

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------
    def recovery_factors(
        self, daily_log: Optional[DailyLog], days_since_last_workout: int
    ) -> List[Tuple[str, float]]:
        """Return ``(label, delta)`` pairs applied to the baseline score."""
        factors: List[Tuple[str, float]] = []
        if daily_log is not None and daily_log.sleep_hours is not None:
            hours = daily_log.sleep_hours
            if hours >= 8:
                delta = 2.0
            elif hours >= 7:
                delta = 1.0
            elif hours >= 6:
                delta = -1.0
            else:
                delta = -3.0
            factors.append((f"sleep {_fmt(hours)}h", delta))
        if daily_log is not None and daily_log.stress_level is not None:
            stress = daily_log.stress_level
            if stress >= 8:
                delta = -2.0
            elif stress >= 6:
                delta = -1.0
            else:
                delta = 0.0
            factors.append((f"stress {_fmt(stress)}/10", delta))

        p = self.policy
        if days_since_last_workout <= 1:
            rest = -1.0
        else:
            extra = max(0, days_since_last_workout - p.rest_bonus_start_days)
            rest = min(p.rest_bonus_cap, extra * p.rest_bonus_per_day)
        factors.append((f"{days_since_last_workout} rest day(s)", rest))
        return factors

    def recovery_score(
        self, daily_log: Optional[DailyLog], days_since_last_workout: int
    ) -> float:
        score = self.policy.baseline_recovery
        for _label, delta in self.recovery_factors(daily_log, days_since_last_workout):
            score += delta
        return MathTools.clamp(score, 0.0, 10.0)

    @staticmethod
    def days_since_last_workout(
        exercise_id: str, history: Iterable[WorkoutSession], now: datetime.datetime
    ) -> int:
        latest: Optional[datetime.datetime] = None
        for session in history:
            if not session.is_completed or session.log_for(exercise_id) is None:
                continue
            if latest is None or session.start_time > latest:
                latest = session.start_time
        if latest is None:
            return 7
        return max(0, int((now - latest).total_seconds() // 86400))

    # ------------------------------------------------------------------
    # Weight adjustments
    # ------------------------------------------------------------------
    @staticmethod
    def _increase(weight: float, pct: float) -> float:
        if weight <= 0:
            return weight
        return float(max(MathTools.round_half_up(weight * (1 + pct)), weight + 1))

    @staticmethod
    def _decrease(weight: float, factor: float) -> float:
        if weight <= 0:
            return weight
        return float(max(0, min(MathTools.round_half_up(weight * factor), weight - 1)))

    def _feedback_adjustment(
        self, exercise_id: str, feedback_history: Optional[Sequence[SuggestionFeedback]]
    ) -> Tuple[float, bool]:
        """Return ``(increase multiplier, lower confidence)`` from past feedback."""
        if not feedback_history:
            return 1.0, False
        p = self.policy
        entries = sorted(
            (f for f in feedback_history if f.exercise_id == exercise_id),
            key=lambda f: f.timestamp,
            reverse=True,
        )[: p.feedback_window]
        if len(entries) < p.feedback_min_entries:
            return 1.0, False
        ratios = [f.actual_weight / f.suggested_weight for f in entries if f.suggested_weight > 0]
        if len(ratios) < len(entries):
            logger.warning(
                "ignoring %d feedback entries without a suggested weight for %s",
                len(entries) - len(ratios),
                exercise_id,
            )
        multiplier = 1.0
        mean_ratio = MathTools.mean(ratios)
        if mean_ratio is not None and mean_ratio < p.feedback_underload_ratio:
            multiplier = 0.5
        acceptance = sum(1 for f in entries if f.accepted) / len(entries)
        return multiplier, acceptance < p.feedback_min_acceptance

    # ------------------------------------------------------------------
    # Suggestion
    # ------------------------------------------------------------------
    def suggest(
        self,
        exercise_id: str,
        last_workout: Optional[ExerciseLog],
        daily_log: Optional[DailyLog],
        history: Iterable[WorkoutSession],
        now: Optional[datetime.datetime] = None,
        experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
        feedback_history: Optional[Sequence[SuggestionFeedback]] = None,
    ) -> ProgressiveSuggestion:
        p = self.policy
        level = ExperienceLevel(experience_level or ExperienceLevel.INTERMEDIATE)
        now = as_utc(now) if now is not None else utc_now()
        days = self.days_since_last_workout(exercise_id, history, now)
        factors = self.recovery_factors(daily_log, days)
        recovery = self.recovery_score(daily_log, days)
        explanation = "Recovery {}/10 from baseline {}: {}".format(
            _fmt(recovery),
            _fmt(p.baseline_recovery),
            ", ".join(f"{label} {delta:+g}" for label, delta in factors),
        )

        if last_workout is None or not last_workout.sets:
            return ProgressiveSuggestion(
                weight=STARTING_WEIGHTS[level.value],
                reps=(8, 12),
                reasoning="First time logging this exercise. Start conservative to learn form.",
                confidence=Confidence.LOW,
                recovery_score=recovery,
                explanation=explanation,
            )

        working = [s for s in last_workout.sets if s.completed and s.set_type != SetType.WARMUP]
        if not working:
            return ProgressiveSuggestion(
                weight=0.0,
                reps=(8, 12),
                reasoning="No completed sets found in previous workout.",
                confidence=Confidence.LOW,
                recovery_score=recovery,
                explanation=explanation,
            )

        top: SetLog = working[0]
        for s in working[1:]:
            if s.weight > top.weight:
                top = s
        weight, reps, rpe = top.weight, top.reps, top.rpe
        estimated = None
        if weight > 0 and reps >= 1:
            estimated = OneRepMaxEstimator.estimate(weight, reps).estimated_1rm

        push_pct, small_pct = PROGRESSION_STEPS[level.value]
        multiplier, lower_confidence = self._feedback_adjustment(exercise_id, feedback_history)
        push_pct *= multiplier
        small_pct *= multiplier

        alternative: Optional[float] = None
        should_deload = False
        if recovery < p.low_recovery_threshold:
            new_weight = self._decrease(weight, p.deload_factor)
            rep_range = (6, 8)
            if daily_log is not None and daily_log.sleep_hours is not None and daily_log.sleep_hours < 6:
                detail = f"Only {_fmt(daily_log.sleep_hours)}hrs sleep - reduce volume."
            else:
                detail = "High fatigue detected - active recovery session."
            reasoning = f"Low recovery score ({_fmt(recovery)}/10). {detail}"
            confidence = Confidence.HIGH
            should_deload = True
        elif rpe is not None:
            if rpe < p.push_rpe_below and recovery >= p.adequate_recovery:
                new_weight = self._increase(weight, push_pct)
                rep_range = (max(1, reps - 2), max(1, reps))
                reasoning = (
                    f"RPE {_fmt(rpe)}/10 + excellent recovery ({_fmt(recovery)}/10) = "
                    f"ready to push! +{push_pct * 100:g}% weight."
                )
                confidence = Confidence.HIGH
                alternative = weight
            elif p.push_rpe_below <= rpe < p.very_high_rpe:
                if recovery >= p.adequate_recovery:
                    new_weight = self._increase(weight, small_pct)
                    rep_range = (reps, reps + 1)
                    reasoning = (
                        f"RPE {_fmt(rpe)}/10 (optimal intensity). Small progression "
                        f"+{small_pct * 100:g}% to maintain stimulus."
                    )
                    confidence = Confidence.HIGH
                    alternative = weight
                else:
                    new_weight = weight
                    rep_range = (reps, reps)
                    reasoning = (
                        f"RPE {_fmt(rpe)}/10 with moderate recovery ({_fmt(recovery)}/10). "
                        "Maintain weight this session."
                    )
                    confidence = Confidence.MEDIUM
            elif rpe >= p.very_high_rpe:
                new_weight = weight
                rep_range = (reps, reps)
                reasoning = f"RPE {_fmt(rpe)}/10 is very high. Maintain weight to prevent overtraining."
                confidence = Confidence.MEDIUM
            else:
                new_weight = self._increase(weight, small_pct)
                rep_range = (reps, reps + 1)
                reasoning = (
                    f"Moderate recovery ({_fmt(recovery)}/10). "
                    f"Conservative progression +{small_pct * 100:g}%."
                )
                confidence = Confidence.MEDIUM
                alternative = weight
        else:
            if reps >= p.high_rep_threshold and recovery >= p.rep_progression_recovery:
                new_weight = self._increase(weight, push_pct)
                rep_range = (6, 10)
                reasoning = f"Completed {reps} reps last time. Increase weight to build strength."
                confidence = Confidence.MEDIUM
                alternative = weight
            elif 8 <= reps < p.high_rep_threshold and recovery >= p.rep_progression_recovery:
                new_weight = self._increase(weight, small_pct)
                rep_range = (reps, reps + 1)
                reasoning = f"Good rep range ({reps}). Small weight increase for progressive overload."
                confidence = Confidence.MEDIUM
                alternative = weight
            elif reps < 6:
                new_weight = weight
                rep_range = (6, 8)
                reasoning = f"Only {reps} reps last time. Maintain weight and aim for more reps."
                confidence = Confidence.LOW
            else:
                new_weight = weight
                rep_range = (reps, reps + 2)
                reasoning = (
                    f"Recovery {_fmt(recovery)}/10. Maintain weight and add reps before loading."
                )
                confidence = Confidence.MEDIUM

        if lower_confidence:
            confidence = _LOWER_CONFIDENCE[confidence]
        logger.debug(
            "suggestion %s: %s -> %s, recovery %.1f, %s",
            exercise_id,
            _fmt(weight),
            _fmt(new_weight),
            recovery,
            confidence.value,
        )
        return ProgressiveSuggestion(
            weight=new_weight,
            reps=rep_range,
            reasoning=reasoning,
            confidence=confidence,
            recovery_score=recovery,
            should_deload=should_deload,
            estimated_1rm=estimated,
            alternative=alternative,
            explanation=explanation,
        )


def calculate_recovery_score(
    daily_log: Optional[DailyLog],
    days_since_last_workout: int,
    *,
    policy: Optional[OverloadPolicy] = None,
) -> float:
    return ProgressiveOverloadAdvisor(policy).recovery_score(daily_log, days_since_last_workout)


def get_suggestion(
    exercise_id: str,
    last_workout: Optional[ExerciseLog],
    daily_log: Optional[DailyLog],
    history: Iterable[WorkoutSession],
    now: Optional[datetime.datetime] = None,
    experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
    feedback_history: Optional[Sequence[SuggestionFeedback]] = None,
    *,
    policy: Optional[OverloadPolicy] = None,
) -> ProgressiveSuggestion:
    return ProgressiveOverloadAdvisor(policy).suggest(
        exercise_id,
        last_workout,
        daily_log,
        history,
        now,
        experience_level,
        feedback_history,
    )


def last_log_for(exercise_id: str, history: Iterable[WorkoutSession]) -> Optional[ExerciseLog]:
    """Return the exercise log from the newest completed session containing it."""
    latest: Optional[WorkoutSession] = None
    for session in history:
        if not session.is_completed or session.log_for(exercise_id) is None:
            continue
        if latest is None or session.start_time > latest.start_time:
            latest = session
    return latest.log_for(exercise_id) if latest else None


def get_batch_suggestions(
    exercise_ids: Iterable[str],
    daily_log: Optional[DailyLog],
    history: Iterable[WorkoutSession],
    now: Optional[datetime.datetime] = None,
    experience_level: Optional[ExperienceLevel | str] = ExperienceLevel.INTERMEDIATE,
    feedback_history: Optional[Sequence[SuggestionFeedback]] = None,
    *,
    policy: Optional[OverloadPolicy] = None,
) -> Dict[str, ProgressiveSuggestion]:
    history = list(history)
    advisor = ProgressiveOverloadAdvisor(policy)
    return {
        exercise_id: advisor.suggest(
            exercise_id,
            last_log_for(exercise_id, history),
            daily_log,
            history,
            now,
            experience_level,
            feedback_history,
        )
        for exercise_id in exercise_ids
    }


def create_suggestion_feedback(
    exercise_id: str,
    suggestion: ProgressiveSuggestion,
    actual_weight: float,
    actual_reps: int,
    when: Optional[datetime.datetime] = None,
) -> SuggestionFeedback:
    return SuggestionFeedback(
        exercise_id=exercise_id,
        suggested_weight=suggestion.weight,
        actual_weight=actual_weight,
        suggested_reps=suggestion.reps,
        actual_reps=actual_reps,
        accepted=abs(actual_weight - suggestion.weight) < 1,
        timestamp=when or utc_now(),
        confidence=suggestion.confidence,
    )


def format_suggestion(suggestion: ProgressiveSuggestion, unit: str = "lbs") -> str:
    """Render as ``"185 lbs x 8-10 reps"``."""
    low, high = suggestion.reps
    reps = f"{low} reps" if low == high else f"{low}-{high} reps"
    return f"{_fmt(suggestion.weight)} {unit} x {reps}"
