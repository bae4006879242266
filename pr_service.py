from __future__ import annotations

import datetime
import logging
from typing import Iterable, List, Optional

from algorithms.math_tools import MathTools
from algorithms.one_rep_max import OneRepMaxEstimator
from models import (
    ExercisePRHistory,
    PersonalRecord,
    PRDetection,
    SetLog,
    SetType,
    WorkoutSession,
    utc_now,
)

logger = logging.getLogger(__name__)


def _fmt(value: float) -> str:
    return f"{value:g}"


class PRDetector:
    """Classify a completed set against an exercise's historical bests."""

    @staticmethod
    def _qualifies(set_log: SetLog) -> bool:
        return set_log.contributes and set_log.set_type != SetType.WARMUP

    @staticmethod
    def _best_one_rep_max(history: ExercisePRHistory) -> float:
        best = history.best_weight
        if best is None:
            return 0.0
        return OneRepMaxEstimator.estimate(best.value, max(best.reps or 1, 1)).estimated_1rm

    @classmethod
    def _detection(
        cls, pr_type: str, value: float, previous: float, message: str
    ) -> PRDetection:
        return PRDetection(
            type=pr_type,
            value=value,
            previous_best=previous,
            improvement=value - previous,
            improvement_percent=MathTools.percent_improvement(value, previous),
            message=message,
        )

    @classmethod
    def check_all_prs(
        cls, set_log: SetLog, pr_history: Optional[ExercisePRHistory] = None
    ) -> List[PRDetection]:
        """Return every PR category the set achieves."""
        if not cls._qualifies(set_log):
            return []
        weight = set_log.weight
        reps = set_log.reps
        volume = set_log.volume

        if pr_history is None:
            return [
                PRDetection(
                    type="weight",
                    value=weight,
                    previous_best=0.0,
                    improvement=weight,
                    improvement_percent=100.0,
                    message=f"First {_fmt(weight)} logged!",
                ),
                PRDetection(
                    type="volume",
                    value=volume,
                    previous_best=0.0,
                    improvement=volume,
                    improvement_percent=100.0,
                    message=f"{_fmt(volume)} total volume - strong start!",
                ),
            ]

        prs: List[PRDetection] = []

        best_weight = pr_history.best_weight.value if pr_history.best_weight else 0.0
        if weight > best_weight:
            diff = weight - best_weight
            msg = (
                f"+{_fmt(diff)} weight PR!"
                if best_weight > 0
                else f"{_fmt(weight)} - new weight PR!"
            )
            prs.append(cls._detection("weight", weight, best_weight, msg))

        best_reps = pr_history.best_reps.value if pr_history.best_reps else 0.0
        if reps > best_reps:
            diff = reps - best_reps
            msg = (
                f"+{_fmt(diff)} reps! Endurance gains"
                if best_reps > 0
                else f"{reps} reps - new rep PR!"
            )
            prs.append(cls._detection("reps", float(reps), best_reps, msg))

        best_volume = pr_history.best_volume.value if pr_history.best_volume else 0.0
        if volume > best_volume:
            prs.append(
                cls._detection(
                    "volume", volume, best_volume, f"{_fmt(volume)} total volume - crushing it!"
                )
            )

        if reps > 1:
            current = OneRepMaxEstimator.estimate(weight, reps).estimated_1rm
            previous = cls._best_one_rep_max(pr_history)
            if current > previous:
                prs.append(
                    cls._detection("1rm", current, previous, f"Estimated 1RM: {_fmt(current)}!")
                )

        logger.debug(
            "set %sx%s on %s: %d PR(s)",
            _fmt(weight),
            reps,
            pr_history.exercise_id,
            len(prs),
        )
        return prs

    @classmethod
    def check_if_pr(
        cls, set_log: SetLog, pr_history: Optional[ExercisePRHistory] = None
    ) -> Optional[PRDetection]:
        """Return the first PR category achieved (weight, volume, then reps)."""
        prs = {p.type: p for p in cls.check_all_prs(set_log, pr_history)}
        for pr_type in ("weight", "volume", "reps"):
            if pr_type in prs:
                return prs[pr_type]
        return None


def check_all_prs(
    set_log: SetLog, pr_history: Optional[ExercisePRHistory] = None
) -> List[PRDetection]:
    return PRDetector.check_all_prs(set_log, pr_history)


def check_if_pr(
    set_log: SetLog, pr_history: Optional[ExercisePRHistory] = None
) -> Optional[PRDetection]:
    return PRDetector.check_if_pr(set_log, pr_history)


def record_set(
    pr_history: Optional[ExercisePRHistory],
    exercise_id: str,
    set_log: SetLog,
    when: Optional[datetime.datetime] = None,
) -> ExercisePRHistory:
    """Return a new PR history that includes ``set_log``.

    Best fields only ever move up; the input history is left untouched.
    """
    when = when or utc_now()
    history = pr_history or ExercisePRHistory(exercise_id=exercise_id)
    if not set_log.contributes or set_log.set_type == SetType.WARMUP:
        return history

    updates: dict = {}
    new_records: List[PersonalRecord] = []

    best = history.best_weight
    if best is None or set_log.weight > best.value:
        rec = PersonalRecord(value=set_log.weight, date=when, type="weight", reps=set_log.reps)
        updates["best_weight"] = rec
        new_records.append(rec)

    best = history.best_volume
    if best is None or set_log.volume > best.value:
        rec = PersonalRecord(
            value=set_log.volume,
            date=when,
            type="volume",
            reps=set_log.reps,
            weight=set_log.weight,
        )
        updates["best_volume"] = rec
        new_records.append(rec)

    best = history.best_reps
    if best is None or set_log.reps > best.value:
        rec = PersonalRecord(value=float(set_log.reps), date=when, type="reps", weight=set_log.weight)
        updates["best_reps"] = rec
        new_records.append(rec)

    if not updates:
        return history
    updates["records"] = list(reversed(new_records)) + list(history.records)
    return history.model_copy(update=updates)


def build_pr_history(
    exercise_id: str, history: Iterable[WorkoutSession]
) -> Optional[ExercisePRHistory]:
    """Replay completed sessions oldest first into a PR history."""
    sessions = sorted(
        (w for w in history if w.is_completed),
        key=lambda w: w.start_time,
    )
    result: Optional[ExercisePRHistory] = None
    for session in sessions:
        for log in session.logs:
            if log.exercise_id != exercise_id:
                continue
            for s in log.sets:
                result = record_set(result, exercise_id, s, session.completed_at)
    if result is not None and result.best_weight is None:
        return None
    return result


def generate_pr_message(prs: List[PRDetection], exercise_name: str) -> str:
    if not prs:
        return ""
    if len(prs) > 1:
        types = " + ".join(p.type.upper() for p in prs)
        return f"MULTI-PR! {types} on {exercise_name}!"
    pr = prs[0]
    value = _fmt(pr.value)
    templates = {
        "weight": f"New weight PR on {exercise_name}! {value} conquered!",
        "reps": f"Rep PR! {value} reps on {exercise_name}!",
        "volume": f"Volume PR! {value} total volume on {exercise_name}!",
        "1rm": f"Estimated 1RM on {exercise_name} reached {value}!",
    }
    return templates.get(pr.type, pr.message)
