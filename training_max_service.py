from __future__ import annotations

import datetime
import logging
from typing import Optional, Sequence

from algorithms.math_tools import MathTools
from constants import AMAP_SQUAT_PROGRESSION, AMAP_TABLES, WEEK_PERCENTAGES
from models import TrainingMax, TrainingMaxHistory, utc_now

logger = logging.getLogger(__name__)

TRAINING_MAX_SOURCES = {"1RM", "3RM", "5RM", "AMAP", "manual", "ai_suggestion"}


def calculate_training_max(one_rm: float, multiplier: float = 0.90) -> int:
    return MathTools.round_half_up(one_rm * multiplier)


def calculate_working_weight(
    training_max: float, percentage: float, round_to: float = 2.5
) -> float:
    """Weight for ``percentage`` (70, 75, ...) of the training max."""
    if round_to <= 0:
        raise ValueError("round_to must be positive")
    raw = training_max * (percentage / 100)
    return MathTools.round_half_up(raw / round_to) * round_to


def _match_rule(table: Sequence[tuple], reps: int) -> Optional[tuple]:
    for rule in table:
        min_reps, max_reps = rule[0], rule[1]
        if reps >= min_reps and (max_reps is None or reps <= max_reps):
            return rule
    return None


def amap_progression(table: Sequence[tuple], reps_achieved: int) -> float:
    rule = _match_rule(table, reps_achieved)
    return rule[2] if rule else 0.0


def amap_description(table: Sequence[tuple], reps_achieved: int) -> str:
    rule = _match_rule(table, reps_achieved)
    return rule[3] if rule else "Maintain TM"


def calculate_new_training_max(
    current_tm: float,
    exercise_id: str,
    amap_reps: Optional[int] = None,
    *,
    missed_sets: int = 0,
    average_rpe: Optional[float] = None,
    recent_sleep: Optional[float] = None,
    recent_stress: Optional[float] = None,
) -> float:
    """Apply the AMAP table for the lift, scaled down by recovery signals."""
    table = AMAP_TABLES.get(exercise_id, AMAP_SQUAT_PROGRESSION)
    base = amap_progression(table, amap_reps or 0)
    modifier = 1.0
    if recent_sleep is not None and recent_sleep < 6:
        modifier *= 0.75
    if recent_stress is not None and recent_stress > 7:
        modifier *= 0.8
    if missed_sets > 0:
        modifier *= 0.5
    if average_rpe is not None and average_rpe > 8.5:
        modifier *= 0.7
    adjusted = MathTools.round_half_up(base * modifier)
    logger.debug(
        "training max %s: base %+g, modifier %.2f -> %+d", exercise_id, base, modifier, adjusted
    )
    return current_tm + adjusted


def update_training_max(
    training_max: Optional[TrainingMax],
    exercise_id: str,
    value: float,
    source: str = "manual",
    reason: Optional[str] = None,
    when: Optional[datetime.datetime] = None,
) -> TrainingMax:
    """Return a training max with ``value`` appended to its history."""
    if source not in TRAINING_MAX_SOURCES:
        raise ValueError(f"unknown training max source: {source}")
    when = when or utc_now()
    entry = TrainingMaxHistory(value=value, date=when, source=source, reason=reason)
    history = list(training_max.history) if training_max else []
    history.append(entry)
    return TrainingMax(
        exercise_id=exercise_id,
        value=value,
        last_updated=when,
        history=history,
    )


def week_percentages(week: int, program: str = "beginner") -> tuple:
    table = WEEK_PERCENTAGES.get(program, WEEK_PERCENTAGES["beginner"])
    return table.get(week, table[1])
