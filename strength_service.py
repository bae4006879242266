from __future__ import annotations

import logging
from typing import Mapping, Optional

from algorithms.math_tools import MathTools
from algorithms.one_rep_max import OneRepMaxEstimator
from constants import LEVEL_SCORES, MAJOR_LIFTS, STRENGTH_LEVELS, STRENGTH_STANDARDS
from models import ExercisePRHistory, Gender, StrengthStandard

logger = logging.getLogger(__name__)


class StrengthClassifier:
    """Map a 1RM to bodyweight ratio onto an experience tier."""

    @staticmethod
    def classify(
        exercise_id: str,
        one_rm: float,
        bodyweight: float,
        gender: Gender | str = Gender.MALE,
    ) -> Optional[StrengthStandard]:
        standards = STRENGTH_STANDARDS.get(exercise_id)
        if standards is None or bodyweight <= 0:
            return None
        multipliers = standards[Gender(gender).value]
        ratio = one_rm / bodyweight

        tier = 0
        for idx, multiplier in enumerate(multipliers):
            if ratio >= multiplier:
                tier = idx
        # Below the novice line is still Untrained.
        level = STRENGTH_LEVELS[tier]
        if tier == len(STRENGTH_LEVELS) - 1:
            target = one_rm
            percent = 100.0
        else:
            target = multipliers[tier + 1] * bodyweight
            percent = MathTools.clamp(
                float(MathTools.round_half_up(one_rm / target * 100)), 0.0, 100.0
            )
        return StrengthStandard(
            exercise_id=exercise_id,
            current_1rm=one_rm,
            level=level,
            next_level_target=float(MathTools.round_half_up(target)),
            percent_to_next_level=percent,
        )

    @classmethod
    def overall_score(
        cls,
        personal_records: Mapping[str, ExercisePRHistory],
        bodyweight: float,
        gender: Gender | str = Gender.MALE,
    ) -> int:
        """Average tier score (1-5) over the major lifts, scaled to 0-100."""
        total = 0
        tracked = 0
        for exercise_id in MAJOR_LIFTS:
            history = personal_records.get(exercise_id)
            if history is None or history.best_weight is None:
                continue
            best = history.best_weight
            one_rm = OneRepMaxEstimator.estimate(best.value, max(best.reps or 1, 1))
            standard = cls.classify(exercise_id, one_rm.estimated_1rm, bodyweight, gender)
            if standard is None:
                continue
            total += LEVEL_SCORES[standard.level]
            tracked += 1
        if tracked == 0:
            return 0
        score = MathTools.round_half_up(total / (tracked * 5) * 100)
        logger.debug("strength score %d over %d lifts", score, tracked)
        return score


def classify_strength_level(
    exercise_id: str,
    one_rm: float,
    bodyweight: float,
    gender: Gender | str = Gender.MALE,
) -> Optional[StrengthStandard]:
    return StrengthClassifier.classify(exercise_id, one_rm, bodyweight, gender)


def calculate_overall_strength_score(
    personal_records: Mapping[str, ExercisePRHistory],
    bodyweight: float,
    gender: Gender | str = Gender.MALE,
) -> int:
    return StrengthClassifier.overall_score(personal_records, bodyweight, gender)


def one_rm_percentage(one_rm: float, percentage: float) -> int:
    return MathTools.round_half_up(one_rm * percentage)


def suggest_reps_for_percentage(percentage: float) -> tuple[int, int]:
    """Rep range for a fraction of 1RM, after Prilepin's table."""
    if percentage >= 0.90:
        return (1, 2)
    if percentage >= 0.80:
        return (2, 4)
    if percentage >= 0.70:
        return (4, 6)
    if percentage >= 0.55:
        return (6, 10)
    return (8, 12)


def training_percentages(one_rm: float) -> dict:
    return {
        "volume_day": {"weight": one_rm_percentage(one_rm, 0.70), "reps": (8, 12)},
        "strength_day": {"weight": one_rm_percentage(one_rm, 0.85), "reps": (3, 5)},
        "power_day": {"weight": one_rm_percentage(one_rm, 0.60), "reps": (3, 5)},
    }
