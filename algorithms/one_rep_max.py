from __future__ import annotations

from typing import Iterable, Optional

from models import OneRepMax, SetLog, SetType
from .math_tools import MathTools


class OneRepMaxEstimator:
    """Estimate a one-rep max from a single (weight, reps) pair.

    Singles are returned verbatim, 2-12 reps use Epley and anything above
    uses Brzycki, which diverges as reps approach 37.
    """

    EPLEY_DIVISOR: float = 30.0
    EPLEY_MAX_REPS: int = 12
    BRZYCKI_NUMERATOR: float = 36.0
    BRZYCKI_DENOMINATOR: float = 37.0
    BRZYCKI_MAX_REPS: int = 36

    @classmethod
    def epley(cls, weight: float, reps: int) -> float:
        return weight * (1 + reps / cls.EPLEY_DIVISOR)

    @classmethod
    def brzycki(cls, weight: float, reps: int) -> float:
        reps = min(reps, cls.BRZYCKI_MAX_REPS)
        return weight * cls.BRZYCKI_NUMERATOR / (cls.BRZYCKI_DENOMINATOR - reps)

    @classmethod
    def estimate(cls, weight: float, reps: int) -> OneRepMax:
        if reps < 1:
            raise ValueError("reps must be at least 1")
        if weight < 0:
            raise ValueError("weight must be non-negative")
        if reps == 1:
            return OneRepMax(
                estimated_1rm=float(weight),
                from_weight=float(weight),
                from_reps=1,
                formula="actual",
            )
        if reps > cls.EPLEY_MAX_REPS:
            value, formula = cls.brzycki(weight, reps), "brzycki"
        else:
            value, formula = cls.epley(weight, reps), "epley"
        return OneRepMax(
            estimated_1rm=float(MathTools.round_half_up(value)),
            from_weight=float(weight),
            from_reps=int(reps),
            formula=formula,
        )

    @classmethod
    def best(cls, sets: Iterable[SetLog]) -> Optional[OneRepMax]:
        """Return the highest estimate among contributing working sets."""
        best: Optional[OneRepMax] = None
        for s in sets:
            if not s.contributes or s.set_type == SetType.WARMUP:
                continue
            est = cls.estimate(s.weight, s.reps)
            if best is None or est.estimated_1rm > best.estimated_1rm:
                best = est
        return best


def estimate_one_rep_max(weight: float, reps: int) -> OneRepMax:
    return OneRepMaxEstimator.estimate(weight, reps)


def best_one_rep_max(sets: Iterable[SetLog]) -> Optional[OneRepMax]:
    return OneRepMaxEstimator.best(sets)
