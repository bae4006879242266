import math
from typing import Iterable, List, Optional, Sequence
import numpy as np


class MathTools:
    """Provides essential mathematical utilities for training-load calculations."""

    EPSILON: float = 1e-9

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round to the nearest integer with halves rounded up."""
        return int(math.floor(value + 0.5))

    @staticmethod
    def volume(sets: Iterable[tuple[float, float]]) -> float:
        """Compute training volume as the sum of reps times weight."""
        vol = 0.0
        for reps, weight in sets:
            vol += reps * weight
        return vol

    @staticmethod
    def mean(values: Sequence[float]) -> Optional[float]:
        """Return the arithmetic mean or ``None`` for an empty sequence."""
        if not values:
            return None
        return float(np.mean(np.array(values, dtype=float)))

    @staticmethod
    def relative_change(recent: float, baseline: float) -> Optional[float]:
        """Return ``(recent - baseline) / baseline``.

        A zero baseline yields ``None`` rather than a synthetic rate.
        """
        if baseline == 0:
            return None
        return (recent - baseline) / baseline

    @staticmethod
    def percent_improvement(value: float, previous: float) -> float:
        """Return improvement over ``previous`` in percent.

        With no previous value a measured increase counts as 100%.
        """
        if previous > 0:
            return (value - previous) / previous * 100.0
        return 100.0 if value > 0 else 0.0

    @staticmethod
    def linear_regression_slope(x: List[float], y: List[float]) -> float:
        if len(x) < 2 or len(x) != len(y):
            return 0.0
        x_arr = np.array(x, dtype=float)
        y_arr = np.array(y, dtype=float)
        x_mean = np.mean(x_arr)
        y_mean = np.mean(y_arr)
        num = np.sum((x_arr - x_mean) * (y_arr - y_mean))
        den = np.sum((x_arr - x_mean) ** 2)
        return float(num / den) if den != 0 else 0.0

    @staticmethod
    def r_squared(y: Sequence[float], predictions: Sequence[float]) -> float:
        """Coefficient of determination of ``predictions`` against ``y``.

        Returns 0.0 when ``y`` has no variance.
        """
        y_arr = np.array(y, dtype=float)
        p_arr = np.array(predictions, dtype=float)
        ss_tot = float(np.sum((y_arr - np.mean(y_arr)) ** 2))
        if ss_tot == 0:
            return 0.0
        ss_res = float(np.sum((y_arr - p_arr) ** 2))
        return 1.0 - ss_res / ss_tot

    @staticmethod
    def std_of_deltas(values: Sequence[float]) -> float:
        """Population standard deviation of consecutive differences."""
        if len(values) < 2:
            return 0.0
        diffs = np.diff(np.array(values, dtype=float))
        return float(np.std(diffs))
