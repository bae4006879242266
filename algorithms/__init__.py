from .math_tools import MathTools
from .one_rep_max import OneRepMaxEstimator, estimate_one_rep_max, best_one_rep_max

__all__ = [
    "MathTools",
    "OneRepMaxEstimator",
    "estimate_one_rep_max",
    "best_one_rep_max",
]
