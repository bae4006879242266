"""Static lookup tables used by the analytics engine.

Tables are read-only mappings so they can be reviewed and tuned in one
place without touching the algorithms that consume them.
"""

from types import MappingProxyType

STRENGTH_LEVELS = ("Untrained", "Novice", "Intermediate", "Advanced", "Elite")

LEVEL_SCORES = MappingProxyType(
    {"Untrained": 1, "Novice": 2, "Intermediate": 3, "Advanced": 4, "Elite": 5}
)

MAJOR_LIFTS = ("bench-press", "barbell-squat", "deadlift", "overhead-press")

# Bodyweight multipliers per tier, ordered as STRENGTH_LEVELS.
STRENGTH_STANDARDS = MappingProxyType(
    {
        "bench-press": MappingProxyType(
            {
                "male": (0.5, 0.75, 1.25, 1.75, 2.25),
                "female": (0.3, 0.5, 0.75, 1.25, 1.5),
            }
        ),
        "barbell-squat": MappingProxyType(
            {
                "male": (0.75, 1.25, 1.75, 2.5, 3.25),
                "female": (0.5, 0.75, 1.25, 1.75, 2.25),
            }
        ),
        "deadlift": MappingProxyType(
            {
                "male": (1.0, 1.5, 2.0, 2.75, 3.5),
                "female": (0.5, 1.0, 1.5, 2.0, 2.75),
            }
        ),
        "overhead-press": MappingProxyType(
            {
                "male": (0.4, 0.6, 0.9, 1.25, 1.6),
                "female": (0.25, 0.4, 0.6, 0.9, 1.2),
            }
        ),
    }
)

DELOAD_PROTOCOLS = MappingProxyType(
    {
        "volume": MappingProxyType(
            {
                "duration_days": 5,
                "volume_reduction": 50,
                "intensity_reduction": 0,
                "focus_areas": (
                    "Maintain intensity at top sets",
                    "Cut assistance work in half",
                    "Prioritize compound movements",
                ),
                "activities": (
                    "Normal warm-ups",
                    "Singles/doubles at 85-90%",
                    "Skip accessory exercises",
                    "Focus on technique",
                ),
            }
        ),
        "intensity": MappingProxyType(
            {
                "duration_days": 5,
                "volume_reduction": 20,
                "intensity_reduction": 30,
                "focus_areas": (
                    "Keep rep ranges the same",
                    "Use lighter loads",
                    "Focus on mind-muscle connection",
                ),
                "activities": (
                    "Moderate tempo work",
                    "Pause reps",
                    "Technique drills",
                    "Light conditioning",
                ),
            }
        ),
        "full": MappingProxyType(
            {
                "duration_days": 7,
                "volume_reduction": 60,
                "intensity_reduction": 40,
                "focus_areas": (
                    "Complete neural recovery",
                    "Address mobility limitations",
                    "Mental reset",
                ),
                "activities": (
                    "Light movement only",
                    "Stretching and mobility",
                    "Walking/light cardio",
                    "No heavy lifting",
                ),
            }
        ),
        "active_recovery": MappingProxyType(
            {
                "duration_days": 4,
                "volume_reduction": 40,
                "intensity_reduction": 20,
                "focus_areas": (
                    "Maintain movement patterns",
                    "Light pump work",
                    "Address weak points",
                ),
                "activities": (
                    "Light full-body sessions",
                    "Mobility work",
                    "Technique practice",
                    "Conditioning",
                ),
            }
        ),
    }
)

FATIGUE_SEVERITY_POINTS = MappingProxyType({"mild": 5, "moderate": 10, "severe": 15})

# Forecast growth-rate seeds and confidence bonus per experience level.
FORECAST_GROWTH_SEEDS = MappingProxyType(
    {"beginner": 0.08, "intermediate": 0.04, "advanced": 0.02}
)
FORECAST_EXPERIENCE_BONUS = MappingProxyType(
    {"beginner": 10.0, "intermediate": 7.0, "advanced": 4.0}
)
FORECAST_AMPLITUDE_MULTIPLIERS = (1.0, 1.5, 2.0, 3.0)
FORECAST_GROWTH_RATES = (0.01, 0.02, 0.04, 0.06, 0.08, 0.1)

# Progression steps per experience level: (push increase, small increase).
PROGRESSION_STEPS = MappingProxyType(
    {
        "beginner": (0.075, 0.05),
        "intermediate": (0.05, 0.025),
        "advanced": (0.025, 0.0125),
    }
)

STARTING_WEIGHTS = MappingProxyType(
    {"beginner": 45.0, "intermediate": 95.0, "advanced": 95.0}
)

# AMAP progression tables: (min_reps, max_reps or None, increase, description).
AMAP_SQUAT_PROGRESSION = (
    (10, None, 10.0, "Excellent - Add 10lbs"),
    (7, 9, 5.0, "Great - Add 5lbs"),
    (5, 6, 0.0, "Good - Maintain TM"),
    (0, 4, -5.0, "Reduce TM by 5lbs"),
)
AMAP_BENCH_PROGRESSION = (
    (10, None, 10.0, "Excellent - Add 10lbs"),
    (7, 9, 5.0, "Great - Add 5lbs"),
    (5, 6, 0.0, "Good - Maintain TM"),
    (0, 4, -5.0, "Reduce TM by 5lbs"),
)
AMAP_DEADLIFT_PROGRESSION = (
    (10, None, 15.0, "Excellent - Add 15lbs"),
    (7, 9, 10.0, "Great - Add 10lbs"),
    (5, 6, 5.0, "Good - Add 5lbs"),
    (0, 4, 0.0, "Maintain TM"),
)
AMAP_TABLES = MappingProxyType(
    {
        "barbell-squat": AMAP_SQUAT_PROGRESSION,
        "bench-press": AMAP_BENCH_PROGRESSION,
        "deadlift": AMAP_DEADLIFT_PROGRESSION,
    }
)

WEEK_PERCENTAGES = MappingProxyType(
    {
        "beginner": MappingProxyType(
            {1: (70, 75, 80), 2: (75, 80, 85), 3: (70, 75, 80, 85), 4: (60, 60)}
        ),
        "intermediate": MappingProxyType(
            {
                1: (70, 75, 80, 80),
                2: (75, 80, 85, 85),
                3: (70, 75, 80, 80, 85),
                4: (60, 65),
            }
        ),
    }
)
