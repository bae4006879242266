import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from forecast_service import (
    PRForecaster,
    forecast_multiple_exercises,
    forecast_pr,
    get_quick_forecast,
)
from models import ExerciseLog, ExperienceLevel, SetLog, SetType, WorkoutSession
from stats_service import StatisticsService

NOW = datetime.datetime(2024, 6, 1, 17, 0, tzinfo=datetime.timezone.utc)


def single(days_ago: int, weight: float, exercise: str = "bench-press") -> WorkoutSession:
    return WorkoutSession(
        start_time=NOW - datetime.timedelta(days=days_ago),
        logs=[
            ExerciseLog(
                exercise_id=exercise,
                sets=[
                    SetLog(weight=weight * 0.5, reps=5, set_type=SetType.WARMUP),
                    SetLog(weight=weight, reps=1),
                ],
            )
        ],
    )


def progressing() -> list:
    weights = (200, 210, 218, 224, 229, 233, 236, 238)
    return [single(49 - 7 * i, w) for i, w in enumerate(weights)]


def erratic() -> list:
    weights = (200, 230, 195, 225, 200, 230)
    return [single(35 - 7 * i, w) for i, w in enumerate(weights)]


class ForecastTestCase(unittest.TestCase):
    def test_insufficient_points(self) -> None:
        history = [single(d, 200) for d in (14, 7, 0)]
        self.assertIsNone(forecast_pr("bench-press", "Bench", history, now=NOW))
        self.assertIsNone(forecast_pr("deadlift", "Deadlift", progressing(), now=NOW))

    def test_points_outside_lookback_ignored(self) -> None:
        history = [single(d, 200) for d in (100, 95, 90, 85, 80)]
        history += [single(d, 210) for d in (14, 7, 0)]
        self.assertIsNone(forecast_pr("bench-press", "Bench", history, now=NOW))

    def test_projection_curve(self) -> None:
        forecast = forecast_pr("bench-press", "Bench Press", progressing(), "intermediate", 8, now=NOW)
        self.assertEqual(forecast.current_pr, 238)
        self.assertEqual(len(forecast.projection_curve), 9)
        weights = [p.weight for p in forecast.projection_curve]
        self.assertEqual(weights, sorted(weights))
        self.assertEqual(forecast.projection_curve[0].date, NOW)
        self.assertEqual(forecast.projection_curve[-1].date, NOW + datetime.timedelta(weeks=8))
        self.assertEqual(forecast.predicted_pr, weights[-1])
        self.assertGreater(forecast.confidence, 0)
        self.assertLessEqual(forecast.confidence, 1)
        self.assertTrue(0 <= forecast.weeks_to_target <= 8)
        self.assertTrue(forecast.reasoning)

    def test_zero_week_horizon(self) -> None:
        forecast = forecast_pr("bench-press", "Bench", progressing(), weeks_to_project=0, now=NOW)
        self.assertEqual(len(forecast.projection_curve), 1)
        self.assertEqual(forecast.weeks_to_target, 0)

    def test_negative_horizon_rejected(self) -> None:
        with self.assertRaises(ValueError):
            forecast_pr("bench-press", "Bench", progressing(), weeks_to_project=-1, now=NOW)

    def test_low_fit_has_zero_confidence(self) -> None:
        forecast = forecast_pr("bench-press", "Bench", erratic(), now=NOW)
        self.assertEqual(forecast.confidence, 0)
        self.assertEqual(forecast.projection_curve, [])
        self.assertFalse(forecast.is_achievable)
        self.assertEqual(forecast.predicted_pr, forecast.current_pr)
        self.assertIn("Insufficient consistent progress data", forecast.reasoning)

    def test_fit_is_bounded(self) -> None:
        points = StatisticsService(progressing(), NOW).exercise_time_series("bench-press", 12)
        model = PRForecaster.fit_exponential_model(points, ExperienceLevel.BEGINNER)
        self.assertEqual(model.c, 200)
        self.assertGreaterEqual(model.r2_score, 0.3)
        self.assertLessEqual(model.r2_score, 1)
        self.assertGreater(model.b, 0)

    def test_confidence_rewards_experience_bonus(self) -> None:
        beginner = forecast_pr("bench-press", "Bench", progressing(), "beginner", now=NOW)
        advanced = forecast_pr("bench-press", "Bench", progressing(), "advanced", now=NOW)
        self.assertGreater(beginner.confidence, advanced.confidence)

    def test_deterministic(self) -> None:
        first = forecast_pr("bench-press", "Bench", progressing(), now=NOW)
        second = forecast_pr("bench-press", "Bench", progressing(), now=NOW)
        self.assertEqual(first, second)


class ForecastHelpersTestCase(unittest.TestCase):
    def test_multiple_exercises_skip_sparse(self) -> None:
        forecasts = forecast_multiple_exercises(
            {"bench-press": "Bench Press", "deadlift": "Deadlift"}, progressing(), now=NOW
        )
        self.assertEqual([f.exercise_name for f in forecasts], ["Bench Press"])

    def test_quick_forecast(self) -> None:
        quick = get_quick_forecast("bench-press", "Bench", progressing(), now=NOW)
        self.assertEqual(set(quick), {"predicted", "confidence", "weeks"})
        self.assertIn(quick["confidence"], ("High", "Medium", "Low"))
        self.assertLessEqual(quick["weeks"], 4)
        self.assertIsNone(get_quick_forecast("deadlift", "Deadlift", progressing(), now=NOW))


if __name__ == "__main__":
    unittest.main()
