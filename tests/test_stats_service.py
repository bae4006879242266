import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from models import ExerciseLog, SessionStatus, SetLog, SetType, WorkoutSession
from stats_service import StatisticsService

NOW = datetime.datetime(2024, 1, 20, 12, 0, tzinfo=datetime.timezone.utc)


def workout(start, exercise="bench-press", sets=None, status=SessionStatus.COMPLETED):
    return WorkoutSession(
        start_time=start,
        status=status,
        logs=[ExerciseLog(exercise_id=exercise, sets=sets or [SetLog(weight=100, reps=1)])],
    )


class TimeSeriesTestCase(unittest.TestCase):
    def test_heaviest_working_set_per_session(self) -> None:
        history = [
            workout(
                NOW - datetime.timedelta(days=2),
                sets=[
                    SetLog(weight=300, reps=1, set_type=SetType.WARMUP),
                    SetLog(weight=180, reps=8, rpe=7),
                    SetLog(weight=200, reps=5, rpe=8),
                    SetLog(weight=250, reps=2, completed=False),
                ],
            )
        ]
        points = StatisticsService(history, NOW).exercise_time_series("bench-press")
        self.assertEqual(len(points), 1)
        point = points[0]
        self.assertEqual(point.weight, 200)
        self.assertEqual(point.reps, 5)
        self.assertEqual(point.rpe, 8)
        self.assertEqual(point.estimated_1rm, 233)
        self.assertEqual(point.volume, 180 * 8 + 200 * 5)
        self.assertEqual(point.sets, 2)

    def test_filters_and_ordering(self) -> None:
        history = [
            workout(NOW - datetime.timedelta(days=1), sets=[SetLog(weight=120, reps=1)]),
            workout(NOW - datetime.timedelta(days=100), sets=[SetLog(weight=90, reps=1)]),
            workout(NOW - datetime.timedelta(days=8), sets=[SetLog(weight=110, reps=1)]),
            workout(NOW, status=SessionStatus.ACTIVE, sets=[SetLog(weight=500, reps=1)]),
            workout(NOW - datetime.timedelta(days=3), exercise="deadlift"),
        ]
        stats = StatisticsService(history, NOW)
        weights = [p.weight for p in stats.exercise_time_series("bench-press")]
        self.assertEqual(weights, [90, 110, 120])
        recent = [p.weight for p in stats.exercise_time_series("bench-press", weeks_back=12)]
        self.assertEqual(recent, [110, 120])

    def test_trend(self) -> None:
        history = [
            workout(NOW - datetime.timedelta(days=14), sets=[SetLog(weight=100, reps=1)]),
            workout(NOW - datetime.timedelta(days=7), sets=[SetLog(weight=107, reps=1)]),
            workout(NOW, sets=[SetLog(weight=114, reps=1)]),
        ]
        points = StatisticsService(history, NOW).exercise_time_series("bench-press")
        trend = StatisticsService.calculate_trend(points)
        self.assertAlmostEqual(trend.slope, 1.0)
        self.assertAlmostEqual(trend.slope_per_week, 7.0)
        self.assertAlmostEqual(trend.r2_score, 1.0)
        self.assertEqual(StatisticsService.calculate_trend(points[:1]).slope, 0)


class FrameTestCase(unittest.TestCase):
    def test_progression_frame(self) -> None:
        history = [
            workout(NOW - datetime.timedelta(days=7), sets=[SetLog(weight=100, reps=5)]),
            workout(NOW, sets=[SetLog(weight=105, reps=5)]),
        ]
        frame = StatisticsService(history, NOW).progression_frame("bench-press")
        self.assertEqual(len(frame), 2)
        self.assertEqual(list(frame["weight"]), [100, 105])
        self.assertIn("estimated_1rm", frame.columns)
        empty = StatisticsService([], NOW).progression_frame("bench-press")
        self.assertTrue(empty.empty)
        self.assertIn("date", empty.columns)

    def test_weekly_volume(self) -> None:
        monday = datetime.datetime(2024, 1, 1, 10, 0, tzinfo=datetime.timezone.utc)
        history = [
            workout(monday, sets=[SetLog(weight=100, reps=5)]),
            workout(monday + datetime.timedelta(days=2), sets=[SetLog(weight=100, reps=10)]),
            workout(
                monday + datetime.timedelta(days=8),
                sets=[SetLog(weight=200, reps=5), SetLog(weight=200, reps=5, completed=False)],
            ),
            workout(monday + datetime.timedelta(days=9), exercise="deadlift"),
        ]
        stats = StatisticsService(history, NOW)
        weekly = stats.weekly_volume("bench-press")
        self.assertEqual(list(weekly["volume"]), [1500, 1000])
        self.assertEqual(list(weekly["sets"]), [2, 1])
        self.assertTrue(all(ts.weekday() == 0 for ts in weekly["week_start"]))
        self.assertEqual(sum(stats.weekly_volume()["volume"]), 2600)
        self.assertTrue(StatisticsService([], NOW).weekly_volume().empty)

    def test_personal_records(self) -> None:
        history = [
            workout(NOW - datetime.timedelta(days=7), sets=[SetLog(weight=100, reps=5)]),
            workout(NOW, sets=[SetLog(weight=110, reps=3)]),
            workout(NOW, exercise="deadlift", sets=[SetLog(weight=300, reps=1)]),
        ]
        records = StatisticsService(history, NOW).personal_records()
        self.assertEqual([r["exercise_id"] for r in records], ["bench-press", "deadlift"])
        self.assertEqual(records[0]["weight"], 110)
        self.assertEqual(records[0]["est_1rm"], 121)
        self.assertEqual(records[1]["est_1rm"], 300)


if __name__ == "__main__":
    unittest.main()
