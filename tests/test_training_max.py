import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from constants import AMAP_DEADLIFT_PROGRESSION, AMAP_SQUAT_PROGRESSION
from training_max_service import (
    amap_description,
    amap_progression,
    calculate_new_training_max,
    calculate_training_max,
    calculate_working_weight,
    update_training_max,
    week_percentages,
)

WHEN = datetime.datetime(2024, 3, 1, tzinfo=datetime.timezone.utc)


class TrainingMaxTestCase(unittest.TestCase):
    def test_training_max_is_ninety_percent(self) -> None:
        self.assertEqual(calculate_training_max(300), 270)
        self.assertEqual(calculate_training_max(250), 225)
        self.assertEqual(calculate_training_max(200, 0.85), 170)

    def test_working_weight_rounds_to_plates(self) -> None:
        self.assertEqual(calculate_working_weight(270, 75), 202.5)
        self.assertEqual(calculate_working_weight(270, 80, round_to=5), 215)
        with self.assertRaises(ValueError):
            calculate_working_weight(270, 80, round_to=0)

    def test_amap_tables(self) -> None:
        self.assertEqual(amap_progression(AMAP_SQUAT_PROGRESSION, 11), 10.0)
        self.assertEqual(amap_progression(AMAP_SQUAT_PROGRESSION, 8), 5.0)
        self.assertEqual(amap_progression(AMAP_SQUAT_PROGRESSION, 3), -5.0)
        self.assertEqual(amap_progression(AMAP_DEADLIFT_PROGRESSION, 5), 5.0)
        self.assertEqual(amap_description(AMAP_SQUAT_PROGRESSION, 6), "Good - Maintain TM")

    def test_new_training_max_with_recovery_modifiers(self) -> None:
        self.assertEqual(calculate_new_training_max(270, "barbell-squat", 10), 280)
        self.assertEqual(
            calculate_new_training_max(270, "barbell-squat", 10, recent_sleep=5), 278
        )
        self.assertEqual(
            calculate_new_training_max(270, "barbell-squat", 10, missed_sets=1), 275
        )
        self.assertEqual(calculate_new_training_max(300, "deadlift", 10), 315)
        self.assertEqual(calculate_new_training_max(100, "unknown-lift", None), 95)

    def test_update_is_append_only(self) -> None:
        first = update_training_max(None, "bench-press", 200, "1RM", when=WHEN)
        second = update_training_max(
            first, "bench-press", 205, "AMAP", "8 reps", WHEN + datetime.timedelta(days=7)
        )
        self.assertEqual(len(first.history), 1)
        self.assertEqual([h.value for h in second.history], [200, 205])
        self.assertEqual(second.value, 205)
        self.assertEqual(second.last_updated, WHEN + datetime.timedelta(days=7))
        with self.assertRaises(ValueError):
            update_training_max(first, "bench-press", 210, "guess")

    def test_naive_dates_read_as_utc(self) -> None:
        naive = datetime.datetime(2024, 3, 1)
        result = update_training_max(None, "bench-press", 200, "1RM", when=naive)
        self.assertEqual(result.last_updated, WHEN)
        self.assertEqual(result.history[0].date, WHEN)
        self.assertEqual(result.history[0].date.tzinfo, datetime.timezone.utc)

    def test_week_percentages(self) -> None:
        self.assertEqual(week_percentages(2), (75, 80, 85))
        self.assertEqual(week_percentages(4, "intermediate"), (60, 65))
        self.assertEqual(week_percentages(9), (70, 75, 80))


if __name__ == "__main__":
    unittest.main()
