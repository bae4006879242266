import os
import sys
import io
import csv
import json
import datetime
import tempfile
import unittest
from unittest import mock
from contextlib import redirect_stderr, redirect_stdout

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
import cli

NOW = datetime.datetime(2024, 3, 10, 12, 0, tzinfo=datetime.timezone.utc)


def session_json(days_ago: int, weight: float, reps: int = 5, rpe=None) -> dict:
    start = NOW - datetime.timedelta(days=days_ago)
    return {
        "start_time": start.isoformat(),
        "end_time": (start + datetime.timedelta(hours=1)).isoformat(),
        "logs": [
            {
                "exercise_id": "bench-press",
                "sets": [{"weight": weight, "reps": reps, "rpe": rpe}],
            }
        ],
    }


class CLITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.history_path = os.path.join(self.tmp.name, "history.json")
        self.settings_path = os.path.join(self.tmp.name, "settings.yaml")
        history = [session_json(d, 200 + i * 5) for i, d in enumerate((28, 21, 14, 7, 2))]
        history[-1]["logs"][0]["sets"][0]["rpe"] = 6
        with open(self.history_path, "w", encoding="utf-8") as f:
            json.dump({"history": history}, f)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def run_cli(self, *args: str):
        out = io.StringIO()
        err = io.StringIO()
        argv = ["--settings", self.settings_path, "--now", NOW.isoformat(), *args]
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_one_rm(self) -> None:
        code, out, _ = self.run_cli("one-rm", "--weight", "100", "--reps", "3")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["estimated_1rm"], 110)

    def test_invalid_one_rm(self) -> None:
        code, _, err = self.run_cli("one-rm", "--weight", "100", "--reps", "0")
        self.assertEqual(code, 1)
        self.assertIn("reps must be at least 1", err)

    def test_prs(self) -> None:
        code, out, _ = self.run_cli(
            "prs", "--history", self.history_path, "--exercise", "bench-press",
            "--weight", "230", "--reps", "5",
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertIn("weight", [p["type"] for p in data["prs"]])
        self.assertEqual(data["prs"][0]["previous_best"], 220)

    def test_suggest(self) -> None:
        code, out, _ = self.run_cli(
            "suggest", "--history", self.history_path, "--exercise", "bench-press", "--sleep", "8"
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["weight"], 231)
        self.assertEqual(data["confidence"], "high")

    def test_suggest_daily_log_follows_now(self) -> None:
        with mock.patch("cli.get_suggestion", wraps=cli.get_suggestion) as spy:
            code, _, _ = self.run_cli(
                "suggest", "--history", self.history_path, "--exercise", "bench-press",
                "--stress", "3",
            )
        self.assertEqual(code, 0)
        daily = spy.call_args.args[2]
        self.assertEqual(daily.date, NOW.date())
        self.assertEqual(spy.call_args.args[4], NOW)

    def test_deload(self) -> None:
        code, out, _ = self.run_cli(
            "deload", "--history", self.history_path, "--last-deload", NOW.isoformat()
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["urgency"], "none")
        self.assertEqual(data["days_since_last_deload"], 0)

    def test_forecast(self) -> None:
        code, out, _ = self.run_cli(
            "forecast", "--history", self.history_path, "--exercise", "bench-press", "--weeks", "4"
        )
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["exercise_id"], "bench-press")
        if data["projection_curve"]:
            self.assertEqual(len(data["projection_curve"]), 5)

    def test_classify(self) -> None:
        code, out, _ = self.run_cli(
            "classify", "--exercise", "cable-fly", "--one-rm", "100", "--bodyweight", "180"
        )
        self.assertEqual(code, 0)
        self.assertIsNone(json.loads(out))

    def test_export(self) -> None:
        out_path = os.path.join(self.tmp.name, "progress.csv")
        code, out, _ = self.run_cli(
            "export", "--history", self.history_path, "--exercise", "bench-press", "--out", out_path
        )
        self.assertEqual(code, 0)
        self.assertIn("Wrote 5 rows", out)
        with open(out_path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        self.assertEqual(len(rows), 5)
        self.assertEqual(float(rows[-1]["weight"]), 220)

    def test_missing_history(self) -> None:
        code, _, err = self.run_cli(
            "deload", "--history", os.path.join(self.tmp.name, "missing.json")
        )
        self.assertEqual(code, 1)
        self.assertIn("error", err)


if __name__ == "__main__":
    unittest.main()
