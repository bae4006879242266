from __future__ import annotations

import datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd

from algorithms.math_tools import MathTools
from algorithms.one_rep_max import OneRepMaxEstimator
from models import PerformancePoint, SetType, TrendLine, WorkoutSession, as_utc, utc_now

DAY_SECONDS = 86400.0


class StatisticsService:
    """Compute read-only statistics over a workout history snapshot."""

    def __init__(
        self,
        history: Iterable[WorkoutSession],
        now: Optional[datetime.datetime] = None,
    ) -> None:
        self.history = [w for w in history if w.is_completed]
        self.history.sort(key=lambda w: w.start_time)
        self.now = as_utc(now) if now is not None else utc_now()

    def exercise_time_series(
        self, exercise_id: str, weeks_back: int = 0
    ) -> List[PerformancePoint]:
        """One point per session from the heaviest working set.

        ``weeks_back`` of 0 includes all history.
        """
        cutoff = None
        if weeks_back > 0:
            cutoff = self.now - datetime.timedelta(weeks=weeks_back)
        points: List[PerformancePoint] = []
        for workout in self.history:
            if cutoff is not None and workout.start_time < cutoff:
                continue
            log = workout.log_for(exercise_id)
            if log is None:
                continue
            working = [
                s for s in log.sets if s.contributes and s.set_type != SetType.WARMUP
            ]
            if not working:
                continue
            top = working[0]
            for s in working[1:]:
                if s.weight > top.weight:
                    top = s
            points.append(
                PerformancePoint(
                    date=workout.start_time,
                    weight=top.weight,
                    reps=top.reps,
                    volume=MathTools.volume((s.reps, s.weight) for s in working),
                    estimated_1rm=OneRepMaxEstimator.estimate(top.weight, top.reps).estimated_1rm,
                    rpe=top.rpe,
                    sets=len(working),
                )
            )
        return points

    @staticmethod
    def days_since_first(points: List[PerformancePoint]) -> List[float]:
        if not points:
            return []
        first = points[0].date
        return [(p.date - first).total_seconds() / DAY_SECONDS for p in points]

    @classmethod
    def calculate_trend(cls, points: List[PerformancePoint]) -> TrendLine:
        """Least-squares slope of estimated 1RM per day."""
        if len(points) < 2:
            return TrendLine(slope=0.0, slope_per_week=0.0, r2_score=0.0)
        x = cls.days_since_first(points)
        y = [p.estimated_1rm for p in points]
        slope = MathTools.linear_regression_slope(x, y)
        intercept = sum(y) / len(y) - slope * sum(x) / len(x)
        r2 = MathTools.r_squared(y, [slope * xi + intercept for xi in x])
        return TrendLine(slope=slope, slope_per_week=slope * 7, r2_score=r2)

    def progression_frame(self, exercise_id: str, weeks_back: int = 0) -> pd.DataFrame:
        points = self.exercise_time_series(exercise_id, weeks_back)
        columns = ["date", "weight", "reps", "volume", "estimated_1rm", "rpe", "sets"]
        if not points:
            return pd.DataFrame(columns=columns)
        df = pd.DataFrame([p.model_dump() for p in points], columns=columns)
        df["date"] = pd.to_datetime(df["date"], utc=True)
        return df

    def weekly_volume(self, exercise_id: Optional[str] = None) -> pd.DataFrame:
        """Total contributing volume per calendar week (weeks start Monday)."""
        rows: list[dict] = []
        for workout in self.history:
            for log in workout.logs:
                if exercise_id is not None and log.exercise_id != exercise_id:
                    continue
                for s in log.sets:
                    if s.contributes:
                        rows.append(
                            {"date": workout.start_time, "volume": s.volume, "sets": 1}
                        )
        if not rows:
            return pd.DataFrame(columns=["week_start", "volume", "sets"])
        df = pd.DataFrame(rows)
        df["date"] = pd.to_datetime(df["date"], utc=True)
        weekly = df.set_index("date").resample("W-MON", label="left", closed="left").sum()
        weekly = weekly.reset_index().rename(columns={"date": "week_start"})
        return weekly[["week_start", "volume", "sets"]]

    def personal_records(self) -> List[Dict[str, float]]:
        """Return the best set for each exercise based on estimated 1RM."""
        records: Dict[str, Dict] = {}
        for workout in self.history:
            for log in workout.logs:
                for s in log.sets:
                    if not s.contributes or s.set_type == SetType.WARMUP:
                        continue
                    est = OneRepMaxEstimator.estimate(s.weight, s.reps).estimated_1rm
                    current = records.get(log.exercise_id)
                    if current is None or est > current["est_1rm"]:
                        records[log.exercise_id] = {
                            "exercise_id": log.exercise_id,
                            "date": workout.start_time.date().isoformat(),
                            "reps": s.reps,
                            "weight": s.weight,
                            "rpe": s.rpe,
                            "est_1rm": est,
                        }
        return sorted(records.values(), key=lambda x: x["exercise_id"])
