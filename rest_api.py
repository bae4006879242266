import datetime
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import Field

from algorithms.one_rep_max import estimate_one_rep_max
from config import APP_VERSION, load_engine_settings
from deload_service import analyze_deload_need
from forecast_service import forecast_pr
from models import (
    DailyLog,
    ExerciseLog,
    ExercisePRHistory,
    SetLog,
    Snapshot,
    SuggestionFeedback,
    WorkoutSession,
)
from pr_service import check_all_prs, generate_pr_message
from recommendation_service import format_suggestion, get_suggestion, last_log_for
from strength_service import calculate_overall_strength_score, classify_strength_level

logger = logging.getLogger(__name__)


class OneRepMaxRequest(Snapshot):
    weight: float
    reps: int


class SuggestionRequest(Snapshot):
    exercise_id: str
    last_workout: Optional[ExerciseLog] = None
    daily_log: Optional[DailyLog] = None
    history: List[WorkoutSession] = Field(default_factory=list)
    now: Optional[datetime.datetime] = None
    experience_level: Optional[str] = "intermediate"
    feedback_history: List[SuggestionFeedback] = Field(default_factory=list)
    use_history_for_last: bool = False


class PRCheckRequest(Snapshot):
    set_log: SetLog = Field(alias="set")
    pr_history: Optional[ExercisePRHistory] = None
    exercise_name: str = ""


class DeloadRequest(Snapshot):
    history: List[WorkoutSession] = Field(default_factory=list)
    experience_level: Optional[str] = "intermediate"
    last_deload_date: Optional[datetime.datetime] = None
    now: Optional[datetime.datetime] = None


class ForecastRequest(Snapshot):
    exercise_id: str
    exercise_name: str = ""
    history: List[WorkoutSession] = Field(default_factory=list)
    experience_level: Optional[str] = "intermediate"
    weeks_to_project: int = 8
    now: Optional[datetime.datetime] = None


class StrengthScoreRequest(Snapshot):
    personal_records: Dict[str, ExercisePRHistory] = Field(default_factory=dict)
    bodyweight: float
    gender: str = "male"


class AnalyticsAPI:
    """Expose the analytics engine over JSON."""

    def __init__(self, yaml_path: str = "settings.yaml") -> None:
        self.yaml_path = yaml_path
        self.settings = load_engine_settings(yaml_path)
        self.app = FastAPI(
            title="Training Analytics API",
            description="Read-only training load analytics and recommendations",
            version=APP_VERSION,
        )
        self._setup_routes()

    def _setup_routes(self) -> None:
        @self.app.get("/health", summary="Health check")
        def health():
            return {"status": "ok", "version": APP_VERSION}

        @self.app.post("/one_rep_max")
        def one_rep_max(req: OneRepMaxRequest):
            try:
                return estimate_one_rep_max(req.weight, req.reps).model_dump(mode="json")
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @self.app.post("/suggestions")
        def suggestion(req: SuggestionRequest):
            last = req.last_workout
            if last is None and req.use_history_for_last:
                last = last_log_for(req.exercise_id, req.history)
            try:
                result = get_suggestion(
                    req.exercise_id,
                    last,
                    req.daily_log,
                    req.history,
                    req.now,
                    req.experience_level,
                    req.feedback_history,
                    policy=self.settings.overload,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            data = result.model_dump(mode="json")
            data["display"] = format_suggestion(result, self.settings.weight_unit)
            return data

        @self.app.post("/prs/check")
        def check_prs(req: PRCheckRequest):
            prs = check_all_prs(req.set_log, req.pr_history)
            name = req.exercise_name or (
                req.pr_history.exercise_id if req.pr_history else "this exercise"
            )
            return {
                "prs": [p.model_dump(mode="json") for p in prs],
                "message": generate_pr_message(prs, name),
            }

        @self.app.post("/deload")
        def deload(req: DeloadRequest):
            try:
                result = analyze_deload_need(
                    req.history,
                    req.experience_level,
                    req.last_deload_date,
                    now=req.now,
                    policy=self.settings.deload,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return result.model_dump(mode="json")

        @self.app.post("/forecast")
        def forecast(req: ForecastRequest):
            try:
                result = forecast_pr(
                    req.exercise_id,
                    req.exercise_name or req.exercise_id,
                    req.history,
                    req.experience_level,
                    req.weeks_to_project,
                    now=req.now,
                    policy=self.settings.forecast,
                    unit=self.settings.weight_unit,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"forecast": result.model_dump(mode="json") if result else None}

        @self.app.get("/strength/classify")
        def classify(
            exercise_id: str, one_rm: float, bodyweight: float, gender: str = "male"
        ):
            try:
                result = classify_strength_level(exercise_id, one_rm, bodyweight, gender)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"standard": result.model_dump(mode="json") if result else None}

        @self.app.post("/strength/score")
        def strength_score(req: StrengthScoreRequest):
            try:
                score = calculate_overall_strength_score(
                    req.personal_records, req.bodyweight, req.gender
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"score": score}


api = AnalyticsAPI()
app = api.app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app)
