import requests
from typing import Any, Iterable, Optional

from pydantic import BaseModel


def _payload(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: _payload(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_payload(v) for v in value]
    return value


class AnalyticsClient:
    """Simple REST client for the analytics API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, body: dict) -> Any:
        resp = requests.post(f"{self.base_url}{path}", json=_payload(body), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def health(self) -> dict:
        resp = requests.get(f"{self.base_url}/health", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def one_rep_max(self, weight: float, reps: int) -> dict:
        return self._post("/one_rep_max", {"weight": weight, "reps": reps})

    def suggestion(
        self,
        exercise_id: str,
        history: Iterable[Any] = (),
        *,
        last_workout: Any = None,
        daily_log: Any = None,
        now: Optional[str] = None,
        experience_level: str = "intermediate",
    ) -> dict:
        return self._post(
            "/suggestions",
            {
                "exercise_id": exercise_id,
                "last_workout": last_workout,
                "daily_log": daily_log,
                "history": list(history),
                "now": now,
                "experience_level": experience_level,
                "use_history_for_last": last_workout is None,
            },
        )

    def check_prs(self, set_log: Any, pr_history: Any = None, exercise_name: str = "") -> dict:
        return self._post(
            "/prs/check",
            {"set": set_log, "pr_history": pr_history, "exercise_name": exercise_name},
        )

    def deload(
        self,
        history: Iterable[Any],
        experience_level: str = "intermediate",
        last_deload_date: Optional[str] = None,
        now: Optional[str] = None,
    ) -> dict:
        return self._post(
            "/deload",
            {
                "history": list(history),
                "experience_level": experience_level,
                "last_deload_date": last_deload_date,
                "now": now,
            },
        )

    def forecast(
        self,
        exercise_id: str,
        history: Iterable[Any],
        exercise_name: str = "",
        experience_level: str = "intermediate",
        weeks_to_project: int = 8,
        now: Optional[str] = None,
    ) -> Optional[dict]:
        data = self._post(
            "/forecast",
            {
                "exercise_id": exercise_id,
                "exercise_name": exercise_name,
                "history": list(history),
                "experience_level": experience_level,
                "weeks_to_project": weeks_to_project,
                "now": now,
            },
        )
        return data["forecast"]

    def classify(
        self, exercise_id: str, one_rm: float, bodyweight: float, gender: str = "male"
    ) -> Optional[dict]:
        resp = requests.get(
            f"{self.base_url}/strength/classify",
            params={
                "exercise_id": exercise_id,
                "one_rm": one_rm,
                "bodyweight": bodyweight,
                "gender": gender,
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["standard"]

    def strength_score(self, personal_records: dict, bodyweight: float, gender: str = "male") -> int:
        data = self._post(
            "/strength/score",
            {"personal_records": personal_records, "bodyweight": bodyweight, "gender": gender},
        )
        return data["score"]
