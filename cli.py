import argparse
import datetime
import json
import logging
import sys
from typing import List, Optional

from pydantic import TypeAdapter

from algorithms.one_rep_max import estimate_one_rep_max
from config import load_engine_settings
from deload_service import analyze_deload_need
from forecast_service import forecast_pr
from models import DailyLog, SetLog, WorkoutSession, as_utc, utc_now
from pr_service import build_pr_history, check_all_prs, generate_pr_message
from recommendation_service import format_suggestion, get_suggestion, last_log_for
from stats_service import StatisticsService
from strength_service import classify_strength_level

logger = logging.getLogger(__name__)

_HISTORY = TypeAdapter(List[WorkoutSession])


def load_history(path: str) -> List[WorkoutSession]:
    """Read sessions from a JSON list or a ``{"history": [...]}`` document."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("history", [])
    history = _HISTORY.validate_python(data)
    logger.debug("loaded %d sessions from %s", len(history), path)
    return history


def _parse_time(value: Optional[str]) -> Optional[datetime.datetime]:
    if value is None:
        return None
    return as_utc(datetime.datetime.fromisoformat(value))


def _print(data) -> None:
    print(json.dumps(data, indent=2))


def cmd_one_rm(args, settings) -> None:
    _print(estimate_one_rep_max(args.weight, args.reps).model_dump(mode="json"))


def cmd_prs(args, settings) -> None:
    history = load_history(args.history)
    pr_history = build_pr_history(args.exercise, history)
    set_log = SetLog(weight=args.weight, reps=args.reps, rpe=args.rpe)
    prs = check_all_prs(set_log, pr_history)
    _print(
        {
            "prs": [p.model_dump(mode="json") for p in prs],
            "message": generate_pr_message(prs, args.name or args.exercise),
        }
    )


def cmd_suggest(args, settings) -> None:
    history = load_history(args.history)
    now = _parse_time(args.now) or utc_now()
    daily = None
    if args.sleep is not None or args.stress is not None:
        daily = DailyLog(date=now.date(), sleep_hours=args.sleep, stress_level=args.stress)
    suggestion = get_suggestion(
        args.exercise,
        last_log_for(args.exercise, history),
        daily,
        history,
        now,
        args.level,
        policy=settings.overload,
    )
    data = suggestion.model_dump(mode="json")
    data["display"] = format_suggestion(suggestion, settings.weight_unit)
    _print(data)


def cmd_deload(args, settings) -> None:
    history = load_history(args.history)
    result = analyze_deload_need(
        history,
        args.level,
        _parse_time(args.last_deload),
        now=_parse_time(args.now),
        policy=settings.deload,
    )
    _print(result.model_dump(mode="json"))


def cmd_forecast(args, settings) -> None:
    history = load_history(args.history)
    result = forecast_pr(
        args.exercise,
        args.name or args.exercise,
        history,
        args.level,
        args.weeks,
        now=_parse_time(args.now),
        policy=settings.forecast,
        unit=settings.weight_unit,
    )
    _print(result.model_dump(mode="json") if result else None)


def cmd_classify(args, settings) -> None:
    result = classify_strength_level(args.exercise, args.one_rm, args.bodyweight, args.gender)
    _print(result.model_dump(mode="json") if result else None)


def cmd_export(args, settings) -> None:
    history = load_history(args.history)
    stats = StatisticsService(history, _parse_time(args.now))
    if args.weekly:
        frame = stats.weekly_volume(args.exercise)
    else:
        frame = stats.progression_frame(args.exercise, args.weeks)
    frame.to_csv(args.out, index=False)
    print(f"Wrote {len(frame)} rows to {args.out}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Training analytics commands")
    parser.add_argument("--settings", default="settings.yaml")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--now", help="ISO timestamp used as the current time")
    sub = parser.add_subparsers(dest="cmd", required=True)

    orm = sub.add_parser("one-rm")
    orm.add_argument("--weight", type=float, required=True)
    orm.add_argument("--reps", type=int, required=True)
    orm.set_defaults(func=cmd_one_rm)

    prs = sub.add_parser("prs")
    prs.add_argument("--history", required=True)
    prs.add_argument("--exercise", required=True)
    prs.add_argument("--name")
    prs.add_argument("--weight", type=float, required=True)
    prs.add_argument("--reps", type=int, required=True)
    prs.add_argument("--rpe", type=float)
    prs.set_defaults(func=cmd_prs)

    sug = sub.add_parser("suggest")
    sug.add_argument("--history", required=True)
    sug.add_argument("--exercise", required=True)
    sug.add_argument("--level", default="intermediate")
    sug.add_argument("--sleep", type=float)
    sug.add_argument("--stress", type=float)
    sug.set_defaults(func=cmd_suggest)

    dl = sub.add_parser("deload")
    dl.add_argument("--history", required=True)
    dl.add_argument("--level", default="intermediate")
    dl.add_argument("--last-deload", dest="last_deload")
    dl.set_defaults(func=cmd_deload)

    fc = sub.add_parser("forecast")
    fc.add_argument("--history", required=True)
    fc.add_argument("--exercise", required=True)
    fc.add_argument("--name")
    fc.add_argument("--level", default="intermediate")
    fc.add_argument("--weeks", type=int, default=8)
    fc.set_defaults(func=cmd_forecast)

    cls = sub.add_parser("classify")
    cls.add_argument("--exercise", required=True)
    cls.add_argument("--one-rm", dest="one_rm", type=float, required=True)
    cls.add_argument("--bodyweight", type=float, required=True)
    cls.add_argument("--gender", choices=["male", "female"], default="male")
    cls.set_defaults(func=cmd_classify)

    exp = sub.add_parser("export")
    exp.add_argument("--history", required=True)
    exp.add_argument("--exercise")
    exp.add_argument("--weeks", type=int, default=0)
    exp.add_argument("--weekly", action="store_true")
    exp.add_argument("--out", default="progression.csv")
    exp.set_defaults(func=cmd_export)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.cmd == "export" and not args.weekly and not args.exercise:
        parser.error("export requires --exercise unless --weekly is given")
    try:
        settings = load_engine_settings(args.settings)
        args.func(args, settings)
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
