import argparse
import logging
import sys

from chart_service import ChartService, UnknownExerciseError
from config import load_chart_settings
from metric_pipeline import MetricPipeline

logger = logging.getLogger(__name__)


def load_service(csv_path: str, settings_path: str = "settings.yaml") -> ChartService:
    settings = load_chart_settings(settings_path)
    pipeline = MetricPipeline.from_settings(settings)
    pipeline.load_csv(csv_path, strict=True)
    pipeline.compute_estimated_maxes()
    return ChartService(pipeline, settings)


def print_summary(service: ChartService) -> None:
    for row in service.exercise_list():
        print(
            f"{row['exercise']}: {row['best_estimated_max']} {row['unit']} "
            f"({row['record_text']})"
        )


def print_series(service: ChartService, exercise: str) -> None:
    for point in service.series_for(exercise):
        print(f"{point.label}: {point.value}")


def write_chart(
    service: ChartService,
    exercise: str,
    out_path: str,
    width: int | None = None,
    height: int | None = None,
) -> None:
    data = service.render_png(exercise, width, height)
    with open(out_path, "wb") as f:
        f.write(data)
    print(f"Chart written to {out_path}")


def serve(csv_path: str, settings_path: str, host: str, port: int) -> None:
    import uvicorn
    from rest_api import ChartAPI

    api = ChartAPI(csv_path, settings_path)
    uvicorn.run(api.app, host=host, port=port)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Estimated one-rep max charts")
    parser.add_argument("--settings", default="settings.yaml")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    summ = sub.add_parser("summary")
    summ.add_argument("--csv", required=True)

    ser = sub.add_parser("series")
    ser.add_argument("--csv", required=True)
    ser.add_argument("--exercise", required=True)

    chart = sub.add_parser("chart")
    chart.add_argument("--csv", required=True)
    chart.add_argument("--exercise", required=True)
    chart.add_argument("--out", default="chart.png")
    chart.add_argument("--width", type=int)
    chart.add_argument("--height", type=int)

    srv = sub.add_parser("serve")
    srv.add_argument("--csv", default="workoutData.txt")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "serve":
        serve(args.csv, args.settings, args.host, args.port)
        return 0

    try:
        service = load_service(args.csv, args.settings)
        if args.cmd == "summary":
            print_summary(service)
        elif args.cmd == "series":
            print_series(service, args.exercise)
        elif args.cmd == "chart":
            write_chart(service, args.exercise, args.out, args.width, args.height)
    except (OSError, ValueError, UnknownExerciseError) as e:
        logger.debug("%s command failed", args.cmd, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
