import logging
import os
from fastapi import FastAPI, HTTPException, Request, Response

from chart_service import ChartService, UnknownExerciseError
from config import APP_VERSION, load_chart_settings
from layout_engine import LayoutError
from metric_pipeline import InvalidRepCountError, MalformedInputError, MetricPipeline

logger = logging.getLogger(__name__)


class ChartAPI:
    """Provides REST endpoints for estimated max summaries and charts."""

    def __init__(
        self,
        csv_path: str | None = None,
        yaml_path: str = "settings.yaml",
    ) -> None:
        self.settings = load_chart_settings(yaml_path)
        self.pipeline = MetricPipeline.from_settings(self.settings)
        self.charts = ChartService(self.pipeline, self.settings)
        if csv_path and os.path.exists(csv_path):
            self.pipeline.load_csv(csv_path)
            self.pipeline.compute_estimated_maxes()
        self.app = FastAPI(
            title="Workout Chart API",
            description="Estimated one-rep max summaries and history charts",
            version=APP_VERSION,
        )
        self._setup_routes()

    def _chart_errors(self, exc: Exception) -> HTTPException:
        if isinstance(exc, UnknownExerciseError):
            return HTTPException(status_code=404, detail=str(exc))
        if isinstance(exc, LayoutError):
            return HTTPException(status_code=400, detail=str(exc))
        return HTTPException(status_code=409, detail=str(exc))

    def _setup_routes(self) -> None:
        @self.app.get(
            "/health",
            summary="Health check",
            description="Report whether estimated maxes have been computed.",
        )
        def health():
            return {
                "status": "ok",
                "records": len(self.pipeline.records()),
                "ready": self.pipeline.has_computed,
            }

        @self.app.post("/workouts/import")
        async def import_workouts(request: Request):
            body = (await request.body()).decode("utf-8")
            try:
                records = self.pipeline.ingest(body, strict=True)
            except MalformedInputError as e:
                raise HTTPException(status_code=400, detail=str(e))
            try:
                self.pipeline.compute_estimated_maxes()
            except InvalidRepCountError as e:
                self.pipeline.discard(r.id for r in records)
                if not self.pipeline.is_empty:
                    self.pipeline.compute_estimated_maxes()
                logger.warning("Rejected workout import: %s", e)
                raise HTTPException(status_code=400, detail=str(e))
            return {"imported": len(records)}

        @self.app.get("/exercises")
        def list_exercises():
            return self.charts.exercise_list()

        @self.app.get("/exercises/{name}/series")
        def exercise_series(name: str):
            try:
                return self.charts.series_for(name).as_list()
            except (UnknownExerciseError, RuntimeError) as e:
                raise self._chart_errors(e)

        @self.app.get("/exercises/{name}/layout")
        def exercise_layout(name: str, width: int | None = None, height: int | None = None):
            try:
                return self.charts.layout_geometry(name, width, height)
            except (UnknownExerciseError, LayoutError, RuntimeError) as e:
                raise self._chart_errors(e)

        @self.app.get("/exercises/{name}/chart.png")
        def exercise_chart(name: str, width: int | None = None, height: int | None = None):
            try:
                data = self.charts.render_png(name, width, height)
            except (UnknownExerciseError, LayoutError, RuntimeError) as e:
                raise self._chart_errors(e)
            return Response(content=data, media_type="image/png")


if __name__ == "__main__":
    import uvicorn

    api = ChartAPI(os.environ.get("WORKOUT_CSV", "workoutData.txt"))
    uvicorn.run(api.app)
