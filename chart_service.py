from __future__ import annotations
import logging
from typing import Dict, List

from chart_surface import PillowCanvas
from layout_engine import ChartCanvas, ChartHeader, LayoutEngine, LayoutError, draw_chart
from localization import Translator
from metric_pipeline import ChartSeries, ExerciseSummary, MetricPipeline
from settings_schema import ChartSettings

logger = logging.getLogger(__name__)

MAX_SURFACE_SIZE = 8192


class UnknownExerciseError(LookupError):
    """Raised when no records exist for the requested exercise."""


class ChartService:
    """Render estimated max charts from a metric pipeline."""

    def __init__(
        self,
        pipeline: MetricPipeline,
        settings: ChartSettings | None = None,
        translator: Translator | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.settings = settings or ChartSettings()
        self.translator = translator or Translator()
        self.translator.set_language(self.settings.language)

    def _surface(self, width: int | None, height: int | None) -> PillowCanvas:
        canvas_size = {
            "width": self.settings.chart_width if width is None else width,
            "height": self.settings.chart_height if height is None else height,
        }
        for name, value in canvas_size.items():
            if not 0 < value <= MAX_SURFACE_SIZE:
                raise LayoutError(
                    f"chart {name} must be between 1 and {MAX_SURFACE_SIZE}, got {value}"
                )
        return PillowCanvas.from_settings(
            self.settings, canvas_size["width"], canvas_size["height"]
        )

    def _require_ready(self) -> None:
        if not self.pipeline.has_computed:
            raise RuntimeError("metrics have not been computed")

    def exercise_list(self) -> List[Dict[str, object]]:
        """Rows for an exercise list: name, best max, tie count text and unit."""
        unit = self.translator.gettext(self.settings.weight_unit)
        rows = []
        for summary in self.pipeline.exercise_summaries().values():
            row = summary.as_dict()
            row["record_text"] = summary.record_text(self.translator)
            row["unit"] = unit
            rows.append(row)
        return rows

    def summary_for(self, exercise: str) -> ExerciseSummary:
        self._require_ready()
        summary = self.pipeline.exercise_summary(exercise)
        if summary is None:
            raise UnknownExerciseError(f"no records for exercise {exercise!r}")
        return summary

    def series_for(self, exercise: str) -> ChartSeries:
        self.summary_for(exercise)
        return self.pipeline.chart_series(exercise)

    def build_layout(self, exercise: str, canvas: ChartCanvas) -> LayoutEngine:
        header = ChartHeader.from_summary(self.summary_for(exercise))
        series = self.pipeline.chart_series(exercise)
        return LayoutEngine(series, header, canvas, self.settings, self.translator)

    def layout_geometry(self, exercise: str, width: int | None = None, height: int | None = None) -> dict:
        canvas = self._surface(width, height)
        return self.build_layout(exercise, canvas).geometry()

    def render_png(self, exercise: str, width: int | None = None, height: int | None = None) -> bytes:
        canvas = self._surface(width, height)
        engine = self.build_layout(exercise, canvas)
        draw_chart(engine)
        logger.info(
            "Rendered %s chart at %dx%d", exercise, canvas.width, canvas.height
        )
        return canvas.to_png()
