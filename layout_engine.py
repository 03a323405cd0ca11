from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Protocol, Tuple

from algorithms import MathTools
from chart_specs import ChartLabel, ChartPalette, LayoutBox, Paint, PaintRole
from localization import Translator, translator as default_translator
from metric_pipeline import ChartSeries, ExerciseSummary
from settings_schema import ChartSettings

logger = logging.getLogger(__name__)

HEADER_EXERCISE_NAME = 0
HEADER_ONE_REP_MAX_WEIGHT = 1
HEADER_ONE_REP_MAX_COUNT = 2
HEADER_UNIT_LITERAL = 3

LEFT_LABEL_COUNT = 4
BOTTOM_LABEL_COUNT = 5

# Attempts at shrinking the plot before the vertical gutters give way.
PLOT_SHRINK_ATTEMPTS = 3


class LayoutError(ValueError):
    """Raised when a chart cannot be laid out on the given surface."""


@dataclass(frozen=True)
class ChartHeader:
    exercise_name: str
    best_estimated_max: int
    record_count: int

    @classmethod
    def from_summary(cls, summary: ExerciseSummary) -> "ChartHeader":
        return cls(
            summary.exercise_name,
            summary.best_estimated_max,
            summary.record_count,
        )

    def validate(self) -> None:
        if not self.exercise_name:
            raise LayoutError("chart header is missing the exercise name")
        if self.best_estimated_max is None or self.best_estimated_max < 0:
            raise LayoutError("chart header is missing the best estimated max")
        if self.record_count is None or self.record_count < 1:
            raise LayoutError("chart header needs a record count of at least 1")


class ChartCanvas(Protocol):
    """Drawing surface with text measurement."""

    width: int
    height: int

    def measure_text(self, text: str, paint: Paint) -> float:
        """Return the advance width of ``text``."""

    def text_bounds(self, text: str, paint: Paint) -> Tuple[int, int]:
        """Return the (width, height) of the bounding box of ``text``."""

    def draw_text(self, text: str, x: float, y: float, paint: Paint) -> None:
        """Draw ``text`` with its baseline starting at (x, y)."""

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, paint: Paint) -> None:
        ...

    def draw_circle(self, cx: float, cy: float, radius: float, paint: Paint) -> None:
        ...


class ChartCalculator(Protocol):
    """The drawing operations a laid out chart exposes."""

    def draw_left_label(self, which: int) -> None:
        ...

    def draw_horizontal_line(self, which: int) -> None:
        ...

    def draw_bottom_label(self, which: int) -> None:
        ...

    def draw_vertical_line(self, which: int) -> None:
        ...

    def draw_header_text(self) -> None:
        ...

    def draw_plotted_series(self) -> None:
        ...


class LayoutStage(IntEnum):
    CREATED = 0
    SURFACE_BOUNDS = 1
    MARGINS = 2
    LEFT_LABEL_TEXT = 3
    LABEL_SPECS = 4
    HORIZONTAL_BOUNDS = 5
    HORIZONTAL_FIT = 6
    VERTICAL_BOUNDS = 7
    VERTICAL_FIT = 8
    LABEL_PLACEMENT = 9


def _check_index(which: int, count: int) -> None:
    if not 0 <= which < count:
        raise IndexError(f"index {which} out of range 0..{count - 1}")


class LayoutEngine:
    """Computes chart geometry for one series on one surface and draws it.

    The layout runs to completion in the constructor:

    1. read the surface size and orientation (portrait iff height >= width)
    2. size the margin and the three gutters from the surface width
    3. derive the four left axis labels
    4. create label styles and place the header
    5. compute the horizontal plot bounds
    6. shrink the left gutter and text size until the date labels fit
    7. compute the vertical plot bounds
    8. shrink the plot and vertical gutters until everything fits the height
    9. place the axis labels against the final plot

    The draw methods only read the computed geometry.
    """

    def __init__(
        self,
        series: ChartSeries,
        header: ChartHeader,
        canvas: ChartCanvas,
        settings: ChartSettings | None = None,
        translator: Translator | None = None,
    ) -> None:
        header.validate()
        if len(series) == 0:
            raise LayoutError(f"no chart data for {header.exercise_name!r}")
        if len(series) > BOTTOM_LABEL_COUNT:
            raise LayoutError(
                f"a chart holds at most {BOTTOM_LABEL_COUNT} points, got {len(series)}"
            )
        if series.exercise_name != header.exercise_name:
            raise LayoutError(
                f"series for {series.exercise_name!r} does not match "
                f"header for {header.exercise_name!r}"
            )
        self.series = series
        self.header = header
        self.canvas = canvas
        self.settings = settings or ChartSettings()
        self.translator = translator or default_translator
        self.palette = ChartPalette.from_settings(self.settings)
        self.stage = LayoutStage.CREATED

        self.canvas_box = LayoutBox()
        self.margin = LayoutBox()
        self.gutter_above = LayoutBox()
        self.gutter_below = LayoutBox()
        self.gutter_left = LayoutBox()
        self.graph = LayoutBox()
        self.portrait = True

        self.left_labels: List[ChartLabel] = []
        self.bottom_labels: List[ChartLabel] = []
        self.header_labels: List[ChartLabel] = []
        self.axis_max = 0
        self.axis_min = 0
        self.label_step = 0
        self.text_size = self.settings.label_text_size

        self.grid_paint = self.palette.paint(PaintRole.GRAPH_GRID_LINES)
        self.plotted_line_paint = self.palette.paint(PaintRole.PLOTTED_LINES)
        self.plotted_circle_paint = self.palette.paint(PaintRole.PLOTTED_CIRCLES)

        self.horizontal_iterations = 0
        self.vertical_iterations = 0

        self._start_calculations()

    def _start_calculations(self) -> None:
        self._set_surface_bounds()
        self._set_margin_and_gutter_specs()
        self._set_left_label_text()
        self._set_label_specs()
        self._set_graph_horizontal_bounds()
        self._make_horizontal_layout_fit()
        self._set_graph_height()
        self._make_vertical_layout_fit()
        self._place_axis_labels()
        logger.debug(
            "Laid out %s on %dx%d (%s): text size %.1f, %d horizontal and %d vertical passes",
            self.header.exercise_name,
            self.canvas_box.width,
            self.canvas_box.height,
            "portrait" if self.portrait else "landscape",
            self.text_size,
            self.horizontal_iterations,
            self.vertical_iterations,
        )

    def _advance(self, stage: LayoutStage) -> None:
        if stage != self.stage + 1:
            raise RuntimeError(
                f"layout stage {stage.name} cannot follow {self.stage.name}"
            )
        self.stage = stage

    # ------------------------------------------------------------------
    # measurement helpers

    def _measure(self, label: ChartLabel) -> int:
        return int(self.canvas.measure_text(label.text, label.paint))

    def _half_measure(self, label: ChartLabel) -> int:
        return int(self.canvas.measure_text(label.text, label.paint) / 2)

    def _bounds(self, label: ChartLabel) -> Tuple[int, int]:
        width, height = self.canvas.text_bounds(label.text, label.paint)
        return int(width), int(height)

    # ------------------------------------------------------------------
    # stages

    def _set_surface_bounds(self) -> None:
        self._advance(LayoutStage.SURFACE_BOUNDS)
        width, height = int(self.canvas.width), int(self.canvas.height)
        if width <= 0 or height <= 0:
            raise LayoutError(f"surface size {width}x{height} is not drawable")
        self.canvas_box.set_all(0, 0, height, width)
        self.portrait = self.canvas_box.height >= self.canvas_box.width

    def _set_margin_and_gutter_specs(self) -> None:
        self._advance(LayoutStage.MARGINS)
        size = int(self.settings.margin_fraction * self.canvas_box.width)
        for box in (self.margin, self.gutter_above, self.gutter_left, self.gutter_below):
            box.set_all(0, 0, size, size)

    def _set_left_label_text(self) -> None:
        """Pick four axis values whose range splits into three equal integer steps."""
        self._advance(LayoutStage.LEFT_LABEL_TEXT)
        values = self.series.values
        self.axis_max = max(values)
        self.axis_min = MathTools.divisible_floor(self.axis_max, min(values))
        self.label_step = (self.axis_max - self.axis_min) // 3
        unit = self.translator.gettext(self.settings.weight_unit)
        for idx in range(LEFT_LABEL_COUNT):
            text = f"{self.axis_max - self.label_step * idx} {unit}"
            self.left_labels.append(
                ChartLabel(text, self.palette.paint(PaintRole.LABEL_TEXT))
            )

    def _set_label_specs(self) -> None:
        self._advance(LayoutStage.LABEL_SPECS)
        dates = self.series.labels
        dates += [""] * (BOTTOM_LABEL_COUNT - len(dates))
        for text in dates:
            self.bottom_labels.append(
                ChartLabel(text, self.palette.paint(PaintRole.LABEL_TEXT))
            )

        header_text = [
            self.header.exercise_name,
            str(self.header.best_estimated_max),
            self.translator.record_count_text(self.header.record_count),
            self.translator.gettext(self.settings.weight_unit),
        ]
        roles = [
            PaintRole.HEADER_TEXT_LARGE,
            PaintRole.HEADER_TEXT_LARGE,
            PaintRole.HEADER_TEXT_SMALL,
            PaintRole.HEADER_TEXT_SMALL,
        ]
        for text, role in zip(header_text, roles):
            self.header_labels.append(ChartLabel(text, self.palette.paint(role)))

        self._set_text_size_for_all_labels(self.text_size)
        self._place_header_labels()

    def _set_text_size_for_all_labels(self, text_size: float) -> None:
        self.text_size = text_size
        for label in self.left_labels + self.bottom_labels:
            label.paint.text_size = text_size

        if self.portrait:
            large, small = 1.25, 1.0
        else:
            large, small = 1.1, 0.9
        for idx in (HEADER_EXERCISE_NAME, HEADER_ONE_REP_MAX_WEIGHT):
            self.header_labels[idx].paint.text_size = text_size * large
        for idx in (HEADER_ONE_REP_MAX_COUNT, HEADER_UNIT_LITERAL):
            self.header_labels[idx].paint.text_size = text_size * small

    def _place_header_labels(self) -> None:
        """Exercise name and best max on the first line, tie count and unit below.

        For text boxes ``top`` is the baseline and ``bottom`` is baseline plus
        text height.
        """
        adjustment = 1.5 if self.portrait else 1.0
        band_top = int(self.margin.height * adjustment)
        right_edge = self.canvas_box.width - self.margin.width

        name = self.header_labels[HEADER_EXERCISE_NAME]
        name_w, name_h = self._bounds(name)
        top = band_top + name_h // 2
        name.box.set_all(top, self.margin.width, top + name_h, self.margin.width + name_w)

        best = self.header_labels[HEADER_ONE_REP_MAX_WEIGHT]
        best_w, best_h = self._bounds(best)
        top = band_top + best_h // 2
        best.box.set_all(top, right_edge - best_w, top + best_h, right_edge)

        second_line = name.box.top + name_h

        count = self.header_labels[HEADER_ONE_REP_MAX_COUNT]
        count_w, count_h = self._bounds(count)
        top = second_line + int(count_h * 0.25)
        count.box.set_all(top, self.margin.width, top + count_h, self.margin.width + count_w)

        unit = self.header_labels[HEADER_UNIT_LITERAL]
        unit_w, unit_h = self._bounds(unit)
        top = second_line + int(unit_h * 0.25)
        unit.box.set_all(top, right_edge - unit_w, top + unit_h, right_edge)

    def _left_label_max_width(self) -> int:
        return max(self._measure(label) for label in self.left_labels)

    def _set_graph_horizontal_bounds(self) -> None:
        self._advance(LayoutStage.HORIZONTAL_BOUNDS)
        self._set_graph_horizontal_size()

    def _set_graph_horizontal_size(self) -> None:
        self.graph.left = (
            self.margin.width + self._left_label_max_width() + self.gutter_left.width
        )
        self.graph.right = self.canvas_box.width - int(self.margin.width * 1.5)

    def _horizontal_demand(self) -> Tuple[int, int]:
        """Return (width the date labels need, span available between the end labels)."""
        needed = sum(self._measure(label) for label in self.bottom_labels)
        needed += self.settings.bottom_label_spacing * (BOTTOM_LABEL_COUNT - 1)
        needed += self.margin.width
        first = self.graph.left - self._half_measure(self.bottom_labels[0])
        last = self.graph.right - self._half_measure(self.bottom_labels[-1])
        return needed, last - first

    def _make_horizontal_layout_fit(self) -> None:
        """Alternate between narrowing the left gutter and shrinking text until the dates fit."""
        self._advance(LayoutStage.HORIZONTAL_FIT)
        passes = 0
        text_size = self.text_size
        while True:
            self.horizontal_iterations += 1
            needed, available = self._horizontal_demand()
            if needed <= available:
                break
            passes += 1
            if passes == 1:
                if self.gutter_left.width > 0:
                    self.gutter_left.right -= 1
            else:
                if text_size - 1 >= self.settings.min_text_size:
                    text_size -= 1
                    self._set_text_size_for_all_labels(text_size)
                elif self.gutter_left.width <= 0:
                    raise LayoutError(
                        f"surface too small: date labels need {needed}px, "
                        f"{available}px available at minimum text size"
                    )
                passes = 0
            self._set_graph_horizontal_size()

        if self.graph.width <= 0:
            raise LayoutError("surface too small: no horizontal room for the plot")
        self._place_header_labels()

    def _set_graph_height(self) -> None:
        self._advance(LayoutStage.VERTICAL_BOUNDS)
        self.graph.top = (
            self.header_labels[HEADER_UNIT_LITERAL].box.bottom + self.gutter_above.height
        )
        if self.portrait:
            # keep each grid cell close to square
            self.graph.bottom = self.graph.top + (self.graph.width // 4) * 3
        else:
            _, date_h = self._bounds(self.bottom_labels[0])
            self.graph.bottom = (
                self.canvas_box.height
                - self.margin.height // 2
                - date_h
                - self.gutter_below.height
            )
        if self.graph.bottom < self.graph.top:
            raise LayoutError("surface too small: no vertical room for the plot")

    def _vertical_demand(self) -> int:
        header = self.header_labels
        _, date_h = self._bounds(self.bottom_labels[0])
        return (
            int(self.margin.height * 1.5)
            + (header[HEADER_UNIT_LITERAL].box.bottom - header[HEADER_EXERCISE_NAME].box.top)
            + self.gutter_above.height
            + self.graph.height
            + self.gutter_below.height
            + date_h
        )

    def _make_vertical_layout_fit(self) -> None:
        """Shorten the plot three times, then both vertical gutters once, until it all fits."""
        self._advance(LayoutStage.VERTICAL_FIT)
        passes = 0
        while True:
            self.vertical_iterations += 1
            total = self._vertical_demand()
            if total <= self.canvas_box.height:
                break
            if (
                self.graph.height <= 0
                and self.gutter_above.height <= 0
                and self.gutter_below.height <= 0
            ):
                raise LayoutError(
                    f"surface too small: chart needs {total}px of "
                    f"{self.canvas_box.height}px height"
                )
            passes += 1
            if passes <= PLOT_SHRINK_ATTEMPTS:
                if self.graph.height > 0:
                    self.graph.bottom -= 1
            else:
                if self.gutter_above.height > 0:
                    self.gutter_above.bottom -= 1
                    self.graph.top -= 1
                    self.graph.bottom -= 1
                if self.gutter_below.height > 0:
                    self.gutter_below.bottom -= 1
                passes = 0

    def _place_axis_labels(self) -> None:
        self._advance(LayoutStage.LABEL_PLACEMENT)
        row = self.graph.height // 3
        for idx, label in enumerate(self.left_labels):
            _, height = self._bounds(label)
            top = self.graph.top + row * idx + height // 2
            left = self.margin.width
            label.box.set_all(top, left, top + height, left + self._measure(label))

        column = self.graph.width // 4
        _, date_h = self._bounds(self.bottom_labels[0])
        top = self.graph.bottom + self.gutter_below.height + date_h
        for idx, label in enumerate(self.bottom_labels):
            width, height = self._bounds(label)
            left = column * idx + self.graph.left - width // 2
            label.box.set_all(top, left, top + height, left + width)

    # ------------------------------------------------------------------
    # geometry readers

    def plot_points(self) -> List[Tuple[float, float]]:
        column = self.graph.width // 4
        span = self.label_step * 3
        points = []
        for idx, value in enumerate(self.series.values):
            x = float(column * idx + self.graph.left)
            fraction = (self.axis_max - value) / span
            y = self.graph.height * fraction + self.graph.top
            points.append((x, y))
        return points

    def geometry(self) -> dict:
        def labels(items: List[ChartLabel]) -> List[dict]:
            return [
                {
                    "text": label.text,
                    "text_size": label.paint.text_size,
                    "box": label.box.as_dict(),
                }
                for label in items
            ]

        return {
            "exercise": self.header.exercise_name,
            "portrait": self.portrait,
            "text_size": self.text_size,
            "canvas": self.canvas_box.as_dict(),
            "margin": self.margin.as_dict(),
            "gutters": {
                "above": self.gutter_above.as_dict(),
                "below": self.gutter_below.as_dict(),
                "left": self.gutter_left.as_dict(),
            },
            "graph": self.graph.as_dict(),
            "axis": {
                "max": self.axis_max,
                "min": self.axis_min,
                "step": self.label_step,
            },
            "header_labels": labels(self.header_labels),
            "left_labels": labels(self.left_labels),
            "bottom_labels": labels(self.bottom_labels),
            "plot_points": [list(p) for p in self.plot_points()],
        }

    # ------------------------------------------------------------------
    # drawing

    def draw_left_label(self, which: int) -> None:
        _check_index(which, LEFT_LABEL_COUNT)
        label = self.left_labels[which]
        self.canvas.draw_text(label.text, label.box.left, label.box.top, label.paint)

    def draw_horizontal_line(self, which: int) -> None:
        _check_index(which, LEFT_LABEL_COUNT)
        y = self.graph.top + (self.graph.height // 3) * which
        x_start = self.graph.left - self.gutter_left.width // 2
        x_end = self.canvas_box.width - self.margin.width
        self.canvas.draw_line(x_start, y, x_end, y, self.grid_paint)

    def draw_bottom_label(self, which: int) -> None:
        _check_index(which, BOTTOM_LABEL_COUNT)
        label = self.bottom_labels[which]
        if not label.text:
            return
        self.canvas.draw_text(label.text, label.box.left, label.box.top, label.paint)

    def draw_vertical_line(self, which: int) -> None:
        _check_index(which, BOTTOM_LABEL_COUNT)
        x = (self.graph.width // 4) * which + self.graph.left
        y_end = self.graph.top + self.graph.height + self.gutter_below.height // 2
        self.canvas.draw_line(x, self.graph.top, x, y_end, self.grid_paint)

    def draw_header_text(self) -> None:
        for label in self.header_labels:
            self.canvas.draw_text(label.text, label.box.left, label.box.top, label.paint)

    def draw_plotted_series(self) -> None:
        radius = self.settings.circle_radius
        previous = None
        for x, y in self.plot_points():
            self.canvas.draw_circle(x, y, radius, self.plotted_circle_paint)
            if previous is not None:
                self.canvas.draw_line(x, y, previous[0], previous[1], self.plotted_line_paint)
            previous = (x, y)


def draw_chart(calculator: ChartCalculator) -> None:
    """Issue every draw operation of a laid out chart in paint order."""
    calculator.draw_header_text()
    for idx in range(LEFT_LABEL_COUNT):
        calculator.draw_left_label(idx)
        calculator.draw_horizontal_line(idx)
    for idx in range(BOTTOM_LABEL_COUNT):
        calculator.draw_bottom_label(idx)
        calculator.draw_vertical_line(idx)
    calculator.draw_plotted_series()
