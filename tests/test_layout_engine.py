import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from chart_specs import PaintRole
from layout_engine import (
    ChartHeader,
    LayoutEngine,
    LayoutError,
    LayoutStage,
    draw_chart,
)
from localization import Translator
from metric_pipeline import ChartPoint, ChartSeries
from settings_schema import ChartSettings

DAY_MS = 86400000


class RecordingCanvas:
    """Canvas with fixed-pitch text metrics that records draw calls."""

    def __init__(self, width: int, height: int, height_factor: float = 0.7) -> None:
        self.width = width
        self.height = height
        self.height_factor = height_factor
        self.calls = []

    def measure_text(self, text, paint):
        return len(text) * paint.text_size * 0.5

    def text_bounds(self, text, paint):
        return int(self.measure_text(text, paint)), int(paint.text_size * self.height_factor)

    def draw_text(self, text, x, y, paint):
        self.calls.append(("text", text, x, y, paint.role))

    def draw_line(self, x0, y0, x1, y1, paint):
        self.calls.append(("line", x0, y0, x1, y1, paint.role))

    def draw_circle(self, cx, cy, radius, paint):
        self.calls.append(("circle", cx, cy, radius, paint.role))

    def of_kind(self, kind):
        return [c for c in self.calls if c[0] == kind]


def make_series(name="Back Squat", values=(60, 195, 280, 280)):
    start = 1507680000000
    points = tuple(
        ChartPoint(start + i * DAY_MS, f"Oct {11 + i}", v) for i, v in enumerate(values)
    )
    return ChartSeries(name, points)


def make_engine(width=1080, height=1920, series=None, header=None, **canvas_kw):
    if series is None:
        series = make_series()
    if header is None:
        header = ChartHeader(series.exercise_name, max(series.values), 2)
    canvas = RecordingCanvas(width, height, **canvas_kw)
    return LayoutEngine(series, header, canvas, ChartSettings(), Translator())


class PortraitLayoutTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()

    def test_runs_every_stage(self) -> None:
        self.assertIs(self.engine.stage, LayoutStage.LABEL_PLACEMENT)
        self.assertTrue(self.engine.portrait)

    def test_margin_and_gutters(self) -> None:
        self.assertEqual(self.engine.margin.width, 54)
        self.assertEqual(self.engine.gutter_above.height, 54)
        self.assertEqual(self.engine.gutter_below.height, 54)
        self.assertEqual(self.engine.gutter_left.width, 50)

    def test_left_labels(self) -> None:
        self.assertEqual(self.engine.axis_max, 280)
        self.assertEqual(self.engine.axis_min, 55)
        self.assertEqual(self.engine.label_step, 75)
        self.assertEqual(
            [label.text for label in self.engine.left_labels],
            ["280 lbs", "205 lbs", "130 lbs", "55 lbs"],
        )

    def test_horizontal_fit(self) -> None:
        self.assertEqual(self.engine.text_size, 48.0)
        self.assertEqual(self.engine.horizontal_iterations, 9)
        graph = self.engine.graph
        self.assertEqual((graph.left, graph.right), (272, 999))

    def test_vertical_bounds(self) -> None:
        graph = self.engine.graph
        self.assertEqual((graph.top, graph.bottom), (239, 782))
        self.assertEqual(self.engine.vertical_iterations, 1)

    def test_header_text_sizes(self) -> None:
        sizes = [label.paint.text_size for label in self.engine.header_labels]
        self.assertEqual(sizes, [60.0, 60.0, 48.0, 48.0])
        self.assertEqual(
            [label.text for label in self.engine.header_labels],
            ["Back Squat", "280", "2 RM Records", "lbs"],
        )

    def test_header_positions(self) -> None:
        name, best, count, unit = self.engine.header_labels
        self.assertEqual((name.box.top, name.box.left), (102, 54))
        self.assertEqual(best.box.right, 1080 - 54)
        self.assertEqual(count.box.top, 152)
        self.assertEqual(unit.box.bottom, 185)

    def test_axis_label_positions(self) -> None:
        first = self.engine.left_labels[0]
        self.assertEqual((first.box.top, first.box.left), (255, 54))
        self.assertEqual(self.engine.left_labels[1].box.top, 255 + 181)
        dates = self.engine.bottom_labels
        self.assertEqual(dates[0].box.top, 869)
        self.assertEqual(dates[0].box.left, 200)
        self.assertEqual(dates[1].box.left, 200 + 181)

    def test_missing_dates_are_blank(self) -> None:
        self.assertEqual(
            [label.text for label in self.engine.bottom_labels],
            ["Oct 11", "Oct 12", "Oct 13", "Oct 14", ""],
        )

    def test_plot_points(self) -> None:
        points = self.engine.plot_points()
        self.assertEqual([x for x, _ in points], [272.0, 453.0, 634.0, 815.0])
        self.assertAlmostEqual(points[0][1], 543 * 220 / 225 + 239)
        self.assertAlmostEqual(points[2][1], 239.0)

    def test_geometry(self) -> None:
        geo = self.engine.geometry()
        self.assertEqual(geo["exercise"], "Back Squat")
        self.assertTrue(geo["portrait"])
        self.assertEqual(geo["graph"], {"top": 239, "left": 272, "bottom": 782, "right": 999})
        self.assertEqual(geo["axis"], {"max": 280, "min": 55, "step": 75})
        self.assertEqual(len(geo["bottom_labels"]), 5)
        self.assertEqual(len(geo["plot_points"]), 4)


class DrawingTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.canvas = self.engine.canvas

    def test_draw_chart_paint_order(self) -> None:
        draw_chart(self.engine)
        texts = self.canvas.of_kind("text")
        self.assertEqual(len(texts), 12)
        self.assertEqual(len(self.canvas.of_kind("line")), 12)
        self.assertEqual(len(self.canvas.of_kind("circle")), 4)
        self.assertEqual(
            [c[1] for c in texts[:6]],
            ["Back Squat", "280", "2 RM Records", "lbs", "280 lbs", "205 lbs"],
        )
        self.assertEqual(self.canvas.calls[5][0], "line")
        self.assertEqual(self.canvas.calls[-1][0], "line")

    def test_horizontal_line(self) -> None:
        self.engine.draw_horizontal_line(1)
        self.assertEqual(
            self.canvas.calls,
            [("line", 247, 239 + 181, 1026, 239 + 181, PaintRole.GRAPH_GRID_LINES)],
        )

    def test_vertical_line(self) -> None:
        self.engine.draw_vertical_line(2)
        self.assertEqual(
            self.canvas.calls,
            [("line", 634, 239, 634, 809, PaintRole.GRAPH_GRID_LINES)],
        )

    def test_text_drawn_at_box_origin(self) -> None:
        self.engine.draw_left_label(0)
        self.assertEqual(
            self.canvas.calls, [("text", "280 lbs", 54, 255, PaintRole.LABEL_TEXT)]
        )

    def test_blank_date_is_not_drawn(self) -> None:
        self.engine.draw_bottom_label(4)
        self.assertEqual(self.canvas.calls, [])

    def test_plotted_series_connects_points(self) -> None:
        self.engine.draw_plotted_series()
        kinds = [c[0] for c in self.canvas.calls]
        self.assertEqual(
            kinds, ["circle", "circle", "line", "circle", "line", "circle", "line"]
        )
        circle = self.canvas.calls[0]
        self.assertEqual(circle[3], 10.0)
        self.assertIs(circle[4], PaintRole.PLOTTED_CIRCLES)

    def test_index_out_of_range(self) -> None:
        with self.assertRaises(IndexError):
            self.engine.draw_left_label(4)
        with self.assertRaises(IndexError):
            self.engine.draw_horizontal_line(-1)
        with self.assertRaises(IndexError):
            self.engine.draw_bottom_label(5)
        with self.assertRaises(IndexError):
            self.engine.draw_vertical_line(5)

    def test_stages_cannot_rerun(self) -> None:
        with self.assertRaises(RuntimeError):
            self.engine._set_margin_and_gutter_specs()


class LayoutVariantsTestCase(unittest.TestCase):
    def test_landscape(self) -> None:
        engine = make_engine(width=1920, height=1080)
        self.assertFalse(engine.portrait)
        size = engine.text_size
        sizes = [label.paint.text_size for label in engine.header_labels]
        self.assertAlmostEqual(sizes[0], size * 1.1)
        self.assertAlmostEqual(sizes[2], size * 0.9)
        date_h = int(size * 0.7)
        self.assertEqual(engine.margin.width, 96)
        self.assertEqual(engine.graph.bottom, 1080 - 48 - date_h - 96)
        self.assertEqual(engine.vertical_iterations, 1)

    def test_vertical_fit_shrinks_plot_and_gutters(self) -> None:
        engine = make_engine(width=600, height=600, height_factor=4.0)
        self.assertGreater(engine.vertical_iterations, 1)
        self.assertLess(engine.gutter_above.height, 30)
        self.assertLessEqual(engine._vertical_demand(), 600)
        self.assertGreaterEqual(engine.graph.height, 0)
        unit = engine.header_labels[3]
        self.assertEqual(engine.graph.top, unit.box.bottom + engine.gutter_above.height)

    def test_single_value_axis(self) -> None:
        engine = make_engine(series=make_series(values=(300,)))
        self.assertEqual(
            [label.text for label in engine.left_labels],
            ["300 lbs", "295 lbs", "290 lbs", "285 lbs"],
        )
        self.assertEqual(engine.plot_points()[0], (float(engine.graph.left), float(engine.graph.top)))
        self.assertEqual([label.text for label in engine.bottom_labels][1:], [""] * 4)

    def test_five_points(self) -> None:
        engine = make_engine(series=make_series(values=(100, 120, 140, 160, 180)))
        self.assertEqual(engine.bottom_labels[4].text, "Oct 15")
        self.assertEqual(engine.plot_points()[4][1], float(engine.graph.top))

    def test_text_stops_at_minimum_size(self) -> None:
        settings = ChartSettings(min_text_size=50)
        series = make_series()
        engine = LayoutEngine(
            series,
            ChartHeader("Back Squat", 280, 2),
            RecordingCanvas(1080, 1920),
            settings,
            Translator(),
        )
        self.assertEqual(engine.text_size, 50.0)
        self.assertGreaterEqual(engine.text_size, settings.min_text_size)
        # the gutter keeps shrinking once the text is at its floor
        self.assertEqual(engine.gutter_left.width, 31)
        needed, available = engine._horizontal_demand()
        self.assertLessEqual(needed, available)
        for label in engine.left_labels + engine.bottom_labels:
            self.assertEqual(label.paint.text_size, 50.0)

    def test_kilograms(self) -> None:
        series = make_series()
        header = ChartHeader("Back Squat", 280, 1)
        engine = LayoutEngine(
            series,
            header,
            RecordingCanvas(1080, 1920),
            ChartSettings(weight_unit="kg"),
            Translator(),
        )
        self.assertEqual(engine.left_labels[0].text, "280 kg")
        self.assertEqual(engine.header_labels[2].text, "1 RM Record")


class LayoutErrorTestCase(unittest.TestCase):
    def test_surface_too_small(self) -> None:
        with self.assertRaises(LayoutError):
            make_engine(width=100, height=100)

    def test_zero_surface(self) -> None:
        with self.assertRaises(LayoutError):
            make_engine(width=0, height=100)

    def test_empty_series(self) -> None:
        series = ChartSeries("Back Squat")
        with self.assertRaises(LayoutError):
            make_engine(series=series, header=ChartHeader("Back Squat", 280, 1))

    def test_too_many_points(self) -> None:
        with self.assertRaises(LayoutError):
            make_engine(series=make_series(values=(1, 2, 3, 4, 5, 6)))

    def test_header_mismatch(self) -> None:
        with self.assertRaises(LayoutError):
            make_engine(header=ChartHeader("Deadlift", 280, 1))

    def test_invalid_header(self) -> None:
        for header in (
            ChartHeader("", 280, 1),
            ChartHeader("Back Squat", -5, 1),
            ChartHeader("Back Squat", 280, 0),
        ):
            with self.subTest(header=header):
                with self.assertRaises(LayoutError):
                    make_engine(header=header)


if __name__ == "__main__":
    unittest.main()
