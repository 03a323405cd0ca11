from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum

UNSET = -1


class LayoutBox:
    """A pixel rectangle whose edges may still be unset.

    Width and height read as ``UNSET`` until both of their edges are known.
    """

    def __init__(
        self,
        top: int = UNSET,
        left: int = UNSET,
        bottom: int = UNSET,
        right: int = UNSET,
    ) -> None:
        self.top = top
        self.left = left
        self.bottom = bottom
        self.right = right

    def set_all(self, top: int, left: int, bottom: int, right: int) -> None:
        self.top = top
        self.left = left
        self.bottom = bottom
        self.right = right

    @property
    def width(self) -> int:
        if self.left == UNSET or self.right == UNSET:
            return UNSET
        return self.right - self.left

    @property
    def height(self) -> int:
        if self.top == UNSET or self.bottom == UNSET:
            return UNSET
        return self.bottom - self.top

    def as_dict(self) -> dict:
        return {
            "top": self.top,
            "left": self.left,
            "bottom": self.bottom,
            "right": self.right,
        }

    def __repr__(self) -> str:
        return (
            f"LayoutBox(top={self.top}, left={self.left}, "
            f"bottom={self.bottom}, right={self.right})"
        )


class PaintRole(IntEnum):
    LABEL_TEXT = 0
    HEADER_TEXT_LARGE = 1
    HEADER_TEXT_SMALL = 2
    GRAPH_GRID_LINES = 3
    PLOTTED_CIRCLES = 4
    PLOTTED_LINES = 5


@dataclass
class Paint:
    """Drawing style for one visual element."""

    role: PaintRole
    color: str
    text_size: float = 0.0
    stroke_width: float = 1.0
    fill: bool = False


@dataclass
class ChartLabel:
    text: str
    paint: Paint
    box: LayoutBox = field(default_factory=LayoutBox)


class ChartPalette:
    """Builds a fresh :class:`Paint` for each element from chart settings."""

    def __init__(
        self,
        color_primary: str = "#212121",
        color_secondary: str = "#757575",
        color_grid_lines: str = "#e0e0e0",
        color_plots: str = "#ff4b4b",
        line_stroke_width: float = 3.0,
    ) -> None:
        self.colors = {
            PaintRole.LABEL_TEXT: color_primary,
            PaintRole.HEADER_TEXT_LARGE: color_primary,
            PaintRole.HEADER_TEXT_SMALL: color_secondary,
            PaintRole.GRAPH_GRID_LINES: color_grid_lines,
            PaintRole.PLOTTED_CIRCLES: color_plots,
            PaintRole.PLOTTED_LINES: color_plots,
        }
        self.line_stroke_width = line_stroke_width

    @classmethod
    def from_settings(cls, settings) -> "ChartPalette":
        return cls(
            settings.color_primary,
            settings.color_secondary,
            settings.color_grid_lines,
            settings.color_plots,
            settings.line_stroke_width,
        )

    def paint(self, role: PaintRole) -> Paint:
        paint = Paint(role=role, color=self.colors[role])
        if role in (PaintRole.GRAPH_GRID_LINES, PaintRole.PLOTTED_LINES):
            paint.stroke_width = self.line_stroke_width
        if role is PaintRole.PLOTTED_CIRCLES:
            paint.fill = True
        return paint
