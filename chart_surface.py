from __future__ import annotations
import io
from typing import Dict, Tuple
from PIL import Image, ImageDraw, ImageFont

from chart_specs import Paint


class PillowCanvas:
    """Drawing surface backed by a Pillow image."""

    def __init__(
        self,
        width: int,
        height: int,
        background: str = "#ffffff",
        font_path: str | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.font_path = font_path
        self.image = Image.new("RGB", (width, height), background)
        self.draw = ImageDraw.Draw(self.image)
        self._fonts: Dict[float, ImageFont.ImageFont] = {}

    @classmethod
    def from_settings(cls, settings, width: int | None = None, height: int | None = None) -> "PillowCanvas":
        return cls(
            settings.chart_width if width is None else width,
            settings.chart_height if height is None else height,
            settings.background_color,
            settings.font_path,
        )

    def _font(self, paint: Paint):
        size = max(paint.text_size, 1.0)
        font = self._fonts.get(size)
        if font is None:
            if self.font_path:
                font = ImageFont.truetype(self.font_path, size)
            else:
                font = ImageFont.load_default(size=size)
            self._fonts[size] = font
        return font

    def measure_text(self, text: str, paint: Paint) -> float:
        if not text:
            return 0.0
        return float(self.draw.textlength(text, font=self._font(paint)))

    def text_bounds(self, text: str, paint: Paint) -> Tuple[int, int]:
        if not text:
            return 0, 0
        left, top, right, bottom = self._font(paint).getbbox(text)
        return int(right - left), int(bottom - top)

    def draw_text(self, text: str, x: float, y: float, paint: Paint) -> None:
        self.draw.text((x, y), text, fill=paint.color, font=self._font(paint), anchor="ls")

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, paint: Paint) -> None:
        self.draw.line(
            [(x0, y0), (x1, y1)],
            fill=paint.color,
            width=max(1, int(round(paint.stroke_width))),
        )

    def draw_circle(self, cx: float, cy: float, radius: float, paint: Paint) -> None:
        box = (cx - radius, cy - radius, cx + radius, cy + radius)
        if paint.fill:
            self.draw.ellipse(box, fill=paint.color)
        else:
            self.draw.ellipse(box, outline=paint.color, width=max(1, int(paint.stroke_width)))

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()
