from pydantic import BaseModel, Field, ValidationError


class ChartSettings(BaseModel):
    weight_unit: str = "lbs"
    language: str = "en"
    date_format: str = "%b %d %Y"
    timezone: str = "UTC"
    label_text_size: float = Field(52.0, gt=0)
    min_text_size: float = Field(6.0, gt=0)
    margin_fraction: float = Field(0.05, ge=0, lt=0.5)
    bottom_label_spacing: int = Field(40, ge=0)
    line_stroke_width: float = Field(3.0, gt=0)
    circle_radius: float = Field(10.0, gt=0)
    color_primary: str = "#212121"
    color_secondary: str = "#757575"
    color_grid_lines: str = "#e0e0e0"
    color_plots: str = "#ff4b4b"
    background_color: str = "#ffffff"
    font_path: str | None = None
    chart_width: int = Field(1080, gt=0, le=8192)
    chart_height: int = Field(1920, gt=0, le=8192)


def validate_settings(data: dict) -> None:
    try:
        ChartSettings(**data)
    except ValidationError as e:
        raise ValueError(str(e))
