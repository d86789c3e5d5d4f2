from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WatermarkPosition(str, Enum):
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    CENTER = "center"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"
    TILED = "tiled"


class WatermarkMethod(str, Enum):
    DRAW = "draw"
    OVERLAY = "overlay"


class WatermarkSpec(BaseModel):
    """One visible text watermark, applied to every page of a document."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Watermark text.")
    text_size: int = Field(..., gt=0, description="Font size in points.")
    color: Tuple[int, int, int] = Field((0, 0, 0), description="RGB fill color.")
    is_trademark: bool = Field(False, description="Repeat the text across the whole page.")
    position: WatermarkPosition = WatermarkPosition.CENTER
    method: WatermarkMethod = WatermarkMethod.DRAW

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if any(channel < 0 or channel > 255 for channel in value):
            raise ValueError("color channels must be between 0 and 255")
        return value


class Coordinates(BaseModel):
    """Top-left anchor of a watermark box inside its container (y grows downwards)."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
