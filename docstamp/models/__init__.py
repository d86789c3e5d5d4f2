from .watermark import Coordinates, WatermarkMethod, WatermarkPosition, WatermarkSpec

__all__ = [
    "Coordinates",
    "WatermarkMethod",
    "WatermarkPosition",
    "WatermarkSpec",
]
