from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library-wide settings, read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        env_file_encoding="utf-8",
        env_prefix="DOCSTAMP_",
        extra="ignore",
    )

    app_name: str = "docstamp"
    app_version: str = "0.1.0"

    draw_dpi: float = Field(default=300.0, gt=0, description="Rasterization resolution for draw-method pages.")
    scale_draw_text_to_dpi: bool = Field(
        default=False,
        description="Read draw-method text_size as points and scale it by draw_dpi / 72.",
    )
    watermark_opacity: float = Field(default=0.5, gt=0, le=1, description="Alpha applied to watermark text.")
    position_margin: float = Field(default=10.0, ge=0, description="Distance kept from container edges.")
    tile_spacing: float = Field(default=40.0, ge=0, description="Gap between repeated trademark stamps.")
    jpeg_quality: int = Field(default=90, ge=1, le=100)
    overlay_font: str = "Helvetica-Bold"

    max_workers: Optional[int] = Field(default=None, gt=0)
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
