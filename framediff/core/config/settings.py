"""Motion detector configuration.

Settings are loaded from YAML defaults and overridden by environment variables
prefixed with `FDIFF_`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from framediff.core.analytics.pipeline import PipelineConfig
from framediff.core.overlay.draw import OverlayStyle


class MotionSettings(BaseSettings):
    """Runtime configuration loaded from YAML defaults and `FDIFF_` env overrides."""

    video_path: str | None = None

    # Brightness boundary used when turning the grayscale difference into a mask.
    threshold: int = Field(5, description="0..255")
    # Opening: erosion removes small noise, dilation regrows the survivors.
    erode_iterations: int = 3
    dilate_iterations: int = 3

    drawing_color: tuple[int, int, int] = (0, 0, 255)  # BGR red
    line_height: int = 10
    header_origin: tuple[int, int] = (5, 10)
    label_offset: int = 5
    font_scale: float = 0.8

    # Key code that stops playback (Esc).
    exit_key: int = 27
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="FDIFF_", validate_assignment=True)

    @field_validator("threshold")
    @classmethod
    def _validate_threshold(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("threshold must be in [0, 255]")
        return v

    @field_validator("erode_iterations", "dilate_iterations")
    @classmethod
    def _validate_iterations(cls, v: int) -> int:
        if v < 0:
            raise ValueError("iteration counts must be >= 0")
        return v

    @field_validator("drawing_color")
    @classmethod
    def _validate_color(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(not 0 <= c <= 255 for c in v):
            raise ValueError("drawing_color components must be in [0, 255]")
        return v

    @field_validator("line_height")
    @classmethod
    def _validate_line_height(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("line_height must be > 0")
        return v

    @field_validator("font_scale")
    @classmethod
    def _validate_font_scale(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("font_scale must be > 0")
        return float(v)

    @field_validator("exit_key")
    @classmethod
    def _validate_exit_key(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("exit_key must be in [0, 255]")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level


def settings_to_dict(settings: MotionSettings) -> dict[str, Any]:
    """Convert settings to a plain dict."""

    return cast(dict[str, Any], settings.model_dump())


def _fields_set(obj: object) -> set[str]:
    """Return the set of fields explicitly provided/overridden on a Pydantic model."""

    return set(getattr(obj, "model_fields_set", set()))


def _config_path() -> Path:
    """Return the YAML configuration path (defaults to config/framediff.config.yml)."""

    return Path(os.getenv("FDIFF_CONFIG", "config/framediff.config.yml"))


def load_settings(path: Path | None = None) -> MotionSettings:
    """Load settings from YAML and environment variables.

    YAML provides defaults; environment variables override. An explicit `path`
    must exist; the default location is optional.
    """

    data: dict[str, Any] = {}
    if path is not None and not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    path = path or _config_path()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    env_settings = MotionSettings()
    env_overrides: dict[str, Any] = {
        name: getattr(env_settings, name) for name in _fields_set(env_settings)
    }

    merged = {**data, **env_overrides}
    return MotionSettings(**merged)


def pipeline_config_from_settings(settings: MotionSettings) -> PipelineConfig:
    return PipelineConfig(
        threshold=settings.threshold,
        erode_iterations=settings.erode_iterations,
        dilate_iterations=settings.dilate_iterations,
    )


def overlay_style_from_settings(settings: MotionSettings) -> OverlayStyle:
    return OverlayStyle(
        color=tuple(settings.drawing_color),
        line_height=settings.line_height,
        header_origin=tuple(settings.header_origin),
        label_offset=settings.label_offset,
        font_scale=settings.font_scale,
    )
