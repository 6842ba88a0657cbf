"""Settings file loading for the slideshow server.

The settings JSON is read once at startup. Any problem with it raises
``SettingsError`` so the server never comes up half-configured.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_SETTINGS_PATH = "settings.json"
DEFAULT_PORT = 3000
DEFAULT_LANGUAGE = "en"

Number = Union[int, float]


class SettingsError(RuntimeError):
    pass


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    photos_path: str = Field(alias="photosPath", min_length=1)
    grid_columns: Optional[int] = Field(None, alias="gridColumns", gt=0)
    grid_rows: Optional[int] = Field(None, alias="gridRows", gt=0)
    min_duration: Optional[Number] = Field(None, alias="minDuration")
    max_duration: Optional[Number] = Field(None, alias="maxDuration")
    transition_duration: Optional[Number] = Field(None, alias="transitionDuration")
    language: Optional[str] = None
    password: Optional[str] = None
    port: Optional[int] = Field(None, ge=1, le=65535)

    @field_validator("photos_path")
    @classmethod
    def _expand_photos_path(cls, v: str) -> str:
        # listing, /photos mount and CLI all walk this same directory
        return os.path.expanduser(v)

    @field_validator("min_duration", "max_duration")
    @classmethod
    def _positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("transition_duration")
    @classmethod
    def _non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("must not be negative")
        return v

    @property
    def password_required(self) -> bool:
        return bool(self.password)

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_PORT

    def client_view(self) -> dict:
        """Subset exposed to the slideshow UI via /api/settings."""
        return {
            "gridColumns": self.grid_columns,
            "gridRows": self.grid_rows,
            "minDuration": self.min_duration,
            "maxDuration": self.max_duration,
            "transitionDuration": self.transition_duration,
            "language": self.language or DEFAULT_LANGUAGE,
        }


def settings_path() -> Path:
    return Path(os.environ.get("SETTINGS_PATH") or DEFAULT_SETTINGS_PATH).expanduser()


def load_settings(path: Union[str, Path, None] = None) -> Settings:
    p = Path(path).expanduser() if path is not None else settings_path()
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise SettingsError(f"settings file not found: {p}") from None
    except (OSError, ValueError) as e:
        raise SettingsError(f"cannot read settings file {p}: {e}") from e
    if not isinstance(raw, dict):
        raise SettingsError(f"settings file {p} must contain a JSON object")
    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise SettingsError(f"invalid settings in {p}: {e}") from e
