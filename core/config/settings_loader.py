"""Settings loading utilities for the template engine."""

from __future__ import annotations

import os
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.config.models import EngineSettings

SETTINGS_ENV_VAR = "TMPLPIPE_SETTINGS"


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load and validate engine settings from YAML."""

    settings_path = path or Path(__file__).with_name("settings.yaml")

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Settings file not found: {settings_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in settings file: {settings_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {settings_path}")

    try:
        return EngineSettings.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings schema: {settings_path}") from exc


def load_settings_from_env() -> EngineSettings:
    """Load settings from ``TMPLPIPE_SETTINGS`` or the packaged defaults."""

    raw = os.getenv(SETTINGS_ENV_VAR)
    if raw is None or not raw.strip():
        return load_settings()
    return load_settings(Path(raw.strip()))
