"""Data models for engine settings."""

from __future__ import annotations

import keyword
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator


class EngineSettings(BaseModel):
    """Template engine settings loaded from YAML."""

    model_config = ConfigDict(extra="forbid")

    missing_text: str = ""
    locale: str = "en"
    format_error_mode: Literal["verbatim", "raise"] = "verbatim"
    memoize: bool = True
    default_context_name: str = "datum"

    @field_validator("default_context_name")
    @classmethod
    def _check_context_name(cls, value: str) -> str:
        if not value.isidentifier() or keyword.iskeyword(value) or value == "_tpl":
            raise ValueError(f"not a usable parameter name: {value!r}")
        return value
