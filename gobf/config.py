"""
Configuration for the compiler, the command-line driver and the HTTP API.

Values are read from ``GOBF_*`` environment variables (or a ``.env`` file)
and can be overridden per call through :class:`CompilerOptions`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .parser import DEFAULT_MAX_DEPTH, MAX_NESTING


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="GOBF_", env_file=".env", case_sensitive=False)

    # Compiler
    extended: bool = True
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=MAX_NESTING)

    # Diagnostics
    context_width: int = Field(default=10, ge=0)

    # Reference VM
    max_steps: int = Field(default=1_000_000, ge=1)

    # Application
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"unknown log level '{value}'")
        return normalized


@dataclass
class CompilerOptions:
    extended: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CompilerOptions":
        settings = settings or Settings()
        return cls(extended=settings.extended, max_depth=settings.max_depth)


__all__ = ["CompilerOptions", "Settings"]
