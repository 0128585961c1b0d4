# Settings for the command line shell.
#
# Values come from, in increasing priority: field defaults, a .env file,
# CALCSCRIPT_* environment variables, explicit overrides (CLI flags).

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .mathlib import DEFAULT_EPSILON

ENV_PREFIX = 'CALCSCRIPT_'

_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


class Settings(BaseModel):
    """Validated runtime configuration."""
    log_level: str = 'WARNING'
    history_file: str = Field(default_factory=lambda: os.path.expanduser('~/.calcscript_history'))
    epsilon: float = Field(DEFAULT_EPSILON, gt=0, description="Tolerance used by zero(x)")
    verbosity: int = Field(3, ge=0, le=5, description="Token dump level")
    strict: bool = False

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LEVELS:
            raise ValueError(f"log level must be one of {', '.join(_LEVELS)}")
        return level

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def load_settings(env_file: Optional[str] = None, **overrides: Any) -> Settings:
    """Build Settings from the environment; None overrides are ignored."""
    load_dotenv(env_file)
    values = {}
    for name in Settings.model_fields:
        env_value = os.getenv(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
