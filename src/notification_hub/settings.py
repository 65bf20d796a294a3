from __future__ import annotations

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "NOTIFICATION_HUB_"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class HubSettings(BaseModel):
    """Hub configuration, built in code or read from the environment."""

    buffer_size: Optional[int] = Field(default=None, ge=1)  # None keeps every value
    validate_payloads: bool = False
    log_level: Optional[LogLevel] = None  # None leaves the package logger as configured
    log_to_stdout: bool = False

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "HubSettings":
        # Real environment wins over .env entries
        load_dotenv(env_file or ".env", override=False)
        raw = {}
        for field_name in cls.model_fields:
            value = os.getenv(ENV_PREFIX + field_name.upper())
            if value not in (None, ""):
                raw[field_name] = value
        return cls(**raw)

    def to_dict(self):
        return self.model_dump()
