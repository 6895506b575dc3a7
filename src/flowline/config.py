"""Environment-driven settings shared by the entry points."""

import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime settings."""

    model_config = ConfigDict(frozen=True)

    redis_url: str = "redis://localhost:6379"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    log_dir: str = "logs"
    worker_poll_interval: float = 1.0
    webhook_timeout: float = 30.0
    durable_waits: bool = True

    @field_validator("log_level")
    @classmethod
    def log_level_known(cls, v: str) -> str:
        v = v.lower()
        if v not in ("debug", "info", "warning", "error"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("worker_poll_interval", "webhook_timeout")
    @classmethod
    def positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, keeping defaults for unset ones."""
        env = os.environ if environ is None else environ
        values: dict = {}

        for field_name in cls.model_fields:
            raw = env.get(field_name.upper())
            if raw is None:
                continue
            if field_name == "durable_waits":
                values[field_name] = raw.strip().lower() in _TRUTHY
            else:
                values[field_name] = raw

        return cls.model_validate(values)
