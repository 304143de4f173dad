"""
Runtime configuration.

Settings are read from REGSNAP_* environment variables:
- REGSNAP_VALUE_MODE: "eager" (default) or "lazy"
- REGSNAP_LOG_LEVEL: logging level name, default WARNING
- REGSNAP_BACKEND: "auto" (default), "winreg" or "memory"
"""

import logging
import os
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field

from regsnap.core.exceptions import ConfigurationError
from regsnap.core.models import ValueMode


class Backend(Enum):
    """Store backend used when the caller does not supply one."""

    AUTO = "auto"
    WINREG = "winreg"
    MEMORY = "memory"


class Settings(BaseModel):
    """regsnap configuration."""

    value_mode: ValueMode = ValueMode.EAGER
    log_level: str = Field(default="WARNING", description="Python logging level name")
    backend: Backend = Backend.AUTO

    model_config = {"frozen": True}

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment.

        Raises:
            ConfigurationError: If a variable holds an unsupported value
        """
        value_mode = _enum_from_env("REGSNAP_VALUE_MODE", ValueMode, ValueMode.EAGER)
        backend = _enum_from_env("REGSNAP_BACKEND", Backend, Backend.AUTO)

        log_level = os.getenv("REGSNAP_LOG_LEVEL", "WARNING").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(
                f"Unknown log level: {log_level}",
                env_var="REGSNAP_LOG_LEVEL",
            )

        return cls(value_mode=value_mode, log_level=log_level, backend=backend)


def _enum_from_env(env_var: str, enum_type: type[Enum], default: Enum) -> Enum:
    raw = os.getenv(env_var, "").strip().lower()
    if not raw:
        return default
    try:
        return enum_type(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"{env_var} must be one of: {allowed} (got {raw!r})",
            env_var=env_var,
        ) from None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings, read once from the environment."""
    return Settings.from_env()
