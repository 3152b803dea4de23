"""
Command Settings

Settings for the registry and dispatcher, built from environment variables
or passed explicitly.
"""

import logging
import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class CommandSettings(BaseModel):
    """Behaviour switches for registration and dispatch."""

    command_prefix: str = Field(
        default="/",
        max_length=1,
        description="Prefix stripped from raw command lines and used in usage strings",
    )
    strict_aliases: bool = Field(
        default=False,
        description="Reject alias collisions within a node instead of letting the last one win",
    )
    require_frozen: bool = Field(
        default=False,
        description="Refuse to dispatch until the registry has been frozen",
    )
    log_level: str = Field(default="INFO", description="Level passed to logging.basicConfig")

    @field_validator("log_level")
    @classmethod
    def known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_command_settings() -> CommandSettings:
    """Build settings from environment variables."""
    return CommandSettings(
        command_prefix=os.environ.get("COMMANDS_PREFIX", "/"),
        strict_aliases=_env_flag("COMMANDS_STRICT_ALIASES", False),
        require_frozen=_env_flag("COMMANDS_REQUIRE_FROZEN", False),
        log_level=os.environ.get("COMMANDS_LOG_LEVEL", "INFO"),
    )


def configure_logging(settings: Optional[CommandSettings] = None) -> None:
    """Configure root logging for a host process."""
    settings = settings or get_command_settings()
    logging.basicConfig(level=settings.log_level)
    logger.debug(f"Logging configured at {settings.log_level}")
