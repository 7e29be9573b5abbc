"""Configuration classes for timers, schedulers and logging.

This module provides the pydantic models behind timer options, declarative
timer definitions loaded from YAML, scheduler selection and logging
settings.
"""

import logging
from typing import Any, Callable, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TimerOptions(BaseModel):
    """Options controlling how a Timer invokes its handler.

    Accepts both the snake_case field names and the camelCase spellings
    (``thisObj``, ``async``, ``onError``). Missing or ``None`` values fall
    back to the defaults.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, extra="forbid")

    this_obj: Any = Field(
        default=None, validation_alias=AliasChoices("this_obj", "thisObj")
    )
    repeat: bool = False
    async_: bool = Field(default=False, validation_alias=AliasChoices("async_", "async"))
    on_error: Optional[Callable[[Any], Any]] = Field(
        default=None, validation_alias=AliasChoices("on_error", "onError")
    )

    @field_validator("repeat", "async_", mode="before")
    @classmethod
    def _coerce_flag(cls, value):
        return bool(value)

    @classmethod
    def resolve(
        cls, options: Union["TimerOptions", Mapping[str, Any], None] = None, **overrides
    ) -> "TimerOptions":
        """Build TimerOptions from an options object or mapping plus overrides.

        Args:
            options: Existing TimerOptions, a mapping of option names, or None.
            **overrides: Individual options taking precedence over ``options``.

        Returns:
            TimerOptions: The resolved options.
        """
        if isinstance(options, TimerOptions):
            if not overrides:
                return options
            data = {name: getattr(options, name) for name in cls.model_fields}
        elif options is None:
            data = {}
        else:
            data = {key: value for key, value in options.items() if value is not None}

        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(data)


class TimerDefinition(BaseModel):
    """Declarative timer entry from a configuration file.

    ``handler`` and ``on_error`` are import paths of the form
    ``package.module:attribute``.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    handler: str
    delay: float = Field(..., ge=0, description="Delay in milliseconds")
    repeat: bool = False
    async_: bool = Field(default=False, alias="async")
    on_error: Optional[str] = None


class SchedulerConfig(BaseModel):
    """Selects the host scheduling primitive used by configured timers."""

    type: Literal["threading", "asyncio", "manual"] = "threading"


def _check_level_name(level: str) -> str:
    if not isinstance(logging.getLevelName(level.upper()), int):
        raise ValueError(f"Unknown log level: {level}")
    return level


class LoggingConfig(BaseModel):
    """Configuration settings for the logging system.

    Defines log level, file output settings and per-logger level
    overrides.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_file_max_size: int = 1  # MB
    disable_console_logging: Optional[bool] = None
    loggers: Optional[dict[str, str]] = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value):
        return _check_level_name(value)

    @field_validator("loggers")
    @classmethod
    def _check_logger_levels(cls, value):
        if value is None:
            return value
        return {name: _check_level_name(level) for name, level in value.items()}


class ClockmakerConfig(BaseModel):
    """Top-level configuration aggregating logging, scheduler and timers."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    timers: list[TimerDefinition] = []
