"""Typed form of the ``logging.config.dictConfig`` schema, as loaded from ``logging.yaml``."""

import pathlib
import typing as t

import pydantic as p

from .base import BaseSettings

# the stdlib names plus TRACE, which gradeflow registers at boot
LogLevel = t.Literal["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "WARN", "ERROR", "FATAL", "CRITICAL"]


class FormatterSettings(BaseSettings):
    factory: t.Literal["gradeflow.lib.logging.ExtraFormatter"] = p.Field(alias="()")
    base: str
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] = {}
    no_color: bool = False
    indent: bool | None = None


class HandlerSettings(BaseSettings):
    formatter: str
    level: LogLevel


class StreamHandlerSettings(HandlerSettings):
    class_: t.Literal["colorlog.StreamHandler", "logging.StreamHandler"] = p.Field(alias="class")
    stream: str = "ext://sys.stderr"


class RotatingFileHandlerSettings(HandlerSettings):
    class_: t.Literal["logging.handlers.TimedRotatingFileHandler"] = p.Field(alias="class")
    filename: pathlib.Path
    when: str = "midnight"
    backupCount: int = 7


AnyHandlerSettings = t.Annotated[
    StreamHandlerSettings | RotatingFileHandlerSettings,
    p.Field(discriminator="class_"),
]


class LoggerSettings(BaseSettings):
    level: LogLevel = "NOTSET"
    propagate: bool = True
    handlers: list[str] | None = None


class LoggingSettings(BaseSettings):
    version: t.Literal[1] = 1
    disable_existing_loggers: bool = False
    formatters: dict[str, FormatterSettings]
    handlers: dict[str, AnyHandlerSettings]
    root: LoggerSettings
    loggers: dict[str, LoggerSettings] = {}

    @p.model_validator(mode="after")
    def check_references(self) -> t.Self:
        for name, handler in self.handlers.items():
            if handler.formatter not in self.formatters:
                raise ValueError(f"handler {name!r} names unknown formatter {handler.formatter!r}")
        for logger in (self.root, *self.loggers.values()):
            for handler in logger.handlers or ():
                if handler not in self.handlers:
                    raise ValueError(f"logger refers to unknown handler {handler!r}")
        return self
