import datetime
import logging
import logging.config
import sys
import typing as t

TimestampProvider = t.Callable[[], datetime.datetime]

TRACE: t.Final[int] = 5


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class LoggingProvider(object):
    """Container resource that applies the logging configuration once at boot."""

    def __init__(self, config: dict[str, t.Any], debug: bool):
        self.install_trace_level()
        logging.config.dictConfig(config)
        self.capture_warnings(debug)

    @staticmethod
    def install_trace_level() -> None:
        if logging.getLevelName(TRACE) != "TRACE":
            logging.addLevelName(TRACE, "TRACE")

    @staticmethod
    def get_logger(name: str | None = None, depth: int = 1) -> logging.Logger:
        """Return the named logger, or the logger of the calling module."""
        if name is None:
            name = sys._getframe(depth).f_globals.get("__name__", "gradeflow")  # pyright: ignore [reportPrivateUsage]
        return logging.getLogger(name)

    @staticmethod
    def capture_warnings(capture: bool) -> None:
        logging.captureWarnings(capture)
