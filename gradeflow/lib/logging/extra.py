import importlib
import logging
import re
import typing as t

import colorlog
import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from gradeflow.lib import json

from .style import LogStyle

# attributes every LogRecord carries; anything else arrived through ``extra=``
StandardAttributes = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "color_message"}
AnsiEscape = re.compile(r"\x1b\[[0-9;]*m")


def load_formatter(base: str | type[logging.Formatter]) -> type[logging.Formatter]:
    if isinstance(base, type):
        return base
    module, _, name = base.rpartition(".")
    return getattr(importlib.import_module(module), name)


def render(value: t.Any) -> json.JSONValue:
    try:
        return json.default(value)
    except TypeError:
        return repr(value)


class ExtraFormatter(logging.Formatter):
    """Formats with ``base`` and appends the record's ``extra`` fields as JSON.

    Continuation lines of a multi-line message are indented under the first.
    The JSON is highlighted when the handler writes to a terminal.
    """

    def __init__(
        self,
        base: str | type[logging.Formatter],
        format: str | None = None,
        datefmt: str | None = None,
        indent: bool | None = True,
        log_colors: dict[str, str] | None = None,
        no_color: bool = False,
        pyg_style: type[Style] = LogStyle,
    ):
        super().__init__(format, datefmt)
        formatter_cls = load_formatter(base)
        options: dict[str, t.Any] = {}
        if issubclass(formatter_cls, colorlog.ColoredFormatter):
            options = {"log_colors": log_colors or None, "no_color": no_color}
        self.inner = formatter_cls(format, datefmt=datefmt, **options)
        self.indent = 4 if indent else None
        self.no_color = no_color
        self.pyg_style = pyg_style

    @staticmethod
    def extra(record: logging.LogRecord) -> dict[str, t.Any]:
        return {k: v for k, v in record.__dict__.items() if k not in StandardAttributes}

    def colorize(self, record: logging.LogRecord) -> bool:
        if self.no_color:
            return False
        for handler in logging.getLogger(record.name).handlers + logging.getLogger().handlers:
            if handler.formatter is self:
                stream = getattr(handler, "stream", None)
                return bool(stream is not None and getattr(stream, "isatty", lambda: False)())
        return False

    def format(self, record: logging.LogRecord) -> str:
        first, *rest = record.getMessage().splitlines() or [""]
        if rest:
            bare = {"msg": "", "args": None, "exc_info": None, "exc_text": None, "stack_info": None}
            probe = logging.makeLogRecord({**record.__dict__, **bare})
            margin = " " * len(AnsiEscape.sub("", self.inner.format(probe)).rstrip("\n"))
            record.msg = "\n".join([first, *(margin + line for line in rest)])
            record.args = None
        line = self.inner.format(record)

        extra = self.extra(record)
        if not extra:
            return line

        payload = json.dumps(extra, sort_keys=True, indent=self.indent, default=render)
        if self.colorize(record):
            payload = pygments.highlight(  # pyright: ignore [reportUnknownMemberType]
                payload, JsonLexer(), Terminal256Formatter(style=self.pyg_style)
            )
        return f"{line} {payload.strip()}"
