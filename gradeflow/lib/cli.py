"""click, plus the parameter types gradeflow commands share.

Command modules ``import gradeflow.lib.cli as click``.
"""

from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

from gradeflow.model.id import ShortUUIDKey

E = t.TypeVar("E", bound=enum.Enum)
K = t.TypeVar("K", bound=ShortUUIDKey)


class EnumType(click.ParamType, t.Generic[E]):
    """A member of ``enum``, given by value, e.g. ``--role teacher``."""

    def __init__(self, enum: type[E]):
        self.enum = enum
        self.name = enum.__name__

    def get_metavar(self, param: click.Parameter, ctx: click.Context | None = None) -> str:
        return "[" + "|".join(str(m.value) for m in self.enum) + "]"

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> E:
        if isinstance(value, self.enum):
            return value
        try:
            return self.enum(value)
        except ValueError:
            choices = ", ".join(str(m.value) for m in self.enum)
            self.fail(f"{value!r} is not one of {choices}", param, ctx)


class KeyParamType(click.ParamType, t.Generic[K]):
    """A prefixed identifier, e.g. ``perd$...``."""

    def __init__(self, key_type: type[K]):
        self.key_type = key_type
        self.name = key_type.__name__

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> K:
        if isinstance(value, self.key_type):
            return value
        try:
            return self.key_type(str(value).strip())
        except ValueError as e:
            self.fail(str(e), param, ctx)


class DirectoryURLType(click.ParamType):
    """An existing local directory, given as a path or a ``file://`` URL."""

    name = "PATH OR URL"

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> p.FileUrl:
        if isinstance(value, p.AnyUrl):
            url = value
        elif isinstance(value, pathlib.Path) or "://" not in str(value):
            url = p.FileUrl(pathlib.Path(value).absolute().as_uri())
        else:
            url = p.AnyUrl(str(value))

        if url.scheme != "file" or url.path is None:
            self.fail(f"{value}: only file:// URLs are supported", param, ctx)
        path = pathlib.Path(url.path)
        if not path.is_dir():
            self.fail(f"{value}: no such directory", param, ctx)
        return p.FileUrl(path.absolute().as_uri())
