"""The slice of dependency-injector that gradeflow modules use.

Storage functions, route handlers and CLI commands declare their collaborators
as ``di.Provide["dotted.provider.path"]`` defaults and are decorated with
``di.inject``; the container fills them in once the module is wired.
"""

from __future__ import annotations

__all__ = [
    "Manage",
    "NotReady",
    "Provide",
    "as_",
    "inject",
]

import functools
import typing as t

import dependency_injector.wiring as wiring
from dependency_injector.containers import Container
from dependency_injector.providers import Provider
from dependency_injector.wiring import ClassGetItemMeta, Closing, Provide, TypeModifier

from gradeflow.lib.sentinel import NotReady

P = t.ParamSpec("P")
R = t.TypeVar("R")
T = t.TypeVar("T")

# FastAPI resolves postponed annotations through the handler's globals
RouteModulePrefix: t.Final[str] = "gradeflow.web."


def inject(fn: t.Callable[P, R]) -> t.Callable[P, R]:
    injections, closing = wiring._fetch_reference_injections(fn)  # pyright: ignore [reportPrivateUsage]
    patched = wiring._get_patched(fn, injections, closing)  # pyright: ignore [reportPrivateUsage]

    if not (fn.__module__.startswith(RouteModulePrefix) and hasattr(fn, "__globals__")):
        return patched
    return functools.wraps(fn, updated=("__globals__",))(patched)


class Manage(object, metaclass=ClassGetItemMeta):
    """``Provide`` for values that must be closed when the call returns, e.g. a request's session."""

    def __new__(cls, provider: Provider[T] | Container | str):
        return Closing[Provide[provider]]

    @classmethod
    def __class_getitem__(cls, item: Provider[T] | Container | str):
        return cls(item)


def as_(type_: type[T]) -> TypeModifier:
    """Coerce an injected configuration section into ``type_``."""
    return TypeModifier(type_)
