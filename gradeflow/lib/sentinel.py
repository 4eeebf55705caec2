from __future__ import annotations

import typing as t


class Sentinel(object):
    """Base for singleton marker values; each subclass has exactly one instance."""

    _instances: t.ClassVar[dict[type, Sentinel]] = {}

    def __new__(cls) -> t.Self:
        if cls not in Sentinel._instances:
            Sentinel._instances[cls] = super().__new__(cls)
        return t.cast(t.Self, Sentinel._instances[cls])

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class NotReady(Sentinel):
    """Container value that only exists once the container has booted."""


class NotSet(Sentinel):
    """A column a partial update should leave alone, as opposed to setting it to None."""
