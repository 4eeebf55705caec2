"""JSON that understands gradeflow's value types: ids, grades, timestamps and models."""

from __future__ import annotations

import datetime
import decimal
import enum
import functools
import json as pyjson
import typing as t

import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


@functools.singledispatch
def default(obj: t.Any) -> JSONValue:
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


@default.register
def _(obj: p.BaseModel) -> JSONValue:
    return obj.model_dump(mode="json")


@default.register(datetime.date)
@default.register(datetime.datetime)
def _(obj: datetime.date) -> JSONValue:
    return obj.isoformat()


# grades keep their scale, e.g. "7.50"
@default.register
def _(obj: decimal.Decimal) -> JSONValue:
    return str(obj)


@default.register
def _(obj: enum.Enum) -> JSONValue:
    return obj.value


@default.register(set)
@default.register(frozenset)
def _(obj: set[t.Any] | frozenset[t.Any]) -> JSONValue:
    return sorted(obj, key=str)


def dumps(obj: t.Any, **kw: t.Any) -> str:
    kw.setdefault("default", default)
    return pyjson.dumps(obj, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> JSONValue:
    return pyjson.loads(s, **kw)
