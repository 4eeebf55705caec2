from __future__ import annotations

import typing as t

import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid

KeyLength: t.Final[int] = 22


class ShortUUIDKey(str):
    """A shortuuid carrying a four-letter type prefix, e.g. ``perd$Vu3...``.

    The database stores only the 22-character key part; the prefixed form is
    what the API and CLI accept and return.
    """

    prefix: t.ClassVar[str]
    separator: t.ClassVar[str] = "$"

    def __init_subclass__(cls, prefix: str, **kwargs: t.Any):
        super().__init_subclass__(**kwargs)
        if len(prefix) != 4:
            raise TypeError(f"{cls.__name__} prefix must be four characters, got {prefix!r}")
        cls.prefix = prefix

    def __new__(cls, s: str | None = None, /, key: str | None = None) -> t.Self:
        # a bare key comes from the database and is trusted as-is
        if key is not None:
            return super().__new__(cls, f"{cls.prefix}{cls.separator}{key}")
        if s is None:
            return super().__new__(cls, f"{cls.prefix}{cls.separator}{shortuuid.uuid()}")
        return super().__new__(cls, cls.check(s))

    @classmethod
    def check(cls, s: str) -> str:
        head = cls.prefix + cls.separator
        if not s.startswith(head):
            raise ValueError(f"invalid {cls.__name__}: expected prefix {head!r}")
        body = s[len(head) :]
        if len(body) != KeyLength:
            raise ValueError(f"invalid {cls.__name__}: key part must be {KeyLength} characters")
        alphabet = shortuuid.get_alphabet()
        if not set(body) <= set(alphabet):
            raise ValueError(f"invalid {cls.__name__}: key part must only use {alphabet}")
        return s

    @classmethod
    def coerce(cls, v: str) -> t.Self:
        return v if isinstance(v, cls) else cls(v)

    @classmethod
    def __get_pydantic_core_schema__(cls, src: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        parse = core_schema.no_info_after_validator_function(cls.coerce, core_schema.str_schema())
        return core_schema.json_or_python_schema(
            json_schema=parse,
            python_schema=core_schema.union_schema([core_schema.is_instance_schema(cls), parse]),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, src: t.Any, handler: p.GetJsonSchemaHandler) -> p.json_schema.JsonSchemaValue:
        return {"type": "string", "pattern": f"^{cls.prefix}\\{cls.separator}.{{{KeyLength}}}$"}

    @property
    def key(self) -> str:
        return self[len(self.prefix) + len(self.separator) :]

    def __hash__(self) -> int:
        return str.__hash__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str.__str__(self)!r})"


class UserID(ShortUUIDKey, prefix="user"):
    pass


class ClassID(ShortUUIDKey, prefix="clss"):
    pass


class SubjectID(ShortUUIDKey, prefix="subj"):
    pass


class SemesterID(ShortUUIDKey, prefix="smtr"):
    pass


class AcademicYearID(ShortUUIDKey, prefix="year"):
    pass


class PeriodID(ShortUUIDKey, prefix="perd"):
    pass


class GradeRecordID(ShortUUIDKey, prefix="grad"):
    pass


class TicketID(ShortUUIDKey, prefix="tckt"):
    pass


class SubmissionID(ShortUUIDKey, prefix="subm"):
    pass
