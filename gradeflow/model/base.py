import datetime

import pydantic as p

from .id import UserID


class BaseModel(p.BaseModel):
    # aliases are the external names, so dumps use them unless told otherwise
    model_config = p.ConfigDict(serialize_by_alias=True)


class WithCtime(BaseModel):
    create_time: datetime.datetime


class WithMtime(BaseModel):
    update_time: datetime.datetime


class WithTimestamps(WithCtime, WithMtime): ...


class WithDecision(BaseModel):
    """Reviewer fields shared by anything an administrator signs off on."""

    decided_by: UserID | None = None
    decided_at: datetime.datetime | None = None
    decision_note: str | None = None
