from __future__ import annotations

import datetime
import decimal
import enum
import typing as t

import pydantic as p

from .base import BaseModel, WithCtime
from .id import ClassID, GradeRecordID, PeriodID, SubjectID, UserID

GradeValue = decimal.Decimal


class GradeComponentType(enum.Enum):
    Regular = "regular"
    Midterm = "midterm"
    Final = "final"
    Semester1 = "semester_1"
    Semester2 = "semester_2"
    Yearly = "yearly"
    Summary = "summary"

    @property
    def is_sensitive(self) -> bool:
        return self in SensitiveComponents

    @property
    def is_repeatable(self) -> bool:
        return self is GradeComponentType.Regular

    def label(self, sequence: int = 0) -> str:
        if self.is_repeatable:
            return f"{ComponentLabels[self]} {sequence}"
        return ComponentLabels[self]


SensitiveComponents: t.Final[frozenset[GradeComponentType]] = frozenset({
    GradeComponentType.Midterm,
    GradeComponentType.Final,
})

ComponentLabels: t.Final[dict[GradeComponentType, str]] = {
    GradeComponentType.Regular: "Regular assessment",
    GradeComponentType.Midterm: "Midterm",
    GradeComponentType.Final: "Final",
    GradeComponentType.Semester1: "Semester 1",
    GradeComponentType.Semester2: "Semester 2",
    GradeComponentType.Yearly: "Yearly",
    GradeComponentType.Summary: "Summary",
}


class GradeKey(BaseModel):
    """Composite identity of a grade record.

    Regular components are repeatable and are told apart by ``sequence``
    (starting at 1); every other component has exactly one record per key and
    uses ``sequence == 0``.
    """

    model_config = p.ConfigDict(frozen=True)

    period_id: PeriodID
    student_id: UserID
    subject_id: SubjectID
    class_id: ClassID
    component_type: GradeComponentType
    sequence: int = 0

    @p.model_validator(mode="after")
    def check_sequence(self) -> GradeKey:
        if self.component_type.is_repeatable:
            if self.sequence < 1:
                raise ValueError("regular components require a sequence index of 1 or greater")
        elif self.sequence != 0:
            raise ValueError(f"{self.component_type.value} components do not take a sequence index")
        return self


class GradeRecord(WithCtime):
    grade_record_id: GradeRecordID

    period_id: PeriodID
    student_id: UserID
    subject_id: SubjectID
    class_id: ClassID
    component_type: GradeComponentType
    sequence: int = 0

    grade_value: GradeValue | None = None
    previous_grade_value: GradeValue | None = None
    is_overwrite: bool = False

    created_by: UserID
    updated_by: UserID | None = None
    updated_at: datetime.datetime
    version: int = 1

    @property
    def key(self) -> GradeKey:
        return GradeKey(
            period_id=self.period_id,
            student_id=self.student_id,
            subject_id=self.subject_id,
            class_id=self.class_id,
            component_type=self.component_type,
            sequence=self.sequence,
        )


class GradeEntry(BaseModel):
    """One row of a bulk grade entry for a (period, class, subject)."""

    student_id: UserID
    component_type: GradeComponentType
    sequence: int = 0
    grade_value: GradeValue | None
    reason: str | None = None
