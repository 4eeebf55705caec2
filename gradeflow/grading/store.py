from __future__ import annotations

import logging
import typing as t

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradeflow.core.provider import TimestampProvider
from gradeflow.lib import NotSet
from gradeflow.model import GradeKey, GradeRecord, GradeRecordID, GradeValue, UserID, UserRole
from gradeflow.storage import grade as grade_storage
from gradeflow.storage import schoolclass as class_storage
from gradeflow.storage import subject as subject_storage
from gradeflow.storage import user as user_storage

from .errors import ConcurrencyError, NotFoundError, ValidationError
from .validator import check_grade_value

logger = logging.getLogger(__name__)


class WriteMeta(t.NamedTuple):
    """Who is writing, and how the record should be flagged."""

    actor_id: UserID
    is_overwrite: bool | NotSet = NotSet()
    previous_grade_value: GradeValue | None | NotSet = NotSet()
    expected_version: int | None = None


class GradeStore(object):
    """Keyed store of authoritative grade values.

    Writes are compare-and-swap on the record's version. The caller owns the
    transaction.
    """

    def __init__(self, session: Session, utcnow: TimestampProvider):
        self.session = session
        self.utcnow = utcnow

    def get(self, key: GradeKey) -> GradeValue | None:
        record = self.get_record(key)
        return record.grade_value if record else None

    def get_record(self, key: GradeKey) -> GradeRecord | None:
        return grade_storage.get_by_key(key, session=self.session)

    def get_by_id(self, grade_record_id: GradeRecordID) -> GradeRecord | None:
        return grade_storage.get(grade_record_id, session=self.session)

    def value_of(self, grade_record_id: GradeRecordID) -> GradeValue | None:
        record = self.get_by_id(grade_record_id)
        if record is None:
            raise NotFoundError("grade record not found", grade_record_id=grade_record_id)
        return record.grade_value

    def upsert(self, key: GradeKey, value: t.Any, meta: WriteMeta) -> GradeValue | None:
        """Write ``value`` at ``key`` and return the value it replaced.

        Raises:
            ValidationError: the value is outside the grade domain
            NotFoundError: the student, class or subject does not exist
            ConcurrencyError: another writer got there first
        """
        value = check_grade_value(value)
        record = self.get_record(key)

        if record is None:
            self._check_referents(key)
            try:
                grade_storage.create(
                    {
                        "key": key,
                        "grade_value": value,
                        "created_by": meta.actor_id,
                        "updated_at": self.utcnow(),
                    },
                    session=self.session,
                )
            except IntegrityError as e:
                raise ConcurrencyError("grade record was created concurrently", key=key.model_dump_json()) from e
            return None

        if meta.expected_version is not None and meta.expected_version != record.version:
            raise ConcurrencyError(
                "grade record changed since it was read",
                grade_record_id=record.grade_record_id,
                expected_version=meta.expected_version,
                version=record.version,
            )

        if record.grade_value == value:
            return record.grade_value

        self._write(record, value, meta)
        return record.grade_value

    def restore(
        self,
        grade_record_id: GradeRecordID,
        value: GradeValue | None,
        meta: WriteMeta,
    ) -> GradeRecord:
        """Put ``value`` back on a record identified by id, as a rejected correction does."""
        record = self.get_by_id(grade_record_id)
        if record is None:
            raise NotFoundError("grade record not found", grade_record_id=grade_record_id)
        return self._write(record, check_grade_value(value), meta)

    def _write(self, record: GradeRecord, value: GradeValue | None, meta: WriteMeta) -> GradeRecord:
        updated = grade_storage.update(
            record.grade_record_id,
            expected_version=record.version,
            grade_value=value,
            updated_by=meta.actor_id,
            updated_at=self.utcnow(),
            previous_grade_value=meta.previous_grade_value,
            is_overwrite=meta.is_overwrite,
            session=self.session,
        )
        if updated is None:
            raise ConcurrencyError(
                "grade record changed while it was being written",
                grade_record_id=record.grade_record_id,
                version=record.version,
            )
        logger.debug(
            "grade written",
            extra={
                "grade_record_id": record.grade_record_id,
                "old_value": record.grade_value,
                "new_value": value,
                "version": updated.version,
            },
        )
        return updated

    def _check_referents(self, key: GradeKey) -> None:
        student = user_storage.get(user_id=key.student_id, session=self.session)
        if student is None:
            raise NotFoundError("student not found", student_id=key.student_id)
        if student.role is not UserRole.Student:
            raise ValidationError("grades can only be recorded for students", student_id=key.student_id)
        if class_storage.get(key.class_id, session=self.session) is None:
            raise NotFoundError("class not found", class_id=key.class_id)
        if subject_storage.get(subject_id=key.subject_id, session=self.session) is None:
            raise NotFoundError("subject not found", subject_id=key.subject_id)
