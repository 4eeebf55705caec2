__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    "WithDecision",
    # Enums
    "DeploymentEnvironment",
    "Decision",
    # ID Types
    "UserID",
    "ClassID",
    "SubjectID",
    "SemesterID",
    "AcademicYearID",
    "PeriodID",
    "GradeRecordID",
    "TicketID",
    "SubmissionID",
    # Users & reference data
    "Actor",
    "User",
    "UserRole",
    "SchoolClass",
    "Subject",
    # Reporting periods
    "ReportingPeriod",
    "PeriodStatus",
    "PeriodType",
    # Grades
    "GradeComponentType",
    "GradeEntry",
    "GradeKey",
    "GradeRecord",
    "GradeValue",
    "SensitiveComponents",
    # Change tickets
    "ChangeTicket",
    "PendingTicket",
    "Proposal",
    "ProposalKind",
    "TicketStatus",
    # Submissions
    "ClosureStatus",
    "CurrentSnapshotVersion",
    "GradeSubmission",
    "SnapshotRow",
    "SubmissionKey",
    "SubmissionSnapshot",
    "SubmissionStatus",
    "parse_snapshot",
]

from .base import BaseModel, WithCtime, WithDecision, WithMtime, WithTimestamps
from .enum import Decision, DeploymentEnvironment
from .grade import GradeComponentType, GradeEntry, GradeKey, GradeRecord, GradeValue, SensitiveComponents
from .id import AcademicYearID, ClassID, GradeRecordID, PeriodID, SemesterID, SubjectID, SubmissionID, TicketID, \
    UserID
from .period import PeriodStatus, PeriodType, ReportingPeriod
from .submission import ClosureStatus, CurrentSnapshotVersion, GradeSubmission, parse_snapshot, SnapshotRow, \
    SubmissionKey, SubmissionSnapshot, SubmissionStatus
from .ticket import ChangeTicket, PendingTicket, Proposal, ProposalKind, TicketStatus
from .user import Actor, SchoolClass, Subject, User, UserRole
