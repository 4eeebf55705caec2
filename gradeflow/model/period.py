import datetime
import enum

from .base import WithTimestamps
from .id import AcademicYearID, PeriodID, SemesterID


class PeriodType(enum.Enum):
    Midterm1 = "midterm_1"
    Final1 = "final_1"
    Semester1Summary = "semester_1_summary"
    Midterm2 = "midterm_2"
    Final2 = "final_2"
    Semester2Summary = "semester_2_summary"
    YearlySummary = "yearly_summary"


class PeriodStatus(enum.Enum):
    Open = "open"
    Closed = "closed"
    Reopened = "reopened"


class ReportingPeriod(WithTimestamps):
    period_id: PeriodID
    semester_id: SemesterID
    academic_year_id: AcademicYearID
    name: str
    period_type: PeriodType

    start_date: datetime.date
    end_date: datetime.date
    import_deadline: datetime.datetime
    edit_deadline: datetime.datetime

    status: PeriodStatus = PeriodStatus.Open
