import enum

from pydantic import EmailStr

from .base import BaseModel, WithTimestamps
from .id import ClassID, SubjectID, UserID


class UserRole(enum.Enum):
    Teacher = "teacher"
    Admin = "admin"
    Student = "student"


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole


class Actor(BaseModel):
    """The authenticated caller of a mutating operation."""

    actor_id: UserID
    role: UserRole


class SchoolClass(WithTimestamps):
    class_id: ClassID
    name: str


class Subject(WithTimestamps):
    subject_id: SubjectID
    name: str
    code: str
