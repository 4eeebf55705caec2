__all__ = [
    "AuthContainer",
    "BootConfiguration",
    "GradeflowContainer",
    "PersistentContainer",
    "StorageContainer",
]

from .auth import AuthContainer
from .gradeflow import BootConfiguration, GradeflowContainer
from .storage import PersistentContainer, StorageContainer
