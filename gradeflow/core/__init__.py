"""Boot-time infrastructure: configuration, the DI container and logging."""

from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, GradeflowContainer
from .provider import LoggingProvider, TimestampProvider, utcnow

__all__ = [
    "BootConfiguration",
    "GradeflowContainer",
    "LoggingProvider",
    "Secrets",
    "Settings",
    "TimestampProvider",
    "di",
    "utcnow",
]
