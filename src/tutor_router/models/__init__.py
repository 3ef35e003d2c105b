"""
Pydantic models and enums for the tutor router.
"""

from .enums import LogLevel, Role, Subject
from .schemas import (
    NO_REASON,
    ClassificationLabel,
    ConstantEntry,
    RouteResult,
    Turn,
)

__all__ = [
    "Turn",
    "ClassificationLabel",
    "RouteResult",
    "ConstantEntry",
    "NO_REASON",
    "Subject",
    "Role",
    "LogLevel",
]
