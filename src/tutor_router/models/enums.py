"""Enum types shared across the router.

Subjects form the closed set of responder identities; the classifier may only
ever produce one of these values.
"""

from enum import Enum


class Subject(str, Enum):
    """Responder identities the classifier can select.

    Attributes:
        MATH: Arithmetic, algebra, calculus, equations, statistics
        PHYSICS: Force, motion, energy, physical constants
        CHEMISTRY: Atoms, molecules, reactions, acids and bases
        HISTORY: Historical events, timelines, leaders, civilizations
        UNKNOWN: Anything else, handled by the fallback responder
    """
    MATH = "MathAgent"
    PHYSICS = "PhysicsAgent"
    CHEMISTRY = "ChemistryAgent"
    HISTORY = "HistoryAgent"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        """Return the enum value as a string for serialization."""
        return self.value

    @classmethod
    def parse(cls, value: object) -> "Subject":
        """Map an arbitrary value onto the enum, defaulting to UNKNOWN."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip())
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


class Role(str, Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value


class LogLevel(str, Enum):
    """Standard logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def __str__(self) -> str:
        return self.value


__all__ = [
    "Subject",
    "Role",
    "LogLevel",
]
