"""
Tutor Router - subject-aware question routing
Classifies a student's question with an LLM and hands it to the matching subject responder.
"""

# Setup rich tracebacks globally
from .utils.rich_logging import setup_rich_logging
setup_rich_logging()

from .core.config import RouterConfig
from .core.router import TutorRouter
from .exceptions import (
    ClassificationError,
    GenerationError,
    MissingQueryError,
    RecoveryError,
    TutorRouterError,
)
from .models import ClassificationLabel, RouteResult, Subject, Turn

__version__ = "0.1.0"

__all__ = [
    "TutorRouter",
    "RouterConfig",
    "Turn",
    "RouteResult",
    "ClassificationLabel",
    "Subject",
    "TutorRouterError",
    "GenerationError",
    "ClassificationError",
    "RecoveryError",
    "MissingQueryError",
]
