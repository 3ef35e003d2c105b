"""
Core components of the tutor router.
"""

from .classifier import SubjectClassifier, build_classification_prompt
from .config import RouterConfig, get_config, reset_config
from .constants import ConstantTable, default_constants
from .history import bound_history, latest_user_query
from .recovery import recover
from .responders import Responder, build_responders, fallback_responder
from .router import TutorRouter

__all__ = [
    "TutorRouter",
    "SubjectClassifier",
    "build_classification_prompt",
    "Responder",
    "build_responders",
    "fallback_responder",
    "ConstantTable",
    "default_constants",
    "bound_history",
    "latest_user_query",
    "recover",
    "RouterConfig",
    "get_config",
    "reset_config",
]
