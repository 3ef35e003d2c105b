"""
LLM module - generative text backends for the router.
"""

from .client import LiteLLMGenerator, TextGenerator, generate_with_deadline
from .retry import RetryingGenerator

__all__ = [
    "TextGenerator",
    "LiteLLMGenerator",
    "RetryingGenerator",
    "generate_with_deadline",
]
