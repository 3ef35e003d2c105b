"""
Subject classifier.

Builds one prompt from the bounded conversation and the active query and asks
the model for a JSON label. The reply is returned raw; turning it into a
ClassificationLabel is the job of `core.recovery`.
"""

import asyncio
from typing import Optional, Sequence

from ..exceptions import ClassificationError, GenerationError
from ..llm.client import TextGenerator, generate_with_deadline
from ..models.enums import Subject
from ..models.schemas import Turn
from ..utils.logging import get_logger

logger = get_logger(__name__)

_SUBJECT_CHOICES = " | ".join(f'"{subject.value}"' for subject in Subject)

CLASSIFIER_INSTRUCTIONS = f"""You are a subject classifier for a multi-agent tutor system. Given a student query, your job is to identify the appropriate subject agent that should handle it.

Available agents:
- MathAgent: Arithmetic, algebra, calculus, equations, statistics.
- PhysicsAgent: Force, motion, energy, mass, velocity, Newton's laws, physical constants.
- ChemistryAgent: Atoms, molecules, reactions, periodic table, acids and bases.
- HistoryAgent: Historical events, timelines, famous leaders, ancient civilizations.

Respond in the following JSON format:
{{
    "subject": {_SUBJECT_CHOICES},
    "reason": "<short explanation>"
}}"""

CLASSIFY_REQUEST = """Classify the following query (Keep in mind the previous messages as well):
Query: {query}

Respond in this JSON format:
{{
    "subject": {choices},
    "reason": "<short explanation>"
}}"""


def build_classification_prompt(turns: Sequence[Turn], query: str) -> str:
    """Instructions, then `role: content` lines, then the JSON request."""
    lines = [turn.render() for turn in turns]
    lines.append("user: " + CLASSIFY_REQUEST.format(query=query, choices=_SUBJECT_CHOICES))
    return CLASSIFIER_INSTRUCTIONS + "\n" + "\n".join(lines)


class SubjectClassifier:
    """Single-shot LLM classifier; no retries."""

    def __init__(self, generator: TextGenerator, timeout: Optional[float] = None):
        self.generator = generator
        self.timeout = timeout

    async def classify(
        self,
        turns: Sequence[Turn],
        query: str,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Ask the model to label `query`.

        Args:
            turns: Bounded conversation history
            query: The active user question
            cancel: Optional cancellation token

        Returns:
            The model's raw reply

        Raises:
            ClassificationError: If the generative call fails, times out or is cancelled
        """
        prompt = build_classification_prompt(turns, query)
        try:
            return await generate_with_deadline(
                self.generator, prompt, timeout=self.timeout, cancel=cancel
            )
        except GenerationError as e:
            logger.warning("classification_failed", turns=len(turns), **e.to_dict())
            raise ClassificationError(e.message, cause=e) from e
