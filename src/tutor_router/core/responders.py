"""
Subject responders.

Every responder is the same `Responder` type differing only in data: a name,
fixed instructions and, for physics, a constant table consulted before any
model call. `build_responders` creates the closed set keyed by Subject.
"""

import asyncio
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from ..exceptions import GenerationError
from ..llm.client import TextGenerator, generate_with_deadline
from ..models.enums import Subject
from ..utils.logging import get_logger
from .constants import DEFAULT_MATCH_THRESHOLD, ConstantTable

logger = get_logger(__name__)

SUBJECT_INSTRUCTIONS: Mapping[Subject, str] = MappingProxyType(
    {
        Subject.MATH: "You are a math expert. Help solve math problems and equations.",
        Subject.PHYSICS: (
            "You are a physics expert. Explain physical constants and physics concepts."
        ),
        Subject.CHEMISTRY: (
            "You are a chemistry expert. Help solve chemistry problems and equations."
        ),
        Subject.HISTORY: (
            "You are a history expert. Help solve history problems and get back accurate "
            "information citing reliable resources."
        ),
    }
)

FALLBACK_NAME = "FallbackAgent"

FALLBACK_INSTRUCTIONS = (
    "This question is out of scope/not related to subjects, respond accordingly and stay "
    "on topic itself and try not to explain/expand on it too much. Politely ask them to "
    "stay on topic and show what all agents you have. (Math, Physics, History, Chemistry), "
    "Do respond politely to greetings and just try to steer the conversation in the right "
    "direction if user is going offtopic."
)


@dataclass(frozen=True)
class Responder:
    """
    Named answerer with fixed instructions.

    Attributes:
        name: Identity used in prompts and failure messages
        instructions: System text prepended to every query
        generator: Backend used when no deterministic answer applies
        constants: Optional lookup table tried before generation
        match_threshold: Minimum fuzzy score for a constant hit
        timeout: Seconds allowed for the generative call
    """

    name: str
    instructions: str
    generator: TextGenerator
    constants: Optional[ConstantTable] = None
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    timeout: Optional[float] = None

    def build_prompt(self, query: str) -> str:
        return f"{self.instructions}\nUser: {query}"

    def lookup(self, query: str) -> Optional[str]:
        """Deterministic answer from the constant table, if any."""
        if self.constants is None:
            return None
        return self.constants.lookup(query, self.match_threshold)

    async def respond(self, query: str, cancel: Optional[asyncio.Event] = None) -> str:
        """
        Answer `query`.

        Never raises for backend failures; the failure is reported as the
        answer text instead.
        """
        answer = self.lookup(query)
        if answer is not None:
            logger.debug("constant_lookup_hit", responder=self.name)
            return answer

        try:
            return await generate_with_deadline(
                self.generator, self.build_prompt(query), timeout=self.timeout, cancel=cancel
            )
        except GenerationError as e:
            logger.warning("responder_failed", responder=self.name, **e.to_dict())
            return f"Agent {self.name} failed: {e.message}"


def build_responders(
    generator: TextGenerator,
    constants: Optional[ConstantTable] = None,
    match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    timeout: Optional[float] = None,
) -> Mapping[Subject, Responder]:
    """
    Create one responder per concrete subject.

    Only the physics responder receives the constant table.
    """
    responders = {
        subject: Responder(
            name=subject.value,
            instructions=instructions,
            generator=generator,
            constants=constants if subject is Subject.PHYSICS else None,
            match_threshold=match_threshold,
            timeout=timeout,
        )
        for subject, instructions in SUBJECT_INSTRUCTIONS.items()
    }
    return MappingProxyType(responders)


def fallback_responder(generator: TextGenerator, timeout: Optional[float] = None) -> Responder:
    """Responder for questions outside the supported subjects."""
    return Responder(
        name=FALLBACK_NAME,
        instructions=FALLBACK_INSTRUCTIONS,
        generator=generator,
        timeout=timeout,
    )
