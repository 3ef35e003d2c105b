"""
Pytest configuration and shared fixtures.
"""

import asyncio

import pytest

from tutor_router.core.config import RouterConfig, reset_config
from tutor_router.core.constants import default_constants
from tutor_router.core.router import TutorRouter
from tutor_router.exceptions import GenerationError
from tutor_router.models import Role, Turn


class ScriptedGenerator:
    """TextGenerator that replays canned replies and records every prompt."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise GenerationError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class StalledGenerator:
    """TextGenerator that never answers in time."""

    def __init__(self, delay: float = 10.0):
        self.delay = delay
        self.started = asyncio.Event()

    async def generate(self, prompt: str) -> str:
        self.started.set()
        await asyncio.sleep(self.delay)
        return "too late"


@pytest.fixture(autouse=True)
def _reset_global_config():
    """Keep the global configuration from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    """Minimal valid configuration"""
    return RouterConfig(gemini_api_key="test-key", generation_timeout=5.0)


@pytest.fixture
def constants():
    return default_constants()


@pytest.fixture
def make_router(config, constants):
    """Factory building a router around a ScriptedGenerator."""

    def _make(*replies):
        generator = ScriptedGenerator(*replies)
        return TutorRouter(generator, config=config, constants=constants), generator

    return _make


@pytest.fixture
def conversation():
    """Short multi-turn conversation ending with a user question."""
    return [
        Turn(role=Role.USER, content="Hi there"),
        Turn(role=Role.ASSISTANT, content="Hello! What are you studying today?"),
        Turn(role=Role.USER, content="Solve 2x + 3 = 7"),
    ]


@pytest.fixture
def scripted():
    """Factory for ScriptedGenerator instances."""
    return ScriptedGenerator


@pytest.fixture
def stalled():
    """Factory for StalledGenerator instances."""
    return StalledGenerator


class SelfCancellingGenerator:
    """TextGenerator whose backend task is cancelled from the inside."""

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        raise asyncio.CancelledError()


@pytest.fixture
def self_cancelling():
    """Factory for SelfCancellingGenerator instances."""
    return SelfCancellingGenerator
