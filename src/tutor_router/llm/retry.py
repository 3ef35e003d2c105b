"""
Opt-in retry policy for generative calls.

The router never retries on its own. Callers that want bounded retries wrap
their generator:

    generator = RetryingGenerator(LiteLLMGenerator(), max_retries=2)
"""

from typing import Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ..exceptions import GenerationError
from ..utils.logging import get_logger
from .client import TextGenerator

logger = get_logger(__name__)


class RetryingGenerator:
    """TextGenerator that retries GenerationError with exponential backoff."""

    def __init__(
        self,
        inner: TextGenerator,
        max_retries: int = 2,
        wait: Optional[wait_base] = None,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.inner = inner
        self.max_retries = max_retries
        self.wait = wait or wait_exponential(multiplier=1, min=2, max=10)

    async def generate(self, prompt: str) -> str:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self.wait,
            retry=retry_if_exception_type(GenerationError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "generation_retry",
                        attempt=attempt.retry_state.attempt_number,
                        max_attempts=self.max_retries + 1,
                    )
                text = await self.inner.generate(prompt)
        return text
