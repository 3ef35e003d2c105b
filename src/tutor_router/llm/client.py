"""
Generative text backend.

The router only needs one capability from a model: turn a prompt into text.
`TextGenerator` describes that capability; `LiteLLMGenerator` implements it on
top of LiteLLM so any provider LiteLLM supports can back the router.
"""

import asyncio
import time
from typing import Any, Optional, Protocol, runtime_checkable

import litellm

from ..exceptions import GenerationError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that can complete a prompt asynchronously."""

    async def generate(self, prompt: str) -> str:
        """Return the model's text for `prompt` or raise GenerationError."""
        ...


class LiteLLMGenerator:
    """
    TextGenerator backed by `litellm.acompletion`.

    Example:
        generator = LiteLLMGenerator(model="gemini/gemini-2.0-flash-exp")
        text = await generator.generate("Explain Newton's second law")
    """

    def __init__(
        self,
        model: str = "gemini/gemini-2.0-flash-exp",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        timeout: Optional[float] = None,
        **completion_kwargs: Any,
    ):
        """
        Initialize the generator.

        Args:
            model: Model in LiteLLM format ("provider/model")
            api_key: Optional API key (LiteLLM otherwise reads the provider env var)
            temperature: Sampling temperature
            timeout: Request timeout in seconds passed to LiteLLM
            **completion_kwargs: Extra parameters for litellm.acompletion()
        """
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout
        self.completion_kwargs = completion_kwargs

    async def generate(self, prompt: str) -> str:
        """
        Send `prompt` as a single user message and return the reply text.

        Raises:
            GenerationError: If the provider call fails for any reason
        """
        start_time = time.perf_counter()

        completion_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        if self.timeout is not None:
            completion_kwargs["timeout"] = self.timeout
        if self.api_key:
            completion_kwargs["api_key"] = self.api_key
        completion_kwargs.update(self.completion_kwargs)

        try:
            response = await litellm.acompletion(**completion_kwargs)
        except Exception as e:
            raise GenerationError(
                f"LLM completion failed: {e}",
                details={"model": self.model, "error_type": type(e).__name__},
                status_code=getattr(e, "status_code", None),
            ) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise GenerationError(
                f"LLM response had no message content: {e}",
                details={"model": self.model},
            ) from e

        logger.debug(
            "generation_completed",
            model=self.model,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 1),
            output_chars=len(content or ""),
        )
        return content or ""


async def generate_with_deadline(
    generator: TextGenerator,
    prompt: str,
    timeout: Optional[float] = None,
    cancel: Optional[asyncio.Event] = None,
) -> str:
    """
    Run one generative call bounded by a timeout and a cancellation token.

    Timeouts, a set `cancel` event and unexpected exceptions from the
    generator all surface as GenerationError.

    Args:
        generator: Backend to call
        prompt: Prompt text
        timeout: Seconds to wait before giving up (None waits indefinitely)
        cancel: Event that aborts the call when set

    Returns:
        Generated text
    """
    if cancel is not None and cancel.is_set():
        raise GenerationError("Generation cancelled before it started")

    call = asyncio.ensure_future(generator.generate(prompt))
    waiters: set[asyncio.Future] = {call}
    cancel_wait: Optional[asyncio.Future] = None
    if cancel is not None:
        cancel_wait = asyncio.ensure_future(cancel.wait())
        waiters.add(cancel_wait)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if cancel_wait is not None:
            cancel_wait.cancel()
        if not call.done():
            call.cancel()

    if call in done:
        # Only the backend's own task was cancelled here; a cancelled caller
        # never gets past asyncio.wait above.
        if call.cancelled():
            raise GenerationError("Generation cancelled", details={"source": "generator"})
        try:
            return call.result()
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(
                f"Generator raised {type(e).__name__}: {e}",
                details={"error_type": type(e).__name__},
            ) from e

    if cancel_wait is not None and cancel_wait in done:
        raise GenerationError("Generation cancelled")
    raise GenerationError(f"Generation timed out after {timeout}s", details={"timeout": timeout})
