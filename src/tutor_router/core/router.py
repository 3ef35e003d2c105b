"""
Tutor Router - classification and dispatch.

Pipeline for one request:
1. Bound the conversation to the most recent turns
2. Find the active user question
3. Ask the model for a subject label
4. Recover the label from the raw reply
5. Dispatch to the matching responder (or the fallback)

`route()` always returns exactly one RouteResult. Runtime failures become an
`Unknown` result whose response explains what went wrong; only malformed input
raises.
"""

import asyncio
import time
from typing import Iterable, Mapping, Optional, Sequence

from ..exceptions import ClassificationError, MissingQueryError, RecoveryError
from ..llm.client import LiteLLMGenerator, TextGenerator
from ..llm.retry import RetryingGenerator
from ..models.enums import Subject
from ..models.schemas import RouteResult, Turn
from ..utils.logging import get_logger
from .classifier import SubjectClassifier
from .config import RouterConfig, get_config
from .constants import ConstantTable, default_constants
from .history import TurnLike, bound_history, coerce_turns, latest_user_query
from .recovery import recover
from .responders import Responder, build_responders, fallback_responder

logger = get_logger(__name__)

MISSING_QUERY_REASON = "Missing user query."
CLASSIFICATION_FAILED_REASON = "Subject classification failed."


class TutorRouter:
    """
    Routes a conversation to the subject responder best suited to answer it.

    Example:
        router = TutorRouter.from_config()
        result = await router.route([{"role": "user", "content": "What is 2 + 2?"}])
        print(result.agent, result.response)
    """

    def __init__(
        self,
        generator: TextGenerator,
        config: Optional[RouterConfig] = None,
        constants: Optional[ConstantTable] = None,
    ):
        """
        Args:
            generator: Backend used for classification and responses
            config: Router settings (defaults to the global configuration)
            constants: Lookup table for the physics responder
                (defaults to the packaged table)
        """
        self.config = config or get_config()
        self.generator = generator
        self.constants = constants if constants is not None else default_constants()

        timeout = self.config.generation_timeout
        self.classifier = SubjectClassifier(generator, timeout=timeout)
        self.responders: Mapping[Subject, Responder] = build_responders(
            generator,
            constants=self.constants,
            match_threshold=self.config.constant_match_threshold,
            timeout=timeout,
        )

    @classmethod
    def from_config(cls, config: Optional[RouterConfig] = None) -> "TutorRouter":
        """Build a router backed by LiteLLM, wrapped in retries when configured."""
        config = config or get_config()
        generator: TextGenerator = LiteLLMGenerator(
            model=config.model,
            api_key=config.gemini_api_key,
            temperature=config.temperature,
            timeout=config.generation_timeout,
        )
        if config.max_retries > 0:
            generator = RetryingGenerator(generator, max_retries=config.max_retries)
        return cls(generator, config=config)

    def responder_for(self, subject: Subject) -> Responder:
        """Responder for `subject`; unmapped subjects get a fresh fallback."""
        responder = self.responders.get(subject)
        if responder is None:
            return fallback_responder(self.generator, timeout=self.config.generation_timeout)
        return responder

    def _resolve_query(self, turns: Sequence[Turn], bounded: Sequence[Turn]) -> str:
        query = latest_user_query(bounded)
        if query is None:
            query = latest_user_query(turns)
        if query is None:
            raise MissingQueryError()
        return query

    async def route(
        self,
        turns: Iterable[TurnLike],
        cancel: Optional[asyncio.Event] = None,
    ) -> RouteResult:
        """
        Classify the latest user question and answer it.

        Args:
            turns: Conversation, oldest first; Turn models or role/content mappings
            cancel: Optional token that aborts in-flight generative calls

        Returns:
            RouteResult describing the answer or the failure

        Raises:
            TypeError, pydantic.ValidationError: If `turns` is malformed
        """
        start_time = time.perf_counter()
        history = coerce_turns(turns)
        bounded = bound_history(history, self.config.history_limit)

        try:
            query = self._resolve_query(history, bounded)
        except MissingQueryError as e:
            logger.info("route_skipped", reason=MISSING_QUERY_REASON, turns=len(history))
            return RouteResult(
                agent=Subject.UNKNOWN, response=e.message, reason=MISSING_QUERY_REASON
            )

        try:
            raw = await self.classifier.classify(bounded, query, cancel=cancel)
            label = recover(raw)
        except (ClassificationError, RecoveryError) as e:
            logger.warning("route_classification_failed", **e.to_dict())
            return RouteResult(
                agent=Subject.UNKNOWN,
                response=f"Classification failed. Error: {e.message}",
                reason=CLASSIFICATION_FAILED_REASON,
            )

        responder = self.responder_for(label.subject)
        if label.subject is Subject.UNKNOWN:
            response = await responder.respond(query, cancel=cancel)
        else:
            response = await responder.respond(label.reason + query, cancel=cancel)

        logger.info(
            "route_completed",
            agent=label.subject.value,
            responder=responder.name,
            history_turns=len(bounded),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 1),
        )
        return RouteResult(agent=label.subject, response=response, reason=label.reason)

    def route_sync(self, turns: Iterable[TurnLike]) -> RouteResult:
        """Blocking wrapper around `route()` for callers without an event loop."""
        return asyncio.run(self.route(turns))
