"""
Integration tests for the full routing pipeline.

Every test drives TutorRouter.route() end to end with a scripted generator, so
the classifier prompt, label recovery, dispatch and response all run for real.
"""

import asyncio

import pytest
from pydantic import ValidationError

from tutor_router.core.config import RouterConfig
from tutor_router.core.responders import FALLBACK_INSTRUCTIONS, SUBJECT_INSTRUCTIONS
from tutor_router.core.router import (
    CLASSIFICATION_FAILED_REASON,
    MISSING_QUERY_REASON,
    TutorRouter,
)
from tutor_router.exceptions import GenerationError
from tutor_router.llm import LiteLLMGenerator, RetryingGenerator
from tutor_router.models import Role, RouteResult, Subject, Turn


def _user(content):
    return {"role": "user", "content": content}


def _assistant(content):
    return {"role": "assistant", "content": content}


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_math_question(self, make_router, conversation):
        router, generator = make_router(
            '```json\n{"subject": "MathAgent", "reason": "Linear equation. "}\n```',
            "x = 2",
        )

        result = await router.route(conversation)

        assert result == RouteResult(agent=Subject.MATH, response="x = 2", reason="Linear equation. ")
        assert generator.calls == 2
        assert generator.prompts[1] == (
            SUBJECT_INSTRUCTIONS[Subject.MATH] + "\nUser: Linear equation. Solve 2x + 3 = 7"
        )

    @pytest.mark.asyncio
    async def test_planck_constant_answered_without_second_call(self, make_router):
        router, generator = make_router(
            '{"subject": "PhysicsAgent", "reason": "The query asks about a physics constant."}'
        )

        result = await router.route([_user("What is Planck's constant?")])

        assert result.agent is Subject.PHYSICS
        assert result.reason == "The query asks about a physics constant."
        assert "`h`" in result.response
        assert "6.62607015e-34" in result.response
        assert "J·s" in result.response
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_reason_concatenated_without_separator(self, make_router):
        router, generator = make_router(
            '{"subject": "HistoryAgent", "reason": "R:"}',
            "In 1815.",
        )

        await router.route([_user("When was Waterloo?")])

        assert generator.prompts[1].endswith("User: R:When was Waterloo?")

    @pytest.mark.asyncio
    async def test_missing_reason_gets_default(self, make_router):
        router, _ = make_router('{"subject": "ChemistryAgent"}', "pH 7")

        result = await router.route([_user("What is the pH of water?")])

        assert result.agent is Subject.CHEMISTRY
        assert result.reason == "No reason provided."

    @pytest.mark.asyncio
    async def test_response_returned_verbatim(self, make_router):
        router, _ = make_router('{"subject": "MathAgent", "reason": "r"}', "")

        result = await router.route([_user("2+2?")])

        assert result.response == ""
        assert result.agent is Subject.MATH


class TestFallback:
    @pytest.mark.asyncio
    async def test_unknown_goes_to_fallback_with_raw_query(self, make_router):
        router, generator = make_router(
            '{"subject": "Unknown", "reason": "Greeting."}',
            "Hello! I can help with Math, Physics, History or Chemistry.",
        )

        result = await router.route([_user("hello")])

        assert result.agent is Subject.UNKNOWN
        assert result.reason == "Greeting."
        assert result.response
        assert generator.prompts[1] == FALLBACK_INSTRUCTIONS + "\nUser: hello"

    @pytest.mark.asyncio
    async def test_unrecognised_subject_label_goes_to_fallback(self, make_router):
        router, generator = make_router(
            '{"subject": "BiologyAgent", "reason": "Cells."}',
            "Please stay on topic.",
        )

        result = await router.route([_user("What is mitosis?")])

        assert result.agent is Subject.UNKNOWN
        assert generator.prompts[1].startswith(FALLBACK_INSTRUCTIONS)

    @pytest.mark.asyncio
    async def test_fallback_failure_becomes_text(self, make_router):
        router, _ = make_router(
            '{"subject": "Unknown", "reason": "Off topic."}',
            GenerationError("backend down"),
        )

        result = await router.route([_user("tell me a joke")])

        assert result.agent is Subject.UNKNOWN
        assert result.response == "Agent FallbackAgent failed: backend down"


class TestFailureEnvelopes:
    @pytest.mark.asyncio
    async def test_missing_query_makes_no_calls(self, make_router):
        router, generator = make_router()

        result = await router.route([_assistant("How can I help?")])

        assert result.agent is Subject.UNKNOWN
        assert result.reason == MISSING_QUERY_REASON
        assert result.response == "No user question found in the message history."
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_empty_history(self, make_router):
        router, generator = make_router()

        result = await router.route([])

        assert result.reason == MISSING_QUERY_REASON
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_blank_user_turn_counts_as_missing(self, make_router):
        router, generator = make_router()

        result = await router.route([_user("   ")])

        assert result.reason == MISSING_QUERY_REASON
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_blank_latest_user_turn_does_not_reuse_older_question(self, make_router):
        router, generator = make_router('{"subject": "PhysicsAgent"}', "answer")

        result = await router.route(
            [_user("What is entropy?"), _assistant("Disorder."), _user("")]
        )

        assert result.agent is Subject.UNKNOWN
        assert result.reason == MISSING_QUERY_REASON
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_backend_cancellation_becomes_envelope(self, make_router, self_cancelling):
        router, _ = make_router()
        router = TutorRouter(self_cancelling(), config=router.config, constants=router.constants)

        result = await router.route([_user("2+2?")])

        assert result.agent is Subject.UNKNOWN
        assert result.reason == CLASSIFICATION_FAILED_REASON
        assert result.response == "Classification failed. Error: Generation cancelled"

    @pytest.mark.asyncio
    async def test_classifier_generation_failure(self, make_router):
        router, generator = make_router(GenerationError("quota exceeded", status_code=429))

        result = await router.route([_user("What is 2+2?")])

        assert result.agent is Subject.UNKNOWN
        assert result.reason == CLASSIFICATION_FAILED_REASON
        assert result.response.startswith("Classification failed. Error:")
        assert "quota exceeded" in result.response
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_unrecoverable_reply(self, make_router):
        router, generator = make_router("I think this is a math question.")

        result = await router.route([_user("What is 2+2?")])

        assert result.agent is Subject.UNKNOWN
        assert result.reason == CLASSIFICATION_FAILED_REASON
        assert result.response.startswith("Classification failed. Error:")
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_responder_failure_keeps_label(self, make_router):
        router, _ = make_router(
            '{"subject": "MathAgent", "reason": "Arithmetic."}',
            GenerationError("overloaded"),
        )

        result = await router.route([_user("What is 2+2?")])

        assert result.agent is Subject.MATH
        assert result.reason == "Arithmetic."
        assert result.response == "Agent MathAgent failed: overloaded"

    @pytest.mark.asyncio
    async def test_cancelled_before_classification(self, make_router):
        router, generator = make_router('{"subject": "MathAgent"}')
        cancel = asyncio.Event()
        cancel.set()

        result = await router.route([_user("What is 2+2?")], cancel=cancel)

        assert result.reason == CLASSIFICATION_FAILED_REASON
        assert "cancelled" in result.response
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_classification_timeout(self, config, constants, stalled):
        config = config.model_copy(update={"generation_timeout": 0.05})
        router = TutorRouter(stalled(), config=config, constants=constants)

        result = await router.route([_user("What is 2+2?")])

        assert result.reason == CLASSIFICATION_FAILED_REASON
        assert "timed out" in result.response


class TestHistoryHandling:
    @pytest.mark.asyncio
    async def test_classifier_sees_only_recent_turns(self, make_router):
        turns = [_user(f"old question {i}") for i in range(12)] + [_user("newest question")]
        router, generator = make_router('{"subject": "Unknown"}', "ok")

        await router.route(turns)

        prompt = generator.prompts[0]
        assert "old question 0" not in prompt
        assert "old question 2" not in prompt
        assert "old question 3" in prompt
        assert "Query: newest question" in prompt

    @pytest.mark.asyncio
    async def test_latest_user_turn_is_the_query(self, make_router, conversation):
        router, generator = make_router('{"subject": "MathAgent", "reason": "Algebra. "}', "x = 2")

        await router.route(conversation)

        assert "Query: Solve 2x + 3 = 7" in generator.prompts[0]
        assert generator.prompts[1].endswith("User: Algebra. Solve 2x + 3 = 7")

    @pytest.mark.asyncio
    async def test_user_turn_outside_window_still_found(self, make_router):
        turns = [_user("What is entropy?")] + [_assistant(f"note {i}") for i in range(10)]
        router, generator = make_router('{"subject": "PhysicsAgent", "reason": ""}', "Disorder.")

        result = await router.route(turns)

        assert result.agent is Subject.PHYSICS
        assert "Query: What is entropy?" in generator.prompts[0]
        assert "user: What is entropy?" not in generator.prompts[0]

    @pytest.mark.asyncio
    async def test_caller_history_not_mutated(self, make_router, conversation):
        snapshot = list(conversation)
        router, _ = make_router('{"subject": "MathAgent"}', "x = 2")

        await router.route(conversation)

        assert conversation == snapshot

    @pytest.mark.asyncio
    async def test_accepts_turn_models_and_mappings(self, make_router):
        turns = [
            Turn(role=Role.USER, content="Hi"),
            _assistant("Hello"),
            _user("Who built the pyramids?"),
        ]
        router, _ = make_router('{"subject": "HistoryAgent", "reason": "Egypt. "}', "Egyptians.")

        result = await router.route(turns)

        assert result.agent is Subject.HISTORY


class TestMalformedInput:
    @pytest.mark.asyncio
    async def test_plain_string_rejected(self, make_router):
        router, generator = make_router()

        with pytest.raises(TypeError):
            await router.route("What is 2+2?")
        assert generator.calls == 0

    @pytest.mark.asyncio
    async def test_unknown_role_rejected(self, make_router):
        router, _ = make_router()

        with pytest.raises(ValidationError):
            await router.route([{"role": "system", "content": "be nice"}])


class TestConstruction:
    def test_from_config_plain_generator(self, config):
        router = TutorRouter.from_config(config)

        assert isinstance(router.generator, LiteLLMGenerator)
        assert router.generator.model == config.model
        assert router.generator.api_key == "test-key"

    def test_from_config_with_retries(self, config):
        config = config.model_copy(update={"max_retries": 2})

        router = TutorRouter.from_config(config)

        assert isinstance(router.generator, RetryingGenerator)
        assert router.generator.max_retries == 2
        assert isinstance(router.generator.inner, LiteLLMGenerator)

    def test_responder_for_unmapped_subject(self, make_router):
        router, _ = make_router()
        assert router.responder_for(Subject.UNKNOWN).instructions == FALLBACK_INSTRUCTIONS
        assert router.responder_for(Subject.MATH).name == "MathAgent"

    def test_history_limit_from_config(self, constants, scripted):
        config = RouterConfig(gemini_api_key="k", history_limit=2)
        generator = scripted('{"subject": "Unknown"}', "ok")
        router = TutorRouter(generator, config=config, constants=constants)

        router.route_sync([_user("first"), _user("second"), _user("third")])

        assert "user: first" not in generator.prompts[0]
        assert "user: second" in generator.prompts[0]


class TestRouteSync:
    def test_route_sync(self, make_router):
        router, _ = make_router('{"subject": "MathAgent", "reason": "r"}', "4")

        result = router.route_sync([_user("2+2?")])

        assert result.agent is Subject.MATH
        assert result.response == "4"


class TestFailureLogging:
    @pytest.mark.asyncio
    async def test_classification_failure_logs_error_context(self, make_router, mocker):
        logger = mocker.patch("tutor_router.core.router.logger")
        router, _ = make_router(GenerationError("quota exceeded", status_code=429))

        await router.route([_user("What is 2+2?")])

        event, = logger.warning.call_args.args
        fields = logger.warning.call_args.kwargs
        assert event == "route_classification_failed"
        assert fields["error_type"] == "ClassificationError"
        assert "rate limit" in fields["user_message"]
        assert "timestamp" in fields

    @pytest.mark.asyncio
    async def test_responder_failure_logs_error_context(self, make_router, mocker):
        logger = mocker.patch("tutor_router.core.responders.logger")
        router, _ = make_router(
            '{"subject": "MathAgent", "reason": "r"}',
            GenerationError("unauthorised", status_code=401),
        )

        await router.route([_user("What is 2+2?")])

        fields = logger.warning.call_args.kwargs
        assert fields["responder"] == "MathAgent"
        assert fields["error_type"] == "GenerationError"
        assert "authentication" in fields["user_message"]
