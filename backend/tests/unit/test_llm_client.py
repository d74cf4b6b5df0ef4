"""
Unit tests for the LLM client.

LiteLLM is never called for real: single-model calls are mocked, or
`acompletion` is patched on the client module.

Test Organization:
    - TestMessageHelpers: Message construction and image attachment
    - TestModelChain: Fallback order
    - TestComplete: Fallback, caching and failure
    - TestCompleteWithModel: Request construction for LiteLLM
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flashstudy.enums import PipelineOperation
from flashstudy.middleware.error_handling import LLMError
from flashstudy.models.llm_usage import LLMUsage
from flashstudy.services.llm.cache import LRUResponseCache
from flashstudy.services.llm.client import (
    LLMClient,
    attach_image,
    build_messages,
    get_llm_client,
    reset_llm_client,
)

MESSAGES = [{"role": "user", "content": "Grade this"}]


def _llm_response(content: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 5
    response.usage.total_tokens = 15
    response._hidden_params = {"response_cost": 0.0001}
    return response


# ============================================================================
# Helpers
# ============================================================================


class TestMessageHelpers:
    def test_build_messages_with_system_prompt(self):
        messages = build_messages("Hello", system_prompt="Be brief")

        assert messages == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hello"},
        ]

    def test_build_messages_without_system_prompt(self):
        assert build_messages("Hello") == [{"role": "user", "content": "Hello"}]

    def test_attach_bare_base64(self):
        messages = attach_image(build_messages("Describe", "sys"), "QUJD")

        assert messages[0] == {"role": "system", "content": "sys"}
        content = messages[1]["content"]
        assert content[0]["image_url"]["url"] == "data:image/jpeg;base64,QUJD"
        assert content[1] == {"type": "text", "text": "Describe"}

    def test_attach_data_url_kept(self):
        url = "data:image/png;base64,QUJD"

        messages = attach_image(MESSAGES, url)

        assert messages[0]["content"][0]["image_url"]["url"] == url

    def test_no_image_returns_copy(self):
        messages = attach_image(MESSAGES, None)

        assert messages == MESSAGES
        assert messages is not MESSAGES


# ============================================================================
# Model chain
# ============================================================================


class TestModelChain:
    def test_default_chain(self):
        client = LLMClient(models=["gemini/primary", "gemini/secondary"])

        assert client.model_chain() == ["gemini/primary", "gemini/secondary"]

    def test_override_first_without_duplicates(self):
        client = LLMClient(models=["gemini/primary", "gemini/secondary"])

        assert client.model_chain("gemini/secondary") == [
            "gemini/secondary",
            "gemini/primary",
        ]


# ============================================================================
# Complete
# ============================================================================


class TestComplete:
    @pytest.mark.asyncio
    async def test_falls_back_to_next_model(self):
        client = LLMClient(models=["gemini/primary", "gemini/secondary"])
        usage = LLMUsage(model="gemini/secondary")
        client._complete_with_model = AsyncMock(
            side_effect=[RuntimeError("quota exceeded"), ("{}", usage)]
        )

        content, returned_usage = await client.complete(
            PipelineOperation.ANSWER_GRADING, MESSAGES
        )

        assert content == "{}"
        assert returned_usage is usage
        models = [c.kwargs["model"] for c in client._complete_with_model.await_args_list]
        assert models == ["gemini/primary", "gemini/secondary"]

    @pytest.mark.asyncio
    async def test_all_models_failing_raises(self):
        client = LLMClient(models=["gemini/primary", "gemini/secondary"])
        client._complete_with_model = AsyncMock(side_effect=RuntimeError("timeout"))

        with pytest.raises(LLMError) as exc_info:
            await client.complete(PipelineOperation.FLASHCARD_GENERATION, MESSAGES)

        assert exc_info.value.details["operation"] == "flashcard_generation"
        assert "timeout" in exc_info.value.details["error"]

    @pytest.mark.asyncio
    async def test_cache_hit_skips_network(self):
        client = LLMClient(cache=LRUResponseCache(), models=["gemini/primary"])
        client._complete_with_model = AsyncMock(return_value=("answer", LLMUsage()))

        first, _ = await client.complete(PipelineOperation.ANSWER_GRADING, MESSAGES)
        second, usage = await client.complete(PipelineOperation.ANSWER_GRADING, MESSAGES)

        assert first == second == "answer"
        assert usage.cached is True
        assert client._complete_with_model.await_count == 1

    @pytest.mark.asyncio
    async def test_different_image_is_a_miss(self):
        client = LLMClient(cache=LRUResponseCache(), models=["gemini/primary"])
        client._complete_with_model = AsyncMock(return_value=("answer", LLMUsage()))

        await client.complete(PipelineOperation.FLASHCARD_GENERATION, MESSAGES, image_data="AAAA")
        await client.complete(PipelineOperation.FLASHCARD_GENERATION, MESSAGES, image_data="BBBB")

        assert client._complete_with_model.await_count == 2
        assert client._complete_with_model.await_args.kwargs["request_type"] == "vision"

    @pytest.mark.asyncio
    async def test_empty_response_not_cached(self):
        cache = LRUResponseCache()
        client = LLMClient(cache=cache, models=["gemini/primary"])
        client._complete_with_model = AsyncMock(return_value=("", LLMUsage()))

        await client.complete(PipelineOperation.ANSWER_GRADING, MESSAGES)

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_failure_not_cached(self):
        cache = LRUResponseCache()
        client = LLMClient(cache=cache, models=["gemini/primary"])
        client._complete_with_model = AsyncMock(side_effect=RuntimeError("down"))

        with pytest.raises(LLMError):
            await client.complete(PipelineOperation.ANSWER_GRADING, MESSAGES)

        assert len(cache) == 0


# ============================================================================
# Single-model completion
# ============================================================================


class TestCompleteWithModel:
    @pytest.mark.asyncio
    async def test_json_mode_request(self):
        client = LLMClient(models=["gemini/primary"])
        mock_acompletion = AsyncMock(return_value=_llm_response('{"score": 90}'))

        with patch("flashstudy.services.llm.client.acompletion", mock_acompletion):
            content, usage = await client.complete(
                PipelineOperation.ANSWER_GRADING,
                MESSAGES,
                temperature=0.0,
                max_tokens=200,
                json_mode=True,
            )

        assert content == '{"score": 90}'
        assert usage.total_tokens == 15
        assert usage.provider == "gemini"
        assert usage.operation == "answer_grading"
        kwargs = mock_acompletion.await_args.kwargs
        assert kwargs["model"] == "gemini/primary"
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 200
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_plain_request_has_no_response_format(self):
        client = LLMClient(models=["gemini/primary"])
        mock_acompletion = AsyncMock(return_value=_llm_response("text"))

        with patch("flashstudy.services.llm.client.acompletion", mock_acompletion):
            await client.complete(PipelineOperation.FLASHCARD_GENERATION, MESSAGES)

        assert "response_format" not in mock_acompletion.await_args.kwargs

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty(self):
        client = LLMClient(models=["gemini/primary"])
        mock_acompletion = AsyncMock(return_value=_llm_response(None))

        with patch("flashstudy.services.llm.client.acompletion", mock_acompletion):
            content, _ = await client.complete(PipelineOperation.ANSWER_GRADING, MESSAGES)

        assert content == ""


class TestSingleton:
    def test_get_llm_client_is_cached(self):
        reset_llm_client()
        try:
            client = get_llm_client()

            assert get_llm_client() is client
            assert isinstance(client.cache, LRUResponseCache)
        finally:
            reset_llm_client()
