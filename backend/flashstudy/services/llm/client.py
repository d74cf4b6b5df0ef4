"""
LLM Client for the generative-AI collaborator, via LiteLLM.

LiteLLM provides a unified interface to LLM providers using the format
"provider/model-name". Key features used here:
- Ordered model fallback (primary TEXT_MODEL, then FALLBACK_TEXT_MODEL)
- Automatic retries with exponential backoff per model (tenacity)
- Optional inline image for multimodal prompts
- Injectable response cache (see cache.py)
- Usage record per call (LLMUsage)

The client always returns the raw response text. Callers parse it
defensively; a model may ignore a requested JSON format.

See: https://docs.litellm.ai/

Usage:
    from flashstudy.enums import PipelineOperation
    from flashstudy.services.llm import build_messages, get_llm_client

    client = get_llm_client()
    text, usage = await client.complete(
        operation=PipelineOperation.ANSWER_GRADING,
        messages=build_messages("Grade this answer..."),
        json_mode=True,
    )
"""

import logging
import os
import time
from typing import Optional, Union

import litellm
from litellm import acompletion
from tenacity import retry, stop_after_attempt, wait_exponential

from flashstudy.config import settings, yaml_config
from flashstudy.enums.pipeline import PipelineOperation
from flashstudy.middleware.error_handling import LLMError
from flashstudy.models.llm_usage import (
    LLMUsage,
    create_error_usage,
    extract_usage_from_response,
)
from flashstudy.services.llm.cache import LRUResponseCache, ResponseCache, make_cache_key

logger = logging.getLogger(__name__)

# Configure LiteLLM
litellm.drop_params = True  # Drop unsupported params instead of erroring
if settings.DEBUG:
    os.environ["LITELLM_LOG"] = "DEBUG"


def build_messages(
    prompt: str,
    system_prompt: Optional[str] = None,
) -> list[dict[str, str]]:
    """
    Build messages list from prompt and optional system prompt.

    Args:
        prompt: User prompt text
        system_prompt: Optional system prompt

    Returns:
        List of message dicts for LLM API
    """
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def attach_image(messages: list[dict], image_data: Optional[str]) -> list[dict]:
    """
    Attach an image to the user messages in OpenAI multimodal format.

    Args:
        messages: Chat messages with text content
        image_data: Data URL ("data:image/...;base64,...") or bare base64

    Returns:
        New message list (unchanged copy if no image)
    """
    if not image_data:
        return list(messages)

    url = image_data if image_data.startswith("data:") else (
        f"data:image/jpeg;base64,{image_data}"
    )
    formatted = []
    for msg in messages:
        if msg["role"] == "user":
            formatted.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": url}},
                        {"type": "text", "text": msg["content"]},
                    ],
                }
            )
        else:
            formatted.append(msg)
    return formatted


class LLMClient:
    """
    AI completion client with model fallback, retries and response caching.

    Attributes:
        cache: Response cache (None disables caching)
        models: Ordered model chain tried for each request
    """

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        models: Optional[list[str]] = None,
    ):
        """
        Initialize the LLM client and check API keys.

        Args:
            cache: Response cache implementation
            models: Model chain override (defaults to TEXT_MODEL, FALLBACK_TEXT_MODEL)
        """
        self.cache = cache
        self.models = models or [
            m for m in (settings.TEXT_MODEL, settings.FALLBACK_TEXT_MODEL) if m
        ]
        self._validate_api_keys()

    def _validate_api_keys(self):
        """Warn when no provider API key is configured."""
        available_keys = []

        if os.getenv("GEMINI_API_KEY") or settings.GEMINI_API_KEY:
            available_keys.append("Google/Gemini")
        if os.getenv("OPENAI_API_KEY") or settings.OPENAI_API_KEY:
            available_keys.append("OpenAI")

        if not available_keys:
            logger.warning(
                "No LLM API keys configured. Set GEMINI_API_KEY or OPENAI_API_KEY"
            )
        else:
            logger.info(f"LLM client initialized with providers: {available_keys}")

    def model_chain(self, model: Optional[str] = None) -> list[str]:
        """Models to try in order, with an explicit override first."""
        chain = [model] if model else []
        chain.extend(m for m in self.models if m not in chain)
        return chain

    async def complete(
        self,
        operation: Union[PipelineOperation, str],
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
        image_data: Optional[str] = None,
    ) -> tuple[str, LLMUsage]:
        """
        Generate a completion, trying each model in the chain.

        Args:
            operation: Operation for usage attribution
            messages: Chat messages in OpenAI format
            temperature: Sampling temperature (defaults to LLM_TEMPERATURE)
            max_tokens: Maximum tokens in response (defaults to LLM_MAX_TOKENS)
            json_mode: Ask the provider for a JSON object response
            model: Optional model tried before the configured chain
            image_data: Optional image (data URL or base64)

        Returns:
            Tuple of (raw response text, LLMUsage)

        Raises:
            LLMError: If every model in the chain failed
        """
        operation_name = getattr(operation, "value", operation)
        key = make_cache_key(messages, image_data)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Using cached AI response for {operation_name}")
                return cached, LLMUsage(
                    model=model or (self.models[0] if self.models else ""),
                    request_type="text",
                    operation=operation_name,
                    cached=True,
                )

        request_messages = attach_image(messages, image_data)
        request_type = "vision" if image_data else "text"
        last_error: Optional[Exception] = None

        for candidate in self.model_chain(model):
            try:
                content, usage = await self._complete_with_model(
                    model=candidate,
                    messages=request_messages,
                    temperature=(
                        settings.LLM_TEMPERATURE if temperature is None else temperature
                    ),
                    max_tokens=max_tokens or settings.LLM_MAX_TOKENS,
                    json_mode=json_mode,
                    request_type=request_type,
                    operation=operation_name,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    f"AI completion failed on {candidate}, trying next model: {e}"
                )
                continue

            if self.cache is not None and content:
                self.cache.put(key, content)
            return content, usage

        raise LLMError(
            "AI service unavailable",
            details={"operation": operation_name, "error": str(last_error)},
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def _complete_with_model(
        self,
        model: str,
        messages: list[dict],
        temperature: float,
        max_tokens: int,
        json_mode: bool,
        request_type: str,
        operation: Optional[str],
    ) -> tuple[str, LLMUsage]:
        """Single-model completion with retries."""
        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        start_time = time.perf_counter()

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            error_usage = create_error_usage(
                model=model,
                request_type=request_type,
                latency_ms=latency_ms,
                error_message=str(e),
                operation=operation,
            )
            logger.error(f"LLM completion failed: {e} ({error_usage})")
            raise

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        usage = extract_usage_from_response(
            response=response,
            model=model,
            request_type=request_type,
            latency_ms=latency_ms,
            operation=operation,
        )

        if usage.cost_usd:
            logger.debug(
                f"LLM completion [{model}] - Cost: ${usage.cost_usd:.4f}, "
                f"Tokens: {usage.total_tokens}, Latency: {latency_ms}ms"
            )

        content = response.choices[0].message.content or ""
        return content, usage


# Singleton instance
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """
    Get or create singleton LLM client with the configured LRU cache.

    Returns:
        Shared LLMClient instance
    """
    global _client
    if _client is None:
        llm_config = yaml_config.get("llm", {})
        max_entries = llm_config.get("cache_max_entries", settings.LLM_CACHE_MAX_ENTRIES)
        _client = LLMClient(cache=LRUResponseCache(max_entries=max_entries))
    return _client


def reset_llm_client():
    """Reset the singleton client (useful for testing)."""
    global _client
    _client = None
