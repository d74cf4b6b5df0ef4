"""
LLM Usage Types

Defines the LLMUsage dataclass and helpers for extracting token and
latency information from LiteLLM responses.

Usage:
    from flashstudy.models.llm_usage import LLMUsage, extract_usage_from_response

    usage = extract_usage_from_response(
        response=litellm_response,
        model="gemini/gemini-1.5-flash",
        request_type="text",
        latency_ms=1234,
        operation="answer_grading",
    )
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class LLMUsage:
    """
    Structured usage data returned from completion calls.

    Attributes:
        request_id: Unique identifier for this request (auto-generated UUID)
        model: Full model identifier (e.g., "gemini/gemini-1.5-flash")
        provider: Extracted provider name (e.g., "gemini")
        request_type: Type of request ("text", "vision")
        prompt_tokens: Number of input tokens
        completion_tokens: Number of output tokens
        total_tokens: Total tokens used
        cost_usd: Total cost in USD, when the provider reports it
        operation: Operation name (e.g., "answer_grading")
        latency_ms: Request latency in milliseconds
        cached: Whether the response came from the response cache
        success: Whether the request succeeded
        error_message: Error message if request failed
    """

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    model: str = ""
    provider: str = ""
    request_type: str = ""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    cost_usd: Optional[float] = None

    operation: Optional[str] = None
    latency_ms: Optional[int] = None
    cached: bool = False
    success: bool = True
    error_message: Optional[str] = None

    def __str__(self) -> str:
        cost_str = f"${self.cost_usd:.4f}" if self.cost_usd else "N/A"
        tokens_str = str(self.total_tokens) if self.total_tokens else "N/A"
        return (
            f"LLMUsage({self.model}, {self.request_type}, "
            f"cost={cost_str}, tokens={tokens_str}, cached={self.cached})"
        )


def extract_provider(model: str) -> str:
    """
    Extract provider name from model identifier.

    Args:
        model: Full model identifier (e.g., "gemini/gemini-1.5-flash")

    Returns:
        Provider name (e.g., "gemini") or "unknown" if not parseable
    """
    if "/" in model:
        return model.split("/")[0]
    return "unknown"


def extract_usage_from_response(
    response,
    model: str,
    request_type: str,
    latency_ms: int,
    operation: Optional[str] = None,
) -> LLMUsage:
    """
    Extract usage information from a LiteLLM response.

    Args:
        response: LiteLLM response object
        model: Model identifier used for the request
        request_type: Type of request ("text", "vision")
        latency_ms: Measured latency in milliseconds
        operation: Optional operation name for attribution

    Returns:
        LLMUsage populated with whatever the response exposes
    """
    usage = LLMUsage(
        model=model,
        provider=extract_provider(model),
        request_type=request_type,
        latency_ms=latency_ms,
        operation=operation,
    )

    response_usage = getattr(response, "usage", None)
    if response_usage:
        usage.prompt_tokens = getattr(response_usage, "prompt_tokens", None)
        usage.completion_tokens = getattr(response_usage, "completion_tokens", None)
        usage.total_tokens = getattr(response_usage, "total_tokens", None)

    hidden = getattr(response, "_hidden_params", None)
    if isinstance(hidden, dict):
        usage.cost_usd = hidden.get("response_cost")

    return usage


def create_error_usage(
    model: str,
    request_type: str,
    latency_ms: int,
    error_message: str,
    operation: Optional[str] = None,
) -> LLMUsage:
    """Create an LLMUsage record for a failed request."""
    return LLMUsage(
        model=model,
        provider=extract_provider(model),
        request_type=request_type,
        latency_ms=latency_ms,
        operation=operation,
        success=False,
        error_message=error_message,
    )
