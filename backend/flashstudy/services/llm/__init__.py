"""
AI collaborator access: LiteLLM client with model fallback and a
pluggable response cache.
"""

from flashstudy.services.llm.cache import LRUResponseCache, ResponseCache, make_cache_key
from flashstudy.services.llm.client import (
    LLMClient,
    attach_image,
    build_messages,
    get_llm_client,
    reset_llm_client,
)

__all__ = [
    "LLMClient",
    "LRUResponseCache",
    "ResponseCache",
    "attach_image",
    "build_messages",
    "get_llm_client",
    "make_cache_key",
    "reset_llm_client",
]
