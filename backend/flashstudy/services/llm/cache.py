"""
AI Response Cache

Memoizes AI responses within a process so identical requests (same prompt
messages, same image prefix) do not hit the network twice. The cache is a
lookup optimisation only; nothing depends on a hit for correctness.

The cache is injected into LLMClient through the ResponseCache protocol.
LRUResponseCache bounds memory by evicting the least recently used entry.

Usage:
    from flashstudy.services.llm.cache import LRUResponseCache, make_cache_key

    cache = LRUResponseCache(max_entries=256)
    key = make_cache_key(messages, image_data)
    if (hit := cache.get(key)) is None:
        cache.put(key, response_text)
"""

import hashlib
import json
from collections import OrderedDict
from typing import Optional, Protocol

# Only the first characters of image data take part in the key
IMAGE_KEY_PREFIX_CHARS = 50


class ResponseCache(Protocol):
    """Capability interface for response caches."""

    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...


def make_cache_key(messages: list[dict], image_data: Optional[str] = None) -> str:
    """
    Stable hash of the prompt messages plus the image prefix.

    Args:
        messages: Chat messages sent to the model
        image_data: Optional image (data URL or base64)

    Returns:
        Hex SHA-256 digest
    """
    digest = hashlib.sha256()
    digest.update(json.dumps(messages, sort_keys=True).encode("utf-8"))
    digest.update(b"\x00")
    digest.update((image_data or "")[:IMAGE_KEY_PREFIX_CHARS].encode("utf-8"))
    return digest.hexdigest()


class LRUResponseCache:
    """
    Bounded in-memory LRU cache.

    Attributes:
        max_entries: Capacity; 0 disables caching
        hits: Number of successful lookups
        misses: Number of failed lookups
    """

    def __init__(self, max_entries: int = 256):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        if key not in self._entries:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return self._entries[key]

    def put(self, key: str, value: str) -> None:
        if self.max_entries <= 0:
            return
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
