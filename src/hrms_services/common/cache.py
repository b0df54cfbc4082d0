from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class ServiceCache:
    """Process-local key/value store owned by one service instance.

    No expiry, no size bound and no locking: entries live until the owning
    service clears them after a write. `clear()` accepts either an exact key
    or a prefix; keys are colon-separated, so a prefix should end with `:`
    when it names a whole segment (`user_attendance:7:` never matches user 71).
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def clear(self, key_or_prefix: str) -> int:
        stale = [k for k in self._entries if k == key_or_prefix or k.startswith(key_or_prefix)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("cache cleared %d entries for %r", len(stale), key_or_prefix)
        return len(stale)

    def clear_all(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


def cache_key(*parts) -> str:
    """Join key segments; missing values become `*`."""
    return ":".join("*" if p is None else str(p) for p in parts)
