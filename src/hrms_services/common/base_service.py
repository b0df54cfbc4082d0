from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from ..database.query import DataClient
from .cache import ServiceCache
from .pagination import Page, PaginationParams, build_page
from .retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _detached(value):
    """Shallow copy of list results so callers never mutate a cache entry."""
    if isinstance(value, list):
        return list(value)
    if isinstance(value, Page):
        return replace(value, data=list(value.data))
    return value


class BaseService:
    """Shared plumbing for data-access services.

    Each instance owns its cache; nothing is shared between services unless
    the caller passes the same `ServiceCache` to both.
    """

    def __init__(
        self,
        client: DataClient,
        *,
        cache: Optional[ServiceCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self._client = client
        self._cache = cache if cache is not None else ServiceCache()
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @property
    def cache(self) -> ServiceCache:
        return self._cache

    def _get_cache(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def _set_cache(self, key: str, value: Any) -> None:
        self._cache.set(key, value)

    def _clear_cache(self, key_or_prefix: str) -> None:
        self._cache.clear(key_or_prefix)

    def _with_retry(self, operation: Callable[[], T], label: str) -> T:
        if self._sleep is None:
            return with_retry(operation, label, self._retry_policy)
        return with_retry(operation, label, self._retry_policy, sleep=self._sleep)

    def _cached(self, key: str, load: Callable[[], T], label: str, *, keep: Callable[[T], bool] = lambda _: True) -> T:
        """Cache-then-fetch: return the cached value or load it through the retry wrapper."""
        cached = self._get_cache(key)
        if cached is not None:
            return _detached(cached)

        value = self._with_retry(load, label)
        if keep(value):
            self._set_cache(key, _detached(value))
        return value

    def _fetch_paginated(
        self,
        table: str,
        params: PaginationParams,
        *,
        convert: Callable[[dict], T],
        cache_prefix: str,
    ) -> Page[T]:
        start, end = params.offset_range()
        key = f"{cache_prefix}{params.cache_suffix()}"

        def load() -> Page[T]:
            query = self._client.table(table).select("*", count=True)
            for column, value in params.filters.items():
                query = query.eq(column, value)
            if params.order_by:
                query = query.order(params.order_by, ascending=params.ascending)
            result = query.range(start, end).execute()
            return build_page([convert(r) for r in result.data], result.count or 0, params.page, params.page_size)

        return self._cached(key, load, f"Fetch {table} page {params.page}")

    def _batch_operation(
        self,
        items: Sequence[T],
        operation: Callable[[List[T]], List[R]],
        batch_size: int,
        label: str,
    ) -> List[R]:
        """Run `operation` over `items` in chunks; each chunk retries on its own."""
        results: List[R] = []
        size = max(int(batch_size), 1)
        batches = 0
        for index in range(0, len(items), size):
            batch = list(items[index : index + size])
            batches += 1
            results.extend(self._with_retry(lambda batch=batch: operation(batch), f"{label} [{batches}]"))
        logger.debug("%s: %d item(s) in %d batch(es)", label, len(items), batches)
        return results
