from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE
from .validators import require_positive

T = TypeVar("T")


@dataclass(frozen=True)
class PaginationParams:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    order_by: Optional[str] = None
    ascending: bool = False
    filters: Dict[str, Any] = field(default_factory=dict)

    def offset_range(self) -> Tuple[int, int]:
        return offset_range(self.page, self.page_size)

    def cache_suffix(self) -> str:
        parts = [f"{k}={self.filters[k]}" for k in sorted(self.filters)]
        order = f"{self.order_by}:{'asc' if self.ascending else 'desc'}" if self.order_by else "-"
        return f"{self.page}:{self.page_size}:{order}:{','.join(parts) or '-'}"


@dataclass(frozen=True)
class Page(Generic[T]):
    data: List[T]
    count: int
    has_more: bool
    page: int


def offset_range(page: int, page_size: int) -> Tuple[int, int]:
    """Inclusive row range for a 1-based page."""
    page = require_positive(page, "page")
    page_size = require_positive(page_size, "page_size")
    start = (page - 1) * page_size
    return start, start + page_size - 1


def build_page(data: List[T], count: int, page: int, page_size: int) -> Page[T]:
    return Page(data=list(data), count=int(count or 0), has_more=page * page_size < int(count or 0), page=page)
