"""Offset pagination shared by every list operation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

T = TypeVar("T")


def paginate(page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> tuple[int, int]:
    """Convert a 1-based page and a page size into ``(skip, take)``.

    Range checks belong to the caller; this only does the arithmetic.
    """
    return (page - 1) * limit, limit


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` rows ``limit`` at a time."""
    if total <= 0:
        return 0
    return math.ceil(total / limit)


@dataclass
class Page(Generic[T]):
    """One page of results together with the unpaginated total."""

    items: Sequence[T]
    total: int
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.total_pages = total_pages(self.total, self.limit)

    def meta(self) -> dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }


__all__ = ["DEFAULT_LIMIT", "DEFAULT_PAGE", "MAX_LIMIT", "Page", "paginate", "total_pages"]
