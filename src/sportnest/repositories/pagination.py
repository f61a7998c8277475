"""Page-based pagination support.

``PageRequest`` validates the caller's page parameters and translates them
into offset/limit; ``Page`` is the immutable result handed back by every
paged repository operation.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from sportnest.repositories.errors import InvalidArgumentError

T = TypeVar("T")


class PageRequest:
    """Validated 1-based page parameters.

    Attributes:
        page: Requested page number (must be >= 1)
        page_size: Number of items per page (must be >= 1)

    Example:
        request = PageRequest(page=2, page_size=10)
        query = query.offset(request.offset).limit(request.limit)

    Raises:
        InvalidArgumentError: If page or page_size is below 1
    """

    def __init__(self, page: int = 1, page_size: int = 50) -> None:
        if page < 1:
            raise InvalidArgumentError("Page must be at least 1")
        if page_size < 1:
            raise InvalidArgumentError("Page size must be at least 1")

        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        """Number of rows to skip."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Number of rows to take."""
        return self.page_size

    def __repr__(self) -> str:
        return f"PageRequest(page={self.page}, page_size={self.page_size})"


def total_pages_for(total_items: int, page_size: int) -> int:
    """Number of pages needed for ``total_items`` (0 when there are none)."""
    return math.ceil(total_items / page_size)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of query results.

    Attributes:
        current_page: The requested page number (1-based)
        next_page: Following page number, capped at total_pages
        total_pages: ceil(total_items / page_size), 0 for an empty result
        page_size: Requested page size
        total_items: Number of matching items across all pages
        items: Items on this page; empty when current_page > total_pages
    """

    current_page: int
    next_page: int
    total_pages: int
    page_size: int
    total_items: int
    items: tuple[T, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, items: Sequence[T], total_items: int, request: PageRequest) -> "Page[T]":
        """Assemble a page from a counted total and the fetched slice."""
        total_pages = total_pages_for(total_items, request.page_size)
        return cls(
            current_page=request.page,
            next_page=min(total_pages, request.page + 1),
            total_pages=total_pages,
            page_size=request.page_size,
            total_items=total_items,
            items=tuple(items),
        )

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1
