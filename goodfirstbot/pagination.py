"""Page-based views over in-memory lists of items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10


@dataclass
class Paginated(Generic[T]):
    """A list of items together with the page currently being shown (1-indexed)."""

    items: list[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    def has_next(self) -> bool:
        """Whether a page follows the current one."""
        return self.page < self.total_pages

    def has_prev(self) -> bool:
        """Whether a page precedes the current one."""
        return self.page > 1

    def page_items(self) -> list[T]:
        """The items that belong to the current page."""
        if not self.items or self.page_size <= 0:
            return []
        start = max(self.page - 1, 0) * self.page_size
        if start >= len(self.items):
            return []
        return self.items[start : start + self.page_size]


def paginate(items: Sequence[T], page: int) -> Paginated[T]:
    """Split ``items`` into pages and select ``page``, clamped to the valid range."""
    item_list = list(items)
    total_items = len(item_list)
    # An empty list is conventionally a single page.
    total_pages = 1 if total_items == 0 else -(-total_items // DEFAULT_PAGE_SIZE)
    validated_page = min(max(page, 1), total_pages)
    return Paginated(
        items=item_list,
        page=validated_page,
        page_size=DEFAULT_PAGE_SIZE,
        total_items=total_items,
        total_pages=total_pages,
    )