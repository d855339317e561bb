from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from app.core.errors import ValidationError


PAGE_SIZES: tuple[int, ...] = (10, 25, 50, 100)

F = TypeVar("F")
T = TypeVar("T")


def page_count(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(max(0, int(total)) / page_size)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page_size not in PAGE_SIZES:
            raise ValidationError(
                f"page_size must be one of {', '.join(str(s) for s in PAGE_SIZES)}",
                field="page_size",
            )
        if int(self.page) < 1:
            raise ValidationError("page must be >= 1", field="page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass
class Paged(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return page_count(self.total, self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    def meta(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "page_count": self.page_count,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
        }


@dataclass
class ListingState(Generic[F]):
    """Filter + page cursor for a paginated listing.

    Any change to the filters or the page size moves the cursor back to
    page 1; ``go_to`` clamps into ``[1, page_count]`` once a total is known.
    """

    filters: F
    page_size: int = 10
    page: int = 1
    total: int | None = field(default=None)

    def __post_init__(self) -> None:
        PageRequest(page=max(1, int(self.page)), page_size=self.page_size)

    @property
    def request(self) -> PageRequest:
        return PageRequest(page=self.page, page_size=self.page_size)

    @property
    def page_count(self) -> int | None:
        if self.total is None:
            return None
        return page_count(self.total, self.page_size)

    def set_filters(self, filters: F) -> None:
        if filters != self.filters:
            self.filters = filters
            self.page = 1

    def update_filters(self, **changes: Any) -> None:
        self.set_filters(replace(self.filters, **changes))

    def set_page_size(self, page_size: int) -> None:
        PageRequest(page=1, page_size=page_size)
        if page_size != self.page_size:
            self.page_size = page_size
            self.page = 1

    def go_to(self, page: int) -> None:
        page = max(1, int(page))
        pages = self.page_count
        if pages:
            page = min(page, pages)
        self.page = page

    def next_page(self) -> None:
        self.go_to(self.page + 1)

    def previous_page(self) -> None:
        self.go_to(self.page - 1)

    def record_total(self, total: int) -> None:
        self.total = max(0, int(total))
