"""In-memory page bookkeeping for placed fields."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from pdfmaker.model.field import Field


class FieldNotFoundError(KeyError):
    """Raised when no field matches a lookup."""


@dataclass(slots=True)
class PageCursor:
    """Running count of pages in the composed document.

    Import advances it; attachment reads ``last_page_index`` from it.
    """

    total_pages: int = 0

    @property
    def last_page_index(self) -> int:
        return max(0, self.total_pages - 1)

    def advance(self, page_count: int = 1) -> int:
        """Advance by ``page_count`` pages and return the previous total."""
        if page_count < 0:
            raise ValueError(f"Page count cannot be negative: {page_count}")
        start = self.total_pages
        self.total_pages += page_count
        return start


@dataclass(slots=True)
class FieldRegistry:
    fields_by_page: dict[int, dict[str, Field]] = field(default_factory=dict)

    def add(self, page_index: int, placed: Field) -> Field:
        if page_index < 0:
            raise ValueError(f"Page index cannot be negative: {page_index}")
        self.fields_by_page.setdefault(page_index, {})[placed.name] = placed
        return placed

    def get(self, name: str, page_index: int | None = None) -> Field:
        if page_index is not None:
            try:
                return self.fields_by_page[page_index][name]
            except KeyError:
                raise FieldNotFoundError(f"No field {name!r} on page {page_index}") from None

        for index in sorted(self.fields_by_page):
            page_fields = self.fields_by_page[index]
            if name in page_fields:
                return page_fields[name]
        raise FieldNotFoundError(f"No field {name!r} on any page")

    def get_page_fields(self, page_index: int) -> list[Field]:
        return list(self.fields_by_page.get(page_index, {}).values())

    def page_indices(self) -> list[int]:
        return sorted(index for index, page_fields in self.fields_by_page.items() if page_fields)

    def __iter__(self) -> Iterator[int]:
        return iter(self.page_indices())

    def __len__(self) -> int:
        return sum(len(page_fields) for page_fields in self.fields_by_page.values())
