"""
Page-number pagination shared by card and user listings.

The API is 1-based: page 1 is the first page. Bad input is never rejected:
  - page absent or <= 0       -> first page
  - size absent or <= 0       -> the listing's default size
  - size above the ceiling    -> clamped to the ceiling
  - page above MAX_PAGE       -> clamped to MAX_PAGE (an empty page in
                                 practice; keeps OFFSET within SQL integer range)
"""

from dataclasses import dataclass

CARD_DEFAULT_PAGE_SIZE = 5
CARD_MAX_PAGE_SIZE = 15
USER_DEFAULT_PAGE_SIZE = 10
USER_MAX_PAGE_SIZE = 50
MAX_PAGE = 1_000_000


@dataclass(frozen=True)
class PageRequest:
    """A resolved page: 0-based page index plus page size."""
    page_index: int
    page_size: int

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def build_page_request(
    page: int | None,
    size: int | None,
    default_size: int,
    max_size: int,
) -> PageRequest:
    page_index = min(page, MAX_PAGE) - 1 if page is not None and page > 0 else 0
    if size is None or size < 1:
        page_size = default_size
    else:
        page_size = min(size, max_size)
    return PageRequest(page_index=page_index, page_size=page_size)
