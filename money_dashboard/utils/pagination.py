"""Page/offset helpers shared by list endpoints"""

import math
from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100


@dataclass
class PageWindow:
    page: int
    page_size: int
    offset: int
    limit: int


@dataclass
class PageInfo:
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


def get_pagination_options(page: int | None = None, page_size: int | None = None) -> PageWindow:
    """Clamp page to >= 1 and page size to [1, 100]"""
    page = max(1, page or 1)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size or DEFAULT_PAGE_SIZE))
    return PageWindow(page=page, page_size=page_size, offset=(page - 1) * page_size, limit=page_size)


def build_page_info(total_count: int, page: int | None = None, page_size: int | None = None) -> PageInfo:
    window = get_pagination_options(page, page_size)
    total_pages = math.ceil(total_count / window.page_size)
    return PageInfo(
        page=window.page,
        page_size=window.page_size,
        total_count=total_count,
        total_pages=total_pages,
        has_next_page=window.page < total_pages,
        has_previous_page=window.page > 1,
    )
