import math
from typing import Any, Tuple

from pydantic import BaseModel


class PageInfo(BaseModel):
    currentPage: int
    totalPages: int
    totalBlogs: int
    hasNextPage: bool
    hasPrevPage: bool


def coerce_page(page: Any) -> int:
    """Anything that is not a positive integer becomes page 1."""
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def page_window(page: Any, page_size: int) -> Tuple[int, int]:
    """Return (page, skip) for a 1-based page number."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    page = coerce_page(page)
    return page, (page - 1) * page_size


def build_page_info(page: int, page_size: int, total: int) -> PageInfo:
    total_pages = math.ceil(total / page_size) if total else 0
    return PageInfo(
        currentPage=page,
        totalPages=total_pages,
        totalBlogs=total,
        hasNextPage=page < total_pages,
        hasPrevPage=page > 1,
    )
