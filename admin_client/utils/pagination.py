from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def page_count(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return max(1, -(-total // page_size))


def paginate(items: Sequence[T], page: int, page_size: int) -> list[T]:
    page = min(max(page, 1), page_count(len(items), page_size))
    start = (page - 1) * page_size
    return list(items[start : start + page_size])
