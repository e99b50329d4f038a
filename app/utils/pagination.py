# app/utils/pagination.py
"""Page envelopes for list endpoints that take page/pageSize."""
from math import ceil
from typing import Any, Dict, List
from pydantic import BaseModel

MAX_PAGE_SIZE = 100


class PaginationMeta(BaseModel):
    page: int
    size: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def build(cls, page: int, size: int, total: int) -> "PaginationMeta":
        pages = ceil(total / size) if size else 0
        return cls(
            page=page,
            size=size,
            total=total,
            total_pages=pages,
            has_next=page < pages,
            has_previous=page > 1,
        )


class Paginator:

    @staticmethod
    def calculate_offset(page: int, size: int) -> int:
        return (max(page, 1) - 1) * size

    @staticmethod
    def create_response(items: List[Any], page: int, size: int, total: int) -> Dict[str, Any]:
        """``{items, meta, total, page, size, total_pages}``; the flat keys repeat ``meta``."""
        meta = PaginationMeta.build(page, size, total)
        return {
            "items": items,
            "meta": meta.model_dump(),
            "total": total,
            "page": page,
            "size": size,
            "total_pages": meta.total_pages,
        }
