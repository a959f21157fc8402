import math
from dataclasses import dataclass

from fastapi import Query
from sqlalchemy import Select, func, select


@dataclass
class PaginationParams:
    page: int = 1
    page_size: int = 25

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def apply(self, query: Select) -> Select:
        """Restrict an ordered SELECT to the requested page."""
        return query.offset(self.offset).limit(self.page_size)

    def slice(self, items: list) -> list:
        """Page through a list that was filtered in Python."""
        return items[self.offset : self.offset + self.page_size]


def count_query(query: Select) -> Select:
    """``SELECT count(*)`` over the rows ``query`` would return."""
    return select(func.count()).select_from(query.order_by(None).subquery())


def get_pagination(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(25, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


def build_pagination_meta(total_count: int, pagination: PaginationParams) -> dict:
    total_pages = math.ceil(total_count / pagination.page_size) if total_count else 0
    return {
        "page": pagination.page,
        "page_size": pagination.page_size,
        "total_count": total_count,
        "total_pages": total_pages,
    }
