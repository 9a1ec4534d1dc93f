"""
Standardized pagination for list endpoints.

Pages are 0-indexed: `?page=0&size=10` is the first page.

Usage:
    from rest_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/centers")
    def list_centers(
        pagination: Pagination = Depends(get_pagination),
        db: Session = Depends(get_db),
    ):
        centers, total = TenantService(db).list_page(limit=pagination.limit, offset=pagination.offset)
        return pagination.build(centers, total)
"""

from dataclasses import dataclass
from typing import Sequence, TypeVar

from fastapi import Query

from shared.config.constants import Limits
from shared.utils.schemas import Page

T = TypeVar("T")


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        page: 0-indexed page number
        size: Items per page (1 to max_size)
        max_size: Maximum allowed size (default 200)
    """

    page: int = 0
    size: int = Limits.DEFAULT_PAGE_SIZE
    max_size: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        """Validate and normalize values."""
        self.size = min(max(1, self.size), self.max_size)
        self.page = max(0, self.page)

    @property
    def limit(self) -> int:
        return self.size

    @property
    def offset(self) -> int:
        return self.page * self.size

    def build(self, content: Sequence[T], total: int) -> Page[T]:
        """Wrap one page of results with its position in the full result set."""
        total_pages = (total + self.size - 1) // self.size
        return Page[T](
            content=list(content),
            page=self.page,
            size=self.size,
            total_elements=total,
            total_pages=total_pages,
            first=self.page == 0,
            last=self.page >= total_pages - 1,
            empty=len(content) == 0,
        )


def get_pagination(
    page: int = Query(
        default=0,
        ge=0,
        description="Page number, starting at 0",
    ),
    size: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Number of items per page",
    ),
) -> Pagination:
    """
    FastAPI dependency for pagination.

    Usage:
        @router.get("/items")
        def list_items(pagination: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(page=page, size=size)
