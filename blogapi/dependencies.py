import math

from fastapi import Query, Request

from blogapi.config import Settings
from blogapi.schemas import PaginationMeta

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


def get_settings(request: Request) -> Settings:
    """The ``Settings`` value the app was created with."""
    return request.app.state.settings


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates the ``page`` and
    ``limit`` query parameters and turns them into an offset/limit window.

    Out-of-range or non-numeric values are rejected by FastAPI's request
    validation (400) before this class is instantiated.

    Attributes
    ----------
    page:
        1-based page number.
    limit:
        Number of items per page, 1..``MAX_LIMIT``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        limit: int = Query(
            DEFAULT_LIMIT,
            ge=1,
            le=MAX_LIMIT,
            description=f"Number of posts returned per page (max {MAX_LIMIT}).",
        ),
    ) -> None:
        self.page = page
        self.limit = limit

    @property
    def skip(self) -> int:
        """SQL OFFSET for the current page."""
        return (self.page - 1) * self.limit

    @property
    def take(self) -> int:
        return self.limit

    def meta(self, total: int) -> PaginationMeta:
        return PaginationMeta(
            total=total,
            page=self.page,
            limit=self.limit,
            total_pages=total_pages(total, self.limit),
        )
