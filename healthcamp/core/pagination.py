"""
Page-based listing shared by the doctor, health report and audit log routes.

Listings are always ordered by the caller; the count drops that ordering.
"""
from typing import TypeVar, Generic, List, Type
from pydantic import BaseModel
from fastapi import Query
from sqlalchemy.orm import Query as SQLAlchemyQuery

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PageParams:
    """``page`` (1-indexed) and ``size`` query parameters."""
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page")
    ):
        self.page = page
        self.size = size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool


def paginate(query: SQLAlchemyQuery, page_params: PageParams, schema_class: Type[BaseModel]) -> PageResponse:
    """
    Slice an ordered query into one page of ``schema_class`` items.

    An empty listing reports zero pages; a page past the end is returned
    empty with the real totals.
    """
    total = query.order_by(None).count()
    rows = query.offset(page_params.offset).limit(page_params.size).all()
    pages = -(-total // page_params.size)

    return PageResponse(
        items=[schema_class.model_validate(row) for row in rows],
        total=total,
        page=page_params.page,
        size=page_params.size,
        pages=pages,
        has_next=page_params.page < pages,
        has_prev=page_params.page > 1
    )
