"""Pydantic models for page requests and paginated results."""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from company_lists.constants import (
    DEFAULT_COMPANIES_PER_PAGE,
    DEFAULT_PAGE,
    DEFAULT_SORT_COLUMN,
    DEFAULT_SORT_ORDER,
)
from company_lists.models.company import CompanyItem
from company_lists.models.filters import PageRange, SortSpec
from company_lists.models.list import CompanyList


class PageRequest(BaseModel):
    """Validated pagination and sort request (1-indexed pages)."""
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_COMPANIES_PER_PAGE
    sort_by: str = DEFAULT_SORT_COLUMN
    sort_order: str = DEFAULT_SORT_ORDER

    @property
    def sort(self) -> SortSpec:
        return SortSpec(column=self.sort_by, ascending=self.sort_order == "asc")

    @property
    def range(self) -> PageRange:
        start = (self.page - 1) * self.per_page
        return PageRange(start=start, end=start + self.per_page - 1)


class Page(BaseModel):
    """Pagination state shared by every paginated result.

    The derived fields are always computed from total, page and per_page
    so they cannot disagree with each other.
    """
    total: int = 0
    page: int = DEFAULT_PAGE
    per_page: int = DEFAULT_COMPANIES_PER_PAGE

    @property
    def total_pages(self) -> int:
        if self.total <= 0:
            return 0
        return math.ceil(self.total / self.per_page)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.has_next else None

    @property
    def prev_page(self) -> Optional[int]:
        return self.page - 1 if self.has_prev else None

    def pagination(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "perPage": self.per_page,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
            "next": self.next_page,
            "prev": self.prev_page,
        }

    def meta(self) -> Dict[str, Any]:
        return {
            "currentPage": self.page,
            "lastPage": self.total_pages,
            "perPage": self.per_page,
            "total": self.total,
        }


class ResolvedCompanyPage(Page):
    """One page of resolved companies, built fresh per request."""
    data: List[CompanyItem] = []

    @classmethod
    def empty(cls, page_request: PageRequest) -> "ResolvedCompanyPage":
        return cls(data=[], total=0, page=page_request.page, per_page=page_request.per_page)


class ListPage(Page):
    """One page of saved lists."""
    data: List[CompanyList] = []
