"""Response schemas for API endpoints."""

from pydantic import BaseModel
from typing import List, Dict, Any

from company_lists.models.company import CompanyItem, CompanyItemList
from company_lists.models.list import CompanyList
from company_lists.models.pagination import ListPage, ResolvedCompanyPage


class CompanyPageResponse(BaseModel):
    """Response model for paginated company results."""
    data: List[CompanyItem]
    pagination: Dict[str, Any]
    meta: Dict[str, Any]

    @classmethod
    def from_page(cls, page: ResolvedCompanyPage) -> "CompanyPageResponse":
        return cls(data=page.data, pagination=page.pagination(), meta=page.meta())


class ListPageResponse(BaseModel):
    """Response model for paginated list results."""
    data: List[CompanyList]
    pagination: Dict[str, Any]

    @classmethod
    def from_page(cls, page: ListPage) -> "ListPageResponse":
        return cls(data=page.data, pagination=page.pagination())


class CompanyListsResponse(BaseModel):
    data: List[CompanyItemList]


class MatchCompanyResponse(BaseModel):
    matches: bool


class AddCompaniesResponse(BaseModel):
    list_id: str
    added: int


class CheckCompaniesResponse(BaseModel):
    list_id: str
    memberships: Dict[str, bool]
