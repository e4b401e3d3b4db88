"""Pydantic models for company list resolution."""

from company_lists.models.company import (
    ScoringResult,
    CompanyRecord,
    CustomerCompanyOverlay,
    CompanyItemList,
    CompanyItem
)
from company_lists.models.filters import (
    FilterSpec,
    PredicateOp,
    Predicate,
    QueryPredicates,
    SortSpec,
    PageRange
)
from company_lists.models.list import ListType, ListStatus, ListSubtype, CompanyList
from company_lists.models.pagination import PageRequest, Page, ResolvedCompanyPage, ListPage
from company_lists.models.tenant import TenantContext

__all__ = [
    "ScoringResult",
    "CompanyRecord",
    "CustomerCompanyOverlay",
    "CompanyItemList",
    "CompanyItem",
    "FilterSpec",
    "PredicateOp",
    "Predicate",
    "QueryPredicates",
    "SortSpec",
    "PageRange",
    "ListType",
    "ListStatus",
    "ListSubtype",
    "CompanyList",
    "PageRequest",
    "Page",
    "ResolvedCompanyPage",
    "ListPage",
    "TenantContext"
]
