"""Store contracts the services depend on.

Implemented by the Supabase repositories and by repositories.memory.
"""

from typing import Any, Dict, List, Optional, Protocol, Tuple

from company_lists.models.company import CompanyRecord, CustomerCompanyOverlay
from company_lists.models.filters import PageRange, QueryPredicates, SortSpec
from company_lists.models.list import CompanyList


class CompanyStorePort(Protocol):
    async def select_companies(
        self,
        candidate_ids: Optional[List[str]],
        predicates: QueryPredicates,
        sort: SortSpec,
        page_range: PageRange,
    ) -> Tuple[List[CompanyRecord], int]:
        ...

    async def get_by_company_id(self, company_id: str) -> Optional[CompanyRecord]:
        ...

    async def patch_global_fields(self, company_id: str, fields: Dict[str, Any]) -> Optional[CompanyRecord]:
        ...


class CustomerCompanyStorePort(Protocol):
    async def select_customer_company_ids(self, customer_id: str, offset: int, page_size: int) -> List[str]:
        ...

    async def select_overlays(self, customer_id: str, company_ids: List[str]) -> List[CustomerCompanyOverlay]:
        ...

    async def select_overlays_for_company(
        self, company_id: str, customer_ids: List[str]
    ) -> List[CustomerCompanyOverlay]:
        ...

    async def upsert_overlay(self, customer_id: str, company_id: str, fields: Dict[str, Any]) -> None:
        ...


class ListStorePort(Protocol):
    async def get_list(
        self,
        list_id: str,
        customer_id: Optional[str] = None,
        list_type: Optional[str] = "list",
    ) -> Optional[CompanyList]:
        ...

    async def list_lists(
        self, customer_id: Optional[str], search: Optional[str], page_range: PageRange
    ) -> Tuple[List[CompanyList], int]:
        ...

    async def count_members(self, list_id: str) -> int:
        ...

    async def create_list(self, data: Dict[str, Any]) -> CompanyList:
        ...

    async def update_list(
        self, list_id: str, customer_id: Optional[str], updates: Dict[str, Any]
    ) -> Optional[CompanyList]:
        ...

    async def select_list_membership(self, list_id: str, offset: int, page_size: int) -> List[str]:
        ...

    async def select_members_in(self, list_id: str, company_ids: List[str]) -> List[str]:
        ...

    async def add_companies(self, list_id: str, company_ids: List[str]) -> None:
        ...

    async def select_lists_for_company(
        self, company_id: str, customer_id: Optional[str] = None
    ) -> List[CompanyList]:
        ...

    async def select_dynamic_lists(self, customer_id: Optional[str]) -> List[CompanyList]:
        ...
