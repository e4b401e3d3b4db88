"""Repository for saved lists and their explicit company membership."""

from typing import Any, Dict, List, Optional, Tuple

from supabase import AsyncClient

from company_lists.constants import LIST_COMPANIES_TABLE, LISTS_TABLE
from company_lists.database.queries import escape_like
from company_lists.errors import StoreError
from company_lists.models.filters import PageRange
from company_lists.models.list import CompanyList, ListSubtype, ListType
from company_lists.repositories.base_repository import BaseRepository


class ListRepository(BaseRepository):
    """Repository for the lists and list_companies tables.

    Soft-deleted lists (deleted_at set) are never returned.

    Attributes:
        db_client: Supabase async client instance for database operations.
        table_name: Set to "lists" for this repository.
    """

    def __init__(self, db_client: AsyncClient):
        """Initialize the repository with a database client.

        Args:
            db_client: Supabase async client instance.
        """
        super().__init__(db_client, LISTS_TABLE, "list_id")

    def memberships(self):
        return self.db_client.table(LIST_COMPANIES_TABLE)

    def _scoped(self, query, customer_id: Optional[str], list_type: Optional[str]):
        query = query.is_("deleted_at", "null")
        if list_type:
            query = query.eq("list_type", list_type)
        if customer_id:
            query = query.eq("customer_id", customer_id)
        return query

    async def get_list(
        self,
        list_id: str,
        customer_id: Optional[str] = None,
        list_type: Optional[str] = ListType.LIST.value
    ) -> Optional[CompanyList]:
        """Retrieve a visible list by ID.

        Args:
            list_id: List UUID.
            customer_id: Restrict to this customer's lists, None for any.
            list_type: Restrict to this list type, None for any.

        Returns:
            CompanyList if found, None otherwise.

        Raises:
            StoreError: If the query fails.
        """
        try:
            query = self.table().select("*").eq("list_id", list_id)
            response = await self._scoped(query, customer_id, list_type).limit(1).execute()
        except Exception as error:
            raise StoreError("fetch list", str(error)) from error

        return CompanyList(**response.data[0]) if response.data else None

    async def list_lists(
        self,
        customer_id: Optional[str],
        search: Optional[str],
        page_range: PageRange
    ) -> Tuple[List[CompanyList], int]:
        """Fetch one page of lists, most recently updated first."""
        try:
            query = self.table().select("*", count="exact")
            query = self._scoped(query, customer_id, ListType.LIST.value)
            if search:
                query = query.ilike("name", f"%{escape_like(search)}%")
            response = await (
                query.order("updated_at", desc=True)
                .range(page_range.start, page_range.end)
                .execute()
            )
        except Exception as error:
            raise StoreError("fetch lists", str(error)) from error

        return [CompanyList(**row) for row in response.data or []], response.count or 0

    async def count_members(self, list_id: str) -> int:
        try:
            response = await (
                self.memberships()
                .select("*", count="exact", head=True)
                .eq("list_id", list_id)
                .execute()
            )
        except Exception as error:
            raise StoreError("count list companies", str(error)) from error
        return response.count or 0

    async def create_list(self, data: Dict[str, Any]) -> CompanyList:
        row = await self.insert_row(data)
        return CompanyList(**row)

    async def update_list(
        self,
        list_id: str,
        customer_id: Optional[str],
        updates: Dict[str, Any]
    ) -> Optional[CompanyList]:
        """Update a visible list of type 'list'.

        Returns:
            Updated list, or None when no visible list matched.
        """
        try:
            query = self.table().update(updates).eq("list_id", list_id)
            response = await self._scoped(query, customer_id, ListType.LIST.value).execute()
        except Exception as error:
            raise StoreError("update list", str(error)) from error

        return CompanyList(**response.data[0]) if response.data else None

    async def select_list_membership(self, list_id: str, offset: int, page_size: int) -> List[str]:
        """Fetch one page of a static list's member company IDs.

        Raises:
            StoreError: If the query fails.
        """
        try:
            response = await (
                self.memberships()
                .select("company_id")
                .eq("list_id", list_id)
                .order("company_id")
                .range(offset, offset + page_size - 1)
                .execute()
            )
        except Exception as error:
            raise StoreError("fetch list companies", str(error)) from error

        return [row["company_id"] for row in response.data or [] if row.get("company_id")]

    async def select_members_in(self, list_id: str, company_ids: List[str]) -> List[str]:
        """Return which of the given company IDs are members of the list."""
        try:
            response = await (
                self.memberships()
                .select("company_id")
                .eq("list_id", list_id)
                .in_("company_id", company_ids)
                .execute()
            )
        except Exception as error:
            raise StoreError("check companies in list", str(error)) from error

        return [row["company_id"] for row in response.data or []]

    async def add_companies(self, list_id: str, company_ids: List[str]) -> None:
        """Add members, skipping ones already present."""
        records = [{"list_id": list_id, "company_id": company_id} for company_id in company_ids]
        try:
            await (
                self.memberships()
                .upsert(records, on_conflict="company_id,list_id", ignore_duplicates=True)
                .execute()
            )
        except Exception as error:
            raise StoreError("add companies to list", str(error)) from error

    async def select_lists_for_company(
        self,
        company_id: str,
        customer_id: Optional[str] = None
    ) -> List[CompanyList]:
        """Fetch the visible lists that explicitly contain a company."""
        try:
            response = await (
                self.memberships()
                .select("list_id, lists:list_id (*)")
                .eq("company_id", company_id)
                .execute()
            )
        except Exception as error:
            raise StoreError("fetch company lists", str(error)) from error

        lists = []
        for row in response.data or []:
            embedded = row.get("lists")
            if isinstance(embedded, list):
                embedded = embedded[0] if embedded else None
            if not embedded or embedded.get("deleted_at"):
                continue
            if customer_id and embedded.get("customer_id") != customer_id:
                continue
            lists.append(CompanyList(**embedded))
        return lists

    async def select_dynamic_lists(self, customer_id: Optional[str]) -> List[CompanyList]:
        """Fetch the customer's filter-based company lists."""
        try:
            query = (
                self.table()
                .select("*")
                .eq("is_static", False)
                .eq("subtype", ListSubtype.COMPANY.value)
            )
            response = await self._scoped(query, customer_id, ListType.LIST.value).execute()
        except Exception as error:
            raise StoreError("fetch dynamic lists", str(error)) from error

        return [CompanyList(**row) for row in response.data or []]
