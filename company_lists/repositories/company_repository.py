"""Repository for global company catalog access."""

from typing import Any, Dict, List, Optional, Tuple

from supabase import AsyncClient

from company_lists.constants import COMPANIES_TABLE
from company_lists.database.queries import apply_predicates, apply_sort_and_range
from company_lists.errors import StoreError
from company_lists.models.company import CompanyRecord
from company_lists.models.filters import PageRange, QueryPredicates, SortSpec
from company_lists.repositories.base_repository import BaseRepository


class CompanyRepository(BaseRepository):
    """Repository for the companies table.

    Attributes:
        db_client: Supabase async client instance for database operations.
        table_name: Set to "companies" for this repository.
    """

    def __init__(self, db_client: AsyncClient):
        """Initialize the repository with a database client.

        Args:
            db_client: Supabase async client instance.
        """
        super().__init__(db_client, COMPANIES_TABLE, "company_id")

    async def select_companies(
        self,
        candidate_ids: Optional[List[str]],
        predicates: QueryPredicates,
        sort: SortSpec,
        page_range: PageRange
    ) -> Tuple[List[CompanyRecord], int]:
        """Fetch one filtered, sorted page of companies with the exact total.

        Args:
            candidate_ids: Restrict to these company IDs, or None for the
                whole catalog.
            predicates: Compiled filter predicates (ANDed).
            sort: Column and direction.
            page_range: Inclusive row range of the page.

        Returns:
            Tuple of (companies on the page, total matching rows).

        Raises:
            StoreError: If the query fails.
        """
        try:
            query = self.table().select("*", count="exact")
            if candidate_ids is not None:
                query = query.in_("company_id", candidate_ids)
            query = apply_predicates(query, predicates)
            query = apply_sort_and_range(query, sort, page_range)

            response = await query.execute()
        except Exception as error:
            raise StoreError("fetch companies", str(error)) from error

        rows = response.data or []
        return [CompanyRecord(**row) for row in rows], response.count or 0

    async def get_by_company_id(self, company_id: str) -> Optional[CompanyRecord]:
        row = await self.get_row(company_id)
        return CompanyRecord(**row) if row else None

    async def patch_global_fields(self, company_id: str, fields: Dict[str, Any]) -> Optional[CompanyRecord]:
        """Write global company fields.

        Row-level security may hide the row from non-admin callers; zero
        updated rows is not an error.

        Args:
            company_id: Company UUID.
            fields: Column values to write.

        Returns:
            Updated company, or None if no row was updated.
        """
        row = await self.update_row(company_id, fields)
        return CompanyRecord(**row) if row else None
