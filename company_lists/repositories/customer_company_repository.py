"""Repository for customer-scoped company overlays."""

from datetime import datetime, timezone
from typing import Any, Dict, List

from supabase import AsyncClient

from company_lists.constants import CUSTOMER_COMPANIES_TABLE
from company_lists.errors import StoreError
from company_lists.models.company import CustomerCompanyOverlay


OVERLAY_COLUMNS = (
    "customer_id, company_id, name, categories, revenue, country, region, "
    "employees, email, last_scoring_results, updated_at"
)


class CustomerCompanyRepository:
    """Repository for the customer_companies table.

    Each row links a customer to a company and optionally overrides a
    subset of the company's fields for that customer.

    Attributes:
        db_client: Supabase async client instance for database operations.
    """

    def __init__(self, db_client: AsyncClient):
        """Initialize the repository with a database client.

        Args:
            db_client: Supabase async client instance.
        """
        self.db_client = db_client

    def table(self):
        return self.db_client.table(CUSTOMER_COMPANIES_TABLE)

    async def select_customer_company_ids(self, customer_id: str, offset: int, page_size: int) -> List[str]:
        """Fetch one page of a customer's company IDs.

        Ordered by company_id so consecutive pages neither overlap nor skip.

        Args:
            customer_id: Customer UUID.
            offset: Zero-based index of the first row.
            page_size: Maximum rows to return.

        Returns:
            Company IDs on the page; fewer than page_size means last page.

        Raises:
            StoreError: If the query fails.
        """
        try:
            response = await (
                self.table()
                .select("company_id")
                .eq("customer_id", customer_id)
                .order("company_id")
                .range(offset, offset + page_size - 1)
                .execute()
            )
        except Exception as error:
            raise StoreError("fetch customer companies", str(error)) from error

        return [row["company_id"] for row in response.data or [] if row.get("company_id")]

    async def select_overlays(self, customer_id: str, company_ids: List[str]) -> List[CustomerCompanyOverlay]:
        """Fetch one customer's overlay rows for the given companies."""
        if not company_ids:
            return []
        try:
            response = await (
                self.table()
                .select(OVERLAY_COLUMNS)
                .eq("customer_id", customer_id)
                .in_("company_id", company_ids)
                .execute()
            )
        except Exception as error:
            raise StoreError("fetch customer company details", str(error)) from error

        return [CustomerCompanyOverlay(**row) for row in response.data or []]

    async def select_overlays_for_company(
        self,
        company_id: str,
        customer_ids: List[str]
    ) -> List[CustomerCompanyOverlay]:
        """Fetch the overlay rows of one company across several customers."""
        if not customer_ids:
            return []
        try:
            response = await (
                self.table()
                .select(OVERLAY_COLUMNS)
                .eq("company_id", company_id)
                .in_("customer_id", customer_ids)
                .execute()
            )
        except Exception as error:
            raise StoreError("fetch scoring data", str(error)) from error

        return [CustomerCompanyOverlay(**row) for row in response.data or []]

    async def upsert_overlay(self, customer_id: str, company_id: str, fields: Dict[str, Any]) -> None:
        """Idempotently write customer-scoped fields for one company.

        Only the given columns are written, keyed on (customer_id,
        company_id); columns not in ``fields`` keep their stored values.

        Raises:
            StoreError: If the upsert fails.
        """
        record = dict(fields)
        record.update({
            "customer_id": customer_id,
            "company_id": company_id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })
        try:
            await (
                self.table()
                .upsert(record, on_conflict="customer_id,company_id", ignore_duplicates=False)
                .execute()
            )
        except Exception as error:
            raise StoreError("update company details", str(error)) from error
