"""Service for company resolution, detail, membership and updates."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from company_lists.constants import CUSTOMER_COMPANY_IDS_PAGE_SIZE, LIST_COMPANY_IDS_PAGE_SIZE
from company_lists.errors import CompanyNotFoundError, FilterValidationError, ListNotFoundError, StoreError
from company_lists.models.company import CompanyItem, CompanyItemList, CompanyRecord, CustomerCompanyOverlay
from company_lists.models.list import CompanyList
from company_lists.models.pagination import PageRequest, ResolvedCompanyPage
from company_lists.models.tenant import TenantContext
from company_lists.repositories.ports import CompanyStorePort, CustomerCompanyStorePort, ListStorePort
from company_lists.services.tenant_service import require_scope
from company_lists.utils.company_overlay import merge_overlay, select_best_overlay
from company_lists.utils.filter_matcher import matches_filters
from company_lists.utils.filter_normalizer import normalize_filters, normalize_page_request, title_case_values
from company_lists.utils.paging import collect_all_pages
from company_lists.utils.query_compiler import compile_filters

logger = logging.getLogger(__name__)


LIST_ID_KEYS = ("list_id", "listId")

# Fields a customer may override on its own view of a company.
CUSTOMER_SCOPED_FIELDS = ("name", "categories", "revenue", "country", "region", "employees", "email")

# Array fields stored Title Cased, the form filters compare against.
TITLE_CASED_FIELDS = ("categories", "technologies")

# Payload field -> companies column.
GLOBAL_FIELD_COLUMNS = {
    "name": "display_name",
    "description": "description",
    "website": "website_url",
    "logo": "logo",
    "country": "country",
    "region": "region",
    "address": "address",
    "postal_code": "postal_code",
    "latitude": "latitude",
    "longitude": "longitude",
    "revenue": "revenue",
    "capitalization": "capitalization",
    "currency_code": "currency_code",
    "employees": "employees",
    "siccodes": "siccodes",
    "categories": "categories",
    "technologies": "technologies",
    "phone": "phone",
    "email": "email",
    "social_links": "social_links",
}


class CompanyService:
    """Resolves which companies a caller sees and how they look to it.

    Candidate companies come from, in priority order: a static list's
    explicit membership, the caller's customer-scoped company set, or the
    whole catalog for a platform administrator. Filters, sort and
    pagination are then pushed down to the store, and customer overlays
    are merged onto the returned page only.

    Attributes:
        company_repository: Global company catalog.
        customer_company_repository: Customer-scoped overlays and company sets.
        list_repository: Saved lists and explicit memberships.
    """

    def __init__(
        self,
        company_repository: CompanyStorePort,
        customer_company_repository: CustomerCompanyStorePort,
        list_repository: ListStorePort
    ):
        """Initialize the service with its repositories.

        Args:
            company_repository: CompanyRepository (or compatible) instance.
            customer_company_repository: CustomerCompanyRepository instance.
            list_repository: ListRepository instance.
        """
        self.company_repository = company_repository
        self.customer_company_repository = customer_company_repository
        self.list_repository = list_repository

    async def collect_customer_company_ids(self, customer_id: str) -> List[str]:
        """Assemble a customer's full company ID set, page by page."""
        async def fetch_page(offset: int, page_size: int) -> List[str]:
            return await self.customer_company_repository.select_customer_company_ids(
                customer_id, offset, page_size
            )

        company_ids = await collect_all_pages(fetch_page, CUSTOMER_COMPANY_IDS_PAGE_SIZE)
        logger.info(f"Collected {len(company_ids)} company IDs for customer {customer_id}")
        return company_ids

    async def collect_list_company_ids(self, list_id: str) -> List[str]:
        """Assemble a static list's full membership, page by page."""
        async def fetch_page(offset: int, page_size: int) -> List[str]:
            return await self.list_repository.select_list_membership(list_id, offset, page_size)

        return await collect_all_pages(fetch_page, LIST_COMPANY_IDS_PAGE_SIZE)

    async def _overlays_by_company(
        self,
        customer_id: Optional[str],
        companies: List[CompanyRecord]
    ) -> Dict[str, CustomerCompanyOverlay]:
        if not customer_id or not companies:
            return {}
        try:
            overlays = await self.customer_company_repository.select_overlays(
                customer_id, [company.company_id for company in companies]
            )
        except StoreError as error:
            logger.warning(f"Overlay enrichment skipped for customer {customer_id}: {error}")
            return {}
        return {overlay.company_id: overlay for overlay in overlays}

    async def resolve_companies(
        self,
        tenant: TenantContext,
        raw_filters: Optional[Mapping[str, Any]] = None,
        pagination: Union[PageRequest, Mapping[str, Any], None] = None
    ) -> ResolvedCompanyPage:
        """Resolve one page of companies for a caller.

        Args:
            tenant: Resolved caller context.
            raw_filters: Loosely typed filters; may carry ``list_id`` to
                restrict the result to a saved list.
            pagination: PageRequest or raw page/sort mapping.

        Returns:
            ResolvedCompanyPage with overlays merged.

        Raises:
            UnauthenticatedError: If there is no caller identity.
            TenantContextRequiredError: If a non-admin caller has no customer.
            FilterValidationError: If filters or pagination are malformed.
            ListNotFoundError: If ``list_id`` names no visible list.
            StoreError: If the primary company query fails.
        """
        customer_id = require_scope(tenant)

        raw_filters = dict(raw_filters or {})
        list_id = None
        for key in LIST_ID_KEYS:
            value = raw_filters.pop(key, None)
            if value:
                list_id = str(value)

        page_request = pagination if isinstance(pagination, PageRequest) else normalize_page_request(pagination)
        spec = normalize_filters(raw_filters)
        predicates = compile_filters(spec)

        candidate_ids: Optional[List[str]] = None
        strategy = "catalog"

        if list_id:
            company_list = await self.list_repository.get_list(list_id, customer_id, list_type=None)
            if company_list is None:
                raise ListNotFoundError(list_id)

            if company_list.is_static:
                candidate_ids = await self.collect_list_company_ids(list_id)
                if not candidate_ids:
                    logger.info(f"Static list {list_id} has no members; returning empty page")
                    return ResolvedCompanyPage.empty(page_request)
                strategy = "static_list"
            else:
                list_spec = normalize_filters(company_list.filters)
                if list_spec.is_empty:
                    logger.info(f"Dynamic list {list_id} has no active filters; returning empty page")
                    return ResolvedCompanyPage.empty(page_request)
                predicates = compile_filters(list_spec) + predicates

        if candidate_ids is None and customer_id:
            candidate_ids = await self.collect_customer_company_ids(customer_id)
            if not candidate_ids:
                logger.info(f"Customer {customer_id} has no companies; returning empty page")
                return ResolvedCompanyPage.empty(page_request)
            strategy = "customer"

        logger.info(
            f"Resolving companies via {strategy} strategy "
            f"(filters: {', '.join(spec.active_dimensions()) or 'none'})"
        )

        companies, total = await self.company_repository.select_companies(
            candidate_ids, predicates, page_request.sort, page_request.range
        )
        overlays = await self._overlays_by_company(customer_id, companies)

        return ResolvedCompanyPage(
            data=[merge_overlay(company, overlays.get(company.company_id)) for company in companies],
            total=total,
            page=page_request.page,
            per_page=page_request.per_page,
        )

    async def get_company_lists(
        self,
        tenant: TenantContext,
        company: CompanyRecord
    ) -> List[CompanyItemList]:
        """Lists that contain a company: explicit memberships plus matching dynamic lists.

        Best effort: store failures yield an empty result, and a dynamic
        list with malformed filters is skipped.

        Args:
            tenant: Resolved caller context.
            company: Company to look up.

        Returns:
            CompanyItemList entries, explicit memberships first.
        """
        customer_id = require_scope(tenant)

        try:
            explicit_lists, dynamic_lists = await asyncio.gather(
                self.list_repository.select_lists_for_company(company.company_id, customer_id),
                self.list_repository.select_dynamic_lists(customer_id) if customer_id else _no_lists(),
            )
        except StoreError as error:
            logger.warning(f"List membership lookup failed for company {company.company_id}: {error}")
            return []

        seen = set()
        result = []
        for company_list in explicit_lists:
            if company_list.list_id not in seen:
                seen.add(company_list.list_id)
                result.append(_to_item_list(company_list))

        for company_list in dynamic_lists:
            if company_list.list_id in seen:
                continue
            try:
                if not matches_filters(company, company_list.filters):
                    continue
            except FilterValidationError as error:
                logger.warning(f"Skipping list {company_list.list_id} with malformed filters: {error}")
                continue
            seen.add(company_list.list_id)
            result.append(_to_item_list(company_list))

        return result

    async def _overlays_for_company(self, tenant: TenantContext, company_id: str) -> List[CustomerCompanyOverlay]:
        try:
            return await self.customer_company_repository.select_overlays_for_company(
                company_id, tenant.readable_customer_ids()
            )
        except StoreError as error:
            logger.warning(f"Failed to fetch scoring data for company {company_id}: {error}")
            return []

    async def get_company(self, tenant: TenantContext, company_id: str) -> CompanyItem:
        """Get one company with the caller's overlay and list memberships.

        Args:
            tenant: Resolved caller context.
            company_id: Company UUID.

        Returns:
            Merged CompanyItem.

        Raises:
            CompanyNotFoundError: If the company does not exist.
        """
        require_scope(tenant)

        company, overlays = await asyncio.gather(
            self.company_repository.get_by_company_id(company_id),
            self._overlays_for_company(tenant, company_id),
        )
        if company is None:
            raise CompanyNotFoundError(company_id)

        lists = await self.get_company_lists(tenant, company)
        overlay = select_best_overlay(overlays, tenant.effective_customer_id)
        return merge_overlay(company, overlay, lists)

    async def update_company(
        self,
        tenant: TenantContext,
        company_id: str,
        payload: Mapping[str, Any]
    ) -> CompanyItem:
        """Update a company's customer-scoped and global fields.

        Customer-scoped fields are upserted into the caller's overlay;
        global fields are patched on the catalog row. The two writes touch
        different tables and run concurrently. Only keys present in the
        payload are written; category and technology arrays are stored
        Title Cased.

        Args:
            tenant: Resolved caller context.
            company_id: Company UUID.
            payload: Supplied fields only (e.g. ``model_dump(exclude_unset=True)``).

        Returns:
            The refreshed company.

        Raises:
            StoreError: If either write fails.
            CompanyNotFoundError: If the company does not exist.
        """
        customer_id = require_scope(tenant)
        now = datetime.now(timezone.utc).isoformat()

        payload = dict(payload)
        for field in TITLE_CASED_FIELDS:
            if field in payload:
                payload[field] = title_case_values(payload[field])

        writes = []

        customer_fields = {field: payload[field] for field in CUSTOMER_SCOPED_FIELDS if field in payload}
        if customer_id and customer_fields:
            writes.append(
                self.customer_company_repository.upsert_overlay(customer_id, company_id, customer_fields)
            )

        global_fields = {
            column: payload[field] for field, column in GLOBAL_FIELD_COLUMNS.items() if field in payload
        }
        global_fields["updated_at"] = now
        writes.append(self.company_repository.patch_global_fields(company_id, global_fields))

        await asyncio.gather(*writes)
        logger.info(f"Updated company {company_id} ({len(customer_fields)} customer-scoped fields)")

        return await self.get_company(tenant, company_id)


async def _no_lists() -> List[CompanyList]:
    return []


def _to_item_list(company_list: CompanyList) -> CompanyItemList:
    return CompanyItemList(
        list_id=company_list.list_id,
        name=company_list.name or "Unknown",
        description=company_list.description or None,
        is_static=company_list.is_static,
    )
