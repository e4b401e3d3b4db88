"""Service for saved list management."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from company_lists.constants import (
    ADD_COMPANIES_CHUNK_SIZE,
    DEFAULT_LIST_COMPANIES_PER_PAGE,
    DEFAULT_LISTS_PER_PAGE,
    LIST_COMPANY_IDS_PAGE_SIZE,
    LIST_COPY_FALLBACK_NAME,
    LIST_COPY_SUFFIX,
    LIST_NAME_MAX_LENGTH,
    LIST_NAME_MIN_LENGTH,
)
from company_lists.errors import ListNotFoundError, ListOperationError, StoreError, TenantContextRequiredError
from company_lists.models.list import CompanyList, ListStatus, ListSubtype, ListType
from company_lists.models.pagination import ListPage, PageRequest, ResolvedCompanyPage
from company_lists.models.tenant import TenantContext
from company_lists.repositories.ports import ListStorePort
from company_lists.services.company_service import CompanyService
from company_lists.services.tenant_service import require_scope
from company_lists.utils.filter_normalizer import filter_spec_to_raw, normalize_filters, normalize_page_request
from company_lists.utils.paging import collect_all_pages

logger = logging.getLogger(__name__)


def validate_list_name(name: Optional[str]) -> str:
    """Trim a list name and check its length.

    Raises:
        ListOperationError: If the trimmed name is outside the allowed length.
    """
    name = (name or "").strip()
    if len(name) < LIST_NAME_MIN_LENGTH:
        raise ListOperationError(f"List name must be at least {LIST_NAME_MIN_LENGTH} characters")
    if len(name) > LIST_NAME_MAX_LENGTH:
        raise ListOperationError(f"List name must be at most {LIST_NAME_MAX_LENGTH} characters")
    return name


def copy_list_name(name: str) -> str:
    """Name for a duplicated list: ``<name>_copy``, kept within the length limit."""
    name = (name or "").strip()
    copy_name = f"{name}{LIST_COPY_SUFFIX}" if name else LIST_COPY_FALLBACK_NAME
    if len(copy_name) > LIST_NAME_MAX_LENGTH:
        copy_name = copy_name[:LIST_NAME_MAX_LENGTH - 3] + "..."
    if len(copy_name) < LIST_NAME_MIN_LENGTH:
        copy_name = LIST_COPY_FALLBACK_NAME
    return copy_name


def _clean_company_ids(company_ids: List[str]) -> List[str]:
    seen = set()
    cleaned = []
    for company_id in company_ids or []:
        company_id = (company_id or "").strip()
        if company_id and company_id not in seen:
            seen.add(company_id)
            cleaned.append(company_id)
    return cleaned


class ListService:
    """Creates, reads, edits and copies saved lists.

    All operations only see lists of type ``list`` that are not soft
    deleted, scoped to the caller's effective customer unless the caller
    is a platform administrator without a selected customer.

    Attributes:
        list_repository: Store for lists and memberships.
        company_service: Used to resolve a list's companies.
    """

    def __init__(self, list_repository: ListStorePort, company_service: CompanyService):
        """Initialize the service.

        Args:
            list_repository: ListRepository (or compatible) instance.
            company_service: CompanyService instance.
        """
        self.list_repository = list_repository
        self.company_service = company_service

    async def _require_list(self, tenant: TenantContext, list_id: str) -> CompanyList:
        customer_id = require_scope(tenant)
        company_list = await self.list_repository.get_list(list_id, customer_id)
        if company_list is None:
            raise ListNotFoundError(list_id)
        return company_list

    async def get_lists(
        self,
        tenant: TenantContext,
        page: int = 1,
        per_page: int = DEFAULT_LISTS_PER_PAGE,
        search: Optional[str] = None
    ) -> ListPage:
        """Get one page of lists with their member counts.

        Args:
            tenant: Resolved caller context.
            page: 1-indexed page number.
            per_page: Page size.
            search: Case-insensitive substring of the list name.

        Returns:
            ListPage, most recently updated first.
        """
        customer_id = require_scope(tenant)
        page_request = normalize_page_request(
            {"page": page, "per_page": per_page}, default_per_page=DEFAULT_LISTS_PER_PAGE
        )
        search = search.strip() if search else None

        lists, total = await self.list_repository.list_lists(customer_id, search, page_request.range)
        counts = await asyncio.gather(*(self.list_repository.count_members(item.list_id) for item in lists))

        return ListPage(
            data=[item.model_copy(update={"company_count": count}) for item, count in zip(lists, counts)],
            total=total,
            page=page_request.page,
            per_page=page_request.per_page,
        )

    async def get_list(self, tenant: TenantContext, list_id: str) -> CompanyList:
        """Get a list by ID.

        Raises:
            ListNotFoundError: If the list does not exist or is not visible.
        """
        return await self._require_list(tenant, list_id)

    async def create_list(
        self,
        tenant: TenantContext,
        name: str,
        subtype: Union[ListSubtype, str] = ListSubtype.COMPANY,
        is_static: bool = False,
        description: Optional[str] = None
    ) -> CompanyList:
        """Create an empty list for the caller's customer.

        Args:
            tenant: Resolved caller context.
            name: List name (trimmed, 3 to 100 characters).
            subtype: Company or people list.
            is_static: True for an explicit membership list.
            description: Optional description.

        Returns:
            The created list.

        Raises:
            ListOperationError: If the name is invalid.
            TenantContextRequiredError: If no customer is selected, even
                for a platform administrator.
        """
        customer_id = require_scope(tenant)
        if not customer_id:
            raise TenantContextRequiredError("select a customer before creating a list")

        name = validate_list_name(name)
        now = datetime.now(timezone.utc).isoformat()
        created = await self.list_repository.create_list({
            "customer_id": customer_id,
            "user_id": tenant.user_id,
            "list_type": ListType.LIST.value,
            "name": name,
            "description": description.strip() if description and description.strip() else None,
            "filters": {},
            "status": ListStatus.NEW.value,
            "subtype": ListSubtype(subtype).value,
            "is_static": is_static,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Created list {created.list_id} for customer {customer_id}")
        return created

    async def _update(self, tenant: TenantContext, list_id: str, updates: Dict[str, Any]) -> CompanyList:
        customer_id = require_scope(tenant)
        updates["updated_at"] = datetime.now(timezone.utc).isoformat()
        updated = await self.list_repository.update_list(list_id, customer_id, updates)
        if updated is None:
            raise ListNotFoundError(list_id)
        return updated

    async def update_list(
        self,
        tenant: TenantContext,
        list_id: str,
        name: Optional[str] = None,
        filters: Optional[Mapping[str, Any]] = None
    ) -> CompanyList:
        """Rename a list and/or replace its stored filters.

        Filters are validated and stored in canonical form, so a saved
        list never carries a blob that later fails to resolve.

        Raises:
            ListOperationError: If the new name is invalid.
            FilterValidationError: If the filters are malformed.
            ListNotFoundError: If the list does not exist or is not visible.
        """
        require_scope(tenant)
        updates: Dict[str, Any] = {}
        if name is not None:
            updates["name"] = validate_list_name(name)
        if filters is not None:
            updates["filters"] = filter_spec_to_raw(normalize_filters(filters))
        return await self._update(tenant, list_id, updates)

    async def delete_list(self, tenant: TenantContext, list_id: str) -> None:
        """Soft delete a list."""
        await self._update(tenant, list_id, {"deleted_at": datetime.now(timezone.utc).isoformat()})
        logger.info(f"Deleted list {list_id}")

    async def add_companies_to_list(self, tenant: TenantContext, list_id: str, company_ids: List[str]) -> int:
        """Add companies to a company list, skipping existing members.

        Args:
            tenant: Resolved caller context.
            list_id: Target list.
            company_ids: Company UUIDs; blank and repeated IDs are dropped.

        Returns:
            Number of distinct company IDs submitted.

        Raises:
            ListOperationError: If no usable ID was given or the list holds people.
            ListNotFoundError: If the list does not exist or is not visible.
        """
        company_ids = _clean_company_ids(company_ids)
        if not company_ids:
            raise ListOperationError("No company IDs provided")

        company_list = await self._require_list(tenant, list_id)
        if company_list.subtype != ListSubtype.COMPANY.value:
            raise ListOperationError(f"List {list_id} does not hold companies")

        for start in range(0, len(company_ids), ADD_COMPANIES_CHUNK_SIZE):
            await self.list_repository.add_companies(list_id, company_ids[start:start + ADD_COMPANIES_CHUNK_SIZE])

        logger.info(f"Added {len(company_ids)} companies to list {list_id}")
        return len(company_ids)

    async def check_companies_in_list(
        self,
        tenant: TenantContext,
        list_id: str,
        company_ids: List[str]
    ) -> Dict[str, bool]:
        """Map each given company ID to whether it is an explicit member of the list."""
        company_ids = _clean_company_ids(company_ids)
        if not company_ids:
            return {}

        await self._require_list(tenant, list_id)
        members = set(await self.list_repository.select_members_in(list_id, company_ids))
        return {company_id: company_id in members for company_id in company_ids}

    async def duplicate_list(self, tenant: TenantContext, list_id: str) -> CompanyList:
        """Copy a list, including the membership of a static company list.

        The copy itself must succeed; copying the membership is best effort
        and a failure there leaves the new list in place.

        Returns:
            The new list.
        """
        source = await self._require_list(tenant, list_id)
        copy = await self.create_list(
            tenant,
            name=copy_list_name(source.name),
            subtype=source.subtype,
            is_static=source.is_static,
            description=source.description,
        )

        if source.filters:
            copy = await self._update(tenant, copy.list_id, {"filters": dict(source.filters)})

        if source.is_static and source.subtype == ListSubtype.COMPANY.value:
            try:
                company_ids = await self._copy_membership(source.list_id, copy.list_id)
                logger.info(f"Copied {len(company_ids)} companies from list {source.list_id} to {copy.list_id}")
            except StoreError as error:
                logger.warning(f"Failed to copy companies from list {source.list_id}: {error}")

        return copy

    async def _copy_membership(self, source_list_id: str, target_list_id: str) -> List[str]:
        async def fetch_page(offset: int, page_size: int) -> List[str]:
            return await self.list_repository.select_list_membership(source_list_id, offset, page_size)

        company_ids = await collect_all_pages(fetch_page, LIST_COMPANY_IDS_PAGE_SIZE)
        for start in range(0, len(company_ids), ADD_COMPANIES_CHUNK_SIZE):
            await self.list_repository.add_companies(
                target_list_id, company_ids[start:start + ADD_COMPANIES_CHUNK_SIZE]
            )
        return company_ids

    async def get_list_companies(
        self,
        tenant: TenantContext,
        list_id: str,
        raw_filters: Optional[Mapping[str, Any]] = None,
        pagination: Union[PageRequest, Mapping[str, Any], None] = None
    ) -> ResolvedCompanyPage:
        """Resolve one page of a list's companies.

        Static lists resolve through their explicit membership; dynamic
        lists through their stored filters combined with ``raw_filters``.
        """
        require_scope(tenant)
        if not isinstance(pagination, PageRequest):
            pagination = normalize_page_request(pagination, default_per_page=DEFAULT_LIST_COMPANIES_PER_PAGE)
        filters = dict(raw_filters or {})
        filters["list_id"] = list_id
        return await self.company_service.resolve_companies(tenant, filters, pagination)
