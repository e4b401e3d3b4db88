"""FastAPI application for customer-scoped company resolution and saved lists."""

import logging
import os
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from company_lists.api.schemas.company_schemas import MatchCompanyRequest, UpdateCompanyRequest
from company_lists.api.schemas.list_schemas import (
    AddCompaniesRequest,
    CheckCompaniesRequest,
    CreateListRequest,
    UpdateListRequest,
)
from company_lists.api.schemas.responses import (
    AddCompaniesResponse,
    CheckCompaniesResponse,
    CompanyListsResponse,
    CompanyPageResponse,
    ListPageResponse,
    MatchCompanyResponse,
)
from company_lists.constants import DEFAULT_LISTS_PER_PAGE
from company_lists.database.client import create_user_rest_client, get_supabase
from company_lists.errors import (
    CompanyNotFoundError,
    NotFoundError,
    StoreError,
    TenantContextRequiredError,
    UnauthenticatedError,
)
from company_lists.models.company import CompanyItem
from company_lists.models.list import CompanyList
from company_lists.models.tenant import TenantContext
from company_lists.repositories.company_repository import CompanyRepository
from company_lists.repositories.customer_company_repository import CustomerCompanyRepository
from company_lists.repositories.list_repository import ListRepository
from company_lists.services.company_service import CompanyService
from company_lists.services.list_service import ListService
from company_lists.services.tenant_service import TenantService, require_scope
from company_lists.utils.filter_matcher import matches_filters

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app = FastAPI()

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handlers
@app.exception_handler(UnauthenticatedError)
async def unauthenticated_handler(request: Request, exc: UnauthenticatedError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(TenantContextRequiredError)
async def tenant_context_handler(request: Request, exc: TenantContextRequiredError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Convert ValueError to appropriate HTTP exception.

    Automatically handles common patterns:
    - "not found" → 404 Not Found
    - "duplicate" or "already exists" → 409 Conflict
    - Everything else → 400 Bad Request
    """
    error_msg = str(exc).lower()

    if "not found" in error_msg:
        status_code = 404
    elif "duplicate" in error_msg or "already exists" in error_msg:
        status_code = 409
    else:
        status_code = 400

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc)}
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Convert store failures to 502 Bad Gateway."""
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Convert generic exceptions to 500 Internal Server Error.

    This catches all unhandled exceptions and returns a clean error response.
    Prevents stack traces from being exposed to clients.
    """
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"}
    )


# Services are built on first use so the app imports without credentials.
_services = {}


async def get_company_service() -> CompanyService:
    if "company" not in _services:
        supabase = await get_supabase()
        _services["company"] = CompanyService(
            CompanyRepository(supabase),
            CustomerCompanyRepository(supabase),
            ListRepository(supabase),
        )
    return _services["company"]


async def get_list_service(company_service: CompanyService = Depends(get_company_service)) -> ListService:
    if "list" not in _services:
        _services["list"] = ListService(company_service.list_repository, company_service)
    return _services["list"]


async def get_tenant_service() -> TenantService:
    if "tenant" not in _services:
        _services["tenant"] = TenantService(await get_supabase(), create_user_rest_client)
    return _services["tenant"]


async def get_tenant(
    authorization: Optional[str] = Header(None),
    tenant_service: TenantService = Depends(get_tenant_service),
) -> TenantContext:
    """Resolve the caller from the Authorization: Bearer header."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[len("bearer "):].strip()
    return await tenant_service.resolve(token)


def _company_filters(
    search: Optional[str] = None,
    country: Optional[List[str]] = Query(None),
    region: Optional[List[str]] = Query(None),
    category: Optional[List[str]] = Query(None),
    technology: Optional[List[str]] = Query(None),
    min_employees: Optional[str] = None,
    max_employees: Optional[str] = None,
) -> dict:
    """Collect filter query parameters; repeated parameters form arrays."""
    filters = {
        "search": search,
        "country": country,
        "region": region,
        "category": category,
        "technology": technology,
        "min_employees": min_employees,
        "max_employees": max_employees,
    }
    return {key: value for key, value in filters.items() if value is not None}


def _pagination(
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> dict:
    pagination = {"page": page, "per_page": per_page, "sort_by": sort_by, "sort_order": sort_order}
    return {key: value for key, value in pagination.items() if value is not None}


@app.get("/")
def root():
    """Health check endpoint.

    Returns:
        Dictionary with status indicator.
    """
    return {"status": "ok"}


# Company endpoints
@app.get("/companies", response_model=CompanyPageResponse)
async def get_companies(
    list_id: Optional[str] = None,
    filters: dict = Depends(_company_filters),
    pagination: dict = Depends(_pagination),
    tenant: TenantContext = Depends(get_tenant),
    company_service: CompanyService = Depends(get_company_service),
):
    """Get one page of the companies visible to the caller.

    Args:
        list_id: Optional saved list restricting the result.
        filters: search, country, region, category, technology,
            min_employees and max_employees query parameters.
        pagination: page, per_page, sort_by and sort_order query parameters.

    Returns:
        CompanyPageResponse with data, pagination and meta blocks.

    Example:
        GET /companies?country=France&country=Germany&category=saas&page=2
    """
    if list_id:
        filters["list_id"] = list_id
    page = await company_service.resolve_companies(tenant, filters, pagination)
    return CompanyPageResponse.from_page(page)


@app.post("/companies/match", response_model=MatchCompanyResponse)
async def match_company(
    request: MatchCompanyRequest,
    tenant: TenantContext = Depends(get_tenant),
    company_service: CompanyService = Depends(get_company_service),
):
    """Check whether a company satisfies a stored filter blob."""
    require_scope(tenant)
    company = await company_service.company_repository.get_by_company_id(request.company_id)
    if company is None:
        raise CompanyNotFoundError(request.company_id)
    return MatchCompanyResponse(matches=matches_filters(company, request.filters))


@app.get("/companies/{company_id}", response_model=CompanyItem)
async def get_company(
    company_id: str,
    tenant: TenantContext = Depends(get_tenant),
    company_service: CompanyService = Depends(get_company_service),
):
    """Get a company with the caller's overlay and list memberships."""
    return await company_service.get_company(tenant, company_id)


@app.patch("/companies/{company_id}", response_model=CompanyItem)
async def update_company(
    company_id: str,
    request: UpdateCompanyRequest,
    tenant: TenantContext = Depends(get_tenant),
    company_service: CompanyService = Depends(get_company_service),
):
    """Update a company.

    Only the fields present in the request body are written.

    Returns:
        The refreshed company.
    """
    payload = request.model_dump(exclude_unset=True)
    return await company_service.update_company(tenant, company_id, payload)


@app.get("/companies/{company_id}/lists", response_model=CompanyListsResponse)
async def get_company_lists(
    company_id: str,
    tenant: TenantContext = Depends(get_tenant),
    company_service: CompanyService = Depends(get_company_service),
):
    """Get the lists containing a company, static and dynamic."""
    require_scope(tenant)
    company = await company_service.company_repository.get_by_company_id(company_id)
    if company is None:
        raise CompanyNotFoundError(company_id)
    return CompanyListsResponse(data=await company_service.get_company_lists(tenant, company))


# List endpoints
@app.get("/lists", response_model=ListPageResponse)
async def get_lists(
    page: int = 1,
    per_page: int = DEFAULT_LISTS_PER_PAGE,
    search: Optional[str] = None,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Get one page of saved lists with their member counts."""
    lists = await list_service.get_lists(tenant, page=page, per_page=per_page, search=search)
    return ListPageResponse.from_page(lists)


@app.post("/lists", response_model=CompanyList, status_code=201)
async def create_list(
    request: CreateListRequest,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Create an empty list for the caller's customer.

    Example:
        POST /lists
        {
            "name": "Target accounts",
            "is_static": true
        }
    """
    return await list_service.create_list(
        tenant,
        name=request.name,
        subtype=request.subtype,
        is_static=request.is_static,
        description=request.description,
    )


@app.get("/lists/{list_id}", response_model=CompanyList)
async def get_list(
    list_id: str,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    return await list_service.get_list(tenant, list_id)


@app.patch("/lists/{list_id}", response_model=CompanyList)
async def update_list(
    list_id: str,
    request: UpdateListRequest,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Rename a list or replace its stored filters."""
    return await list_service.update_list(tenant, list_id, name=request.name, filters=request.filters)


@app.delete("/lists/{list_id}")
async def delete_list(
    list_id: str,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Soft delete a list.

    Returns:
        Success message.
    """
    await list_service.delete_list(tenant, list_id)
    return {"message": "List deleted successfully"}


@app.post("/lists/{list_id}/duplicate", response_model=CompanyList, status_code=201)
async def duplicate_list(
    list_id: str,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Copy a list, including a static list's companies."""
    return await list_service.duplicate_list(tenant, list_id)


@app.get("/lists/{list_id}/companies", response_model=CompanyPageResponse)
async def get_list_companies(
    list_id: str,
    filters: dict = Depends(_company_filters),
    pagination: dict = Depends(_pagination),
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Get one page of a list's companies, narrowed by optional filters."""
    page = await list_service.get_list_companies(tenant, list_id, filters, pagination)
    return CompanyPageResponse.from_page(page)


@app.post("/lists/{list_id}/companies", response_model=AddCompaniesResponse)
async def add_companies_to_list(
    list_id: str,
    request: AddCompaniesRequest,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Add companies to a company list; existing members are skipped."""
    added = await list_service.add_companies_to_list(tenant, list_id, request.company_ids)
    return AddCompaniesResponse(list_id=list_id, added=added)


@app.post("/lists/{list_id}/companies/check", response_model=CheckCompaniesResponse)
async def check_companies_in_list(
    list_id: str,
    request: CheckCompaniesRequest,
    tenant: TenantContext = Depends(get_tenant),
    list_service: ListService = Depends(get_list_service),
):
    """Report which of the given companies are members of a list."""
    memberships = await list_service.check_companies_in_list(tenant, list_id, request.company_ids)
    return CheckCompaniesResponse(list_id=list_id, memberships=memberships)
