from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'company_lists.services.company_service'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
    os.environ.setdefault("SUPABASE_KEY", "test-key")


CUSTOMER = "cust-1"
OTHER_CUSTOMER = "cust-2"


@pytest.fixture
def db():
    from company_lists.repositories.memory import InMemoryDatabase

    return InMemoryDatabase()


@pytest.fixture
def company_service(db):
    from company_lists.repositories.memory import (
        InMemoryCompanyRepository,
        InMemoryCustomerCompanyRepository,
        InMemoryListRepository,
    )
    from company_lists.services.company_service import CompanyService

    return CompanyService(
        InMemoryCompanyRepository(db),
        InMemoryCustomerCompanyRepository(db),
        InMemoryListRepository(db),
    )


@pytest.fixture
def list_service(company_service):
    from company_lists.services.list_service import ListService

    return ListService(company_service.list_repository, company_service)


@pytest.fixture
def tenant():
    from company_lists.models.tenant import TenantContext

    return TenantContext(user_id="user-1", default_customer_id=CUSTOMER, accessible_customer_ids=[CUSTOMER])


@pytest.fixture
def admin():
    from company_lists.models.tenant import TenantContext

    return TenantContext(user_id="admin-1", is_system_admin=True)
