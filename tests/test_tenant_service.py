from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from company_lists.errors import TenantContextRequiredError, UnauthenticatedError
from company_lists.models.tenant import TenantContext
from company_lists.services.tenant_service import TenantService, require_scope


class StubAuth:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error

    async def get_user(self, token):
        if self.error:
            raise self.error
        return SimpleNamespace(user=self.user)


class StubRpc:
    def __init__(self, result):
        self.result = result

    async def execute(self):
        if isinstance(self.result, Exception):
            raise self.result
        return SimpleNamespace(data=self.result)


class StubRestClient:
    def __init__(self, results):
        self.results = results
        self.closed = False

    def rpc(self, name, params):
        return StubRpc(self.results.get(name))

    async def aclose(self):
        self.closed = True


def build_service(user=None, auth_error=None, rpc_results=None):
    rest_client = StubRestClient(rpc_results or {})
    db_client = SimpleNamespace(auth=StubAuth(user, auth_error))
    return TenantService(db_client, lambda token: rest_client), rest_client


def test_missing_or_invalid_token_is_anonymous():
    service, _ = build_service(auth_error=RuntimeError("invalid JWT"))

    assert asyncio.run(service.resolve(None)) == TenantContext()
    assert not asyncio.run(service.resolve("bad-token")).is_authenticated


def test_resolves_customer_scope_from_rpcs():
    user = SimpleNamespace(id="user-1", app_metadata={})
    service, rest_client = build_service(user, rpc_results={
        "is_system_admin": False,
        "current_customer_id": [" cust-1 "],
        "get_accessible_customer_ids": [{"customer_id": "cust-1"}, {"customer_id": "cust-2"}, {}],
    })

    tenant = asyncio.run(service.resolve("token"))

    assert tenant.user_id == "user-1"
    assert tenant.effective_customer_id == "cust-1"
    assert tenant.accessible_customer_ids == ["cust-1", "cust-2"]
    assert tenant.is_system_admin is False
    assert rest_client.closed


def test_customer_switcher_override_wins():
    user = SimpleNamespace(id="user-1", app_metadata={"customer_id": "cust-9"})
    service, _ = build_service(user, rpc_results={"current_customer_id": "cust-1", "is_system_admin": True})

    tenant = asyncio.run(service.resolve("token"))

    assert tenant.effective_customer_id == "cust-9"
    assert tenant.is_system_admin is True
    assert tenant.readable_customer_ids() == ["cust-9"]


def test_failed_customer_lookup_is_reported():
    user = SimpleNamespace(id="user-1", app_metadata=None)
    service, _ = build_service(user, rpc_results={"current_customer_id": RuntimeError("permission denied")})

    tenant = asyncio.run(service.resolve("token"))

    assert tenant.effective_customer_id is None
    with pytest.raises(TenantContextRequiredError, match="permission denied"):
        require_scope(tenant)


def test_require_scope():
    with pytest.raises(UnauthenticatedError):
        require_scope(TenantContext())
    assert require_scope(TenantContext(user_id="u", is_system_admin=True)) is None
    assert require_scope(TenantContext(user_id="u", default_customer_id="cust-1")) == "cust-1"
