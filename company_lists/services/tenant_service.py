"""Caller identity and customer scope resolution."""

import asyncio
import logging
from typing import Any, Callable, List, Optional

from company_lists.errors import TenantContextRequiredError, UnauthenticatedError
from company_lists.models.tenant import TenantContext

logger = logging.getLogger(__name__)


def require_authenticated(tenant: TenantContext) -> None:
    if not tenant.is_authenticated:
        raise UnauthenticatedError()


def require_scope(tenant: TenantContext) -> Optional[str]:
    """Check the caller may read company data and return its customer.

    Returns:
        The effective customer ID, or None for a platform administrator
        with no customer selected.

    Raises:
        UnauthenticatedError: If there is no caller identity.
        TenantContextRequiredError: If a non-admin caller has no customer.
    """
    require_authenticated(tenant)
    customer_id = tenant.effective_customer_id
    if not customer_id and not tenant.is_system_admin:
        raise TenantContextRequiredError(tenant.customer_id_error or "not available")
    return customer_id


def _first_customer_id(raw: Any) -> Optional[str]:
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def _customer_ids(raw: Any) -> List[str]:
    """Normalize an accessible-customers RPC result (scalar, IDs or rows)."""
    if isinstance(raw, str):
        return [raw] if raw else []
    if not isinstance(raw, list):
        return []
    customer_ids = []
    for item in raw:
        if isinstance(item, dict):
            item = item.get("customer_id")
        if isinstance(item, str) and item:
            customer_ids.append(item)
    return customer_ids


class TenantService:
    """Builds a TenantContext from a bearer token.

    Attributes:
        db_client: Supabase async client used to validate the token.
        rest_client_factory: Builds a PostgREST client acting as the user,
            used for the customer-context RPCs.
    """

    def __init__(self, db_client, rest_client_factory: Callable[[str], Any]):
        """Initialize the service.

        Args:
            db_client: Supabase async client instance.
            rest_client_factory: Callable taking an access token and
                returning an async PostgREST client (closed after use).
        """
        self.db_client = db_client
        self.rest_client_factory = rest_client_factory

    async def _rpc(self, rest_client, function_name: str):
        try:
            response = await rest_client.rpc(function_name, {}).execute()
            return response.data, None
        except Exception as error:
            logger.warning(f"RPC {function_name} failed: {error}")
            return None, str(error)

    async def resolve(self, access_token: Optional[str]) -> TenantContext:
        """Resolve the caller behind an access token.

        An invalid or missing token yields an anonymous context; services
        then reject the call as unauthenticated.

        Args:
            access_token: JWT from the Authorization header.

        Returns:
            TenantContext for the caller.
        """
        if not access_token:
            return TenantContext()

        try:
            user_response = await self.db_client.auth.get_user(access_token)
        except Exception as error:
            logger.warning(f"Token validation failed: {error}")
            return TenantContext()

        user = getattr(user_response, "user", None)
        if user is None:
            return TenantContext()

        app_metadata = getattr(user, "app_metadata", None) or {}
        jwt_customer_id = app_metadata.get("customer_id")

        rest_client = self.rest_client_factory(access_token)
        try:
            (is_admin, _), (current, current_error), (accessible, _) = await asyncio.gather(
                self._rpc(rest_client, "is_system_admin"),
                self._rpc(rest_client, "current_customer_id"),
                self._rpc(rest_client, "get_accessible_customer_ids"),
            )
        finally:
            await rest_client.aclose()

        return TenantContext(
            user_id=user.id,
            jwt_customer_id=jwt_customer_id if isinstance(jwt_customer_id, str) else None,
            default_customer_id=_first_customer_id(current),
            accessible_customer_ids=_customer_ids(accessible),
            is_system_admin=bool(is_admin),
            customer_id_error=current_error,
        )
