"""Pydantic model for the already-resolved caller/tenant context."""

from typing import List, Optional

from pydantic import BaseModel


class TenantContext(BaseModel):
    """Caller identity and customer scope for one request.

    Attributes:
        user_id: Authenticated user, None when the caller is anonymous.
        jwt_customer_id: Customer chosen in the context switcher. Takes
            priority over the default lookup.
        default_customer_id: Customer from the current_customer_id lookup.
        accessible_customer_ids: Every customer the caller may read.
        is_system_admin: Platform administrator flag.
        customer_id_error: Message of a failed customer lookup, if any.
    """
    user_id: Optional[str] = None
    jwt_customer_id: Optional[str] = None
    default_customer_id: Optional[str] = None
    accessible_customer_ids: List[str] = []
    is_system_admin: bool = False
    customer_id_error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def effective_customer_id(self) -> Optional[str]:
        if self.jwt_customer_id and self.jwt_customer_id.strip():
            return self.jwt_customer_id.strip()
        if self.default_customer_id:
            return self.default_customer_id
        return None

    def readable_customer_ids(self) -> List[str]:
        """Customers whose overlays the caller may read, effective first."""
        customer_ids = list(self.accessible_customer_ids)
        effective = self.effective_customer_id
        if effective and effective not in customer_ids:
            customer_ids.insert(0, effective)
        return customer_ids
