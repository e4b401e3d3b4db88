"""Pydantic models for saved company lists."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ListType(str, Enum):
    """Kind of list row."""
    SEGMENT = "segment"
    TERRITORY = "territory"
    LIST = "list"


class ListStatus(str, Enum):
    """Processing status of a list."""
    NEW = "new"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ListSubtype(str, Enum):
    """What a list holds."""
    PEOPLE = "people"
    COMPANY = "company"


class CompanyList(BaseModel):
    """A saved list.

    Static lists hold an explicit membership (list_companies rows); dynamic
    lists compute membership from the stored filters blob.

    Attributes:
        list_id: List UUID.
        customer_id: Owning customer.
        list_type: Row kind; list management only handles ListType.LIST.
        name: Display name.
        description: Optional description.
        filters: Raw filter blob. Authoritative for dynamic lists only.
        user_id: Creator.
        status: Processing status.
        subtype: Company or people list.
        is_static: True for explicit membership.
        company_count: Number of explicit members, when requested.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
        deleted_at: Soft-delete timestamp.
    """
    list_id: str
    customer_id: Optional[str] = None
    list_type: ListType = ListType.LIST
    name: str
    description: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None
    status: ListStatus = ListStatus.NEW
    subtype: ListSubtype = ListSubtype.COMPANY
    is_static: bool = False
    company_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def is_dynamic(self) -> bool:
        return not self.is_static
