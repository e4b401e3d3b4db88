"""Request schemas for list endpoints."""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any

from company_lists.models.list import ListSubtype


class CreateListRequest(BaseModel):
    """Request model for creating a list."""
    name: str
    subtype: ListSubtype = ListSubtype.COMPANY
    is_static: bool = False
    description: Optional[str] = None


class UpdateListRequest(BaseModel):
    """Request model for renaming a list or replacing its filters."""
    name: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None


class AddCompaniesRequest(BaseModel):
    company_ids: List[str]


class CheckCompaniesRequest(BaseModel):
    company_ids: List[str]
