"""Request schemas for company endpoints."""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class UpdateCompanyRequest(BaseModel):
    """Request model for updating a company.

    Only fields present in the request body are written. Customer-scoped
    fields (name, categories, revenue, country, region, employees, email)
    also update the caller's own view of the company.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    revenue: Optional[float] = None
    capitalization: Optional[float] = None
    currency_code: Optional[str] = None
    employees: Optional[int] = None
    siccodes: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    technologies: Optional[List[str]] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_links: Optional[Dict[str, Any]] = None


class MatchCompanyRequest(BaseModel):
    """Request model for checking a company against a stored filter blob."""
    company_id: str
    filters: Optional[Dict[str, Any]] = None
