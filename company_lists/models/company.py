"""Pydantic models for global companies and customer-scoped overlays."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


class ScoringResult(BaseModel):
    """Latest scoring of a company for one customer.

    Attributes:
        score: Numeric score.
        short_description: One-line summary.
        full_description: Full scoring rationale.
    """
    score: float = 0
    short_description: str = ""
    full_description: str = ""

    @classmethod
    def parse(cls, raw: Any) -> Optional["ScoringResult"]:
        """Parse a stored scoring blob, never raising.

        Accepts a mapping or a JSON string encoding one. Anything else
        yields None. Inside a mapping, each field of the wrong type falls
        back to its default.

        Args:
            raw: Value of the last_scoring_results column.

        Returns:
            ScoringResult, or None when the blob is not an object.
        """
        if isinstance(raw, ScoringResult):
            return raw
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError:
                return None
        if not raw or not isinstance(raw, dict):
            return None

        score = raw.get("score")
        short_description = raw.get("short_description")
        full_description = raw.get("full_description")
        return cls(
            score=score if isinstance(score, (int, float)) and not isinstance(score, bool) else 0,
            short_description=short_description if isinstance(short_description, str) else "",
            full_description=full_description if isinstance(full_description, str) else "",
        )


class CompanyRecord(BaseModel):
    """A company as stored in the global catalog (companies table)."""
    company_id: str
    display_name: Optional[str] = None
    legal_name: Optional[str] = None
    domain: Optional[str] = None
    website_url: Optional[str] = None
    logo: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    employees: Optional[int] = None
    revenue: Optional[float] = None
    capitalization: Optional[float] = None
    currency_code: Optional[str] = None
    siccodes: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    technologies: Optional[List[str]] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_links: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fetched_at: Optional[datetime] = None


class CustomerCompanyOverlay(BaseModel):
    """Customer-scoped override of a subset of company fields.

    Keyed by (customer_id, company_id). Present, non-empty fields take
    precedence over the matching CompanyRecord fields.
    """
    customer_id: str
    company_id: str
    name: Optional[str] = None
    categories: Optional[List[str]] = None
    revenue: Optional[float] = None
    country: Optional[str] = None
    region: Optional[str] = None
    employees: Optional[int] = None
    email: Optional[str] = None
    last_scoring_results: Optional[ScoringResult] = None
    updated_at: Optional[datetime] = None

    @field_validator("last_scoring_results", mode="before")
    @classmethod
    def _parse_scoring(cls, value: Any) -> Optional[ScoringResult]:
        return ScoringResult.parse(value)


class CompanyItemList(BaseModel):
    """A list a company belongs to, as shown next to the company.

    Attributes:
        list_id: List UUID.
        name: List name.
        description: Optional list description.
        is_static: True for explicit membership, False for filter-based.
        is_attached: Always True for lists returned as memberships.
    """
    list_id: str
    name: str
    description: Optional[str] = None
    is_static: bool = True
    is_attached: bool = True


class CompanyItem(BaseModel):
    """A company with the caller's customer overlay merged in."""
    company_id: str
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    domain: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    revenue: Optional[float] = None
    currency_code: Optional[str] = None
    employees: Optional[int] = None
    siccodes: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    technologies: Optional[List[str]] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_links: Optional[Dict[str, Any]] = None
    last_scoring_results: Optional[ScoringResult] = None
    fetched_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    lists: Optional[List[CompanyItemList]] = None
