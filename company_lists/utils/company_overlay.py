"""Merge customer-scoped overlays onto global company records."""

from datetime import datetime, timezone
from typing import Any, List, Optional

from company_lists.models.company import CompanyItem, CompanyItemList, CompanyRecord, CustomerCompanyOverlay


UNKNOWN_COMPANY_NAME = "Unknown"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _prefer(override: Any, fallback: Any) -> Any:
    return fallback if _is_empty(override) else override


def merge_overlay(
    company: CompanyRecord,
    overlay: Optional[CustomerCompanyOverlay] = None,
    lists: Optional[List[CompanyItemList]] = None
) -> CompanyItem:
    """Build the CompanyItem shown to a customer.

    Overlay fields win when present and non-empty (blank strings and empty
    lists count as empty; a revenue or employee count of 0 is a value).

    Args:
        company: Global company record.
        overlay: The customer's overlay row for this company, if any.
        lists: Lists to attach to the item, if already resolved.

    Returns:
        Merged CompanyItem.
    """
    now = datetime.now(timezone.utc)
    base_name = company.display_name or company.legal_name or UNKNOWN_COMPANY_NAME

    if overlay is None:
        overlay = CustomerCompanyOverlay(customer_id="", company_id=company.company_id)

    return CompanyItem(
        company_id=company.company_id,
        name=_prefer(overlay.name, base_name),
        type=company.type,
        description=company.description,
        domain=company.domain,
        website=company.website_url,
        logo=company.logo,
        country=_prefer(overlay.country, company.country),
        region=_prefer(overlay.region, company.region),
        address=company.address,
        latitude=company.latitude,
        longitude=company.longitude,
        revenue=_prefer(overlay.revenue, company.revenue),
        currency_code=company.currency_code,
        employees=_prefer(overlay.employees, company.employees),
        siccodes=company.siccodes,
        categories=_prefer(overlay.categories, company.categories),
        technologies=company.technologies,
        phone=company.phone,
        email=_prefer(overlay.email, company.email),
        social_links=company.social_links,
        last_scoring_results=overlay.last_scoring_results,
        fetched_at=company.fetched_at,
        created_at=company.created_at or now,
        updated_at=company.updated_at or now,
        lists=lists or None,
    )


def select_best_overlay(
    overlays: List[CustomerCompanyOverlay],
    current_customer_id: Optional[str]
) -> Optional[CustomerCompanyOverlay]:
    """Pick the overlay to show when several customers have one.

    Preference: the current customer's row with scoring results, any row
    with scoring results, the current customer's row, the first row.
    """
    if not overlays:
        return None

    current = next((row for row in overlays if row.customer_id == current_customer_id), None)
    if current is not None and current.last_scoring_results is not None:
        return current

    scored = next((row for row in overlays if row.last_scoring_results is not None), None)
    if scored is not None:
        return scored

    return current or overlays[0]
