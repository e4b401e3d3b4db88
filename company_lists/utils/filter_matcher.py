"""In-memory evaluation of company filters.

This is the twin of utils.query_compiler: for any company and FilterSpec,
matches() must agree with what the store returns for compile_filters().
Used where a query round-trip is not wanted, e.g. testing one company
against every saved dynamic list.
"""

from typing import Any, Iterable, Mapping, Optional, Union

from company_lists.constants import SEARCH_FIELDS
from company_lists.models.company import CompanyRecord
from company_lists.models.filters import FilterSpec
from company_lists.utils.filter_normalizer import normalize_filters


CompanyLike = Union[CompanyRecord, Mapping[str, Any]]


def _field(company: CompanyLike, name: str) -> Any:
    if isinstance(company, Mapping):
        return company.get(name)
    return getattr(company, name, None)


def _strings(values: Optional[Iterable[Any]]) -> list:
    if not values:
        return []
    return [value for value in values if isinstance(value, str)]


def matches_search(company: CompanyLike, search: str) -> bool:
    """Case-insensitive substring match against the name fields or domain.

    display_name, legal_name and domain are each checked on their own, so a
    hit on legal_name counts even when display_name is set.
    """
    if not search:
        return True
    needle = search.lower()
    for field in SEARCH_FIELDS:
        value = _field(company, field)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def matches_value_set(value: Any, allowed: Optional[frozenset]) -> bool:
    """Exact membership; an absent allowed set never narrows."""
    if not allowed:
        return True
    return value in allowed


def matches_employee_range(company: CompanyLike, spec: FilterSpec) -> bool:
    employees = _field(company, "employees")
    if employees is None:
        employees = 0

    if spec.has_min_employees and employees < spec.min_employees:
        return False
    if spec.has_max_employees and employees > spec.max_employees:
        return False
    return True


def matches_categories(company: CompanyLike, categories: Optional[frozenset]) -> bool:
    """Non-empty overlap with the company's categories as stored.

    The filter side is already Title Cased; stored values are compared
    exactly, the same as the array overlap the store runs.
    """
    if not categories:
        return True
    return not categories.isdisjoint(_strings(_field(company, "categories")))


def matches_technologies(company: CompanyLike, technologies: Optional[frozenset]) -> bool:
    """At least one filter technology equals a stored company technology exactly."""
    if not technologies:
        return True
    return not technologies.isdisjoint(_strings(_field(company, "technologies")))


def matches(company: CompanyLike, spec: FilterSpec) -> bool:
    """Check a single company against a normalized filter.

    Dimensions are combined with AND. Absent dimensions never narrow, so an
    empty FilterSpec matches everything here; dynamic-list membership goes
    through matches_filters(), which applies the empty-filter rule.

    Args:
        company: CompanyRecord or a raw companies row.
        spec: Normalized filter.

    Returns:
        True if the company satisfies every active dimension.
    """
    return (
        matches_search(company, spec.search)
        and matches_value_set(_field(company, "country"), spec.country)
        and matches_value_set(_field(company, "region"), spec.region)
        and matches_employee_range(company, spec)
        and matches_categories(company, spec.categories)
        and matches_technologies(company, spec.technologies)
    )


def matches_filters(company: CompanyLike, filter_blob: Optional[Mapping[str, Any]]) -> bool:
    """Test dynamic-list membership of one company.

    A list whose stored filters are absent, empty or have no active
    dimension matches no company at all.

    Args:
        company: CompanyRecord or a raw companies row.
        filter_blob: The list's stored filters.

    Returns:
        True if the company belongs to the dynamic list.

    Raises:
        FilterValidationError: If the stored blob is malformed.
    """
    if not filter_blob:
        return False

    spec = normalize_filters(filter_blob)
    if spec.is_empty:
        return False

    return matches(company, spec)
