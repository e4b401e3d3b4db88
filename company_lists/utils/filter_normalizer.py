"""Normalize loosely typed filter and pagination input.

Raw filters arrive from query strings, JSON bodies and stored list blobs.
Each dimension may be a scalar, an array or missing, and keys may be
snake_case, camelCase or a legacy alias. Everything is collapsed here, once,
into a FilterSpec; matching code never has to ask "is it an array" again.
"""

import math
import re
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from company_lists.constants import (
    DEFAULT_COMPANIES_PER_PAGE,
    DEFAULT_PAGE,
    DEFAULT_SORT_COLUMN,
    DEFAULT_SORT_ORDER,
    MAX_PER_PAGE,
    SORTABLE_COLUMNS,
    SORT_ORDERS,
)
from company_lists.errors import FilterValidationError
from company_lists.models.filters import FilterSpec, Number
from company_lists.models.pagination import PageRequest


# ASCII word boundaries, matching the stored Title Case values.
_WORD_START = re.compile(r"\b\w", re.ASCII)

SEARCH_KEYS = ("search",)
COUNTRY_KEYS = ("country",)
REGION_KEYS = ("region",)
MIN_EMPLOYEES_KEYS = ("min_employees", "minEmployees")
MAX_EMPLOYEES_KEYS = ("max_employees", "maxEmployees")
CATEGORY_KEYS = ("category", "categories")
TECHNOLOGY_KEYS = ("technology", "technologies")

PAGE_KEYS = ("page",)
PER_PAGE_KEYS = ("per_page", "perPage", "limit")
SORT_BY_KEYS = ("sort_by", "sortBy", "order_by", "orderBy")
SORT_ORDER_KEYS = ("sort_order", "sortOrder", "order_direction", "orderDirection")


def to_title_case(value: str) -> str:
    """Lowercase a string, then uppercase the first letter of every word.

    Idempotent: to_title_case(to_title_case(s)) == to_title_case(s).

    Examples:
        >>> to_title_case("software & internet")
        'Software & Internet'
        >>> to_title_case("E-COMMERCE")
        'E-Commerce'
    """
    return _WORD_START.sub(lambda match: match.group(0).upper(), value.lower())


def title_case_values(values: Any) -> Any:
    """Title Case every string in a category or technology array.

    Used on write paths so stored arrays have the same form as normalized
    filter values. Non-list input is returned unchanged.
    """
    if not isinstance(values, (list, tuple)):
        return values
    return [to_title_case(value.strip()) if isinstance(value, str) else value for value in values]


def _present(raw: Mapping[str, Any], keys: Tuple[str, ...]) -> Iterable[Any]:
    for key in keys:
        if key in raw and raw[key] is not None:
            yield raw[key]


def _as_list(value: Any, key: str) -> list:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, Mapping):
        raise FilterValidationError(f"Invalid value for filter '{key}': expected a string or a list")
    return [value]


def _string_set(
    raw: Mapping[str, Any],
    keys: Tuple[str, ...],
    title_case: bool = False
) -> Optional[FrozenSet[str]]:
    """Collect the values of one dimension from every alias key.

    Blank members are dropped and an empty result collapses to None, so an
    omitted dimension and an explicitly empty one are both no-ops.
    """
    values = set()
    for value in _present(raw, keys):
        for member in _as_list(value, keys[0]):
            if member is None:
                continue
            text = str(member)
            if title_case:
                text = to_title_case(text.strip())
            if not text.strip():
                continue
            values.add(text)

    return frozenset(values) if values else None


def _bound(raw: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[Number]:
    for value in _present(raw, keys):
        if isinstance(value, bool):
            raise FilterValidationError(f"Invalid value for filter '{keys[0]}': {value!r}")
        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                raise FilterValidationError(f"Invalid value for filter '{keys[0]}': NaN")
            return value
        if isinstance(value, str):
            text = value.strip()
            if not text:
                continue
            try:
                return int(text)
            except ValueError:
                pass
            try:
                parsed = float(text)
            except ValueError:
                raise FilterValidationError(f"Invalid value for filter '{keys[0]}': {value!r}")
            if math.isnan(parsed):
                raise FilterValidationError(f"Invalid value for filter '{keys[0]}': {value!r}")
            return parsed
        raise FilterValidationError(f"Invalid value for filter '{keys[0]}': {value!r}")
    return None


def _search(raw: Mapping[str, Any]) -> str:
    for value in _present(raw, SEARCH_KEYS):
        if not isinstance(value, str):
            raise FilterValidationError("Invalid value for filter 'search': expected a string")
        return value.strip()
    return ""


def normalize_filters(raw: Union[Mapping[str, Any], FilterSpec, None]) -> FilterSpec:
    """Convert raw filter input into a FilterSpec.

    Args:
        raw: Mapping of filter keys (snake_case, camelCase or legacy
            aliases), an already normalized FilterSpec, or None.

    Returns:
        Normalized FilterSpec. Categories and technologies are Title Cased.

    Raises:
        FilterValidationError: If a value has an unusable shape (a mapping
            where a list was expected, a non-numeric employee bound, ...).
    """
    if raw is None:
        return FilterSpec()
    if isinstance(raw, FilterSpec):
        raw = filter_spec_to_raw(raw)
    if not isinstance(raw, Mapping):
        raise FilterValidationError("Filters must be an object")

    return FilterSpec(
        search=_search(raw),
        country=_string_set(raw, COUNTRY_KEYS),
        region=_string_set(raw, REGION_KEYS),
        min_employees=_bound(raw, MIN_EMPLOYEES_KEYS),
        max_employees=_bound(raw, MAX_EMPLOYEES_KEYS),
        categories=_string_set(raw, CATEGORY_KEYS, title_case=True),
        technologies=_string_set(raw, TECHNOLOGY_KEYS, title_case=True),
    )


def filter_spec_to_raw(spec: FilterSpec) -> Dict[str, Any]:
    """Serialize a FilterSpec back into the stored blob shape."""
    raw: Dict[str, Any] = {}
    if spec.search:
        raw["search"] = spec.search
    if spec.country:
        raw["country"] = sorted(spec.country)
    if spec.region:
        raw["region"] = sorted(spec.region)
    if spec.min_employees is not None:
        raw["min_employees"] = spec.min_employees
    if spec.max_employees is not None:
        raw["max_employees"] = spec.max_employees
    if spec.categories:
        raw["category"] = sorted(spec.categories)
    if spec.technologies:
        raw["technology"] = sorted(spec.technologies)
    return raw


def _int_param(raw: Mapping[str, Any], keys: Tuple[str, ...], default: int) -> int:
    for value in _present(raw, keys):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        raise FilterValidationError(f"Invalid value for '{keys[0]}': {value!r}")
    return default


def _str_param(raw: Mapping[str, Any], keys: Tuple[str, ...], default: str) -> str:
    for value in _present(raw, keys):
        if isinstance(value, str) and value.strip():
            return value.strip()
    return default


def normalize_page_request(
    raw: Optional[Mapping[str, Any]] = None,
    default_per_page: int = DEFAULT_COMPANIES_PER_PAGE
) -> PageRequest:
    """Validate pagination and sort input.

    Args:
        raw: Mapping with page, per_page/limit, sort_by/order_by and
            sort_order/order_direction (camelCase accepted).
        default_per_page: Page size used when none is given.

    Returns:
        Validated PageRequest.

    Raises:
        FilterValidationError: On a page below 1, a page size outside
            1..MAX_PER_PAGE, an unknown sort column or sort direction.
    """
    raw = raw or {}

    page = _int_param(raw, PAGE_KEYS, DEFAULT_PAGE)
    if page < 1:
        raise FilterValidationError(f"Page must be 1 or greater, got {page}")

    per_page = _int_param(raw, PER_PAGE_KEYS, default_per_page)
    if per_page < 1 or per_page > MAX_PER_PAGE:
        raise FilterValidationError(f"Page size must be between 1 and {MAX_PER_PAGE}, got {per_page}")

    sort_by = _str_param(raw, SORT_BY_KEYS, DEFAULT_SORT_COLUMN)
    if sort_by not in SORTABLE_COLUMNS:
        raise FilterValidationError(f"Cannot sort by '{sort_by}'")

    sort_order = _str_param(raw, SORT_ORDER_KEYS, DEFAULT_SORT_ORDER).lower()
    if sort_order not in SORT_ORDERS:
        raise FilterValidationError(f"Sort order must be one of {', '.join(SORT_ORDERS)}, got '{sort_order}'")

    return PageRequest(page=page, per_page=per_page, sort_by=sort_by, sort_order=sort_order)
