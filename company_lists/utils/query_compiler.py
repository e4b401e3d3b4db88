"""Compile a FilterSpec into store predicates.

The predicates are plain values; database.queries applies them to a
PostgREST builder and repositories.memory interprets them directly. Every
rule here mirrors utils.filter_matcher.
"""

from typing import NamedTuple

from company_lists.constants import SEARCH_FIELDS
from company_lists.models.filters import FilterSpec, PageRange, Predicate, PredicateOp, QueryPredicates, SortSpec
from company_lists.models.pagination import PageRequest


class CompiledQuery(NamedTuple):
    """Everything the store needs to return one page."""
    predicates: QueryPredicates
    sort: SortSpec
    page_range: PageRange


def _value_set_predicate(field: str, values: frozenset) -> Predicate:
    if len(values) == 1:
        return Predicate(op=PredicateOp.EQ, field=field, value=next(iter(values)))
    return Predicate(op=PredicateOp.IN, field=field, value=tuple(sorted(values)))


def compile_filters(spec: FilterSpec) -> QueryPredicates:
    """Build the ordered predicate list for a filter.

    Args:
        spec: Normalized filter.

    Returns:
        Predicates to AND together. Empty when the filter is empty.
    """
    predicates: QueryPredicates = []

    if spec.search:
        predicates.append(
            Predicate(op=PredicateOp.SUBSTRING_OR, fields=SEARCH_FIELDS, value=spec.search)
        )

    if spec.country:
        predicates.append(_value_set_predicate("country", spec.country))

    if spec.region:
        predicates.append(_value_set_predicate("region", spec.region))

    # Missing employee counts compare as 0, so the upper bound keeps NULL rows.
    if spec.has_min_employees:
        predicates.append(Predicate(op=PredicateOp.GTE, field="employees", value=spec.min_employees))
    if spec.has_max_employees:
        predicates.append(
            Predicate(op=PredicateOp.LTE, field="employees", value=spec.max_employees, include_null=True)
        )

    if spec.categories:
        predicates.append(
            Predicate(op=PredicateOp.ARRAY_OVERLAPS, field="categories", value=tuple(sorted(spec.categories)))
        )

    if spec.technologies:
        technologies = tuple(sorted(spec.technologies))
        if len(technologies) == 1:
            predicates.append(Predicate(op=PredicateOp.ARRAY_CONTAINS, field="technologies", value=technologies))
        else:
            predicates.append(Predicate(op=PredicateOp.ARRAY_OVERLAPS, field="technologies", value=technologies))

    return predicates


def compile_query(spec: FilterSpec, page_request: PageRequest) -> CompiledQuery:
    """Compile filters, sort and row range for one page request."""
    return CompiledQuery(
        predicates=compile_filters(spec),
        sort=page_request.sort,
        page_range=page_request.range,
    )
