"""Apply compiled predicates to a PostgREST query builder."""

from typing import Any, Iterable

from company_lists.models.filters import PageRange, Predicate, PredicateOp, QueryPredicates, SortSpec


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _quote(text: str) -> str:
    """Double-quote a value for a PostgREST logic tree (or=...)."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def substring_or_filter(fields: Iterable[str], text: str) -> str:
    """Build the or= expression for a case-insensitive substring search.

    Example:
        >>> substring_or_filter(["display_name", "domain"], "acme")
        'display_name.ilike."%acme%",domain.ilike."%acme%"'
    """
    pattern = _quote(f"%{escape_like(text)}%")
    return ",".join(f"{field}.ilike.{pattern}" for field in fields)


def _number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def apply_predicate(query: Any, predicate: Predicate) -> Any:
    """Apply one predicate to a PostgREST filter builder.

    Args:
        query: Supabase/PostgREST filter request builder.
        predicate: Compiled predicate.

    Returns:
        The chained builder.
    """
    op = predicate.op

    if op == PredicateOp.SUBSTRING_OR:
        return query.or_(substring_or_filter(predicate.fields, predicate.value))
    if op == PredicateOp.EQ:
        return query.eq(predicate.field, predicate.value)
    if op == PredicateOp.IN:
        return query.in_(predicate.field, list(predicate.value))
    if op in (PredicateOp.GTE, PredicateOp.LTE):
        operator = op.value
        if predicate.include_null:
            return query.or_(
                f"{predicate.field}.{operator}.{_number(predicate.value)},{predicate.field}.is.null"
            )
        return getattr(query, operator)(predicate.field, predicate.value)
    if op == PredicateOp.ARRAY_OVERLAPS:
        return query.overlaps(predicate.field, list(predicate.value))
    if op == PredicateOp.ARRAY_CONTAINS:
        return query.contains(predicate.field, list(predicate.value))

    raise ValueError(f"Unsupported predicate operation: {op}")


def apply_predicates(query: Any, predicates: QueryPredicates) -> Any:
    for predicate in predicates:
        query = apply_predicate(query, predicate)
    return query


def apply_sort_and_range(query: Any, sort: SortSpec, page_range: PageRange) -> Any:
    return query.order(sort.column, desc=not sort.ascending).range(page_range.start, page_range.end)
