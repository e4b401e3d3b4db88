"""Pydantic models for normalized company filters and store predicates."""

from enum import Enum
from typing import Any, FrozenSet, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict


Number = Union[int, float]


class FilterSpec(BaseModel):
    """Normalized filter criteria for a company search.

    Every set-valued dimension is either None (absent) or a non-empty
    frozenset; empty input collapses to None during normalization.

    Attributes:
        search: Trimmed free text; empty string means no text filter.
        country: Allowed country values.
        region: Allowed region values.
        min_employees: Lower employee bound (inert when <= 0).
        max_employees: Upper employee bound (inert when <= 0).
        categories: Title Cased category values.
        technologies: Title Cased technology values.
    """
    model_config = ConfigDict(frozen=True)

    search: str = ""
    country: Optional[FrozenSet[str]] = None
    region: Optional[FrozenSet[str]] = None
    min_employees: Optional[Number] = None
    max_employees: Optional[Number] = None
    categories: Optional[FrozenSet[str]] = None
    technologies: Optional[FrozenSet[str]] = None

    @property
    def has_min_employees(self) -> bool:
        # A bound of 0 disables the check (legacy falsy-bound behavior).
        return self.min_employees is not None and self.min_employees > 0

    @property
    def has_max_employees(self) -> bool:
        return self.max_employees is not None and self.max_employees > 0

    @property
    def is_empty(self) -> bool:
        """True when no dimension narrows results."""
        return not (
            self.search
            or self.country
            or self.region
            or self.has_min_employees
            or self.has_max_employees
            or self.categories
            or self.technologies
        )

    def active_dimensions(self) -> List[str]:
        """Names of the dimensions that narrow results, for logging."""
        names = []
        if self.search:
            names.append("search")
        if self.country:
            names.append("country")
        if self.region:
            names.append("region")
        if self.has_min_employees:
            names.append("min_employees")
        if self.has_max_employees:
            names.append("max_employees")
        if self.categories:
            names.append("categories")
        if self.technologies:
            names.append("technologies")
        return names


class PredicateOp(str, Enum):
    """Operations the store collaborator understands."""
    SUBSTRING_OR = "substring_or"
    EQ = "eq"
    IN = "in"
    GTE = "gte"
    LTE = "lte"
    ARRAY_OVERLAPS = "array_overlaps"
    ARRAY_CONTAINS = "array_contains"


class Predicate(BaseModel):
    """A single store-side filter operation.

    Attributes:
        op: Operation to apply.
        field: Target column (unused by SUBSTRING_OR).
        fields: Columns searched by SUBSTRING_OR.
        value: Operand. A string for SUBSTRING_OR and EQ, a number for
            GTE/LTE, a sorted tuple of strings for IN and the array ops.
        include_null: For GTE/LTE, also keep rows where the column is NULL.
    """
    model_config = ConfigDict(frozen=True)

    op: PredicateOp
    field: Optional[str] = None
    fields: Tuple[str, ...] = ()
    value: Any = None
    include_null: bool = False


QueryPredicates = List[Predicate]


class SortSpec(BaseModel):
    """Ordering applied by the store."""
    model_config = ConfigDict(frozen=True)

    column: str
    ascending: bool = False


class PageRange(BaseModel):
    """Inclusive, zero-based row range of a page."""
    model_config = ConfigDict(frozen=True)

    start: int
    end: int
