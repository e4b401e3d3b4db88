from __future__ import annotations

import pytest

from company_lists.errors import FilterValidationError
from company_lists.models.filters import FilterSpec
from company_lists.utils.filter_normalizer import (
    filter_spec_to_raw,
    normalize_filters,
    normalize_page_request,
    title_case_values,
    to_title_case,
)


def test_title_case_examples():
    assert to_title_case("software & internet") == "Software & Internet"
    assert to_title_case("E-COMMERCE") == "E-Commerce"
    assert to_title_case("saas") == "Saas"


def test_title_case_is_idempotent():
    for value in ["software & internet", "E-COMMERCE", "b2b saas", "  mixed CaSe  "]:
        once = to_title_case(value)
        assert to_title_case(once) == once


def test_scalar_and_array_collapse_to_the_same_set():
    scalar = normalize_filters({"country": "France"})
    array = normalize_filters({"country": ["France"]})
    assert scalar == array
    assert scalar.country == frozenset({"France"})


def test_empty_arrays_and_blank_values_are_absent():
    spec = normalize_filters({"country": [], "region": [""], "category": ["  "], "search": "   "})
    assert spec.country is None
    assert spec.region is None
    assert spec.categories is None
    assert spec.search == ""
    assert spec.is_empty


def test_category_and_technology_aliases_are_title_cased():
    spec = normalize_filters({
        "category": ["saas"],
        "categories": "fintech",
        "technologies": ["react", "REACT"],
    })
    assert spec.categories == frozenset({"Saas", "Fintech"})
    assert spec.technologies == frozenset({"React"})


def test_camel_case_employee_bounds_and_numeric_strings():
    spec = normalize_filters({"minEmployees": "10", "maxEmployees": 250})
    assert spec.min_employees == 10
    assert spec.max_employees == 250
    assert spec.active_dimensions() == ["min_employees", "max_employees"]


def test_zero_employee_bounds_are_inert():
    spec = normalize_filters({"min_employees": 0, "max_employees": 0})
    assert not spec.has_min_employees
    assert not spec.has_max_employees
    assert spec.is_empty


@pytest.mark.parametrize("raw", [
    {"min_employees": "many"},
    {"max_employees": True},
    {"country": {"name": "France"}},
    {"search": 42},
])
def test_malformed_filters_are_rejected(raw):
    with pytest.raises(FilterValidationError):
        normalize_filters(raw)


def test_non_mapping_filters_are_rejected():
    with pytest.raises(FilterValidationError):
        normalize_filters(["country"])


def test_unknown_keys_are_ignored():
    assert normalize_filters({"colour": "blue"}) == FilterSpec()


def test_spec_survives_serialization_to_a_stored_blob():
    spec = normalize_filters({"search": "acme", "country": ["France", "Spain"], "category": "saas"})
    assert normalize_filters(filter_spec_to_raw(spec)) == spec
    assert normalize_filters(spec) == spec


def test_page_request_defaults():
    request = normalize_page_request(None)
    assert request.page == 1
    assert request.per_page == 10
    assert request.sort_by == "created_at"
    assert request.sort_order == "desc"
    assert request.range.start == 0
    assert request.range.end == 9
    assert request.sort.ascending is False


def test_page_request_legacy_aliases():
    request = normalize_page_request({"page": "3", "limit": 20, "order_by": "employees", "order_direction": "ASC"})
    assert request.page == 3
    assert request.per_page == 20
    assert request.sort_by == "employees"
    assert request.sort_order == "asc"
    assert request.range.start == 40
    assert request.range.end == 59


@pytest.mark.parametrize("raw", [
    {"page": 0},
    {"per_page": 0},
    {"per_page": 101},
    {"per_page": True},
    {"page": "two"},
    {"sort_by": "password"},
    {"sort_order": "sideways"},
])
def test_invalid_page_requests_are_rejected(raw):
    with pytest.raises(FilterValidationError):
        normalize_page_request(raw)


def test_title_case_values_for_stored_arrays():
    assert title_case_values(["AWS", " jQuery ", "software & internet"]) == ["Aws", "Jquery", "Software & Internet"]
    assert title_case_values(None) is None
    assert title_case_values([]) == []
