from __future__ import annotations

import pytest

from company_lists.models.company import CompanyRecord
from company_lists.models.filters import PredicateOp
from company_lists.repositories.memory import row_matches_predicates
from company_lists.utils.filter_matcher import matches
from company_lists.utils.filter_normalizer import normalize_filters, normalize_page_request
from company_lists.utils.query_compiler import compile_filters, compile_query


CATALOG = [
    {"company_id": "a", "display_name": "Acme", "domain": "acme.com", "country": "France", "region": "Europe",
     "employees": 12, "categories": ["Software & Internet"], "technologies": ["React", "Django"]},
    {"company_id": "b", "display_name": "Globex", "legal_name": "Globex Acme SA", "country": "Spain",
     "region": "Europe", "employees": 300, "categories": ["Media"], "technologies": ["Vue"]},
    {"company_id": "c", "display_name": "Initech", "domain": "initech.io", "country": "US", "region": None,
     "employees": None, "categories": None, "technologies": None},
    {"company_id": "d", "display_name": None, "legal_name": "Umbrella", "country": "France", "region": "Europe",
     "employees": 0, "categories": ["Media", "Software & Internet"], "technologies": ["React"]},
    {"company_id": "e", "display_name": "Hooli", "country": None, "region": None,
     "employees": 50, "categories": [], "technologies": []},
    {"company_id": "f", "display_name": "Stark", "country": "US", "region": None,
     "employees": 900, "categories": ["media"], "technologies": ["AWS"]},
    {"company_id": "g", "display_name": "Wayne", "country": "US", "region": None,
     "employees": 40, "categories": ["Media"], "technologies": ["Aws", "jQuery"]},
]


@pytest.mark.parametrize("raw", [
    {"search": "acme"},
    {"search": "IO"},
    {"country": "France"},
    {"country": ["France", "Spain"]},
    {"region": "Europe"},
    {"min_employees": 10},
    {"max_employees": 50},
    {"minEmployees": 0, "maxEmployees": 50},
    {"min_employees": 1, "max_employees": 299},
    {"category": "software & internet"},
    {"categories": ["media", "software & internet"]},
    {"technology": "react"},
    {"technologies": ["react", "vue"]},
    {"technology": "aws"},
    {"technology": "AWS"},
    {"technologies": ["aws", "jquery"]},
    {"category": "MEDIA"},
    {"country": "France", "category": "media", "max_employees": 20},
    {},
])
def test_pushdown_returns_exactly_what_the_evaluator_accepts(raw):
    spec = normalize_filters(raw)
    predicates = compile_filters(spec)

    pushed_down = {row["company_id"] for row in CATALOG if row_matches_predicates(row, predicates)}
    evaluated = {row["company_id"] for row in CATALOG if matches(CompanyRecord(**row), spec)}

    assert pushed_down == evaluated


def test_stored_values_not_in_title_case_are_excluded_by_both_paths():
    spec = normalize_filters({"technology": "aws", "category": "media"})
    predicates = compile_filters(spec)

    pushed_down = {row["company_id"] for row in CATALOG if row_matches_predicates(row, predicates)}
    evaluated = {row["company_id"] for row in CATALOG if matches(CompanyRecord(**row), spec)}

    assert pushed_down == evaluated == {"g"}


def test_empty_spec_compiles_to_no_predicates():
    assert compile_filters(normalize_filters({"country": [], "min_employees": 0})) == []


def test_single_and_multiple_values_use_eq_and_in():
    predicates = compile_filters(normalize_filters({"country": "France", "region": ["Europe", "Asia"]}))
    assert [(p.op, p.field) for p in predicates] == [(PredicateOp.EQ, "country"), (PredicateOp.IN, "region")]
    assert predicates[1].value == ("Asia", "Europe")


def test_technologies_use_contains_for_one_value_and_overlaps_for_several():
    single = compile_filters(normalize_filters({"technology": "react"}))
    several = compile_filters(normalize_filters({"technology": ["react", "vue"]}))
    assert single[0].op == PredicateOp.ARRAY_CONTAINS
    assert single[0].value == ("React",)
    assert several[0].op == PredicateOp.ARRAY_OVERLAPS


def test_upper_employee_bound_keeps_missing_counts():
    predicates = compile_filters(normalize_filters({"min_employees": 5, "max_employees": 10}))
    assert predicates[0].op == PredicateOp.GTE
    assert predicates[0].include_null is False
    assert predicates[1].op == PredicateOp.LTE
    assert predicates[1].include_null is True


def test_compile_query_carries_sort_and_range():
    query = compile_query(normalize_filters({"search": "x"}), normalize_page_request({"page": 2, "per_page": 5}))
    assert len(query.predicates) == 1
    assert query.sort.column == "created_at"
    assert (query.page_range.start, query.page_range.end) == (5, 9)
