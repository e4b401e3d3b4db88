from __future__ import annotations

import asyncio

import pytest

from company_lists.errors import (
    CompanyNotFoundError,
    FilterValidationError,
    ListNotFoundError,
    StoreError,
    TenantContextRequiredError,
    UnauthenticatedError,
)
from company_lists.models.company import CompanyRecord
from company_lists.models.tenant import TenantContext

from conftest import CUSTOMER, OTHER_CUSTOMER


def seed_customer_companies(db, count, customer_id=CUSTOMER, **fields):
    ids = []
    for index in range(count):
        row = db.add_company(f"co-{index:05d}", display_name=f"Company {index}", **fields)
        db.add_overlay(customer_id, row["company_id"])
        ids.append(row["company_id"])
    return ids


def test_customer_scope_collects_ids_in_capped_pages(db, company_service, tenant):
    seed_customer_companies(db, 2500)

    page = asyncio.run(company_service.resolve_companies(tenant, {}, {"per_page": 10}))

    assert db.calls["select_customer_company_ids"] == 3
    assert page.total == 2500
    assert len(page.data) == 10


def test_customer_scope_hides_other_customers_companies(db, company_service, tenant):
    db.add_company("mine", display_name="Mine")
    db.add_company("theirs", display_name="Theirs")
    db.add_overlay(CUSTOMER, "mine")
    db.add_overlay(OTHER_CUSTOMER, "theirs")

    page = asyncio.run(company_service.resolve_companies(tenant))

    assert [item.company_id for item in page.data] == ["mine"]


def test_customer_without_companies_gets_an_empty_page(db, company_service, tenant):
    db.add_company("global")

    page = asyncio.run(company_service.resolve_companies(tenant))

    assert page.total == 0
    assert page.data == []
    assert db.calls["select_companies"] == 0


def test_admin_without_customer_scans_the_whole_catalog(db, company_service, admin):
    db.add_company("a", display_name="Acme", country="France")
    db.add_company("b", display_name="Beta", country="Spain")

    page = asyncio.run(company_service.resolve_companies(admin, {"country": "France"}))

    assert [item.company_id for item in page.data] == ["a"]
    assert db.calls["select_customer_company_ids"] == 0
    assert db.calls["select_overlays"] == 0


def test_filters_sort_and_pagination_are_applied(db, company_service, tenant):
    for index, employees in enumerate([5, 40, 20, 80, 60]):
        db.add_company(f"c{index}", display_name=f"C{index}", employees=employees, country="France")
        db.add_overlay(CUSTOMER, f"c{index}")
    db.add_company("spain", display_name="Spain", employees=30, country="Spain")
    db.add_overlay(CUSTOMER, "spain")

    page = asyncio.run(company_service.resolve_companies(
        tenant,
        {"country": "France", "minEmployees": 10},
        {"page": 2, "per_page": 2, "sort_by": "employees", "sort_order": "asc"},
    ))

    assert page.total == 4
    assert [item.employees for item in page.data] == [60, 80]
    assert page.pagination()["totalPages"] == 2


def test_overlays_are_merged_onto_the_page(db, company_service, tenant):
    db.add_company("a", display_name="Acme", country="US")
    db.add_overlay(CUSTOMER, "a", country="CA", name="Acme Canada")

    item = asyncio.run(company_service.resolve_companies(tenant)).data[0]

    assert item.country == "CA"
    assert item.name == "Acme Canada"


def test_overlay_failure_degrades_to_base_records(db, company_service, tenant):
    db.add_company("a", display_name="Acme", country="US")
    db.add_overlay(CUSTOMER, "a", country="CA")
    db.failing.add("select_overlays")

    page = asyncio.run(company_service.resolve_companies(tenant))

    assert page.data[0].country == "US"


def test_primary_query_failure_is_raised(db, company_service, tenant):
    seed_customer_companies(db, 1)
    db.failing.add("select_companies")

    with pytest.raises(StoreError):
        asyncio.run(company_service.resolve_companies(tenant))


def test_empty_static_list_short_circuits(db, company_service, tenant):
    seed_customer_companies(db, 3)
    db.add_list("static", customer_id=CUSTOMER, is_static=True)

    page = asyncio.run(company_service.resolve_companies(tenant, {"list_id": "static"}))

    assert page.data == []
    assert page.total == 0
    assert db.calls["select_companies"] == 0
    assert db.calls["select_customer_company_ids"] == 0


def test_static_list_restricts_to_its_members(db, company_service, tenant):
    ids = seed_customer_companies(db, 5, country="France")
    db.add_list("static", customer_id=CUSTOMER, is_static=True)
    db.add_members("static", ids[:2])

    page = asyncio.run(company_service.resolve_companies(tenant, {"listId": "static", "country": "France"}))

    assert sorted(item.company_id for item in page.data) == ids[:2]
    assert db.calls["select_customer_company_ids"] == 0


def test_static_list_membership_is_collected_in_list_sized_pages(db, company_service, tenant):
    ids = seed_customer_companies(db, 1200)
    db.add_list("static", customer_id=CUSTOMER, is_static=True)
    db.add_members("static", ids)

    page = asyncio.run(company_service.resolve_companies(tenant, {"list_id": "static"}, {"per_page": 10}))

    assert db.calls["select_list_membership"] == 3
    assert page.total == 1200


def test_dynamic_list_applies_its_stored_filters_with_the_callers(db, company_service, tenant):
    db.add_company("fr-small", display_name="A", country="France", employees=5)
    db.add_company("fr-big", display_name="B", country="France", employees=500)
    db.add_company("es-big", display_name="C", country="Spain", employees=500)
    for company_id in ["fr-small", "fr-big", "es-big"]:
        db.add_overlay(CUSTOMER, company_id)
    db.add_list("dynamic", customer_id=CUSTOMER, filters={"country": ["France"]})

    everything = asyncio.run(company_service.resolve_companies(tenant, {"list_id": "dynamic"}))
    narrowed = asyncio.run(company_service.resolve_companies(tenant, {"list_id": "dynamic", "min_employees": 100}))

    assert sorted(item.company_id for item in everything.data) == ["fr-big", "fr-small"]
    assert [item.company_id for item in narrowed.data] == ["fr-big"]


def test_dynamic_list_without_filters_resolves_to_nothing(db, company_service, tenant):
    seed_customer_companies(db, 3)
    db.add_list("dynamic", customer_id=CUSTOMER, filters={"country": []})

    page = asyncio.run(company_service.resolve_companies(tenant, {"list_id": "dynamic"}))

    assert page.total == 0
    assert db.calls["select_companies"] == 0


def test_another_customers_list_is_not_found(db, company_service, tenant):
    db.add_list("theirs", customer_id=OTHER_CUSTOMER, is_static=True)

    with pytest.raises(ListNotFoundError):
        asyncio.run(company_service.resolve_companies(tenant, {"list_id": "theirs"}))


def test_anonymous_caller_is_rejected_before_any_store_call(db, company_service):
    with pytest.raises(UnauthenticatedError):
        asyncio.run(company_service.resolve_companies(TenantContext()))
    assert sum(db.calls.values()) == 0


def test_anonymous_caller_is_rejected_before_input_is_validated(db, company_service):
    with pytest.raises(UnauthenticatedError):
        asyncio.run(company_service.resolve_companies(TenantContext(), {"min_employees": "lots"}, {"per_page": 500}))
    assert sum(db.calls.values()) == 0


def test_caller_without_customer_is_rejected(db, company_service):
    tenant = TenantContext(user_id="u", customer_id_error="rpc timed out")

    with pytest.raises(TenantContextRequiredError, match="rpc timed out"):
        asyncio.run(company_service.resolve_companies(tenant))
    assert sum(db.calls.values()) == 0


def test_invalid_pagination_is_rejected_before_any_store_call(db, company_service, tenant):
    with pytest.raises(FilterValidationError):
        asyncio.run(company_service.resolve_companies(tenant, {}, {"per_page": 500}))
    assert sum(db.calls.values()) == 0


def test_jwt_customer_overrides_the_default(db, company_service):
    db.add_company("a")
    db.add_company("b")
    db.add_overlay(CUSTOMER, "a")
    db.add_overlay(OTHER_CUSTOMER, "b")
    tenant = TenantContext(user_id="u", default_customer_id=CUSTOMER, jwt_customer_id=f" {OTHER_CUSTOMER} ")

    page = asyncio.run(company_service.resolve_companies(tenant))

    assert [item.company_id for item in page.data] == ["b"]


def test_get_company_merges_best_overlay_and_lists(db, company_service, tenant):
    db.add_company("a", display_name="Acme", country="France", employees=10)
    db.add_overlay(CUSTOMER, "a", name="Acme (ours)", last_scoring_results={"score": 90})
    db.add_list("static", customer_id=CUSTOMER, name="Targets", is_static=True)
    db.add_members("static", ["a"])
    db.add_list("dynamic", customer_id=CUSTOMER, name="French", filters={"country": "France"})
    db.add_list("other", customer_id=CUSTOMER, name="Spanish", filters={"country": "Spain"})
    db.add_list("empty", customer_id=CUSTOMER, name="Empty", filters={})

    item = asyncio.run(company_service.get_company(tenant, "a"))

    assert item.name == "Acme (ours)"
    assert item.last_scoring_results.score == 90
    assert [(entry.list_id, entry.is_static) for entry in item.lists] == [("static", True), ("dynamic", False)]


def test_get_company_not_found(db, company_service, tenant):
    with pytest.raises(CompanyNotFoundError):
        asyncio.run(company_service.get_company(tenant, "missing"))


def test_company_lists_skip_malformed_filters_and_survive_store_errors(db, company_service, tenant):
    record = db.add_company("a", country="France")
    db.add_list("bad", customer_id=CUSTOMER, filters={"min_employees": "lots"})
    db.add_list("good", customer_id=CUSTOMER, filters={"country": "France"})

    company = CompanyRecord(**record)
    lists = asyncio.run(company_service.get_company_lists(tenant, company))
    assert [entry.list_id for entry in lists] == ["good"]

    db.failing.add("select_dynamic_lists")
    assert asyncio.run(company_service.get_company_lists(tenant, company)) == []


def test_update_company_writes_overlay_and_global_fields(db, company_service, tenant):
    db.add_company("a", display_name="Acme", website_url="https://old.example")

    item = asyncio.run(company_service.update_company(
        tenant, "a", {"name": "Acme Renamed", "website": "https://acme.example", "employees": 0}
    ))

    assert db.companies["a"]["display_name"] == "Acme Renamed"
    assert db.companies["a"]["website_url"] == "https://acme.example"
    overlay = db.customer_companies[(CUSTOMER, "a")]
    assert overlay["name"] == "Acme Renamed"
    assert overlay["employees"] == 0
    assert "website" not in overlay
    assert item.website == "https://acme.example"
    assert item.employees == 0


def test_update_company_without_customer_fields_skips_the_overlay(db, company_service, tenant):
    db.add_company("a", display_name="Acme")

    asyncio.run(company_service.update_company(tenant, "a", {"description": "Maker of things"}))

    assert db.calls["upsert_overlay"] == 0
    assert db.companies["a"]["description"] == "Maker of things"


def test_update_company_stores_categories_and_technologies_title_cased(db, company_service, tenant):
    db.add_company("a", display_name="Acme")
    db.add_overlay(CUSTOMER, "a")
    db.add_list("cloud", customer_id=CUSTOMER, name="Cloud", filters={"technology": "aws", "category": "media"})

    item = asyncio.run(company_service.update_company(
        tenant, "a", {"categories": ["media"], "technologies": ["AWS", " jQuery "]}
    ))

    assert db.companies["a"]["categories"] == ["Media"]
    assert db.companies["a"]["technologies"] == ["Aws", "Jquery"]
    assert db.customer_companies[(CUSTOMER, "a")]["categories"] == ["Media"]
    assert [entry.list_id for entry in item.lists] == ["cloud"]

    page = asyncio.run(company_service.resolve_companies(tenant, {"list_id": "cloud"}))
    assert [company.company_id for company in page.data] == ["a"]
