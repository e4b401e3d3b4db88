"""In-memory store backend.

Implements every repository port over plain dict rows and interprets
compiled predicates with PostgreSQL semantics (NULL never equals or
overlaps anything; ascending sorts put NULLs last, descending first).
Useful for local development and as the reference store in tests.
"""

import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from company_lists.errors import StoreError
from company_lists.models.company import CompanyRecord, CustomerCompanyOverlay
from company_lists.models.filters import PageRange, Predicate, PredicateOp, QueryPredicates, SortSpec
from company_lists.models.list import CompanyList, ListStatus, ListSubtype, ListType


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def row_matches_predicate(row: Dict[str, Any], predicate: Predicate) -> bool:
    """Evaluate one compiled predicate against a row."""
    op = predicate.op

    if op == PredicateOp.SUBSTRING_OR:
        needle = predicate.value.lower()
        return any(
            isinstance(row.get(field), str) and needle in row[field].lower()
            for field in predicate.fields
        )

    value = row.get(predicate.field)

    if op == PredicateOp.EQ:
        return value is not None and value == predicate.value
    if op == PredicateOp.IN:
        return value is not None and value in predicate.value
    if op == PredicateOp.GTE:
        return value >= predicate.value if value is not None else predicate.include_null
    if op == PredicateOp.LTE:
        return value <= predicate.value if value is not None else predicate.include_null
    if op == PredicateOp.ARRAY_OVERLAPS:
        return value is not None and not set(value).isdisjoint(predicate.value)
    if op == PredicateOp.ARRAY_CONTAINS:
        return value is not None and set(predicate.value).issubset(value)

    raise ValueError(f"Unsupported predicate operation: {op}")


def row_matches_predicates(row: Dict[str, Any], predicates: QueryPredicates) -> bool:
    return all(row_matches_predicate(row, predicate) for predicate in predicates)


def sort_rows(rows: List[Dict[str, Any]], sort: SortSpec) -> List[Dict[str, Any]]:
    def key(row: Dict[str, Any]) -> Tuple[bool, Any]:
        value = row.get(sort.column)
        return (value is None, value if value is not None else "")

    if sort.ascending:
        return sorted(rows, key=key)
    # Descending: NULLs first, then largest values.
    nulls = [row for row in rows if row.get(sort.column) is None]
    values = [row for row in rows if row.get(sort.column) is not None]
    return nulls + sorted(values, key=lambda row: row[sort.column], reverse=True)


class InMemoryDatabase:
    """Tables held in memory plus a call log.

    Attributes:
        companies: companies rows keyed by company_id.
        customer_companies: overlay rows keyed by (customer_id, company_id).
        lists: lists rows keyed by list_id.
        list_companies: explicit memberships as (list_id, company_id).
        calls: Number of calls per store operation.
        failing: Operations that raise StoreError when called.
    """

    def __init__(self):
        self.companies: Dict[str, Dict[str, Any]] = {}
        self.customer_companies: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.lists: Dict[str, Dict[str, Any]] = {}
        self.list_companies: List[Tuple[str, str]] = []
        self.calls: Counter = Counter()
        self.failing: Set[str] = set()

    def record(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self.failing:
            raise StoreError(operation.replace("_", " "), "simulated store failure")

    def add_company(self, company_id: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
        row = {
            "company_id": company_id or str(uuid.uuid4()),
            "created_at": _now(),
            "updated_at": _now(),
        }
        row.update(fields)
        self.companies[row["company_id"]] = row
        return row

    def add_overlay(self, customer_id: str, company_id: str, **fields: Any) -> Dict[str, Any]:
        row = {"customer_id": customer_id, "company_id": company_id}
        row.update(fields)
        self.customer_companies[(customer_id, company_id)] = row
        return row

    def add_list(self, list_id: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
        row = {
            "list_id": list_id or str(uuid.uuid4()),
            "list_type": ListType.LIST.value,
            "name": "List",
            "filters": {},
            "status": ListStatus.NEW.value,
            "subtype": ListSubtype.COMPANY.value,
            "is_static": False,
            "created_at": _now(),
            "updated_at": _now(),
            "deleted_at": None,
        }
        row.update(fields)
        self.lists[row["list_id"]] = row
        return row

    def add_members(self, list_id: str, company_ids: Iterable[str]) -> None:
        for company_id in company_ids:
            if (list_id, company_id) not in self.list_companies:
                self.list_companies.append((list_id, company_id))


class InMemoryCompanyRepository:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def select_companies(
        self,
        candidate_ids: Optional[List[str]],
        predicates: QueryPredicates,
        sort: SortSpec,
        page_range: PageRange
    ) -> Tuple[List[CompanyRecord], int]:
        self.db.record("select_companies")
        rows = list(self.db.companies.values())
        if candidate_ids is not None:
            allowed = set(candidate_ids)
            rows = [row for row in rows if row["company_id"] in allowed]
        rows = [row for row in rows if row_matches_predicates(row, predicates)]
        rows = sort_rows(rows, sort)
        page = rows[page_range.start:page_range.end + 1]
        return [CompanyRecord(**row) for row in page], len(rows)

    async def get_by_company_id(self, company_id: str) -> Optional[CompanyRecord]:
        self.db.record("get_by_company_id")
        row = self.db.companies.get(company_id)
        return CompanyRecord(**row) if row else None

    async def patch_global_fields(self, company_id: str, fields: Dict[str, Any]) -> Optional[CompanyRecord]:
        self.db.record("patch_global_fields")
        row = self.db.companies.get(company_id)
        if row is None:
            return None
        row.update(fields)
        return CompanyRecord(**row)


class InMemoryCustomerCompanyRepository:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def select_customer_company_ids(self, customer_id: str, offset: int, page_size: int) -> List[str]:
        self.db.record("select_customer_company_ids")
        company_ids = sorted(
            company_id for (owner, company_id) in self.db.customer_companies if owner == customer_id
        )
        return company_ids[offset:offset + page_size]

    async def select_overlays(self, customer_id: str, company_ids: List[str]) -> List[CustomerCompanyOverlay]:
        self.db.record("select_overlays")
        wanted = set(company_ids)
        return [
            CustomerCompanyOverlay(**row)
            for (owner, company_id), row in self.db.customer_companies.items()
            if owner == customer_id and company_id in wanted
        ]

    async def select_overlays_for_company(
        self,
        company_id: str,
        customer_ids: List[str]
    ) -> List[CustomerCompanyOverlay]:
        self.db.record("select_overlays_for_company")
        wanted = set(customer_ids)
        return [
            CustomerCompanyOverlay(**row)
            for (owner, owned_company_id), row in self.db.customer_companies.items()
            if owned_company_id == company_id and owner in wanted
        ]

    async def upsert_overlay(self, customer_id: str, company_id: str, fields: Dict[str, Any]) -> None:
        self.db.record("upsert_overlay")
        row = self.db.customer_companies.setdefault(
            (customer_id, company_id), {"customer_id": customer_id, "company_id": company_id}
        )
        row.update(fields)
        row["updated_at"] = _now()


class InMemoryListRepository:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    def _visible(self, row: Dict[str, Any], customer_id: Optional[str], list_type: Optional[str]) -> bool:
        if row.get("deleted_at"):
            return False
        if list_type and row.get("list_type") != list_type:
            return False
        if customer_id and row.get("customer_id") != customer_id:
            return False
        return True

    async def get_list(
        self,
        list_id: str,
        customer_id: Optional[str] = None,
        list_type: Optional[str] = ListType.LIST.value
    ) -> Optional[CompanyList]:
        self.db.record("get_list")
        row = self.db.lists.get(list_id)
        if row is None or not self._visible(row, customer_id, list_type):
            return None
        return CompanyList(**row)

    async def list_lists(
        self,
        customer_id: Optional[str],
        search: Optional[str],
        page_range: PageRange
    ) -> Tuple[List[CompanyList], int]:
        self.db.record("list_lists")
        rows = [row for row in self.db.lists.values() if self._visible(row, customer_id, ListType.LIST.value)]
        if search:
            rows = [row for row in rows if search.lower() in row["name"].lower()]
        rows = sort_rows(rows, SortSpec(column="updated_at", ascending=False))
        page = rows[page_range.start:page_range.end + 1]
        return [CompanyList(**row) for row in page], len(rows)

    async def count_members(self, list_id: str) -> int:
        self.db.record("count_members")
        return sum(1 for (owner, _) in self.db.list_companies if owner == list_id)

    async def create_list(self, data: Dict[str, Any]) -> CompanyList:
        self.db.record("create_list")
        return CompanyList(**self.db.add_list(**data))

    async def update_list(
        self,
        list_id: str,
        customer_id: Optional[str],
        updates: Dict[str, Any]
    ) -> Optional[CompanyList]:
        self.db.record("update_list")
        row = self.db.lists.get(list_id)
        if row is None or not self._visible(row, customer_id, ListType.LIST.value):
            return None
        row.update(updates)
        return CompanyList(**row)

    async def select_list_membership(self, list_id: str, offset: int, page_size: int) -> List[str]:
        self.db.record("select_list_membership")
        company_ids = sorted(company_id for (owner, company_id) in self.db.list_companies if owner == list_id)
        return company_ids[offset:offset + page_size]

    async def select_members_in(self, list_id: str, company_ids: List[str]) -> List[str]:
        self.db.record("select_members_in")
        wanted = set(company_ids)
        return [
            company_id for (owner, company_id) in self.db.list_companies
            if owner == list_id and company_id in wanted
        ]

    async def add_companies(self, list_id: str, company_ids: List[str]) -> None:
        self.db.record("add_companies")
        self.db.add_members(list_id, company_ids)

    async def select_lists_for_company(
        self,
        company_id: str,
        customer_id: Optional[str] = None
    ) -> List[CompanyList]:
        self.db.record("select_lists_for_company")
        lists = []
        for list_id, member_id in self.db.list_companies:
            row = self.db.lists.get(list_id)
            if member_id == company_id and row and self._visible(row, customer_id, None):
                lists.append(CompanyList(**row))
        return lists

    async def select_dynamic_lists(self, customer_id: Optional[str]) -> List[CompanyList]:
        self.db.record("select_dynamic_lists")
        return [
            CompanyList(**row)
            for row in self.db.lists.values()
            if self._visible(row, customer_id, ListType.LIST.value)
            and not row.get("is_static")
            and row.get("subtype") == ListSubtype.COMPANY.value
        ]
