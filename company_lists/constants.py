"""Application-wide constants and configuration values."""

# Pagination defaults
DEFAULT_PAGE = 1
DEFAULT_COMPANIES_PER_PAGE = 10
DEFAULT_LISTS_PER_PAGE = 12
DEFAULT_LIST_COMPANIES_PER_PAGE = 25
MAX_PER_PAGE = 100

# Sorting
DEFAULT_SORT_COLUMN = "created_at"
DEFAULT_SORT_ORDER = "desc"
SORT_ORDERS = ("asc", "desc")
SORTABLE_COLUMNS = frozenset({
    "company_id", "display_name", "legal_name", "domain", "website_url",
    "type", "country", "region", "employees", "revenue", "currency_code",
    "created_at", "updated_at", "fetched_at",
})

# Store row caps
CUSTOMER_COMPANY_IDS_PAGE_SIZE = 1000
LIST_COMPANY_IDS_PAGE_SIZE = 500
ADD_COMPANIES_CHUNK_SIZE = 100

# Lists
LIST_NAME_MIN_LENGTH = 3
LIST_NAME_MAX_LENGTH = 100
LIST_COPY_SUFFIX = "_copy"
LIST_COPY_FALLBACK_NAME = "List copy"

# Table names
COMPANIES_TABLE = "companies"
CUSTOMER_COMPANIES_TABLE = "customer_companies"
LISTS_TABLE = "lists"
LIST_COMPANIES_TABLE = "list_companies"

# Fields searched by the free-text filter
SEARCH_FIELDS = ("display_name", "legal_name", "domain")
