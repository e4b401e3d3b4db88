"""Error kinds surfaced by company and list resolution."""


class UnauthenticatedError(Exception):
    """No resolvable caller identity."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class TenantContextRequiredError(Exception):
    """Non-admin caller with no resolvable customer."""

    def __init__(self, reason: str = "not available"):
        super().__init__(f"Failed to get customer ID: {reason}")
        self.reason = reason


class NotFoundError(ValueError):
    """Requested entity does not exist (or is not visible to the caller)."""


class ListNotFoundError(NotFoundError):
    def __init__(self, list_id: str, reason: str = "not available"):
        super().__init__(f"List {list_id} not found: {reason}")
        self.list_id = list_id


class CompanyNotFoundError(NotFoundError):
    def __init__(self, company_id: str, reason: str = "not available"):
        super().__init__(f"Company {company_id} not found: {reason}")
        self.company_id = company_id


class FilterValidationError(ValueError):
    """Malformed filter or pagination input, rejected before any store call."""


class ListOperationError(ValueError):
    """A list mutation the list does not allow (bad name, wrong subtype, ...)."""


class StoreError(Exception):
    """A store operation failed.

    Attributes:
        operation: Short description of what was attempted
            (e.g. "fetch companies").
        detail: Message of the originating error.
    """

    def __init__(self, operation: str, detail: str):
        super().__init__(f"Failed to {operation}: {detail}")
        self.operation = operation
        self.detail = detail
