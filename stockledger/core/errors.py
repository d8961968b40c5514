"""Exception hierarchy for the inventory ledger and its collaborators."""


class LedgerError(Exception):
    """Base exception for ledger, persistence and identity errors."""
    pass


class ValidationError(LedgerError):
    """Raised when a required field is missing or invalid. Nothing was written."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class InsufficientStockError(LedgerError):
    """Raised when a sale asks for more units than the product holds."""

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            "Cannot sell {} units of product {}: only {} in stock.".format(
                requested, product_id, available
            )
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class NotFoundError(LedgerError):
    """Raised when a mutation targets a record that does not exist."""
    pass


class DuplicateProductIdError(LedgerError):
    """Raised when a product SKU is already taken."""
    pass


class PersistenceError(LedgerError):
    """Raised when the document store rejects or fails a call."""
    pass


class PermissionDeniedError(LedgerError):
    """Raised when the acting user's role does not grant the operation."""
    pass


class AuthenticationError(LedgerError):
    """Raised when credentials or bearer tokens cannot be verified."""
    pass


class DuplicateUserError(LedgerError):
    """Raised when a user with the same email already exists."""
    pass


__all__ = [
    "AuthenticationError",
    "DuplicateProductIdError",
    "DuplicateUserError",
    "InsufficientStockError",
    "LedgerError",
    "NotFoundError",
    "PermissionDeniedError",
    "PersistenceError",
    "ValidationError",
]
