"""Typed exceptions for invoice operations."""


class InvoiceError(Exception):
    """Base class for invoice domain errors."""


class ValidationError(InvoiceError, ValueError):
    """
    Malformed or out-of-range item or company fields.

    Raised before anything is persisted. field_errors maps a field name
    to a human-readable message so callers can show it next to the input.
    """

    def __init__(self, message: str, field_errors: dict[str, str] | None = None):
        self.field_errors = field_errors or {}
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, message: str, exc) -> "ValidationError":
        """Wrap a pydantic.ValidationError, keeping the first message per field."""
        field_errors: dict[str, str] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            field_errors.setdefault(field, error["msg"])
        return cls(message, field_errors)


class NotFoundError(InvoiceError, LookupError):
    """Unknown id or invoice number."""

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key} not found")


class ConflictError(InvoiceError):
    """Invoice number already taken."""

    def __init__(self, invoice_number: str):
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number {invoice_number} already exists")


class PersistenceError(InvoiceError):
    """
    Storage layer unavailable or failed mid-operation.

    Not retried automatically. The caller must resubmit.
    """
