"""Typed exception hierarchy for accounting errors.

Each exception carries the HTTP status it maps to and a short
machine-readable ``reason`` so API callers can branch on the failure
kind without parsing the message.
"""


class AccountingError(Exception):
    """Base exception for lot and option accounting failures."""

    status_code = 400
    default_reason = "accounting_error"

    def __init__(self, message: str, reason: str | None = None):
        self.reason = reason or self.default_reason
        super().__init__(message)


class AccountingValidationError(AccountingError, ValueError):
    """Input is well-formed but violates an accounting rule."""

    default_reason = "validation_error"


class NotFoundError(AccountingError, LookupError):
    """A referenced lot or option position does not exist."""

    status_code = 404
    default_reason = "not_found"


class ConcurrencyConflictError(AccountingError):
    """Another writer changed the same lot or position first.

    Nothing from the losing request was committed; it can be retried.
    """

    status_code = 409
    default_reason = "concurrency_conflict"
