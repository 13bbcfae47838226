# Overview: domain error hierarchy shared by services and routes.

"""
Ledger errors

Every failure a caller can act on is a LedgerError. Each subclass carries the
HTTP status the routes answer with and a stable `code` for clients, plus an
optional `details` dict (offending ids, field names).

None of these are retried inside the engine, except DuplicateTokenError which
is only raised after token generation has already retried.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for domain errors."""

    status_code = 400
    code = "LEDGER_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(LedgerError):
    """Malformed or missing input."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(LedgerError):
    status_code = 404
    code = "NOT_FOUND"


class InvalidTransitionError(LedgerError):
    """Attempted state change is not legal from the current state."""

    status_code = 409
    code = "INVALID_TRANSITION"


class BundleUnavailableError(LedgerError):
    """A bundle was not DISPONIBLE when a reservation tried to claim it."""

    status_code = 409
    code = "BUNDLE_UNAVAILABLE"


class InvalidDiscountError(LedgerError):
    """Percentage outside [0, 100] or a non-positive unit price."""

    status_code = 400
    code = "INVALID_DISCOUNT"


class EmptyQuotationError(LedgerError):
    status_code = 400
    code = "EMPTY_QUOTATION"


class NegativeTotalError(LedgerError):
    status_code = 422
    code = "NEGATIVE_TOTAL"


class DuplicateTokenError(LedgerError):
    """Share token / tracking code collided on every generation attempt."""

    status_code = 503
    code = "DUPLICATE_TOKEN"
