"""Error taxonomy shared by every ledger service.

All errors subclass ``ValueError`` so callers that only care about
"bad request" can keep catching that; the HTTP layer uses ``status_code``.
"""

from __future__ import annotations


class LedgerError(ValueError):
    status_code: int = 400


class ValidationError(LedgerError):
    """Malformed input: non-positive amount/quantity, empty required field."""

    status_code = 422


class InvalidTransition(LedgerError):
    """State-machine precondition violated."""

    status_code = 409


class NotFound(LedgerError):
    status_code = 404


class Conflict(LedgerError):
    """Uniqueness violation or a lost optimistic-lock race."""

    status_code = 409


class OutOfRange(LedgerError):
    status_code = 422


class InsufficientStock(ValidationError):
    pass
