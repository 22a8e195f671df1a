from __future__ import annotations

from fastapi import Header, HTTPException

from delivery.app.core.errors import LedgerError


def get_operator(
    x_operator_id: str | None = Header(default=None, max_length=64),
) -> str | None:
    """Who is acting, for the audit trail. Authentication happens upstream."""
    if x_operator_id is not None:
        x_operator_id = x_operator_id.strip() or None
    return x_operator_id


def http_error(exc: LedgerError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))
