from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from delivery.app.models.audit import AuditLog


def log_action(
    db: Session,
    *,
    actor: str | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
) -> None:
    """Write a single row to the audit_logs table.

    Does NOT commit: the row rides along with the caller's unit of work, so
    a failed ledger write leaves no audit trace either.
    """
    db.add(
        AuditLog(
            table_name=resource_type,
            record_id=resource_id,
            action=action,
            actor=actor,
            new_values=changes,
        )
    )
