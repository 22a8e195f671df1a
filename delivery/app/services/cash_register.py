"""Daily cash drawer ledger.

One register per business date. While open it accumulates manual deposits and
withdrawals plus the settlement totals (cash/PIX received on completed orders)
pushed by the daily aggregator. Closing freezes

    closing = opening + total_cash + total_pix + Σdeposits − Σwithdrawals
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from delivery.app.core.config import settings
from delivery.app.core.database import ZERO, commit_or_conflict, money, utcnow
from delivery.app.core.errors import Conflict, NotFound, ValidationError
from delivery.app.models.cash_register import (
    CashMovement,
    CashRegisterDay,
    MovementKind,
    RegisterStatus,
)
from delivery.app.services.audit import log_action
from delivery.app.services.reports import compute_daily_settlement

logger = logging.getLogger(__name__)


def _require_open(db: Session, business_date: date) -> CashRegisterDay:
    register = (
        db.query(CashRegisterDay)
        .filter(
            CashRegisterDay.business_date == business_date,
            CashRegisterDay.status == RegisterStatus.OPEN,
        )
        .first()
    )
    if not register:
        raise NotFound(f"No open cash register for {business_date.isoformat()}")
    return register


def current_balance(register: CashRegisterDay) -> Decimal:
    return money(register.current_balance)


# ─── Open / Close ───────────────────────────────────────────────────────────


def open_register(
    db: Session,
    business_date: date,
    opening_balance: Decimal,
    *,
    actor: str | None = None,
) -> CashRegisterDay:
    """Open the drawer for a date. A date can only ever have one register."""
    opening = money(opening_balance)
    if opening < ZERO:
        raise ValidationError("Opening balance must be non-negative")

    existing = (
        db.query(CashRegisterDay)
        .filter(CashRegisterDay.business_date == business_date)
        .first()
    )
    if existing:
        raise Conflict(
            f"A cash register for {business_date.isoformat()} already exists "
            f"({existing.status.value})"
        )

    register = CashRegisterDay(
        business_date=business_date,
        status=RegisterStatus.OPEN,
        opening_balance=opening,
        total_cash=ZERO,
        total_pix=ZERO,
        opened_at=utcnow(),
    )
    db.add(register)
    db.flush()

    log_action(
        db,
        actor=actor,
        action="REGISTER_OPENED",
        resource_type="cash_register_days",
        resource_id=str(register.id),
        changes={
            "business_date": business_date.isoformat(),
            "opening_balance": str(opening),
        },
    )

    commit_or_conflict(db, "Cash register")
    db.refresh(register)
    logger.info("Cash register %s opened with %s", business_date, opening)
    return register


def close_register(
    db: Session,
    business_date: date,
    notes: str | None = None,
    *,
    actor: str | None = None,
) -> CashRegisterDay:
    register = _require_open(db, business_date)

    closing = money(register.running_balance())
    register.closing_balance = closing
    register.status = RegisterStatus.CLOSED
    register.closed_at = utcnow()
    register.updated_at = register.closed_at
    register.notes = notes

    log_action(
        db,
        actor=actor,
        action="REGISTER_CLOSED",
        resource_type="cash_register_days",
        resource_id=str(register.id),
        changes={
            "business_date": business_date.isoformat(),
            "opening_balance": str(register.opening_balance),
            "total_cash": str(register.total_cash),
            "total_pix": str(register.total_pix),
            "deposits": str(register.total_deposits()),
            "withdrawals": str(register.total_withdrawals()),
            "closing_balance": str(closing),
        },
    )

    commit_or_conflict(db, "Cash register")
    db.refresh(register)
    logger.info("Cash register %s closed at %s", business_date, closing)
    return register


# ─── Deposits / Withdrawals ─────────────────────────────────────────────────


def _append_movement(
    db: Session,
    business_date: date,
    kind: MovementKind,
    amount: Decimal,
    reason: str,
    actor: str | None,
) -> CashRegisterDay:
    amt = money(amount)
    if amt <= ZERO:
        raise ValidationError("Amount must be greater than zero")
    if not reason or not reason.strip():
        raise ValidationError("Reason must not be empty")

    register = _require_open(db, business_date)

    if kind == MovementKind.WITHDRAWAL and settings.ENFORCE_WITHDRAWAL_LIMIT:
        available = money(register.running_balance())
        if amt > available:
            raise ValidationError(
                f"Withdrawal of {amt} exceeds the available balance of {available}"
            )

    now = utcnow()
    register.movements.append(
        CashMovement(kind=kind, amount=amt, reason=reason.strip(), created_at=now)
    )
    register.updated_at = now

    log_action(
        db,
        actor=actor,
        action=f"REGISTER_{kind.name}",
        resource_type="cash_register_days",
        resource_id=str(register.id),
        changes={"amount": str(amt), "reason": reason.strip()},
    )

    commit_or_conflict(db, "Cash register")
    db.refresh(register)
    return register


def deposit(
    db: Session,
    business_date: date,
    amount: Decimal,
    reason: str,
    *,
    actor: str | None = None,
) -> CashRegisterDay:
    return _append_movement(db, business_date, MovementKind.DEPOSIT, amount, reason, actor)


def withdraw(
    db: Session,
    business_date: date,
    amount: Decimal,
    reason: str,
    *,
    actor: str | None = None,
) -> CashRegisterDay:
    """Take money out of the drawer.

    The balance can go negative unless ENFORCE_WITHDRAWAL_LIMIT is set.
    """
    return _append_movement(
        db, business_date, MovementKind.WITHDRAWAL, amount, reason, actor
    )


# ─── Settlement Totals ──────────────────────────────────────────────────────


def update_settlement_totals(
    db: Session,
    business_date: date,
    total_cash: Decimal,
    total_pix: Decimal,
    *,
    actor: str | None = None,
) -> CashRegisterDay:
    """Overwrite the day's cash/PIX totals. Callers pass full totals, not deltas."""
    cash = money(total_cash)
    pix = money(total_pix)
    if cash < ZERO or pix < ZERO:
        raise ValidationError("Settlement totals must be non-negative")

    register = _require_open(db, business_date)
    previous = {"total_cash": str(register.total_cash), "total_pix": str(register.total_pix)}
    register.total_cash = cash
    register.total_pix = pix
    register.updated_at = utcnow()

    log_action(
        db,
        actor=actor,
        action="REGISTER_SETTLEMENT_UPDATED",
        resource_type="cash_register_days",
        resource_id=str(register.id),
        changes={
            "previous": previous,
            "total_cash": str(cash),
            "total_pix": str(pix),
        },
    )

    commit_or_conflict(db, "Cash register")
    db.refresh(register)
    return register


def sync_settlement_totals(
    db: Session, business_date: date, *, actor: str | None = None
) -> CashRegisterDay:
    """Recompute the day's settlement from completed orders and push it."""
    settlement = compute_daily_settlement(db, business_date)
    return update_settlement_totals(
        db,
        business_date,
        settlement["total_cash"],
        settlement["total_pix"],
        actor=actor,
    )


# ─── Queries ────────────────────────────────────────────────────────────────


def get_register(db: Session, business_date: date) -> CashRegisterDay:
    register = (
        db.query(CashRegisterDay)
        .filter(CashRegisterDay.business_date == business_date)
        .first()
    )
    if not register:
        raise NotFound(f"No cash register for {business_date.isoformat()}")
    return register


def get_open_register(
    db: Session, business_date: date | None = None
) -> CashRegisterDay | None:
    """The open register for a date, or the most recent open one."""
    query = db.query(CashRegisterDay).filter(
        CashRegisterDay.status == RegisterStatus.OPEN
    )
    if business_date is not None:
        query = query.filter(CashRegisterDay.business_date == business_date)
    return query.order_by(CashRegisterDay.business_date.desc()).first()


def list_registers(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[CashRegisterDay]:
    query = db.query(CashRegisterDay)
    if date_from is not None:
        query = query.filter(CashRegisterDay.business_date >= date_from)
    if date_to is not None:
        query = query.filter(CashRegisterDay.business_date <= date_to)
    return query.order_by(CashRegisterDay.business_date.desc()).all()
