from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from delivery.app.core.database import ZERO, business_today, commit_or_conflict, money
from delivery.app.core.errors import NotFound, ValidationError
from delivery.app.models.cost import Cost, CostCategory
from delivery.app.services.audit import log_action


def _month_bounds(month: str) -> tuple[date, date]:
    """``"YYYY-MM"`` → first and last day of that month."""
    try:
        year_s, month_s = month.split("-")
        year, mon = int(year_s), int(month_s)
        first = date(year, mon, 1)
    except ValueError:
        raise ValidationError(f"Invalid month {month!r}, expected YYYY-MM") from None
    return first, date(year, mon, calendar.monthrange(year, mon)[1])


def create_cost(
    db: Session,
    *,
    description: str,
    amount: Decimal,
    category: CostCategory | str,
    cost_date: date | None = None,
    notes: str | None = None,
    actor: str | None = None,
) -> Cost:
    """Record an operating expense. Costs never touch order net amounts."""
    amt = money(amount)
    if amt <= ZERO:
        raise ValidationError("Amount must be greater than 0")
    if not description or not description.strip():
        raise ValidationError("Description must not be empty")
    try:
        cat = CostCategory(category)
    except ValueError:
        raise ValidationError(f"Unknown cost category: {category!r}") from None

    cost = Cost(
        cost_date=cost_date or business_today(),
        description=description.strip(),
        amount=amt,
        category=cat,
        notes=notes,
    )
    db.add(cost)
    db.flush()

    log_action(
        db,
        actor=actor,
        action="COST_CREATED",
        resource_type="costs",
        resource_id=str(cost.id),
        changes={
            "date": cost.cost_date.isoformat(),
            "amount": str(amt),
            "category": cat.value,
        },
    )
    commit_or_conflict(db, "Cost")
    db.refresh(cost)
    return cost


def delete_cost(db: Session, cost_id: UUID, *, actor: str | None = None) -> None:
    cost = db.query(Cost).filter(Cost.id == cost_id).first()
    if not cost:
        raise NotFound(f"Cost {cost_id} not found")
    log_action(
        db,
        actor=actor,
        action="COST_DELETED",
        resource_type="costs",
        resource_id=str(cost.id),
        changes={"amount": str(cost.amount), "description": cost.description},
    )
    db.delete(cost)
    commit_or_conflict(db, "Cost")


def list_costs(
    db: Session,
    *,
    month: str | None = None,
    day: date | None = None,
) -> list[Cost]:
    """Costs newest first, optionally restricted to a month or a single day."""
    query = db.query(Cost)
    if month is not None:
        first, last = _month_bounds(month)
        query = query.filter(Cost.cost_date >= first, Cost.cost_date <= last)
    if day is not None:
        query = query.filter(Cost.cost_date == day)
    return query.order_by(Cost.cost_date.desc(), Cost.created_at.desc()).all()


def total_costs_for_day(db: Session, day: date) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Cost.amount), 0))
        .filter(Cost.cost_date == day)
        .scalar()
    )
    return money(total or 0)
