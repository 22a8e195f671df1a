"""Customer accounts and their credit/debit ledger."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from delivery.app.core.database import ZERO, commit_or_conflict, money, utcnow
from delivery.app.core.errors import NotFound, ValidationError
from delivery.app.models.customer import Customer, CustomerTransaction, TransactionType
from delivery.app.services.audit import log_action

_CONTACT_FIELDS = ("name", "email", "phone", "address")


def _get_customer(db: Session, customer_id: UUID) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFound(f"Customer {customer_id} not found")
    return customer


def _transaction_type(value: TransactionType | str) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {value!r}") from None


# ─── Customer CRUD ──────────────────────────────────────────────────────────


def create_customer(
    db: Session,
    *,
    name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    actor: str | None = None,
) -> Customer:
    if not name or not name.strip():
        raise ValidationError("Customer name must not be empty")
    customer = Customer(
        name=name.strip(),
        email=email,
        phone=phone,
        address=address,
        balance=ZERO,
    )
    db.add(customer)
    db.flush()
    log_action(
        db,
        actor=actor,
        action="CUSTOMER_CREATED",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={"name": customer.name},
    )
    commit_or_conflict(db, "Customer")
    db.refresh(customer)
    return customer


def get_customer(db: Session, customer_id: UUID) -> Customer:
    return _get_customer(db, customer_id)


def list_customers(db: Session, q: str | None = None) -> list[Customer]:
    query = db.query(Customer)
    if q:
        like = f"%{q}%"
        query = query.filter(
            or_(
                Customer.name.ilike(like),
                Customer.email.ilike(like),
                Customer.phone.ilike(like),
            )
        )
    return query.order_by(Customer.name).all()


def update_customer(
    db: Session,
    customer_id: UUID,
    changes: dict[str, str | None],
    *,
    actor: str | None = None,
) -> Customer:
    """Edit contact fields. The balance is owned by the ledger.

    Existing orders keep the snapshot taken when they were created.
    """
    customer = _get_customer(db, customer_id)
    unknown = set(changes) - set(_CONTACT_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Customer name must not be empty")

    for field, value in changes.items():
        setattr(customer, field, value)
    customer.updated_at = utcnow()

    log_action(
        db,
        actor=actor,
        action="CUSTOMER_UPDATED",
        resource_type="customers",
        resource_id=str(customer.id),
        changes=dict(changes),
    )
    commit_or_conflict(db, "Customer")
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: UUID, *, actor: str | None = None) -> None:
    """Hard delete, ledger included. Orders keep their customer snapshot."""
    customer = _get_customer(db, customer_id)
    log_action(
        db,
        actor=actor,
        action="CUSTOMER_DELETED",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={"name": customer.name, "balance": str(customer.balance)},
    )
    db.delete(customer)
    commit_or_conflict(db, "Customer")


# ─── Ledger ─────────────────────────────────────────────────────────────────


def append_transaction(
    db: Session,
    customer: Customer,
    transaction_type: TransactionType,
    amount: Decimal,
    description: str,
) -> CustomerTransaction:
    """Add the ledger row and move the cached balance. Does not commit."""
    amt = money(amount)
    if amt <= ZERO:
        raise ValidationError("Amount must be greater than zero")
    if not description or not description.strip():
        raise ValidationError("Description must not be empty")

    now = utcnow()
    txn = CustomerTransaction(
        customer_id=customer.id,
        transaction_type=transaction_type,
        amount=amt,
        description=description.strip(),
        created_at=now,
    )
    db.add(txn)

    if transaction_type == TransactionType.CREDIT:
        customer.balance = customer.balance + amt
    else:
        customer.balance = customer.balance - amt
    customer.updated_at = now
    return txn


def record_transaction(
    db: Session,
    customer_id: UUID,
    transaction_type: TransactionType | str,
    amount: Decimal,
    description: str,
    *,
    actor: str | None = None,
) -> CustomerTransaction:
    """Append a credit/debit and update the balance in the same commit."""
    ttype = _transaction_type(transaction_type)
    customer = _get_customer(db, customer_id)
    txn = append_transaction(db, customer, ttype, amount, description)

    log_action(
        db,
        actor=actor,
        action="CUSTOMER_TRANSACTION",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={
            "type": ttype.value,
            "amount": str(txn.amount),
            "description": txn.description,
            "balance_after": str(customer.balance),
        },
    )

    commit_or_conflict(db, "Customer")
    db.refresh(txn)
    return txn


def list_transactions(db: Session, customer_id: UUID) -> list[CustomerTransaction]:
    """Return the customer's ledger, most recent first."""
    _get_customer(db, customer_id)
    return (
        db.query(CustomerTransaction)
        .filter(CustomerTransaction.customer_id == customer_id)
        .order_by(CustomerTransaction.created_at.desc())
        .all()
    )


def balance_from_ledger(db: Session, customer_id: UUID) -> Decimal:
    """Σcredits − Σdebits straight from the log."""
    signed = case(
        (
            CustomerTransaction.transaction_type == TransactionType.CREDIT,
            CustomerTransaction.amount,
        ),
        else_=-CustomerTransaction.amount,
    )
    total = (
        db.query(func.coalesce(func.sum(signed), 0))
        .filter(CustomerTransaction.customer_id == customer_id)
        .scalar()
    )
    return money(total or 0)


def rebuild_balance(db: Session, customer_id: UUID, *, actor: str | None = None) -> Customer:
    """Rewrite the cached balance from the ledger (repairs drift)."""
    customer = _get_customer(db, customer_id)
    folded = balance_from_ledger(db, customer_id)
    if folded == customer.balance:
        return customer

    previous = customer.balance
    customer.balance = folded
    customer.updated_at = utcnow()
    log_action(
        db,
        actor=actor,
        action="CUSTOMER_BALANCE_REBUILT",
        resource_type="customers",
        resource_id=str(customer.id),
        changes={"previous": str(previous), "rebuilt": str(folded)},
    )
    commit_or_conflict(db, "Customer")
    db.refresh(customer)
    return customer
