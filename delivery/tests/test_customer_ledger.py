"""Tests for customer accounts and the credit/debit ledger."""
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from delivery.app.core.errors import NotFound, ValidationError
from delivery.app.models.customer import Customer, CustomerTransaction, TransactionType
from delivery.app.models.inventory import Product
from delivery.app.models.order import Order
from delivery.app.services import customers


# ─── TestCustomers ───────────────────────────────────────────────────────────


class TestCustomers:
    def test_new_customer_has_zero_balance(self, customer: Customer) -> None:
        assert customer.balance == Decimal("0.00")
        assert customer.name == "Maria Souza"

    def test_name_required(self, db: Session) -> None:
        with pytest.raises(ValidationError):
            customers.create_customer(db, name="  ")

    def test_search(self, db: Session, customer: Customer) -> None:
        customers.create_customer(db, name="João Pereira", phone="11888887777")
        assert [c.name for c in customers.list_customers(db, "maria")] == ["Maria Souza"]
        assert [c.name for c in customers.list_customers(db, "8888")] == ["João Pereira"]
        assert len(customers.list_customers(db)) == 2

    def test_update_contact_fields(self, db: Session, customer: Customer) -> None:
        updated = customers.update_customer(
            db, customer.id, {"phone": "11911112222", "address": "Rua Nova, 5"}
        )
        assert updated.phone == "11911112222"
        assert updated.address == "Rua Nova, 5"

    def test_balance_not_editable(self, db: Session, customer: Customer) -> None:
        with pytest.raises(ValidationError, match="balance"):
            customers.update_customer(db, customer.id, {"balance": "100.00"})

    def test_unknown_customer(self, db: Session) -> None:
        with pytest.raises(NotFound):
            customers.get_customer(db, uuid.uuid4())
        with pytest.raises(NotFound):
            customers.list_transactions(db, uuid.uuid4())


# ─── TestLedger ──────────────────────────────────────────────────────────────


class TestLedger:
    def test_credit_and_debit_move_balance(self, db: Session, customer: Customer) -> None:
        customers.record_transaction(db, customer.id, "credit", Decimal("50.00"), "vale")
        txn = customers.record_transaction(
            db, customer.id, TransactionType.DEBIT, Decimal("20.00"), "uso do vale"
        )
        db.refresh(customer)
        assert txn.amount == Decimal("20.00")
        assert customer.balance == Decimal("30.00")

    def test_debit_may_go_negative(self, db: Session, customer: Customer) -> None:
        customers.record_transaction(db, customer.id, "debit", Decimal("12.00"), "fiado")
        db.refresh(customer)
        assert customer.balance == Decimal("-12.00")

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_amount_rejected(
        self, db: Session, customer: Customer, amount: str
    ) -> None:
        with pytest.raises(ValidationError):
            customers.record_transaction(db, customer.id, "credit", Decimal(amount), "vale")

    def test_description_required(self, db: Session, customer: Customer) -> None:
        with pytest.raises(ValidationError):
            customers.record_transaction(db, customer.id, "credit", Decimal("1.00"), "")

    def test_unknown_type_rejected(self, db: Session, customer: Customer) -> None:
        with pytest.raises(ValidationError):
            customers.record_transaction(db, customer.id, "refund", Decimal("1.00"), "x")

    def test_balance_equals_fold_after_each_entry(
        self, db: Session, customer: Customer
    ) -> None:
        entries = [
            ("credit", "10.00"),
            ("debit", "3.25"),
            ("credit", "0.10"),
            ("debit", "40.00"),
            ("credit", "7.15"),
        ]
        for ttype, amount in entries:
            customers.record_transaction(db, customer.id, ttype, Decimal(amount), "mov")
            db.refresh(customer)
            assert customer.balance == customers.balance_from_ledger(db, customer.id)
        assert customer.balance == Decimal("-26.00")

    def test_transactions_newest_first(self, db: Session, customer: Customer) -> None:
        customers.record_transaction(db, customer.id, "credit", Decimal("1.00"), "primeiro")
        customers.record_transaction(db, customer.id, "credit", Decimal("2.00"), "segundo")
        assert [t.description for t in customers.list_transactions(db, customer.id)] == [
            "segundo",
            "primeiro",
        ]


class TestRebuildBalance:
    def test_repairs_drift(self, db: Session, customer: Customer) -> None:
        customers.record_transaction(db, customer.id, "credit", Decimal("25.00"), "vale")
        db.refresh(customer)
        customer.balance = Decimal("999.00")
        db.commit()

        rebuilt = customers.rebuild_balance(db, customer.id)
        assert rebuilt.balance == Decimal("25.00")

    def test_no_change_when_consistent(self, db: Session, customer: Customer) -> None:
        customers.record_transaction(db, customer.id, "credit", Decimal("25.00"), "vale")
        db.refresh(customer)
        version = customer.version
        rebuilt = customers.rebuild_balance(db, customer.id)
        assert rebuilt.version == version


# ─── TestDelete ──────────────────────────────────────────────────────────────


class TestDelete:
    def test_delete_cascades_to_ledger(self, db: Session, customer: Customer) -> None:
        customers.record_transaction(db, customer.id, "credit", Decimal("5.00"), "vale")
        customer_id = customer.id
        customers.delete_customer(db, customer_id)
        assert db.query(Customer).filter(Customer.id == customer_id).first() is None
        assert db.query(CustomerTransaction).filter(
            CustomerTransaction.customer_id == customer_id
        ).count() == 0

    def test_orders_keep_snapshot(
        self, db: Session, customer: Customer, product_a: Product, order_factory
    ) -> None:
        order = order_factory(product_a, customer=customer)
        customer_id = customer.id
        customers.delete_customer(db, customer_id)
        kept = db.query(Order).filter(Order.id == order.id).one()
        assert kept.customer_name == "Maria Souza"
        assert kept.customer_id == customer_id
