"""Tests for returns: validation, the return lifecycle and its compensations."""
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from delivery.app.core.errors import Conflict, InvalidTransition, NotFound, ValidationError
from delivery.app.models.customer import Customer
from delivery.app.models.inventory import Product
from delivery.app.models.order import Order
from delivery.app.models.returns import ReturnStatus
from delivery.app.schemas.orders import OrderLineIn
from delivery.app.schemas.returns import ReturnItemIn
from delivery.app.services import customers, inventory, orders, returns


def _deliver(db: Session, order: Order) -> Order:
    orders.assign_order(db, order.id, "driver-1")
    orders.start_order(db, order.id)
    orders.add_payment(db, order.id, "cash", order.total_amount)
    return orders.complete_order(db, order.id)


@pytest.fixture()
def customer_order(
    db: Session, customer: Customer, product_a: Product, product_b: Product
) -> Order:
    """Completed order for a registered customer: 2 × A @15 + 3 × B @9 = 57.00."""
    order = orders.create_order(
        db,
        [
            OrderLineIn(product_id=product_a.id, quantity=2, unit_price=Decimal("15.00")),
            OrderLineIn(product_id=product_b.id, quantity=3, unit_price=Decimal("9.00")),
        ],
        customer_id=customer.id,
    )
    return _deliver(db, order)


# ─── TestProcessReturn ───────────────────────────────────────────────────────


class TestProcessReturn:
    def test_default_refund_from_unit_prices(
        self, db: Session, customer_order: Order, product_a: Product, product_b: Product
    ) -> None:
        ret = returns.process_return(
            db,
            customer_order.id,
            [
                ReturnItemIn(product_id=product_a.id, quantity=1),
                ReturnItemIn(product_id=product_b.id, quantity=2),
            ],
            "vazamento",
        )
        assert ret.status == ReturnStatus.PENDING
        assert ret.refund_amount == Decimal("33.00")
        assert {i.product_id: i.quantity for i in ret.items} == {
            product_a.id: 1,
            product_b.id: 2,
        }

    def test_explicit_refund(
        self, db: Session, customer_order: Order, product_a: Product
    ) -> None:
        ret = returns.process_return(
            db,
            customer_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
            Decimal("5.00"),
        )
        assert ret.refund_amount == Decimal("5.00")

    def test_duplicate_items_aggregated(
        self, db: Session, customer_order: Order, product_a: Product
    ) -> None:
        ret = returns.process_return(
            db,
            customer_order.id,
            [
                ReturnItemIn(product_id=product_a.id, quantity=1),
                ReturnItemIn(product_id=product_a.id, quantity=1),
            ],
            "avaria",
        )
        assert [(i.product_id, i.quantity) for i in ret.items] == [(product_a.id, 2)]
        assert ret.refund_amount == Decimal("30.00")

    def test_returns_only_for_completed_orders(
        self, db: Session, in_progress_order: Order, product_a: Product
    ) -> None:
        with pytest.raises(InvalidTransition):
            returns.process_return(
                db,
                in_progress_order.id,
                [ReturnItemIn(product_id=product_a.id, quantity=1)],
                "avaria",
            )

    def test_one_return_per_order(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        items = [ReturnItemIn(product_id=product_a.id, quantity=1)]
        returns.process_return(db, completed_order.id, items, "avaria")
        with pytest.raises(Conflict):
            returns.process_return(db, completed_order.id, items, "avaria")

    def test_more_than_ordered_rejected(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        with pytest.raises(ValidationError, match="only 2 ordered"):
            returns.process_return(
                db,
                completed_order.id,
                [
                    ReturnItemIn(product_id=product_a.id, quantity=2),
                    ReturnItemIn(product_id=product_a.id, quantity=1),
                ],
                "avaria",
            )

    def test_product_not_on_order_rejected(
        self, db: Session, completed_order: Order, product_b: Product
    ) -> None:
        with pytest.raises(ValidationError):
            returns.process_return(
                db,
                completed_order.id,
                [ReturnItemIn(product_id=product_b.id, quantity=1)],
                "avaria",
            )

    @pytest.mark.parametrize("refund", ["-1.00", "30.01"])
    def test_refund_bounds(
        self, db: Session, completed_order: Order, product_a: Product, refund: str
    ) -> None:
        with pytest.raises(ValidationError):
            returns.process_return(
                db,
                completed_order.id,
                [ReturnItemIn(product_id=product_a.id, quantity=1)],
                "avaria",
                Decimal(refund),
            )

    def test_reason_and_items_required(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        with pytest.raises(ValidationError):
            returns.process_return(db, completed_order.id, [], "avaria")
        with pytest.raises(ValidationError):
            returns.process_return(
                db,
                completed_order.id,
                [ReturnItemIn(product_id=product_a.id, quantity=1)],
                " ",
            )

    def test_zero_quantity_rejected(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        with pytest.raises(ValidationError):
            returns.process_return(
                db,
                completed_order.id,
                [ReturnItemIn(product_id=product_a.id, quantity=0)],
                "avaria",
            )

    def test_unknown_order(self, db: Session, product_a: Product) -> None:
        with pytest.raises(NotFound):
            returns.process_return(
                db, uuid.uuid4(), [ReturnItemIn(product_id=product_a.id, quantity=1)], "x"
            )

    def test_registration_touches_no_ledger(
        self, db: Session, customer_order: Order, customer: Customer, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            customer_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=2)],
            "avaria",
        )
        db.refresh(product_a)
        db.refresh(customer)
        assert product_a.stock == 20
        assert customer.balance == Decimal("0.00")


# ─── TestReturnLifecycle ─────────────────────────────────────────────────────


class TestReturnLifecycle:
    def test_completion_restocks_and_credits(
        self,
        db: Session,
        customer_order: Order,
        customer: Customer,
        product_a: Product,
        product_b: Product,
    ) -> None:
        returns.process_return(
            db,
            customer_order.id,
            [
                ReturnItemIn(product_id=product_a.id, quantity=2),
                ReturnItemIn(product_id=product_b.id, quantity=1),
            ],
            "cliente desistiu",
        )
        returns.update_return_status(db, customer_order.id, "approved")
        ret = returns.update_return_status(db, customer_order.id, ReturnStatus.COMPLETED)

        assert ret.status == ReturnStatus.COMPLETED
        db.refresh(product_a)
        db.refresh(product_b)
        db.refresh(customer)
        assert product_a.stock == 22
        assert product_b.stock == 51
        assert customer.balance == Decimal("39.00")

        restock = inventory.list_movements(db, product_a.id)[0]
        assert restock.reason == returns.restock_reason(customer_order.id)
        credit = customers.list_transactions(db, customer.id)[0]
        assert credit.description == returns.refund_description(customer_order.id)
        assert credit.amount == Decimal("39.00")

    def test_approval_alone_changes_nothing(
        self, db: Session, customer_order: Order, customer: Customer, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            customer_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        returns.update_return_status(db, customer_order.id, "approved", notes="ok")
        db.refresh(product_a)
        db.refresh(customer)
        assert product_a.stock == 20
        assert customer.balance == Decimal("0.00")
        assert returns.get_return(db, customer_order.id).notes == "ok"

    def test_rejected_is_terminal(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            completed_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        returns.update_return_status(db, completed_order.id, "rejected")
        with pytest.raises(InvalidTransition):
            returns.update_return_status(db, completed_order.id, "approved")

    def test_cannot_complete_unapproved(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            completed_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        with pytest.raises(InvalidTransition):
            returns.update_return_status(db, completed_order.id, "completed")

    def test_ad_hoc_customer_gets_restock_only(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            completed_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        returns.update_return_status(db, completed_order.id, "approved")
        returns.update_return_status(db, completed_order.id, "completed")
        db.refresh(product_a)
        assert product_a.stock == 21

    def test_deleted_product_skipped(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            completed_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        inventory.delete_product(db, product_a.id)
        returns.update_return_status(db, completed_order.id, "approved")
        ret = returns.update_return_status(db, completed_order.id, "completed")
        assert ret.status == ReturnStatus.COMPLETED

    def test_zero_refund_posts_no_credit(
        self, db: Session, customer_order: Order, customer: Customer, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            customer_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "troca",
            Decimal("0"),
        )
        returns.update_return_status(db, customer_order.id, "approved")
        returns.update_return_status(db, customer_order.id, "completed")
        assert customers.list_transactions(db, customer.id) == []

    def test_unknown_status(self, db: Session, completed_order: Order, product_a: Product) -> None:
        returns.process_return(
            db,
            completed_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        with pytest.raises(ValidationError):
            returns.update_return_status(db, completed_order.id, "refunded")

    def test_missing_return(self, db: Session, completed_order: Order) -> None:
        with pytest.raises(NotFound):
            returns.update_return_status(db, completed_order.id, "approved")

    def test_list_by_status(
        self, db: Session, completed_order: Order, product_a: Product
    ) -> None:
        returns.process_return(
            db,
            completed_order.id,
            [ReturnItemIn(product_id=product_a.id, quantity=1)],
            "avaria",
        )
        assert len(returns.list_returns(db, ReturnStatus.PENDING)) == 1
        assert returns.list_returns(db, ReturnStatus.APPROVED) == []
