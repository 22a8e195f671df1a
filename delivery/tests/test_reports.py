"""Tests for the reconciliation views."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from delivery.app.models.cash_register import CashRegisterDay
from delivery.app.models.customer import Customer
from delivery.app.models.inventory import Product
from delivery.app.models.order import Order
from delivery.app.services import cash_register, costs, customers, inventory, orders, reports

DAY = date(2024, 6, 1)


# ─── TestDailySettlement ─────────────────────────────────────────────────────


class TestDailySettlement:
    def test_only_completed_orders_settle(
        self, db: Session, completed_order: Order, product_a: Product, order_factory
    ) -> None:
        pending = order_factory(product_a, quantity=1)
        orders.add_payment(db, pending.id, "pix", Decimal("15.00"))

        settlement = reports.compute_daily_settlement(db, DAY)

        assert settlement["total_cash"] == Decimal("30.00")
        assert settlement["total_pix"] == Decimal("0.00")
        assert settlement["completed_orders"] == 1
        assert settlement["completed_total"] == Decimal("30.00")
        assert settlement["pending_orders"] == 1
        assert settlement["pending_total"] == Decimal("15.00")

    def test_other_days_excluded(
        self, db: Session, completed_order: Order
    ) -> None:
        settlement = reports.compute_daily_settlement(db, date(2024, 6, 2))
        assert settlement["total_cash"] == Decimal("0.00")
        assert settlement["completed_orders"] == 0

    def test_split_payments(self, db: Session, in_progress_order: Order) -> None:
        orders.add_payment(db, in_progress_order.id, "cash", Decimal("10.00"))
        orders.add_payment(db, in_progress_order.id, "pix", Decimal("20.00"))
        orders.complete_order(db, in_progress_order.id)

        settlement = reports.compute_daily_settlement(db, DAY)
        assert settlement["total_cash"] == Decimal("10.00")
        assert settlement["total_pix"] == Decimal("20.00")


# ─── TestDailySummary ────────────────────────────────────────────────────────


class TestDailySummary:
    def test_counts_and_totals(
        self,
        db: Session,
        completed_order: Order,
        open_register: CashRegisterDay,
        product_b: Product,
        order_factory,
    ) -> None:
        other = order_factory(product_b, quantity=1, unit_price=Decimal("9.00"))
        orders.assign_order(db, other.id, "driver-2")
        orders.add_trip_cost(db, other.id, Decimal("4.00"), "pedágio")
        costs.create_cost(
            db, description="Diesel", amount=Decimal("80.00"), category="Diesel", cost_date=DAY
        )
        cash_register.sync_settlement_totals(db, DAY)

        summary = reports.daily_summary(db, DAY)

        assert summary["order_counts"] == {
            "pending": 0,
            "assigned": 1,
            "in_progress": 0,
            "completed": 1,
        }
        assert summary["total_orders"] == 2
        assert summary["total_value"] == Decimal("39.00")
        assert summary["completed_value"] == Decimal("30.00")
        assert summary["pending_value"] == Decimal("9.00")
        assert summary["completed_cash"] == Decimal("30.00")
        assert summary["trip_costs"] == Decimal("4.00")
        assert summary["costs"] == Decimal("80.00")
        assert summary["cash_register"]["balance"] == Decimal("130.00")

    def test_without_register(self, db: Session) -> None:
        summary = reports.daily_summary(db, DAY)
        assert summary["cash_register"] is None
        assert summary["total_orders"] == 0
        assert summary["best_selling"] is None


# ─── TestProducts ────────────────────────────────────────────────────────────


class TestBestSelling:
    def test_highest_quantity_across_all_orders(
        self,
        db: Session,
        completed_order: Order,
        product_b: Product,
        order_factory,
    ) -> None:
        order_factory(product_b, quantity=3, unit_price=Decimal("9.00"))

        best = reports.best_selling_product(db)

        assert best == {"product_id": product_b.id, "product_name": "Água 20L", "quantity": 3}

    def test_empty(self, db: Session) -> None:
        assert reports.best_selling_product(db) is None


class TestProfitability:
    def test_completed_and_pending_split(
        self,
        db: Session,
        completed_order: Order,
        product_a: Product,
        product_b: Product,
        order_factory,
    ) -> None:
        order_factory(product_b, quantity=3, unit_price=Decimal("9.00"))

        result = reports.product_profitability(db)

        by_name = {item["name"]: item for item in result["items"]}
        gas = by_name["Botijão P13"]
        assert gas["quantity"] == 2
        assert gas["revenue"] == Decimal("30.00")
        assert gas["profit"] == Decimal("10.00")
        assert gas["margin"] == Decimal("33.33")

        water = by_name["Água 20L"]
        assert water["quantity"] == 0
        assert water["pending_quantity"] == 3
        assert water["pending_revenue"] == Decimal("27.00")
        assert water["pending_profit"] == Decimal("15.00")
        assert water["margin"] == Decimal("55.56")

        assert result["revenue"] == Decimal("30.00")
        assert result["pending_revenue"] == Decimal("27.00")

    def test_deleted_product_skipped(
        self, db: Session, pending_order: Order, product_a: Product
    ) -> None:
        inventory.delete_product(db, product_a.id)
        assert reports.product_profitability(db)["items"] == []


# ─── TestCashReport ──────────────────────────────────────────────────────────


class TestCashReport:
    def test_days_and_grand_totals(self, db: Session) -> None:
        cash_register.open_register(db, DAY, Decimal("100.00"))
        cash_register.update_settlement_totals(db, DAY, Decimal("200.00"), Decimal("75.00"))
        cash_register.deposit(db, DAY, Decimal("50.00"), "troco")
        cash_register.withdraw(db, DAY, Decimal("20.00"), "combustível")
        cash_register.close_register(db, DAY)

        second = date(2024, 6, 2)
        cash_register.open_register(db, second, Decimal("0"))
        cash_register.update_settlement_totals(db, second, Decimal("10.00"), Decimal("5.00"))

        report = reports.cash_report(db, DAY, second)

        assert [d["business_date"] for d in report["days"]] == [DAY, second]
        first = report["days"][0]
        assert first["status"] == "closed"
        assert first["total"] == Decimal("305.00")
        assert report["grand_cash"] == Decimal("210.00")
        assert report["grand_pix"] == Decimal("80.00")
        assert report["grand_total"] == Decimal("320.00")

    def test_range_filter(self, db: Session) -> None:
        cash_register.open_register(db, DAY, Decimal("0"))
        report = reports.cash_report(db, date(2024, 6, 2))
        assert report["days"] == []
        assert report["grand_total"] == Decimal("0.00")


# ─── TestDrift ───────────────────────────────────────────────────────────────


class TestDrift:
    def test_clean_after_normal_operations(
        self, db: Session, completed_order: Order, customer: Customer, product_a: Product
    ) -> None:
        customers.record_transaction(db, customer.id, "credit", Decimal("5.00"), "vale")
        assert reports.ledger_drift(db)["clean"] is True

    def test_reports_tampered_caches(
        self, db: Session, assigned_order: Order, customer: Customer, product_a: Product
    ) -> None:
        orders.add_trip_cost(db, assigned_order.id, Decimal("8.00"), "toll")
        assigned_order.net_amount = Decimal("30.00")
        customer.balance = Decimal("12.00")
        product_a.stock = 3
        db.commit()

        drift = reports.ledger_drift(db)

        assert drift["clean"] is False
        assert drift["orders"] == [
            {"id": assigned_order.id, "cached": Decimal("30.00"), "expected": Decimal("22.00")}
        ]
        assert drift["customers"][0]["expected"] == Decimal("0.00")
        assert drift["products"] == [{"id": product_a.id, "cached": 3, "expected": 20}]
