"""Read-only reconciliation views folded from the order, cash and stock ledgers."""
from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from delivery.app.core.database import ZERO, business_today, money
from delivery.app.models.cash_register import CashRegisterDay
from delivery.app.models.customer import Customer, CustomerTransaction, TransactionType
from delivery.app.models.inventory import MovementType, Product, StockMovement
from delivery.app.models.order import (
    Order,
    OrderLine,
    OrderPayment,
    OrderStatus,
    PaymentType,
    TripCost,
)
from delivery.app.services.costs import total_costs_for_day

HUNDRED = Decimal("100")


# ── Helpers ──────────────────────────────────────────────────────────────────


def _pending_total(db: Session, day: date) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.created_on == day, Order.status != OrderStatus.COMPLETED)
        .scalar()
    )
    return money(total or 0)


# ─── Daily Settlement ─────────────────────────────────────────────────────────


def compute_daily_settlement(db: Session, day: date) -> dict[str, object]:
    """Cash/PIX received on the day's completed orders.

    Orders in any other status only feed ``pending_total``, which is reported
    alongside and never pushed into the register.
    """
    rows = (
        db.query(OrderPayment.payment_type, func.sum(OrderPayment.amount))
        .join(Order, OrderPayment.order_id == Order.id)
        .filter(Order.created_on == day, Order.status == OrderStatus.COMPLETED)
        .group_by(OrderPayment.payment_type)
        .all()
    )
    by_type = {ptype: money(total or 0) for ptype, total in rows}

    completed = (
        db.query(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.created_on == day, Order.status == OrderStatus.COMPLETED)
        .one()
    )
    pending_count = (
        db.query(func.count(Order.id))
        .filter(Order.created_on == day, Order.status != OrderStatus.COMPLETED)
        .scalar()
    )

    return {
        "business_date": day,
        "total_cash": by_type.get(PaymentType.CASH, ZERO),
        "total_pix": by_type.get(PaymentType.PIX, ZERO),
        "completed_orders": int(completed[0] or 0),
        "completed_total": money(completed[1] or 0),
        "pending_orders": int(pending_count or 0),
        "pending_total": _pending_total(db, day),
    }


# ─── Dashboard ────────────────────────────────────────────────────────────────


def daily_summary(db: Session, day: date | None = None) -> dict[str, object]:
    day = day or business_today()

    orders = db.query(Order).filter(Order.created_on == day).all()
    counts = {s.value: 0 for s in OrderStatus}
    total_value = completed_value = trip_costs = ZERO
    for order in orders:
        counts[order.status.value] += 1
        total_value += order.total_amount
        trip_costs += order.trip_cost_total()
        if order.status == OrderStatus.COMPLETED:
            completed_value += order.total_amount

    settlement = compute_daily_settlement(db, day)

    register = (
        db.query(CashRegisterDay).filter(CashRegisterDay.business_date == day).first()
    )
    register_info = None
    if register is not None:
        register_info = {
            "status": register.status.value,
            "opening_balance": register.opening_balance,
            "total_cash": register.total_cash,
            "total_pix": register.total_pix,
            "deposits": register.total_deposits(),
            "withdrawals": register.total_withdrawals(),
            "balance": money(register.current_balance),
        }

    return {
        "business_date": day,
        "order_counts": counts,
        "total_orders": len(orders),
        "total_value": money(total_value),
        "completed_value": money(completed_value),
        "pending_value": money(total_value - completed_value),
        "completed_cash": settlement["total_cash"],
        "completed_pix": settlement["total_pix"],
        "trip_costs": money(trip_costs),
        "costs": total_costs_for_day(db, day),
        "cash_register": register_info,
        "best_selling": best_selling_product(db),
    }


# ─── Products ─────────────────────────────────────────────────────────────────


def best_selling_product(db: Session) -> dict[str, object] | None:
    """Highest quantity across all order lines, whatever the order status."""
    qty = func.sum(OrderLine.quantity).label("quantity")
    row = (
        db.query(OrderLine.product_id, func.min(OrderLine.product_name), qty)
        .group_by(OrderLine.product_id)
        .order_by(qty.desc(), func.min(OrderLine.product_name))
        .first()
    )
    if row is None:
        return None
    product_id, line_name, quantity = row
    product = db.query(Product).filter(Product.id == product_id).first()
    return {
        "product_id": product_id,
        "product_name": product.name if product else line_name,
        "quantity": int(quantity),
    }


def product_profitability(db: Session) -> dict[str, object]:
    """Revenue and profit per product, split into completed and pending orders.

    Profit uses the product's current cost price. Lines whose product was
    deleted are skipped.
    """
    products: dict[UUID, Product] = {p.id: p for p in db.query(Product).all()}
    rows = (
        db.query(OrderLine, Order.status)
        .join(Order, OrderLine.order_id == Order.id)
        .all()
    )

    stats: dict[UUID, dict[str, object]] = {}
    for line, status in rows:
        product = products.get(line.product_id)
        if product is None:
            continue
        entry = stats.setdefault(product.id, {
            "product_id": product.id,
            "name": product.name,
            "cost_price": product.cost_price,
            "quantity": 0,
            "revenue": ZERO,
            "profit": ZERO,
            "pending_quantity": 0,
            "pending_revenue": ZERO,
            "pending_profit": ZERO,
        })
        revenue = line.unit_price * line.quantity
        profit = revenue - product.cost_price * line.quantity
        if status == OrderStatus.COMPLETED:
            entry["quantity"] += line.quantity
            entry["revenue"] += revenue
            entry["profit"] += profit
        else:
            entry["pending_quantity"] += line.quantity
            entry["pending_revenue"] += revenue
            entry["pending_profit"] += profit

    items = []
    totals = {"revenue": ZERO, "profit": ZERO, "pending_revenue": ZERO, "pending_profit": ZERO}
    for entry in sorted(stats.values(), key=lambda e: e["name"]):
        gross = entry["revenue"] + entry["pending_revenue"]
        margin = ZERO
        if gross:
            margin = ((entry["profit"] + entry["pending_profit"]) / gross * HUNDRED).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
        for key in ("revenue", "profit", "pending_revenue", "pending_profit"):
            entry[key] = money(entry[key])
            totals[key] += entry[key]
        entry["margin"] = margin
        items.append(entry)

    return {"items": items, **{k: money(v) for k, v in totals.items()}}


# ─── Cash Report ──────────────────────────────────────────────────────────────


def cash_report(
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict[str, object]:
    """Per register day: settled cash/PIX, manual movements and what is still pending."""
    query = db.query(CashRegisterDay)
    if date_from is not None:
        query = query.filter(CashRegisterDay.business_date >= date_from)
    if date_to is not None:
        query = query.filter(CashRegisterDay.business_date <= date_to)
    registers = query.order_by(CashRegisterDay.business_date).all()

    days = []
    grand = {k: ZERO for k in ("cash", "pix", "deposits", "withdrawals", "total", "pending_total")}
    for register in registers:
        deposits = register.total_deposits()
        withdrawals = register.total_withdrawals()
        row = {
            "business_date": register.business_date,
            "status": register.status.value,
            "cash": register.total_cash,
            "pix": register.total_pix,
            "deposits": money(deposits),
            "withdrawals": money(withdrawals),
            "total": money(register.total_cash + register.total_pix + deposits - withdrawals),
            "pending_total": _pending_total(db, register.business_date),
        }
        for key in grand:
            grand[key] += row[key]
        days.append(row)

    return {
        "date_from": date_from,
        "date_to": date_to,
        "days": days,
        **{f"grand_{k}": money(v) for k, v in grand.items()},
    }


# ─── Drift ────────────────────────────────────────────────────────────────────


def ledger_drift(db: Session) -> dict[str, object]:
    """Cached totals that disagree with the log they are folded from."""
    # Orders: net_amount vs total - Σtrip costs
    cost_sums = dict(
        db.query(TripCost.order_id, func.sum(TripCost.amount))
        .group_by(TripCost.order_id)
        .all()
    )
    orders = []
    for order_id, total, net in db.query(Order.id, Order.total_amount, Order.net_amount):
        expected = money(total - money(cost_sums.get(order_id) or 0))
        if net != expected:
            orders.append({"id": order_id, "cached": net, "expected": expected})

    # Customers: balance vs Σcredits - Σdebits
    signed_amount = case(
        (
            CustomerTransaction.transaction_type == TransactionType.CREDIT,
            CustomerTransaction.amount,
        ),
        else_=-CustomerTransaction.amount,
    )
    folds = dict(
        db.query(CustomerTransaction.customer_id, func.sum(signed_amount))
        .group_by(CustomerTransaction.customer_id)
        .all()
    )
    customers = []
    for customer_id, balance in db.query(Customer.id, Customer.balance):
        expected = money(folds.get(customer_id) or 0)
        if balance != expected:
            customers.append({"id": customer_id, "cached": balance, "expected": expected})

    # Products: stock vs Σincreases - Σdecreases
    signed_qty = case(
        (StockMovement.movement_type == MovementType.INCREASE, StockMovement.quantity),
        else_=-StockMovement.quantity,
    )
    stock_folds = dict(
        db.query(StockMovement.product_id, func.sum(signed_qty))
        .group_by(StockMovement.product_id)
        .all()
    )
    products = []
    for product_id, stock in db.query(Product.id, Product.stock):
        expected = int(stock_folds.get(product_id) or 0)
        if stock != expected:
            products.append({"id": product_id, "cached": stock, "expected": expected})

    return {
        "orders": orders,
        "customers": customers,
        "products": products,
        "clean": not (orders or customers or products),
    }
