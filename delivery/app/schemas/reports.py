from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


# ─── Daily Settlement / Dashboard ────────────────────────────────────────────


class DailySettlementOut(BaseModel):
    business_date: date
    total_cash: Decimal
    total_pix: Decimal
    completed_orders: int
    completed_total: Decimal
    pending_orders: int
    pending_total: Decimal


class RegisterSnapshot(BaseModel):
    status: str
    opening_balance: Decimal
    total_cash: Decimal
    total_pix: Decimal
    deposits: Decimal
    withdrawals: Decimal
    balance: Decimal


class BestSellingOut(BaseModel):
    product_id: UUID
    product_name: str | None
    quantity: int


class DailySummaryOut(BaseModel):
    business_date: date
    order_counts: dict[str, int]
    total_orders: int
    total_value: Decimal
    completed_value: Decimal
    pending_value: Decimal
    completed_cash: Decimal
    completed_pix: Decimal
    trip_costs: Decimal
    costs: Decimal
    cash_register: RegisterSnapshot | None
    best_selling: BestSellingOut | None


# ─── Profitability ───────────────────────────────────────────────────────────


class ProductProfitabilityRow(BaseModel):
    product_id: UUID
    name: str
    cost_price: Decimal
    quantity: int
    revenue: Decimal
    profit: Decimal
    pending_quantity: int
    pending_revenue: Decimal
    pending_profit: Decimal
    margin: Decimal


class ProfitabilityOut(BaseModel):
    items: list[ProductProfitabilityRow]
    revenue: Decimal
    profit: Decimal
    pending_revenue: Decimal
    pending_profit: Decimal


# ─── Cash Report ─────────────────────────────────────────────────────────────


class CashReportDay(BaseModel):
    business_date: date
    status: str
    cash: Decimal
    pix: Decimal
    deposits: Decimal
    withdrawals: Decimal
    total: Decimal
    pending_total: Decimal


class CashReportOut(BaseModel):
    date_from: date | None
    date_to: date | None
    days: list[CashReportDay]
    grand_cash: Decimal
    grand_pix: Decimal
    grand_deposits: Decimal
    grand_withdrawals: Decimal
    grand_total: Decimal
    grand_pending_total: Decimal


# ─── Drift ───────────────────────────────────────────────────────────────────


class MoneyDrift(BaseModel):
    id: UUID
    cached: Decimal
    expected: Decimal


class StockDrift(BaseModel):
    id: UUID
    cached: int
    expected: int


class LedgerDriftOut(BaseModel):
    orders: list[MoneyDrift]
    customers: list[MoneyDrift]
    products: list[StockDrift]
    clean: bool
