from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from delivery.app.core.database import get_db
from delivery.app.schemas.reports import (
    BestSellingOut,
    CashReportOut,
    DailySettlementOut,
    DailySummaryOut,
    LedgerDriftOut,
    ProfitabilityOut,
)
from delivery.app.services import reports as report_service

router = APIRouter()


@router.get("/daily-summary", response_model=DailySummaryOut)
def daily_summary(
    day: date | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    return report_service.daily_summary(db, day)


@router.get("/settlement/{day}", response_model=DailySettlementOut)
def daily_settlement(day: date, db: Session = Depends(get_db)) -> dict:
    return report_service.compute_daily_settlement(db, day)


@router.get("/profitability", response_model=ProfitabilityOut)
def profitability(db: Session = Depends(get_db)) -> dict:
    return report_service.product_profitability(db)


@router.get("/best-selling", response_model=BestSellingOut | None)
def best_selling(db: Session = Depends(get_db)) -> dict | None:
    return report_service.best_selling_product(db)


@router.get("/cash", response_model=CashReportOut)
def cash_report(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    return report_service.cash_report(db, date_from, date_to)


@router.get("/drift", response_model=LedgerDriftOut)
def ledger_drift(db: Session = Depends(get_db)) -> dict:
    return report_service.ledger_drift(db)
