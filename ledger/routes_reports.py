# routes_reports.py
"""
Routes for read-only financial reports.

Dates are inclusive; income statement and category analysis default to the
current year up to today.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from models import CategoryType
from ledger.deps import get_report_service
from ledger.schemas import BalanceSheet, CategoryAnalysis, IncomeStatement, MonthlyTrendPoint
from ledger.services.reports import ReportService

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/balance-sheet", response_model=BalanceSheet)
def balance_sheet(service: ReportService = Depends(get_report_service)):
    """
    Active asset and liability accounts; equity is assets minus liabilities.
    """
    return BalanceSheet.model_validate(service.balance_sheet())


@router.get("/income-statement", response_model=IncomeStatement)
def income_statement(
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    service: ReportService = Depends(get_report_service),
):
    return IncomeStatement.model_validate(service.income_statement(date_from, date_to))


@router.get("/category-analysis", response_model=CategoryAnalysis)
def category_analysis(
    report_type: CategoryType = Query(CategoryType.EXPENSE, alias="type"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    service: ReportService = Depends(get_report_service),
):
    """
    type=expense (default) or type=income; transfer is rejected with 400.
    """
    return CategoryAnalysis.model_validate(service.category_analysis(report_type, date_from, date_to))


@router.get("/monthly-trend", response_model=List[MonthlyTrendPoint])
def monthly_trend(
    months: int = Query(12, ge=1, le=120),
    service: ReportService = Depends(get_report_service),
):
    return [MonthlyTrendPoint.model_validate(point) for point in service.monthly_trend(months)]
