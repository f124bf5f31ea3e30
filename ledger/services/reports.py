# ledger/services/reports.py
"""
Read-only financial reports over the ledger.

- balance sheet: active asset and liability accounts grouped by type
- income statement: income and expenses per category for a period
- category analysis: share of each category in income or expenses
- monthly trend: income, expenses and net per calendar month

Income is money credited out of an income account; expenses are money
debited into an expense account. Transfers between asset accounts show up
in neither.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from models import AccountType, CategoryType
from ledger.errors import ValidationError
from ledger.repositories import LedgerStore

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

ASSET_GROUPS = {
    AccountType.ASSET_BANK: "bank",
    AccountType.ASSET_INVESTMENT: "investment",
    AccountType.ASSET_CASH: "cash",
}
LIABILITY_GROUPS = {
    AccountType.LIABILITY_CREDIT_CARD: "credit_card",
    AccountType.LIABILITY_LOAN: "loan",
}


def _money(value) -> Decimal:
    # SQLite hands back floats for Numeric sums
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


def _add_months(day: date, months: int) -> date:
    """First day of the month `months` away from `day`'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _period(date_from: Optional[date], date_to: Optional[date], today: date) -> Dict[str, date]:
    start = date_from or date(today.year, 1, 1)
    end = date_to or today
    if start > end:
        raise ValidationError("dateFrom must not be after dateTo")
    return {"start": start, "end": end}


class ReportService:
    def __init__(self, store: LedgerStore):
        self.store = store

    # ---- balance sheet ----

    def balance_sheet(self) -> Dict[str, Any]:
        """
        Asset lines carry their debit-normal balance. Liability lines carry
        the amount owed (the negated balance), so equity is net worth.
        """
        assets: Dict[str, Any] = {group: [] for group in ASSET_GROUPS.values()}
        liabilities: Dict[str, Any] = {group: [] for group in LIABILITY_GROUPS.values()}
        assets_total = Decimal("0.00")
        liabilities_total = Decimal("0.00")

        for account in self.store.accounts.list():
            balance = _money(account.balance)
            line = {"id": account.id, "name": account.name, "type": account.type}
            if account.type in ASSET_GROUPS:
                assets[ASSET_GROUPS[account.type]].append(dict(line, balance=balance))
                assets_total += balance
            elif account.type in LIABILITY_GROUPS:
                owed = -balance
                liabilities[LIABILITY_GROUPS[account.type]].append(dict(line, balance=owed))
                liabilities_total += owed

        assets["total"] = assets_total
        liabilities["total"] = liabilities_total
        return {
            "assets": assets,
            "liabilities": liabilities,
            "equity": {"total": assets_total - liabilities_total},
        }

    # ---- income statement ----

    def income_statement(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Defaults to the current year up to today.
        """
        period = _period(date_from, date_to, today or date.today())
        income = self._category_totals("credit", AccountType.INCOME, period)
        expenses = self._category_totals("debit", AccountType.EXPENSE, period)

        return {
            "period": period,
            "income": income,
            "expenses": expenses,
            "net_income": income["total"] - expenses["total"],
        }

    def _category_totals(self, side: str, account_type: AccountType, period: Dict[str, date]) -> Dict[str, Any]:
        rows = self.store.transactions.totals_by_category(side, account_type, period["start"], period["end"])
        categories: Dict[str, Decimal] = {}
        for name, total, _count in rows:
            key = name or UNCATEGORIZED
            categories[key] = categories.get(key, Decimal("0.00")) + _money(total)
        return {"categories": categories, "total": sum(categories.values(), Decimal("0.00"))}

    # ---- category analysis ----

    def category_analysis(
        self,
        report_type: CategoryType = CategoryType.EXPENSE,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Categories sorted by amount, largest first, with their percentage of
        the total. Transactions without a category only count towards
        `uncategorized` and the total.
        """
        report_type = CategoryType(report_type)
        if report_type == CategoryType.EXPENSE:
            side, account_type = "debit", AccountType.EXPENSE
        elif report_type == CategoryType.INCOME:
            side, account_type = "credit", AccountType.INCOME
        else:
            raise ValidationError("Category analysis supports only income or expense")

        period = _period(date_from, date_to, today or date.today())
        rows = self.store.transactions.totals_by_category(side, account_type, period["start"], period["end"])

        categories: Dict[str, Dict[str, Any]] = {}
        uncategorized = Decimal("0.00")
        for name, total, count in rows:
            amount = _money(total)
            if name is None:
                uncategorized += amount
                continue
            entry = categories.setdefault(name, {"amount": Decimal("0.00"), "count": 0})
            entry["amount"] += amount
            entry["count"] += count

        total = sum((c["amount"] for c in categories.values()), uncategorized)
        for entry in categories.values():
            share = entry["amount"] / total * 100 if total > 0 else Decimal("0")
            entry["percentage"] = share.quantize(Decimal("0.01"))

        ordered = dict(sorted(categories.items(), key=lambda item: item[1]["amount"], reverse=True))
        return {
            "period": period,
            "type": report_type,
            "categories": ordered,
            "total": total,
            "uncategorized": uncategorized,
        }

    # ---- monthly trend ----

    def monthly_trend(self, months: int = 12, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        One entry per calendar month, oldest first, ending with the current
        month. Months without activity are reported as zeros.
        """
        if months < 1:
            raise ValidationError("months must be at least 1")

        today = today or date.today()
        start = _add_months(today, -(months - 1))

        buckets: Dict[str, Dict[str, Any]] = {}
        for offset in range(months):
            key = _add_months(start, offset).strftime("%Y-%m")
            buckets[key] = {"month": key, "income": Decimal("0.00"), "expenses": Decimal("0.00")}

        for day, income, expenses in self.store.transactions.daily_flows(start, today):
            bucket = buckets[day.strftime("%Y-%m")]
            bucket["income"] += _money(income)
            bucket["expenses"] += _money(expenses)

        trend = []
        for bucket in buckets.values():
            bucket["net"] = bucket["income"] - bucket["expenses"]
            trend.append(bucket)
        logger.debug("Monthly trend from %s: %d months", start, len(trend))
        return trend
