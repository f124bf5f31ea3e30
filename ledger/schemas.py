# ledger/schemas.py
"""
Pydantic models shared by the services and the HTTP layer.

Python code uses snake_case attribute names; JSON uses the camelCase
aliases (debitAccountId, isDebit, successCount, ...).
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from models import AccountType, CategoryType, TransactionStatus


# Fields whose change moves money between accounts
BALANCE_FIELDS = ("amount", "debit_account_id", "credit_account_id")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PatchModel(CamelModel):
    """Base for explicit patch structures: unknown fields are rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent (explicit None included)."""
        return self.model_dump(exclude_unset=True)


# ---- Accounts ----

class AccountCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: AccountType
    description: Optional[str] = None


class AccountUpdate(PatchModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[AccountType] = None
    description: Optional[str] = None
    active: Optional[bool] = None


class AccountOut(CamelModel):
    id: int
    name: str
    type: AccountType
    description: Optional[str] = None
    balance: Decimal
    active: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class BalanceOut(CamelModel):
    account_id: int
    balance: Decimal


class ReconcileOut(CamelModel):
    account_id: int
    stored_balance: Decimal
    computed_balance: Decimal
    difference: Decimal
    in_balance: bool


# ---- Categories ----

class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: CategoryType
    description: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdate(PatchModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[CategoryType] = None
    description: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[int] = None
    active: Optional[bool] = None


class CategoryOut(CamelModel):
    id: int
    name: str
    type: CategoryType
    description: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[int] = None
    active: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


# ---- Transactions ----

class TransactionCreate(CamelModel):
    date: dt.date
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str = ""
    debit_account_id: int
    credit_account_id: int
    category_id: Optional[int] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    import_batch: Optional[str] = None
    original_data: Optional[str] = None


class TransactionUpdate(PatchModel):
    """Every field a single-transaction update may touch."""

    date: Optional[dt.date] = None
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = None
    debit_account_id: Optional[int] = None
    credit_account_id: Optional[int] = None
    category_id: Optional[int] = None
    status: Optional[TransactionStatus] = None
    reference: Optional[str] = None
    notes: Optional[str] = None

    def touches_balances(self) -> bool:
        return any(name in self.model_fields_set for name in BALANCE_FIELDS)


class TransactionBulkUpdate(PatchModel):
    """
    Fields that may be written to many transactions at once.

    Amount and account ids are not accepted here: changing them row by row
    requires re-posting, which bulk update does not do.
    """

    date: Optional[dt.date] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    status: Optional[TransactionStatus] = None
    reference: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def reject_balance_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            names = set(BALANCE_FIELDS) | {to_camel(f) for f in BALANCE_FIELDS}
            offending = sorted(k for k in data if k in names)
            if offending:
                raise ValueError(
                    f"Bulk update cannot change {', '.join(offending)}; "
                    "update those transactions individually"
                )
        return data


class TransactionOut(CamelModel):
    id: int
    date: dt.date
    amount: Decimal
    description: str
    reference: Optional[str] = None
    status: TransactionStatus
    notes: Optional[str] = None
    debit_account_id: int
    credit_account_id: int
    category_id: Optional[int] = None
    import_batch: Optional[str] = None
    original_data: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class BulkIdsRequest(CamelModel):
    transaction_ids: List[int] = Field(..., min_length=1)


class BulkUpdateRequest(BulkIdsRequest):
    updates: Dict[str, Any]


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    has_more: bool


class TransactionPage(CamelModel):
    transactions: List[TransactionOut]
    pagination: Pagination


# ---- Import ----

class ImportMapping(CamelModel):
    date_field: str
    amount_field: str
    description_field: str
    category_field: Optional[str] = None
    reference_field: Optional[str] = None


# Mapping reported for QIF previews (the QIF record has fixed field names)
QIF_MAPPING = ImportMapping(
    date_field="date",
    amount_field="amount",
    description_field="description",
    category_field="category",
    reference_field="reference",
)


class ImportCandidate(CamelModel):
    """
    One normalized record of a preview.

    `date` is None when the raw date could not be parsed and `amount` is None
    when the raw amount was not a number; the raw text is kept alongside so
    invalid rows stay visible.
    """

    original_index: int
    date: Optional[dt.date] = None
    raw_date: Optional[str] = None
    amount: Optional[Decimal] = None
    raw_amount: Optional[str] = None
    is_debit: bool = False
    description: str = ""
    category: Optional[str] = None
    reference: Optional[str] = None
    original_data: Optional[Dict[str, Optional[str]]] = None


class ImportPreview(CamelModel):
    candidates: List[ImportCandidate]
    mappings: ImportMapping
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ImportExecuteRequest(CamelModel):
    preview: ImportPreview
    account_id: int
    default_credit_account_id: Optional[int] = None
    default_debit_account_id: Optional[int] = None


class ImportResult(CamelModel):
    success_count: int
    errors: List[str] = Field(default_factory=list)
    import_batch: str


# ---- Reports ----

class ReportPeriod(CamelModel):
    start: dt.date = Field(..., alias="from")
    end: dt.date = Field(..., alias="to")


class BalanceSheetLine(CamelModel):
    id: int
    name: str
    type: AccountType
    balance: Decimal


class AssetSection(CamelModel):
    bank: List[BalanceSheetLine] = Field(default_factory=list)
    investment: List[BalanceSheetLine] = Field(default_factory=list)
    cash: List[BalanceSheetLine] = Field(default_factory=list)
    total: Decimal


class LiabilitySection(CamelModel):
    credit_card: List[BalanceSheetLine] = Field(default_factory=list)
    loan: List[BalanceSheetLine] = Field(default_factory=list)
    total: Decimal


class EquitySection(CamelModel):
    total: Decimal


class BalanceSheet(CamelModel):
    assets: AssetSection
    liabilities: LiabilitySection
    equity: EquitySection


class CategoryTotals(CamelModel):
    # Keyed by category name, not camelCased
    categories: Dict[str, Decimal]
    total: Decimal


class IncomeStatement(CamelModel):
    period: ReportPeriod
    income: CategoryTotals
    expenses: CategoryTotals
    net_income: Decimal


class CategoryShare(CamelModel):
    amount: Decimal
    count: int
    percentage: Decimal


class CategoryAnalysis(CamelModel):
    period: ReportPeriod
    type: CategoryType
    categories: Dict[str, CategoryShare]
    total: Decimal
    uncategorized: Decimal


class MonthlyTrendPoint(CamelModel):
    month: str
    income: Decimal
    expenses: Decimal
    net: Decimal
