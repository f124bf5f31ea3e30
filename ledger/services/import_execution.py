# ledger/services/import_execution.py
"""
Import execution: post every candidate of an approved preview.

Rows are processed one after another. A row that fails is recorded as
"Row n: message" and the run moves on; nothing already posted is undone.
Accounts and categories provisioned along the way are committed on their
own and stay in place even when the row that needed them fails.
"""

import json
import logging
import time
from typing import List, Optional, Union, Mapping, Any

from models import AccountType, CategoryType
from ledger.errors import LedgerError, NotFoundError, RowError, ValidationError
from ledger.repositories import LedgerStore
from ledger.schemas import ImportCandidate, ImportPreview, ImportResult, TransactionCreate
from ledger.services.posting import PostingEngine, coerce_model

logger = logging.getLogger(__name__)


def new_import_batch_id() -> str:
    """Tag shared by every transaction of one run, e.g. 'import_1733011200000'."""
    return f"import_{int(time.time() * 1000)}"


class ImportExecutionEngine:
    def __init__(self, store: LedgerStore, posting: Optional[PostingEngine] = None):
        self.store = store
        self.posting = posting or PostingEngine(store)

    # ---- provisioning ----

    def get_or_create_expense_account(self, category_name: Optional[str] = None) -> int:
        name = f"Expenses - {category_name}" if category_name else "Expenses"
        description = f"Auto-created expense account for {category_name or 'general expenses'}"
        with self.store.unit_of_work():
            account = self.store.accounts.get_or_create(name, AccountType.EXPENSE, description)
            account_id = account.id
        return account_id

    def get_or_create_income_account(self, category_name: Optional[str] = None) -> int:
        name = f"Income - {category_name}" if category_name else "Income"
        description = f"Auto-created income account for {category_name or 'general income'}"
        with self.store.unit_of_work():
            account = self.store.accounts.get_or_create(name, AccountType.INCOME, description)
            account_id = account.id
        return account_id

    def get_or_create_category(self, name: str, category_type: CategoryType) -> int:
        with self.store.unit_of_work():
            category = self.store.categories.get_or_create(name, category_type, "Auto-created from import")
            category_id = category.id
        return category_id

    # ---- execution ----

    def execute(
        self,
        preview: Union[ImportPreview, Mapping[str, Any]],
        account_id: int,
        default_credit_account_id: Optional[int] = None,
        default_debit_account_id: Optional[int] = None,
    ) -> ImportResult:
        preview = coerce_model(ImportPreview, preview)

        if self.store.accounts.get(account_id) is None:
            raise NotFoundError("Target account not found")

        import_batch = new_import_batch_id()
        success_count = 0
        errors: List[str] = []

        logger.info(
            "Starting import %s into account %s (%d candidates)",
            import_batch, account_id, len(preview.candidates),
        )

        for candidate in preview.candidates:
            try:
                self._import_candidate(
                    candidate,
                    account_id,
                    import_batch,
                    default_credit_account_id,
                    default_debit_account_id,
                )
                success_count += 1
            except LedgerError as e:
                row_error = RowError(candidate.original_index + 1, e.message)
                logger.warning("Import %s: %s", import_batch, row_error)
                errors.append(str(row_error))
            except Exception as e:
                # One row never aborts the batch, whatever went wrong with it
                row_error = RowError(candidate.original_index + 1, str(e) or type(e).__name__)
                logger.exception("Import %s: unexpected failure, %s", import_batch, row_error)
                errors.append(str(row_error))

        logger.info(
            "Finished import %s: %d posted, %d failed",
            import_batch, success_count, len(errors),
        )
        return ImportResult(success_count=success_count, errors=errors, import_batch=import_batch)

    def _import_candidate(
        self,
        candidate: ImportCandidate,
        account_id: int,
        import_batch: str,
        default_credit_account_id: Optional[int],
        default_debit_account_id: Optional[int],
    ) -> None:
        if candidate.is_debit:
            # Money out: debit an expense account, credit the target
            debit_account_id = default_debit_account_id or self.get_or_create_expense_account(candidate.category)
            credit_account_id = account_id
        else:
            # Money in: debit the target, credit an income account
            debit_account_id = account_id
            credit_account_id = default_credit_account_id or self.get_or_create_income_account(candidate.category)

        category_id = None
        if candidate.category:
            category_type = CategoryType.EXPENSE if candidate.is_debit else CategoryType.INCOME
            category_id = self.get_or_create_category(candidate.category, category_type)

        # Same wording as the preview diagnostics
        if candidate.date is None:
            raise ValidationError(f"Invalid date format: {candidate.raw_date}")
        if candidate.amount is None or candidate.amount <= 0:
            raise ValidationError(f"Invalid amount: {candidate.raw_amount}")

        data = coerce_model(
            TransactionCreate,
            {
                "date": candidate.date,
                "amount": candidate.amount,
                "description": candidate.description,
                "debit_account_id": debit_account_id,
                "credit_account_id": credit_account_id,
                "category_id": category_id,
                "reference": candidate.reference,
                "notes": f"Imported from {import_batch}",
                "import_batch": import_batch,
                "original_data": json.dumps(candidate.original_data) if candidate.original_data else None,
            },
        )
        self.posting.create(data)
