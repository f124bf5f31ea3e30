# ledger/services/posting.py
"""
Posting engine: create, update and delete transactions while keeping
account balances in step.

A posting moves `amount` from the credit account to the debit account:
debit balance += amount, credit balance -= amount. Each public operation
runs as one unit of work, so the transaction row and both balance changes
are committed together or not at all.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from models import Transaction, TransactionStatus
from ledger.errors import NotFoundError, ValidationError
from ledger.repositories import LedgerStore
from ledger.schemas import (
    TransactionBulkUpdate,
    TransactionCreate,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Explicit status changes allowed; re-setting the current status is a no-op
STATUS_TRANSITIONS = {
    TransactionStatus.PENDING: {TransactionStatus.CLEARED},
    TransactionStatus.CLEARED: {TransactionStatus.RECONCILED},
    TransactionStatus.RECONCILED: set(),
}

# Columns that cannot be set to NULL through an update
_NOT_NULL_FIELDS = ("date", "amount", "description", "debit_account_id", "credit_account_id", "status")


def format_pydantic_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def coerce_model(model_cls: Type[M], data: Union[M, Mapping[str, Any]]) -> M:
    """Accept a model instance or a plain mapping; raise ValidationError on bad input."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(dict(data))
    except PydanticValidationError as e:
        details = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError(format_pydantic_error(e), details=details) from e


def check_status_transition(current: TransactionStatus, new: TransactionStatus, transaction_id=None) -> None:
    current = TransactionStatus(current)
    new = TransactionStatus(new)
    if new == current or new in STATUS_TRANSITIONS[current]:
        return
    where = f" for transaction {transaction_id}" if transaction_id is not None else ""
    raise ValidationError(f"Cannot change status from {current.value} to {new.value}{where}")


class PostingEngine:
    def __init__(self, store: LedgerStore):
        self.store = store

    # ---- balance helpers ----

    def _post(self, debit_account_id: int, credit_account_id: int, amount: Decimal) -> None:
        """Apply one posting; a negative amount reverses it."""
        self.store.accounts.apply_delta(debit_account_id, amount)
        self.store.accounts.apply_delta(credit_account_id, -amount)

    def _require_accounts(self, debit_account_id: int, credit_account_id: int) -> None:
        if debit_account_id == credit_account_id:
            raise ValidationError("Debit and credit accounts must be different")
        locked = self.store.accounts.lock([debit_account_id, credit_account_id])
        if len(locked) != 2:
            raise NotFoundError("One or both accounts not found")

    def _require_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and self.store.categories.get(category_id) is None:
            raise NotFoundError(f"Category {category_id} not found")

    def _get_or_404(self, transaction_id: int) -> Transaction:
        tx = self.store.transactions.get(transaction_id)
        if tx is None:
            raise NotFoundError("Transaction not found")
        return tx

    # ---- reads ----

    def get(self, transaction_id: int) -> Transaction:
        return self._get_or_404(transaction_id)

    def list(
        self,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        date_from=None,
        date_to=None,
        status: Optional[TransactionStatus] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """
        Date-descending page of transactions plus pagination info.
        """
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        filters = dict(
            account_id=account_id,
            category_id=category_id,
            date_from=date_from,
            date_to=date_to,
            status=status,
        )
        total = self.store.transactions.count(**filters)
        offset = (page - 1) * limit
        items = self.store.transactions.search(offset=offset, limit=limit, **filters)

        return {
            "transactions": items,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "has_more": offset + limit < total,
            },
        }

    def get_account_balance(self, account_id: int) -> Decimal:
        """Stored running balance (not recomputed from history)."""
        account = self.store.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return Decimal(account.balance)

    def reconcile_account(self, account_id: int) -> Dict[str, Any]:
        """
        Compare the stored running balance with one recomputed from the
        account's transaction history.
        """
        stored = self.get_account_balance(account_id)
        computed = self.store.transactions.sum_postings(account_id)
        difference = (stored - computed).quantize(Decimal("0.01"))
        if difference:
            logger.warning(
                "Account %s is out of balance: stored %s, computed %s",
                account_id, stored, computed,
            )
        return {
            "account_id": account_id,
            "stored_balance": stored,
            "computed_balance": computed,
            "difference": difference,
            "in_balance": not difference,
        }

    # ---- writes ----

    def create(self, data: Union[TransactionCreate, Mapping[str, Any]]) -> Transaction:
        data = coerce_model(TransactionCreate, data)

        with self.store.unit_of_work():
            self._require_accounts(data.debit_account_id, data.credit_account_id)
            self._require_category(data.category_id)

            tx = Transaction(
                date=data.date,
                amount=data.amount,
                description=data.description,
                debit_account_id=data.debit_account_id,
                credit_account_id=data.credit_account_id,
                category_id=data.category_id,
                reference=data.reference,
                notes=data.notes,
                import_batch=data.import_batch,
                original_data=data.original_data,
                status=TransactionStatus.PENDING,
            )
            self.store.transactions.add(tx)
            self._post(data.debit_account_id, data.credit_account_id, data.amount)

        logger.info(
            "Posted transaction %s: %s dr=%s cr=%s",
            tx.id, data.amount, data.debit_account_id, data.credit_account_id,
        )
        return tx

    def update(self, transaction_id: int, patch: Union[TransactionUpdate, Mapping[str, Any]]) -> Transaction:
        patch = coerce_model(TransactionUpdate, patch)
        changes = patch.changes()

        nulled = [name for name in _NOT_NULL_FIELDS if name in changes and changes[name] is None]
        if nulled:
            raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")

        with self.store.unit_of_work():
            tx = self._get_or_404(transaction_id)

            if "status" in changes:
                check_status_transition(tx.status, changes["status"], tx.id)
            if "category_id" in changes:
                self._require_category(changes["category_id"])

            if patch.touches_balances():
                old_debit, old_credit, old_amount = tx.debit_account_id, tx.credit_account_id, Decimal(tx.amount)
                new_debit = changes.get("debit_account_id", old_debit)
                new_credit = changes.get("credit_account_id", old_credit)
                new_amount = changes.get("amount", old_amount)

                if new_debit == new_credit:
                    raise ValidationError("Debit and credit accounts must be different")
                locked = self.store.accounts.lock([old_debit, old_credit, new_debit, new_credit])
                if len(locked) != len({old_debit, old_credit, new_debit, new_credit}):
                    raise NotFoundError("One or both accounts not found")

                # Reverse the stored posting, then apply the new one
                self._post(old_debit, old_credit, -old_amount)
                self._post(new_debit, new_credit, new_amount)

            for field, value in changes.items():
                setattr(tx, field, value)
            self.store.session.flush()

        logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(sorted(changes)) or "no changes")
        return tx

    def delete(self, transaction_id: int) -> None:
        with self.store.unit_of_work():
            tx = self._get_or_404(transaction_id)
            self.store.accounts.lock([tx.debit_account_id, tx.credit_account_id])
            self._post(tx.debit_account_id, tx.credit_account_id, -Decimal(tx.amount))
            self.store.transactions.remove(tx)

        logger.info("Deleted transaction %s", transaction_id)

    def bulk_update(self, ids: Sequence[int], patch: Union[TransactionBulkUpdate, Mapping[str, Any]]) -> int:
        """
        Write the same non-balance fields to every listed transaction.

        Amount and account changes are rejected (see TransactionBulkUpdate);
        ids that do not exist are ignored. Returns the number of rows updated.
        """
        patch = coerce_model(TransactionBulkUpdate, patch)
        changes = patch.changes()

        nulled = [name for name in _NOT_NULL_FIELDS if name in changes and changes[name] is None]
        if nulled:
            raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")
        if not ids or not changes:
            return 0

        with self.store.unit_of_work():
            if "category_id" in changes:
                self._require_category(changes["category_id"])
            if "status" in changes:
                for tx in self.store.transactions.get_many(ids):
                    check_status_transition(tx.status, changes["status"], tx.id)

            updated = self.store.transactions.update_many(ids, changes)

        logger.info("Bulk-updated %d transactions (%s)", updated, ", ".join(sorted(changes)))
        return updated

    def bulk_delete(self, ids: Sequence[int]) -> int:
        """
        Reverse and remove every listed transaction. Unknown ids are ignored.
        Returns the number of rows removed.
        """
        if not ids:
            return 0

        with self.store.unit_of_work():
            transactions: List[Transaction] = self.store.transactions.get_many(ids)
            account_ids = set()
            for tx in transactions:
                account_ids.update((tx.debit_account_id, tx.credit_account_id))
            self.store.accounts.lock(account_ids)

            for tx in transactions:
                self._post(tx.debit_account_id, tx.credit_account_id, -Decimal(tx.amount))
            removed = self.store.transactions.remove_all(transactions)

        logger.info("Bulk-deleted %d transactions", removed)
        return removed
