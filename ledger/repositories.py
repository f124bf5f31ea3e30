# ledger/repositories.py
#
# Repositories over one SQLAlchemy Session.
# Every engine receives a LedgerStore explicitly; nothing here is global.

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import select, update, or_, func, case
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from models import Account, AccountType, Category, CategoryType, Transaction
from ledger.errors import LedgerError, PersistenceError

logger = logging.getLogger(__name__)


def _dialect_insert(session: Session, table):
    """
    INSERT construct that supports ON CONFLICT for the bound dialect.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise PersistenceError(f"Upsert is not supported for dialect {dialect!r}")


class AccountRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, account_id: int) -> Optional[Account]:
        return self.session.get(Account, account_id)

    def list(self, include_inactive: bool = False) -> List[Account]:
        stmt = select(Account).order_by(Account.name.asc(), Account.id.asc())
        if not include_inactive:
            stmt = stmt.where(Account.active.is_(True))
        return list(self.session.scalars(stmt))

    def find_by_name_type(self, name: str, account_type: AccountType) -> Optional[Account]:
        stmt = select(Account).where(Account.name == name, Account.type == account_type)
        return self.session.scalars(stmt).first()

    def add(self, account: Account) -> Account:
        self.session.add(account)
        self.session.flush()
        return account

    def lock(self, account_ids: Iterable[int]) -> List[Account]:
        """
        Lock the given account rows (SELECT ... FOR UPDATE).

        Ids are locked in ascending order so two postings touching the same
        pair of accounts always queue in the same order.
        """
        ids = sorted(set(account_ids))
        if not ids:
            return []
        stmt = (
            select(Account)
            .where(Account.id.in_(ids))
            .order_by(Account.id.asc())
            .with_for_update()
        )
        return list(self.session.scalars(stmt))

    def apply_delta(self, account_id: int, delta: Decimal) -> None:
        # Atomic in-database increment, never read-modify-write
        self.session.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(balance=Account.balance + delta)
            .execution_options(synchronize_session=False)
        )

    def get_or_create(self, name: str, account_type: AccountType, description: Optional[str] = None) -> Account:
        """
        Find-or-create keyed on (name, type) as one upsert statement,
        so two concurrent imports cannot create the same account twice.
        """
        stmt = (
            _dialect_insert(self.session, Account.__table__)
            .values(name=name, type=account_type.value, description=description, balance=0, active=True)
            .on_conflict_do_nothing(index_elements=["name", "type"])
        )
        result = self.session.execute(stmt)
        if result.rowcount:
            logger.info("Provisioned %s account %r", account_type.value, name)
        return self.find_by_name_type(name, account_type)


class CategoryRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, category_id: int) -> Optional[Category]:
        return self.session.get(Category, category_id)

    def list(self, category_type: Optional[CategoryType] = None, include_inactive: bool = False) -> List[Category]:
        stmt = select(Category).order_by(Category.name.asc(), Category.id.asc())
        if not include_inactive:
            stmt = stmt.where(Category.active.is_(True))
        if category_type is not None:
            stmt = stmt.where(Category.type == category_type)
        return list(self.session.scalars(stmt))

    def find_by_name_type(self, name: str, category_type: CategoryType) -> Optional[Category]:
        stmt = select(Category).where(Category.name == name, Category.type == category_type)
        return self.session.scalars(stmt).first()

    def add(self, category: Category) -> Category:
        self.session.add(category)
        self.session.flush()
        return category

    def get_or_create(self, name: str, category_type: CategoryType, description: Optional[str] = None) -> Category:
        stmt = (
            _dialect_insert(self.session, Category.__table__)
            .values(name=name, type=category_type.value, description=description, active=True)
            .on_conflict_do_nothing(index_elements=["name", "type"])
        )
        result = self.session.execute(stmt)
        if result.rowcount:
            logger.info("Provisioned %s category %r", category_type.value, name)
        return self.find_by_name_type(name, category_type)


class TransactionRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, transaction_id: int) -> Optional[Transaction]:
        return self.session.get(Transaction, transaction_id)

    def get_many(self, ids: Sequence[int]) -> List[Transaction]:
        if not ids:
            return []
        stmt = select(Transaction).where(Transaction.id.in_(list(ids))).order_by(Transaction.id.asc())
        return list(self.session.scalars(stmt))

    def add(self, transaction: Transaction) -> Transaction:
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def remove(self, transaction: Transaction) -> None:
        self.session.delete(transaction)
        self.session.flush()

    def remove_all(self, transactions: Sequence[Transaction]) -> int:
        for transaction in transactions:
            self.session.delete(transaction)
        self.session.flush()
        return len(transactions)

    def update_many(self, ids: Sequence[int], values: dict) -> int:
        if not ids or not values:
            return 0
        result = self.session.execute(
            update(Transaction)
            .where(Transaction.id.in_(list(ids)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def _filtered(self, stmt, account_id=None, category_id=None, date_from=None, date_to=None, status=None):
        if account_id is not None:
            stmt = stmt.where(
                or_(
                    Transaction.debit_account_id == account_id,
                    Transaction.credit_account_id == account_id,
                )
            )
        if category_id is not None:
            stmt = stmt.where(Transaction.category_id == category_id)
        if date_from is not None:
            stmt = stmt.where(Transaction.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Transaction.date <= date_to)
        if status is not None:
            stmt = stmt.where(Transaction.status == status)
        return stmt

    def search(self, offset: int = 0, limit: Optional[int] = None, **filters) -> List[Transaction]:
        stmt = self._filtered(select(Transaction), **filters)
        stmt = stmt.order_by(Transaction.date.desc(), Transaction.id.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))

    def count(self, **filters) -> int:
        stmt = self._filtered(select(func.count(Transaction.id)), **filters)
        return self.session.scalar(stmt) or 0

    def sum_postings(self, account_id: int) -> Decimal:
        """
        Recompute an account's balance from transaction history
        (debits minus credits). Used for consistency checks.
        """
        debits = self.session.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(Transaction.debit_account_id == account_id)
        )
        credits = self.session.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(Transaction.credit_account_id == account_id)
        )
        return (Decimal(str(debits)) - Decimal(str(credits))).quantize(Decimal("0.01"))

    # ---- report aggregates ----

    def totals_by_category(self, side: str, account_type: AccountType, date_from=None, date_to=None) -> List[tuple]:
        """
        (category name or None, total amount, transaction count) for every
        transaction whose debit or credit account is of the given type.
        """
        counterpart = aliased(Account)
        join_column = Transaction.debit_account_id if side == "debit" else Transaction.credit_account_id
        stmt = (
            select(
                Category.name,
                func.coalesce(func.sum(Transaction.amount), 0).label("total"),
                func.count(Transaction.id).label("count"),
            )
            .select_from(Transaction)
            .join(counterpart, counterpart.id == join_column)
            .outerjoin(Category, Category.id == Transaction.category_id)
            .where(counterpart.type == account_type)
        )
        stmt = self._filtered(stmt, date_from=date_from, date_to=date_to)
        stmt = stmt.group_by(Category.name).order_by(func.sum(Transaction.amount).desc())
        return [tuple(row) for row in self.session.execute(stmt)]

    def daily_flows(self, date_from, date_to) -> List[tuple]:
        """
        (date, income, expenses) per day: income is money credited out of
        income accounts, expenses money debited into expense accounts.
        """
        debit_account = aliased(Account)
        credit_account = aliased(Account)
        stmt = (
            select(
                Transaction.date,
                func.coalesce(
                    func.sum(case((credit_account.type == AccountType.INCOME, Transaction.amount), else_=0)), 0
                ).label("income"),
                func.coalesce(
                    func.sum(case((debit_account.type == AccountType.EXPENSE, Transaction.amount), else_=0)), 0
                ).label("expenses"),
            )
            .select_from(Transaction)
            .join(debit_account, debit_account.id == Transaction.debit_account_id)
            .join(credit_account, credit_account.id == Transaction.credit_account_id)
        )
        stmt = self._filtered(stmt, date_from=date_from, date_to=date_to)
        stmt = stmt.group_by(Transaction.date).order_by(Transaction.date.asc())
        return [tuple(row) for row in self.session.execute(stmt)]


class LedgerStore:
    """
    Bundles the repositories that share one Session and owns the
    transactional boundary around each unit of work.
    """

    def __init__(self, session: Session):
        self.session = session
        self.accounts = AccountRepository(session)
        self.categories = CategoryRepository(session)
        self.transactions = TransactionRepository(session)

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """
        Commit everything written inside the block, or nothing.

        Domain errors roll back and propagate unchanged; storage errors
        roll back and propagate as PersistenceError.
        """
        try:
            yield self.session
            self.session.commit()
        except LedgerError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Storage failure, unit rolled back: %r", e)
            raise PersistenceError("Storage operation failed", details=str(e)) from e
        except Exception:
            self.session.rollback()
            raise
