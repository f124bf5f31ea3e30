# models.py
# Role: SQLAlchemy ORM models for the ledger domain.
#       Defines Account, Category and Transaction plus the enum types whose
#       string values are part of the public contract.

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from db import Base


class AccountType(str, enum.Enum):
    ASSET_BANK = "asset_bank"
    ASSET_INVESTMENT = "asset_investment"
    ASSET_CASH = "asset_cash"
    LIABILITY_CREDIT_CARD = "liability_credit_card"
    LIABILITY_LOAN = "liability_loan"
    INCOME = "income"
    EXPENSE = "expense"


class CategoryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    CLEARED = "cleared"
    RECONCILED = "reconciled"


def _enum_values(enum_cls):
    # Persist the lowercase string values, not the member names
    return [member.value for member in enum_cls]


class Account(Base):
    """
    A ledger account.

    `balance` is a running total maintained by the posting engine:
    sum of amounts where the account is debited minus sum of amounts
    where it is credited. It is never written directly by callers.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("name", "type", name="uq_accounts_name_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(
        Enum(AccountType, name="account_type", values_callable=_enum_values),
        nullable=False,
    )
    description = Column(String(500), nullable=True)

    # Signed fixed-point running total
    balance = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")

    # Soft-delete flag
    active = Column(Boolean, nullable=False, default=True, server_default="1")

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Account id={self.id} name={self.name!r} type={self.type} balance={self.balance}>"


class Category(Base):
    """
    A transaction category (optionally nested under a parent).
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("name", "type", name="uq_categories_name_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = Column(
        Enum(CategoryType, name="category_type", values_callable=_enum_values),
        nullable=False,
    )
    description = Column(String(500), nullable=True)

    # Display hint, stored verbatim
    color = Column(String(32), nullable=True)

    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    active = Column(Boolean, nullable=False, default=True, server_default="1")

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    parent = relationship("Category", remote_side=[id])

    def __repr__(self):
        return f"<Category id={self.id} name={self.name!r} type={self.type}>"


class Transaction(Base):
    """
    One double-entry transaction: `amount` moves from the credit account
    to the debit account.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("debit_account_id <> credit_account_id", name="ck_transactions_distinct_accounts"),
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)

    # Always positive; direction comes from the debit/credit pair
    amount = Column(Numeric(12, 2), nullable=False)

    description = Column(String, nullable=False)

    # Check number, bank transaction id, etc.
    reference = Column(String, nullable=True)

    status = Column(
        Enum(TransactionStatus, name="transaction_status", values_callable=_enum_values),
        nullable=False,
        default=TransactionStatus.PENDING,
    )

    notes = Column(Text, nullable=True)

    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)

    # Import metadata
    import_batch = Column(String(64), nullable=True, index=True)
    original_data = Column(Text, nullable=True)  # raw QIF/CSV record as JSON

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    debit_account = relationship("Account", foreign_keys=[debit_account_id])
    credit_account = relationship("Account", foreign_keys=[credit_account_id])
    category = relationship("Category")

    def __repr__(self):
        return (
            f"<Transaction id={self.id} {self.date} {self.amount} "
            f"dr={self.debit_account_id} cr={self.credit_account_id} status={self.status}>"
        )
