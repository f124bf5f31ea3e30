# tests/test_accounts.py

from decimal import Decimal

import pytest

from models import AccountType, CategoryType
from ledger.errors import NotFoundError, ValidationError


# -------------------------------------------------------------------
# Accounts
# -------------------------------------------------------------------

def test_create_account_starts_at_zero(account_service):
    account = account_service.create({"name": "Wallet", "type": "asset_cash", "description": "Cash on hand"})

    assert account.id is not None
    assert account.type == AccountType.ASSET_CASH
    assert Decimal(account.balance) == 0
    assert account.active is True


def test_create_account_rejects_unknown_type(account_service):
    with pytest.raises(ValidationError):
        account_service.create({"name": "Mystery", "type": "asset_crypto"})


def test_duplicate_name_and_type_rejected(account_service, accounts):
    with pytest.raises(ValidationError, match="already exists"):
        account_service.create({"name": "Checking", "type": AccountType.ASSET_BANK})

    # Same name, different type is a different account
    other = account_service.create({"name": "Checking", "type": AccountType.EXPENSE})
    assert other.id not in accounts.values()


def test_list_accounts_sorted_and_active_only(account_service, accounts):
    account_service.deactivate(accounts["savings"])

    names = [a.name for a in account_service.list()]
    assert names == ["Checking", "Groceries", "Salary"]

    everything = [a.name for a in account_service.list(include_inactive=True)]
    assert "Savings" in everything


def test_update_account(account_service, accounts):
    account = account_service.update(accounts["checking"], {"name": "Main Checking", "description": "Primary"})
    assert account.name == "Main Checking"
    assert account.description == "Primary"


def test_update_account_rejects_balance_and_taken_names(account_service, accounts):
    with pytest.raises(ValidationError):
        account_service.update(accounts["checking"], {"balance": "100"})
    with pytest.raises(ValidationError, match="already exists"):
        account_service.update(accounts["savings"], {"name": "Checking"})


def test_get_missing_account(account_service):
    with pytest.raises(NotFoundError, match="Account not found"):
        account_service.get(404)


def test_account_upsert_returns_existing_row(store, accounts):
    first = store.accounts.get_or_create("Checking", AccountType.ASSET_BANK)
    assert first.id == accounts["checking"]

    created = store.accounts.get_or_create("Expenses - Travel", AccountType.EXPENSE, "Auto-created")
    again = store.accounts.get_or_create("Expenses - Travel", AccountType.EXPENSE)
    assert created.id == again.id
    assert again.description == "Auto-created"


# -------------------------------------------------------------------
# Categories
# -------------------------------------------------------------------

def test_category_crud(category_service):
    food = category_service.create({"name": "Food", "type": "expense", "color": "#ff0000"})
    takeout = category_service.create({"name": "Takeout", "type": "expense", "parentId": food.id})

    assert takeout.parent_id == food.id
    assert takeout.parent.name == "Food"

    renamed = category_service.update(takeout.id, {"name": "Delivery"})
    assert renamed.name == "Delivery"

    category_service.deactivate(food.id)
    assert [c.name for c in category_service.list()] == ["Delivery"]


def test_category_list_filters_by_type(category_service):
    category_service.create({"name": "Food", "type": CategoryType.EXPENSE})
    category_service.create({"name": "Salary", "type": CategoryType.INCOME})
    category_service.create({"name": "To savings", "type": CategoryType.TRANSFER})

    assert [c.name for c in category_service.list(CategoryType.INCOME)] == ["Salary"]
    assert len(category_service.list()) == 3


def test_category_parent_rules(category_service):
    food = category_service.create({"name": "Food", "type": "expense"})

    with pytest.raises(NotFoundError, match="Category not found"):
        category_service.create({"name": "Orphan", "type": "expense", "parent_id": 77})
    with pytest.raises(ValidationError, match="own parent"):
        category_service.update(food.id, {"parent_id": food.id})


def test_category_duplicate_rejected(category_service):
    category_service.create({"name": "Food", "type": "expense"})
    with pytest.raises(ValidationError, match="already exists"):
        category_service.create({"name": "Food", "type": "expense"})
