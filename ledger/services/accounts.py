# ledger/services/accounts.py
#
# Account and category management.
# Balances are never written here; only postings move them.

import logging
from typing import List, Mapping, Any, Optional, Union

from models import Account, Category, CategoryType
from ledger.errors import NotFoundError, ValidationError
from ledger.repositories import LedgerStore
from ledger.schemas import AccountCreate, AccountUpdate, CategoryCreate, CategoryUpdate
from ledger.services.posting import coerce_model

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, store: LedgerStore):
        self.store = store

    def list(self, include_inactive: bool = False) -> List[Account]:
        return self.store.accounts.list(include_inactive=include_inactive)

    def get(self, account_id: int) -> Account:
        account = self.store.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    def create(self, data: Union[AccountCreate, Mapping[str, Any]]) -> Account:
        data = coerce_model(AccountCreate, data)
        with self.store.unit_of_work():
            if self.store.accounts.find_by_name_type(data.name, data.type) is not None:
                raise ValidationError(f"An account named {data.name!r} of type {data.type.value} already exists")
            account = self.store.accounts.add(
                Account(name=data.name, type=data.type, description=data.description, balance=0, active=True)
            )
        logger.info("Created %s account %r (id=%s)", data.type.value, data.name, account.id)
        return account

    def update(self, account_id: int, patch: Union[AccountUpdate, Mapping[str, Any]]) -> Account:
        patch = coerce_model(AccountUpdate, patch)
        changes = patch.changes()

        nulled = [name for name in ("name", "type", "active") if name in changes and changes[name] is None]
        if nulled:
            raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")

        with self.store.unit_of_work():
            account = self.get(account_id)
            new_name = changes.get("name", account.name)
            new_type = changes.get("type", account.type)
            if ("name" in changes or "type" in changes) and self._name_taken(new_name, new_type, account.id):
                raise ValidationError(f"An account named {new_name!r} of type {new_type.value} already exists")
            for field, value in changes.items():
                setattr(account, field, value)
            self.store.session.flush()

        logger.info("Updated account %s (%s)", account_id, ", ".join(sorted(changes)) or "no changes")
        return account

    def deactivate(self, account_id: int) -> Account:
        """Soft delete: history stays, the account drops out of listings."""
        with self.store.unit_of_work():
            account = self.get(account_id)
            account.active = False
        logger.info("Deactivated account %s", account_id)
        return account

    def _name_taken(self, name, account_type, exclude_id: int) -> bool:
        existing = self.store.accounts.find_by_name_type(name, account_type)
        return existing is not None and existing.id != exclude_id


class CategoryService:
    def __init__(self, store: LedgerStore):
        self.store = store

    def list(self, category_type: Optional[CategoryType] = None, include_inactive: bool = False) -> List[Category]:
        return self.store.categories.list(category_type=category_type, include_inactive=include_inactive)

    def get(self, category_id: int) -> Category:
        category = self.store.categories.get(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def create(self, data: Union[CategoryCreate, Mapping[str, Any]]) -> Category:
        data = coerce_model(CategoryCreate, data)

        with self.store.unit_of_work():
            if data.parent_id is not None:
                self.get(data.parent_id)
            if self.store.categories.find_by_name_type(data.name, data.type) is not None:
                raise ValidationError(f"A category named {data.name!r} of type {data.type.value} already exists")
            category = self.store.categories.add(
                Category(
                    name=data.name,
                    type=data.type,
                    description=data.description,
                    color=data.color,
                    parent_id=data.parent_id,
                    active=True,
                )
            )

        logger.info("Created %s category %r (id=%s)", data.type.value, data.name, category.id)
        return category

    def update(self, category_id: int, patch: Union[CategoryUpdate, Mapping[str, Any]]) -> Category:
        patch = coerce_model(CategoryUpdate, patch)
        changes = patch.changes()

        nulled = [name for name in ("name", "type", "active") if name in changes and changes[name] is None]
        if nulled:
            raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}")

        with self.store.unit_of_work():
            category = self.get(category_id)

            parent_id = changes.get("parent_id")
            if parent_id is not None:
                if parent_id == category.id:
                    raise ValidationError("A category cannot be its own parent")
                self.get(parent_id)

            new_name = changes.get("name", category.name)
            new_type = changes.get("type", category.type)
            existing = self.store.categories.find_by_name_type(new_name, new_type)
            if existing is not None and existing.id != category.id:
                raise ValidationError(f"A category named {new_name!r} of type {new_type.value} already exists")

            for field, value in changes.items():
                setattr(category, field, value)
            self.store.session.flush()

        logger.info("Updated category %s (%s)", category_id, ", ".join(sorted(changes)) or "no changes")
        return category

    def deactivate(self, category_id: int) -> Category:
        with self.store.unit_of_work():
            category = self.get(category_id)
            category.active = False
        logger.info("Deactivated category %s", category_id)
        return category
