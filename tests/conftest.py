# tests/conftest.py
#
# Shared fixtures: every test gets a fresh in-memory SQLite database.

import os

# Keep the app module from creating a database file on import
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base, build_engine
from models import AccountType
from ledger.deps import get_db
from ledger.repositories import LedgerStore
from ledger.services.accounts import AccountService, CategoryService
from ledger.services.import_execution import ImportExecutionEngine
from ledger.services.import_preview import ImportPreviewEngine
from ledger.services.posting import PostingEngine
from ledger.services.reports import ReportService


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(session):
    return LedgerStore(session)


@pytest.fixture
def posting(store):
    return PostingEngine(store)


@pytest.fixture
def account_service(store):
    return AccountService(store)


@pytest.fixture
def category_service(store):
    return CategoryService(store)


@pytest.fixture
def preview_engine(store):
    return ImportPreviewEngine(store)


@pytest.fixture
def execution_engine(store, posting):
    return ImportExecutionEngine(store, posting)


@pytest.fixture
def report_service(store):
    return ReportService(store)


@pytest.fixture
def accounts(account_service):
    """A small chart of accounts: {key: account id}."""
    created = {
        "checking": account_service.create({"name": "Checking", "type": AccountType.ASSET_BANK}),
        "savings": account_service.create({"name": "Savings", "type": AccountType.ASSET_BANK}),
        "groceries": account_service.create({"name": "Groceries", "type": AccountType.EXPENSE}),
        "salary": account_service.create({"name": "Salary", "type": AccountType.INCOME}),
    }
    return {key: account.id for key, account in created.items()}


@pytest.fixture
def client(session):
    from main import app

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
