# ledger/deps.py
# Role: Shared FastAPI dependencies.
#       Provides the standard SQLAlchemy session dependency and builds the
#       store and services for a request around that session.

"""
Shared dependencies for the ledger API.
"""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from db import SessionLocal
from ledger.repositories import LedgerStore
from ledger.services.accounts import AccountService, CategoryService
from ledger.services.import_execution import ImportExecutionEngine
from ledger.services.import_preview import ImportPreviewEngine
from ledger.services.posting import PostingEngine
from ledger.services.reports import ReportService


# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# Services (one set per request, all sharing the request's session)
# -------------------------------------------------------------------

def get_store(db: Session = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)


def get_posting_engine(store: LedgerStore = Depends(get_store)) -> PostingEngine:
    return PostingEngine(store)


def get_account_service(store: LedgerStore = Depends(get_store)) -> AccountService:
    return AccountService(store)


def get_category_service(store: LedgerStore = Depends(get_store)) -> CategoryService:
    return CategoryService(store)


def get_preview_engine(store: LedgerStore = Depends(get_store)) -> ImportPreviewEngine:
    return ImportPreviewEngine(store)


def get_execution_engine(
    store: LedgerStore = Depends(get_store),
    posting: PostingEngine = Depends(get_posting_engine),
) -> ImportExecutionEngine:
    return ImportExecutionEngine(store, posting)


def get_report_service(store: LedgerStore = Depends(get_store)) -> ReportService:
    return ReportService(store)
