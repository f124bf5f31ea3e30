# main.py
# Role: Application entry point for the ledger tracker.
#       Initializes logging and the FastAPI app, creates database tables,
#       maps domain errors to HTTP responses, and registers all route modules.

"""
Main FastAPI app for the double-entry ledger tracker.

Here we only:
- configure logging
- create the FastAPI app
- create DB tables
- register error handlers
- include route modules
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from db import Base, engine
from ledger.errors import LedgerError, NotFoundError, PersistenceError, ValidationError
from ledger.logging_config import configure_logging
from ledger.routes_accounts import router as accounts_router
from ledger.routes_categories import router as categories_router
from ledger.routes_import import router as import_router
from ledger.routes_reports import router as reports_router
from ledger.routes_root import router as root_router
from ledger.routes_transactions import router as transactions_router

configure_logging()
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

# Create database tables (only if they don't exist yet).
Base.metadata.create_all(bind=engine)

# FastAPI application instance
app = FastAPI(title="Ledger Tracker")


# -------------------------------------------------------------------
# Error handlers
# -------------------------------------------------------------------

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    PersistenceError: 500,
}


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message, "details": exc.details},
    )


# -------------------------------------------------------------------
# Include routers
# -------------------------------------------------------------------

# Root / health
app.include_router(root_router)

# Chart of accounts and categories
app.include_router(accounts_router)
app.include_router(categories_router)

# Transactions: CRUD, bulk operations, balances
app.include_router(transactions_router)

# QIF / CSV upload → preview → execute
app.include_router(import_router)

# Financial reports
app.include_router(reports_router)
