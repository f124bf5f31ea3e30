# ledger/errors.py
"""
Domain exceptions raised by the ledger services.

ValidationError and NotFoundError reach the caller synchronously.
RowError is collected by the import run, never raised out of it.
PersistenceError wraps a storage failure; the in-flight unit is rolled back.
"""


class LedgerError(Exception):
    """Base class for every error the ledger services raise."""

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(LedgerError):
    pass


class NotFoundError(LedgerError):
    pass


class PersistenceError(LedgerError):
    pass


class RowError(LedgerError):
    """One import candidate that failed to post."""

    def __init__(self, row: int, message: str):
        super().__init__(message)
        self.row = row

    def __str__(self):
        return f"Row {self.row}: {self.message}"
