# routes_transactions.py
"""
Routes for transactions.

Every write goes through the PostingEngine so account balances move with
the transaction rows.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from models import TransactionStatus
from ledger.deps import get_posting_engine
from ledger.schemas import (
    BalanceOut,
    BulkIdsRequest,
    BulkUpdateRequest,
    Pagination,
    ReconcileOut,
    TransactionCreate,
    TransactionOut,
    TransactionPage,
    TransactionUpdate,
)
from ledger.services.posting import PostingEngine

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


# -------------------------------------------------------------------
# Listing & lookups
# -------------------------------------------------------------------

@router.get("", response_model=TransactionPage)
def list_transactions(
    account_id: Optional[int] = Query(None, alias="accountId"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    status: Optional[TransactionStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    engine: PostingEngine = Depends(get_posting_engine),
):
    """
    Newest first. accountId matches either side of the posting.
    """
    result = engine.list(
        account_id=account_id,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        status=status,
        page=page,
        limit=limit,
    )
    return TransactionPage(
        transactions=[TransactionOut.model_validate(t) for t in result["transactions"]],
        pagination=Pagination(**result["pagination"]),
    )


@router.get("/account/{account_id}/balance", response_model=BalanceOut)
def get_account_balance(account_id: int, engine: PostingEngine = Depends(get_posting_engine)):
    return BalanceOut(account_id=account_id, balance=engine.get_account_balance(account_id))


@router.get("/account/{account_id}/reconcile", response_model=ReconcileOut)
def reconcile_account(account_id: int, engine: PostingEngine = Depends(get_posting_engine)):
    """
    Stored running balance next to the balance recomputed from history.
    """
    return ReconcileOut(**engine.reconcile_account(account_id))


# -------------------------------------------------------------------
# Bulk operations
# -------------------------------------------------------------------

@router.post("/bulk-update")
def bulk_update_transactions(payload: BulkUpdateRequest, engine: PostingEngine = Depends(get_posting_engine)):
    """
    Apply the same field changes to many transactions.
    Amount and account changes are rejected with 400.
    """
    updated = engine.bulk_update(payload.transaction_ids, payload.updates)
    return {"message": f"{updated} transactions updated", "updated": updated}


@router.post("/bulk-delete")
def bulk_delete_transactions(payload: BulkIdsRequest, engine: PostingEngine = Depends(get_posting_engine)):
    deleted = engine.bulk_delete(payload.transaction_ids)
    return {"message": f"{deleted} transactions deleted", "deleted": deleted}


# -------------------------------------------------------------------
# Single transaction CRUD
# -------------------------------------------------------------------

@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(payload: TransactionCreate, engine: PostingEngine = Depends(get_posting_engine)):
    return TransactionOut.model_validate(engine.create(payload))


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, engine: PostingEngine = Depends(get_posting_engine)):
    return TransactionOut.model_validate(engine.get(transaction_id))


@router.put("/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    engine: PostingEngine = Depends(get_posting_engine),
):
    """
    Partial update. Changing amount or accounts reverses the old posting
    and applies the new one.
    """
    return TransactionOut.model_validate(engine.update(transaction_id, payload))


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int, engine: PostingEngine = Depends(get_posting_engine)):
    engine.delete(transaction_id)
    return {"message": "Transaction deleted successfully"}
