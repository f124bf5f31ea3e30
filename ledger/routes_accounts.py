# routes_accounts.py
"""
Routes for account management.

Accounts are never hard-deleted: DELETE only deactivates them so their
transaction history stays intact.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from ledger.deps import get_account_service
from ledger.schemas import AccountCreate, AccountOut, AccountUpdate
from ledger.services.accounts import AccountService

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=List[AccountOut])
def list_accounts(
    include_inactive: bool = Query(False, alias="includeInactive"),
    service: AccountService = Depends(get_account_service),
):
    """
    List accounts ordered by name (active only unless includeInactive=true).
    """
    return [AccountOut.model_validate(a) for a in service.list(include_inactive=include_inactive)]


@router.post("", response_model=AccountOut, status_code=201)
def create_account(
    payload: AccountCreate,
    service: AccountService = Depends(get_account_service),
):
    """
    Create an account. Balance always starts at zero.
    """
    return AccountOut.model_validate(service.create(payload))


@router.get("/{account_id}", response_model=AccountOut)
def get_account(account_id: int, service: AccountService = Depends(get_account_service)):
    return AccountOut.model_validate(service.get(account_id))


@router.put("/{account_id}", response_model=AccountOut)
def update_account(
    account_id: int,
    payload: AccountUpdate,
    service: AccountService = Depends(get_account_service),
):
    return AccountOut.model_validate(service.update(account_id, payload))


@router.delete("/{account_id}")
def delete_account(account_id: int, service: AccountService = Depends(get_account_service)):
    """
    Soft delete by marking the account inactive.
    """
    service.deactivate(account_id)
    return {"message": "Account deactivated successfully"}
