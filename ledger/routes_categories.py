# routes_categories.py
"""
Routes for category management.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from models import CategoryType
from ledger.deps import get_category_service
from ledger.schemas import CategoryCreate, CategoryOut, CategoryUpdate
from ledger.services.accounts import CategoryService

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=List[CategoryOut])
def list_categories(
    type: Optional[CategoryType] = Query(None),
    service: CategoryService = Depends(get_category_service),
):
    """
    Active categories ordered by name, optionally filtered by type.
    """
    return [CategoryOut.model_validate(c) for c in service.list(category_type=type)]


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, service: CategoryService = Depends(get_category_service)):
    return CategoryOut.model_validate(service.create(payload))


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return CategoryOut.model_validate(service.get(category_id))


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    return CategoryOut.model_validate(service.update(category_id, payload))


@router.delete("/{category_id}")
def delete_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    """
    Soft delete by marking the category inactive.
    """
    service.deactivate(category_id)
    return {"message": "Category deactivated successfully"}
