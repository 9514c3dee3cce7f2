"""
Relative Router - API endpoints for managing an account's relatives.

Mounted under ``/api/v1/user`` next to the account routes.
"""
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import require_permission
from ..auth.models import Account
from ..core.permissions import Permission
from ..core.responses import ApiResponse
from .schemas import RelativeCreate, RelativeUpdate, RelativeResponse
from .service import add_relative, list_relatives, update_relative, remove_relative

router = APIRouter(tags=["Relatives"])

manage_relatives = require_permission(Permission.MANAGE_RELATIVES)

@router.post("/relatives/add", response_model=ApiResponse[RelativeResponse], status_code=status.HTTP_201_CREATED)
def add_relative_route(
    relative_data: RelativeCreate,
    request: Request,
    current_account: Account = Depends(manage_relatives),
    db: Session = Depends(get_db)
):
    """
    Add a relative, either by linking an existing account or with inline details.
    """
    relative = add_relative(db, current_account, relative_data, request=request)
    return ApiResponse(message="Relative added successfully", data=RelativeResponse.model_validate(relative))

@router.get("/relatives", response_model=ApiResponse[List[RelativeResponse]])
def list_relatives_route(
    current_account: Account = Depends(manage_relatives),
    db: Session = Depends(get_db)
):
    """List the caller's relatives."""
    relatives = list_relatives(db, current_account.id)
    return ApiResponse(
        message="Relatives fetched successfully",
        data=[RelativeResponse.model_validate(relative) for relative in relatives]
    )

@router.put("/relatives/{relative_id}", response_model=ApiResponse[RelativeResponse])
def update_relative_route(
    relative_id: int,
    relative_data: RelativeUpdate,
    request: Request,
    current_account: Account = Depends(manage_relatives),
    db: Session = Depends(get_db)
):
    """
    Update one of the caller's inline relatives.
    """
    relative = update_relative(db, current_account, relative_id, relative_data, request=request)
    return ApiResponse(message="Relative updated successfully", data=RelativeResponse.model_validate(relative))

@router.delete("/relatives/{relative_id}", response_model=ApiResponse[None])
def remove_relative_route(
    relative_id: int,
    request: Request,
    current_account: Account = Depends(manage_relatives),
    db: Session = Depends(get_db)
):
    """Remove one of the caller's relatives. Their health reports are kept."""
    remove_relative(db, current_account, relative_id, request=request)
    return ApiResponse(message="Relative removed successfully")
