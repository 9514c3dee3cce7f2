"""
Relative Service - Business logic for the relative registry.

Every lookup is keyed by (owner_id, relative_id); a relative that exists but
belongs to someone else is reported exactly like a missing one. Additions are
a single INSERT and removals a single conditional UPDATE, so concurrent
requests by the same owner never overwrite each other.
"""
from typing import List, Optional
import logging

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.models import Account, utcnow
from ..core.audit_service import create_audit_log
from ..exceptions import ValidationException, ResourceNotFoundException
from .models import Relative
from .schemas import RelativeCreate, RelativeUpdate

# Set up logging
logger = logging.getLogger(__name__)

def get_owned_relative(
    db: Session,
    owner_id: int,
    relative_id: int,
    include_detached: bool = False
) -> Relative:
    """
    Get a relative through its owner.
    
    Args:
        db: Database session
        owner_id: Account that must own the relative
        relative_id: ID of the relative
        include_detached: Also resolve relatives the owner has removed
        
    Returns:
        Relative: The owned relative
        
    Raises:
        ResourceNotFoundException: If the relative does not exist for this owner
    """
    query = db.query(Relative).filter(Relative.id == relative_id, Relative.owner_id == owner_id)
    if not include_detached:
        query = query.filter(Relative.detached_at.is_(None))
    relative = query.first()
    if not relative:
        raise ResourceNotFoundException("Relative not found")
    return relative

def list_relatives(db: Session, owner_id: int) -> List[Relative]:
    """
    Get the owner's attached relatives, oldest first.
    """
    return (
        db.query(Relative)
        .filter(Relative.owner_id == owner_id, Relative.detached_at.is_(None))
        .order_by(Relative.created_at, Relative.id)
        .all()
    )

def add_relative(
    db: Session,
    owner: Account,
    relative_data: RelativeCreate,
    request: Optional[Request] = None
) -> Relative:
    """
    Attach a relative to an account.
    
    Args:
        db: Database session
        owner: Account adding the relative
        relative_data: Validated relative data
        request: FastAPI request object for audit logging
        
    Returns:
        Relative: The created relative
        
    Raises:
        ResourceNotFoundException: If the linked account does not exist
        ValidationException: If the relative is already attached
    """
    attached = db.query(Relative).filter(
        Relative.owner_id == owner.id,
        Relative.detached_at.is_(None)
    )
    
    if relative_data.linked_account_id is not None:
        if relative_data.linked_account_id == owner.id:
            raise ValidationException("You cannot add yourself as a relative")
        
        linked = db.query(Account).filter(Account.id == relative_data.linked_account_id).first()
        if not linked:
            raise ResourceNotFoundException("Relative user not found")
        
        if attached.filter(Relative.linked_account_id == linked.id).first():
            raise ValidationException("This user is already added as relative")
        
        relative = Relative(
            owner_id=owner.id,
            linked_account_id=linked.id,
            is_existing_user=True,
            relation=relative_data.relationship,
        )
    else:
        first_name = relative_data.first_name.strip()
        last_name = relative_data.last_name.strip()
        duplicate = attached.filter(
            Relative.is_existing_user.is_(False),
            Relative.first_name == first_name,
            Relative.last_name == last_name,
            Relative.phone_number == relative_data.phone_number,
        ).first()
        if duplicate:
            raise ValidationException("Relative with same details already exists")
        
        relative = Relative(
            owner_id=owner.id,
            is_existing_user=False,
            first_name=first_name,
            last_name=last_name,
            phone_number=relative_data.phone_number,
            date_of_birth=relative_data.date_of_birth,
            gender=relative_data.gender,
            blood_group=relative_data.blood_group,
            relation=relative_data.relationship,
        )
    
    db.add(relative)
    try:
        db.commit()
    except IntegrityError:
        # Same account linked by a concurrent request
        db.rollback()
        raise ValidationException("This user is already added as relative")
    db.refresh(relative)
    
    logger.info(f"Relative {relative.id} added by account {owner.id}")
    create_audit_log(
        db,
        action="RELATIVE_ADDED",
        account_id=owner.id,
        request=request,
        details={"relative_id": relative.id, "is_existing_user": relative.is_existing_user}
    )
    return relative

def update_relative(
    db: Session,
    owner: Account,
    relative_id: int,
    relative_data: RelativeUpdate,
    request: Optional[Request] = None
) -> Relative:
    """
    Update an inline relative.
    
    Raises:
        ResourceNotFoundException: If the relative is not attached to the owner
        ValidationException: If the relative is linked to an existing account
    """
    relative = get_owned_relative(db, owner.id, relative_id)
    
    if relative.is_existing_user:
        raise ValidationException("Cannot update details of existing user relative")
    
    update_data = relative_data.model_dump(exclude_unset=True, exclude_none=True)
    if "relationship" in update_data:
        update_data["relation"] = update_data.pop("relationship")
    
    for field, value in update_data.items():
        setattr(relative, field, value)
    
    db.commit()
    db.refresh(relative)
    
    create_audit_log(
        db,
        action="RELATIVE_UPDATED",
        account_id=owner.id,
        request=request,
        details={"relative_id": relative.id, "fields": sorted(update_data)}
    )
    return relative

def remove_relative(
    db: Session,
    owner: Account,
    relative_id: int,
    request: Optional[Request] = None
) -> None:
    """
    Detach a relative from its owner.
    
    Health reports about the relative are kept.
    
    Raises:
        ResourceNotFoundException: If the relative is not attached to the owner
    """
    now = utcnow()
    detached = (
        db.query(Relative)
        .filter(
            Relative.id == relative_id,
            Relative.owner_id == owner.id,
            Relative.detached_at.is_(None)
        )
        .update({Relative.detached_at: now, Relative.updated_at: now}, synchronize_session=False)
    )
    if not detached:
        db.rollback()
        raise ResourceNotFoundException("Relative not found")
    db.commit()
    
    logger.info(f"Relative {relative_id} removed by account {owner.id}")
    create_audit_log(
        db,
        action="RELATIVE_REMOVED",
        account_id=owner.id,
        request=request,
        details={"relative_id": relative_id}
    )
