"""
Relative Schemas - Pydantic models for relative data validation and serialization.
"""
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, model_validator

from ..auth.models import Gender, BloodGroup
from ..auth.schemas import AccountSummary, PHONE_PATTERN
from .models import RelationshipType

class RelativeCreate(BaseModel):
    """
    Relative Create Schema
    
    Either ``linked_account_id`` names an existing account, or the inline
    identity fields (first_name, last_name, phone_number, date_of_birth,
    gender) are all given.
    """
    relationship: RelationshipType
    linked_account_id: Optional[int] = Field(None, gt=0)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None

    @model_validator(mode="after")
    def check_identity(self):
        if self.linked_account_id is None:
            required = ("first_name", "last_name", "phone_number", "date_of_birth", "gender")
            missing = [name for name in required if getattr(self, name) is None]
            if missing:
                raise ValueError(
                    "For new relative, first_name, last_name, phone_number, "
                    "date_of_birth, and gender are required"
                )
        return self

class RelativeUpdate(BaseModel):
    """Relative Update Schema - inline relatives only"""
    relationship: Optional[RelationshipType] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None

    class Config:
        extra = "forbid"

class RelativeResponse(BaseModel):
    """
    Relative Response Schema
    
    ``linked_account`` is filled in for relatives that point at an existing account.
    """
    id: int
    relationship: RelationshipType = Field(validation_alias="relation")
    is_existing_user: bool
    linked_account_id: Optional[int] = None
    linked_account: Optional[AccountSummary] = None
    full_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True
