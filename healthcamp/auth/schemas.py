"""
Account Schemas - Pydantic models for account data validation and serialization.
"""
from typing import Optional, Dict, Any
from pydantic import BaseModel, EmailStr, Field
from datetime import date, datetime
from .models import UserRole, Gender, BloodGroup

PHONE_PATTERN = r"^\+?[0-9]{7,15}$"

class UserRegistration(BaseModel):
    """
    User Registration Schema - Used for patient/guardian self-registration
    
    Fields:
    - first_name / last_name: Name parts
    - email: Email address
    - phone_number: Phone number used to log in
    - password: Plain text password (hashed before storage)
    - date_of_birth: Date of birth
    - gender: male, female or other
    - blood_group: Optional blood group
    """
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone_number: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=8)
    date_of_birth: date
    gender: Gender
    blood_group: Optional[BloodGroup] = None

class PhoneLogin(BaseModel):
    """
    Patient Login Schema - Phone number and password
    """
    phone_number: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class EmailLogin(BaseModel):
    """
    Staff Login Schema - Used by admins and doctors
    """
    email: EmailStr
    password: str = Field(..., min_length=1)

class ProfileUpdate(BaseModel):
    """
    Profile Update Schema - Only the listed fields may change; role is not one of them
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None

    class Config:
        extra = "forbid"

class PasswordChange(BaseModel):
    """
    Password Change Schema - Used by an authenticated account
    
    Fields:
    - current_password: Current password, re-verified before the change
    - new_password: New password
    """
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)

class AccountSummary(BaseModel):
    """Short account view used inside other resources."""
    id: int
    first_name: str
    last_name: str
    email: EmailStr
    phone_number: str

    class Config:
        from_attributes = True

class AccountResponse(BaseModel):
    """
    Account Response Schema - Used when returning account data
    
    The password hash is never part of this schema.
    """
    id: int
    first_name: str
    last_name: str
    full_name: str
    email: EmailStr
    phone_number: str
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    role: UserRole
    blood_group: Optional[BloodGroup] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class LoginData(BaseModel):
    """
    Login payload - Returned after successful authentication
    
    Fields:
    - token: Signed credential (also set as an HTTP-only cookie)
    - token_type: Always "bearer"
    - expires_at: Credential expiry
    - account: Account information, including its role
    """
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    account: AccountResponse

class AuditLogResponse(BaseModel):
    """
    Schema for returning Audit Log entries.
    """
    id: int
    account_id: Optional[int] = None
    action: str
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True
