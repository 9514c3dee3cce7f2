"""
Doctor Schemas - Pydantic models for doctor directory data validation and serialization.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from ..auth.schemas import PHONE_PATTERN

class DoctorCreate(BaseModel):
    """
    Doctor Create Schema - Used by admins to onboard a doctor
    
    Creates both the login account (role doctor) and the directory entry.
    
    Fields:
    - name: Doctor's full name
    - specialization: Medical specialization
    - qualification: Qualification
    - experience_years: Years of experience (>= 0)
    - phone_number: Contact number
    - email: Login and contact email
    - location: Practice location
    - password: Initial password for the doctor's account
    """
    name: str = Field(..., min_length=1, max_length=200)
    specialization: str = Field(..., min_length=1, max_length=200)
    qualification: str = Field(..., min_length=1, max_length=200)
    experience_years: int = Field(..., ge=0, description="Years of experience")
    phone_number: str = Field(..., pattern=PHONE_PATTERN)
    email: EmailStr
    location: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)

class DoctorSummary(BaseModel):
    """Short doctor view embedded in health reports."""
    id: int
    name: str
    specialization: str
    email: EmailStr

    class Config:
        from_attributes = True

class DoctorResponse(BaseModel):
    """
    Doctor Response Schema - Used when returning directory entries
    """
    id: int
    account_id: int
    name: str
    specialization: str
    qualification: str
    experience_years: int
    phone_number: str
    email: EmailStr
    location: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True
