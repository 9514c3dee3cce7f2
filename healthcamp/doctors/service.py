"""
Doctor Service - Business logic for the doctor directory.
"""
from typing import Optional
import logging

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.models import Account, UserRole
from ..core.audit_service import create_audit_log
from ..core.security import hash_password
from ..exceptions import ValidationException, ResourceNotFoundException
from .models import Doctor
from .schemas import DoctorCreate

# Set up logging
logger = logging.getLogger(__name__)

def create_doctor(
    db: Session,
    admin: Account,
    doctor_data: DoctorCreate,
    request: Optional[Request] = None
) -> Doctor:
    """
    Create a doctor account and its directory entry in one transaction.
    
    Args:
        db: Database session
        admin: Admin performing the action
        doctor_data: Validated doctor data
        request: FastAPI request object for audit logging
        
    Returns:
        Doctor: The created directory entry
        
    Raises:
        ValidationException: If the email is already used by an account or doctor
    """
    email = doctor_data.email.lower()
    if db.query(Account).filter(Account.email == email).first() or \
            db.query(Doctor).filter(Doctor.email == email).first():
        raise ValidationException("Email already registered")
    
    name = doctor_data.name.strip()
    first_name, _, last_name = name.partition(" ")
    account = Account(
        first_name=first_name,
        last_name=last_name.strip(),
        email=email,
        phone_number=doctor_data.phone_number,
        password_hash=hash_password(doctor_data.password),
        role=UserRole.DOCTOR,
    )
    doctor = Doctor(
        account=account,
        name=name,
        specialization=doctor_data.specialization.strip(),
        qualification=doctor_data.qualification.strip(),
        experience_years=doctor_data.experience_years,
        phone_number=doctor_data.phone_number,
        email=email,
        location=doctor_data.location.strip(),
    )
    db.add(account)
    db.add(doctor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationException("Email already registered")
    db.refresh(doctor)
    
    logger.info(f"Doctor {doctor.id} created by admin {admin.id}")
    create_audit_log(
        db,
        action="DOCTOR_CREATED",
        account_id=admin.id,
        request=request,
        details={"doctor_id": doctor.id, "email": email}
    )
    return doctor

def list_doctors(db: Session):
    """
    Directory entries, newest first.
    
    Returns:
        Ordered query, paginated by the caller
    """
    return db.query(Doctor).order_by(Doctor.created_at.desc(), Doctor.id.desc())

def get_doctor_profile(db: Session, doctor_id: int) -> Doctor:
    """
    Get a directory entry by ID.
    
    Raises:
        ValidationException: If no doctor has this ID
    """
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise ValidationException("Doctor not found")
    return doctor

def get_doctor_profile_by_account_id(db: Session, account_id: int) -> Doctor:
    """
    Get the directory entry of a doctor account.
    
    Raises:
        ResourceNotFoundException: If the account has no directory entry
    """
    doctor = db.query(Doctor).filter(Doctor.account_id == account_id).first()
    if not doctor:
        raise ResourceNotFoundException("Doctor profile not found")
    return doctor
