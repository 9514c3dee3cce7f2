"""
Authentication service layer for business logic.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.audit_service import create_audit_log
from ..core.revocation import TokenDenylist
from ..core.security import (
    hash_password,
    verify_password,
    dummy_verify,
    create_access_token,
    get_token_expiry,
)
from ..exceptions import ValidationException
from .exceptions import InvalidCredentialsException
from .models import Account, UserRole
from .schemas import UserRegistration, ProfileUpdate, PasswordChange

# Set up logging
logger = logging.getLogger(__name__)

def issue_credential(account: Account) -> Tuple[str, datetime]:
    """
    Issue a signed credential for an account.
    
    Args:
        account: Authenticated account
        
    Returns:
        Tuple of (token, expiry time)
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    token = create_access_token(account.id, expires_delta=lifetime, issued_at=issued_at)
    return token, issued_at + lifetime

def _ensure_contact_available(
    db: Session,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    exclude_id: Optional[int] = None
) -> None:
    """Raise if the email or phone number is already bound to another account."""
    if email:
        query = db.query(Account).filter(Account.email == email)
        if exclude_id is not None:
            query = query.filter(Account.id != exclude_id)
        if query.first():
            raise ValidationException("Email already registered")
    if phone_number:
        query = db.query(Account).filter(Account.phone_number == phone_number)
        if exclude_id is not None:
            query = query.filter(Account.id != exclude_id)
        if query.first():
            raise ValidationException("Phone number already registered")

def register_user(
    db: Session,
    registration: UserRegistration,
    request: Optional[Request] = None
) -> Account:
    """
    Register a new patient/guardian account.
    
    The role is always ``user``; admins and doctors are never self-registered.
    
    Args:
        db: Database session
        registration: Validated registration data
        request: FastAPI request object for audit logging
        
    Returns:
        Account: The created account
        
    Raises:
        ValidationException: If email or phone number is already registered
    """
    email = registration.email.lower()
    logger.info(f"User registration attempt for email: {email}")
    _ensure_contact_available(db, email=email, phone_number=registration.phone_number)
    
    account = Account(
        first_name=registration.first_name.strip(),
        last_name=registration.last_name.strip(),
        email=email,
        phone_number=registration.phone_number,
        password_hash=hash_password(registration.password),
        date_of_birth=registration.date_of_birth,
        gender=registration.gender,
        blood_group=registration.blood_group,
        role=UserRole.USER,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Registration failed: Email {email} registered concurrently")
        raise ValidationException("Email already registered")
    db.refresh(account)
    
    logger.info(f"User account created: {account.id}")
    create_audit_log(db, action="USER_REGISTERED", account_id=account.id, request=request, details={"email": email})
    return account

def _authenticate(
    db: Session,
    account: Optional[Account],
    password: str,
    login_ref: str,
    request: Optional[Request] = None
) -> Account:
    """
    Check a password against a looked-up account.
    
    Unknown accounts and wrong passwords fail identically.
    """
    if account is None:
        dummy_verify()
        valid = False
    else:
        valid = verify_password(password, account.password_hash)
    
    if not valid:
        logger.warning(f"Login failed: Invalid credentials for {login_ref}")
        create_audit_log(
            db,
            action="LOGIN_FAILED",
            account_id=account.id if account else None,
            request=request,
            details={"login": login_ref}
        )
        raise InvalidCredentialsException()
    
    create_audit_log(db, action="LOGIN_SUCCESS", account_id=account.id, request=request, details={"login": login_ref})
    logger.info(f"Login successful: Account {account.id} ({account.role.value})")
    return account

def login_user(
    db: Session,
    phone_number: str,
    password: str,
    request: Optional[Request] = None
) -> Account:
    """
    Authenticate a patient/guardian by phone number.
    
    Args:
        db: Database session
        phone_number: Phone number used at registration
        password: Plain text password
        request: FastAPI request object for audit logging
        
    Returns:
        Account: The authenticated account
        
    Raises:
        InvalidCredentialsException: If the phone number or password is wrong
    """
    account = (
        db.query(Account)
        .filter(Account.phone_number == phone_number, Account.role == UserRole.USER)
        .first()
    )
    return _authenticate(db, account, password, phone_number, request)

def login_staff(
    db: Session,
    email: str,
    password: str,
    role: UserRole,
    request: Optional[Request] = None
) -> Account:
    """
    Authenticate an admin or doctor by email within their role.
    
    Args:
        db: Database session
        email: Account email
        password: Plain text password
        role: Role the login endpoint is scoped to
        request: FastAPI request object for audit logging
        
    Returns:
        Account: The authenticated account
        
    Raises:
        InvalidCredentialsException: If no account of that role matches
    """
    email = email.lower()
    account = db.query(Account).filter(Account.email == email, Account.role == role).first()
    return _authenticate(db, account, password, email, request)

def revoke_credential(
    denylist: TokenDenylist,
    payload: Dict[str, Any],
) -> None:
    """
    Invalidate a credential before its natural expiry.
    
    Args:
        denylist: Denylist backend
        payload: Decoded credential
    """
    denylist.revoke(payload["jti"], payload.get("id"), get_token_expiry(payload))

def logout(
    db: Session,
    denylist: TokenDenylist,
    account: Account,
    payload: Dict[str, Any],
    request: Optional[Request] = None
) -> None:
    """
    Log out by revoking the presented credential.
    """
    revoke_credential(denylist, payload)
    create_audit_log(db, action="LOGOUT", account_id=account.id, request=request)
    logger.info(f"Account {account.id} logged out")

def change_password(
    db: Session,
    denylist: TokenDenylist,
    account: Account,
    payload: Dict[str, Any],
    password_data: PasswordChange,
    request: Optional[Request] = None
) -> None:
    """
    Allows an authenticated account to change its password.
    
    The current password is re-verified first. On success every credential
    issued before the change stops working, and the presented one is also
    put on the denylist, so the caller must log in again.
    
    Raises:
        InvalidCredentialsException: If the current password is incorrect
    """
    if not verify_password(password_data.current_password, account.password_hash):
        create_audit_log(
            db,
            action="PASSWORD_CHANGE_FAILED",
            account_id=account.id,
            request=request,
            details={"reason": "Incorrect current password"}
        )
        raise InvalidCredentialsException("Current password is incorrect")
    
    account.password_hash = hash_password(password_data.new_password)
    account.password_changed_at = datetime.now(timezone.utc)
    db.commit()
    
    revoke_credential(denylist, payload)
    create_audit_log(db, action="PASSWORD_CHANGED", account_id=account.id, request=request)
    logger.info(f"Account {account.id} changed its password")

def update_profile(
    db: Session,
    account: Account,
    profile_data: ProfileUpdate,
    request: Optional[Request] = None
) -> Account:
    """
    Update the caller's own profile fields.

    A doctor's directory entry follows changes to email, phone and name.
    
    Raises:
        ValidationException: If the new email or phone belongs to another account
    """
    update_data = profile_data.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in update_data:
        update_data["email"] = update_data["email"].lower()
    
    _ensure_contact_available(
        db,
        email=update_data.get("email"),
        phone_number=update_data.get("phone_number"),
        exclude_id=account.id,
    )
    
    for field, value in update_data.items():
        setattr(account, field, value)

    # A doctor's directory entry mirrors the account's contact details
    doctor = account.doctor_profile
    if doctor is not None:
        if "email" in update_data:
            doctor.email = account.email
        if "phone_number" in update_data:
            doctor.phone_number = account.phone_number
        if "first_name" in update_data or "last_name" in update_data:
            doctor.name = account.full_name

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationException("Email already registered")
    db.refresh(account)
    
    create_audit_log(db, action="PROFILE_UPDATED", account_id=account.id, request=request, details={"fields": sorted(update_data)})
    return account
