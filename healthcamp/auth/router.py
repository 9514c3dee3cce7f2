"""
Authentication routes for patients and guardians.

Mounted under ``/api/v1/user``. Admin and doctor logins live in their own
routers but share the same service functions.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..core.permissions import Permission
from ..core.responses import ApiResponse
from ..core.revocation import TokenDenylist, get_token_denylist
from .dependencies import get_current_account, get_credential_payload, require_permission
from .models import Account
from .schemas import (
    UserRegistration, PhoneLogin, ProfileUpdate, PasswordChange,
    AccountResponse, LoginData
)
from .service import register_user, login_user, logout, change_password, update_profile
from .utils import start_session, clear_auth_cookie

# Create API router
router = APIRouter(tags=["User"])

@router.post("/register", response_model=ApiResponse[LoginData], status_code=status.HTTP_201_CREATED, summary="User Self-Registration")
def register_route(
    registration: UserRegistration,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Patient/guardian self-registration endpoint.
    
    The new account always has role ``user`` and is logged in straight away.
    
    Raises:
        ValidationException: If email or phone number is already registered
    """
    account = register_user(db, registration, request=request)
    return ApiResponse(message="User registered successfully", data=start_session(response, account))

@router.post("/login", response_model=ApiResponse[LoginData], summary="User Login")
def login_route(
    login_data: PhoneLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    User login endpoint.
    
    Args:
        login_data: Phone number and password
        request: FastAPI request object
        response: Response the credential cookie is attached to
        db: Database session
        
    Returns:
        Envelope with the token and account information
        
    Raises:
        InvalidCredentialsException: If the phone number or password is wrong
    """
    account = login_user(db, login_data.phone_number, login_data.password, request=request)
    return ApiResponse(message="Login successful", data=start_session(response, account))

@router.post("/logout", response_model=ApiResponse[None], summary="User Logout")
def logout_route(
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
    payload: Dict[str, Any] = Depends(get_credential_payload),
    denylist: TokenDenylist = Depends(get_token_denylist),
    db: Session = Depends(get_db)
):
    """
    Logout endpoint. Revokes the presented credential and clears the cookie.
    """
    logout(db, denylist, current_account, payload, request=request)
    clear_auth_cookie(response)
    return ApiResponse(message="Logged out successfully")

@router.get("/profile", response_model=ApiResponse[AccountResponse], summary="Get Current User Profile")
def get_profile_route(
    current_account: Account = Depends(require_permission(Permission.VIEW_PROFILE))
):
    """Return the caller's own profile."""
    return ApiResponse(data=AccountResponse.model_validate(current_account))

@router.put("/profile/update", response_model=ApiResponse[AccountResponse], summary="Update Current User Profile")
def update_profile_route(
    profile_data: ProfileUpdate,
    request: Request,
    current_account: Account = Depends(require_permission(Permission.UPDATE_PROFILE)),
    db: Session = Depends(get_db)
):
    """
    Update the caller's own profile. Role is not an updatable field.
    """
    account = update_profile(db, current_account, profile_data, request=request)
    return ApiResponse(message="Profile updated successfully", data=AccountResponse.model_validate(account))

@router.put("/change-password", response_model=ApiResponse[None], summary="User Changes Their Own Password (Authenticated)")
def change_password_route(
    password_data: PasswordChange,
    request: Request,
    response: Response,
    current_account: Account = Depends(require_permission(Permission.CHANGE_PASSWORD)),
    payload: Dict[str, Any] = Depends(get_credential_payload),
    denylist: TokenDenylist = Depends(get_token_denylist),
    db: Session = Depends(get_db)
):
    """Allows an authenticated account to change its own password."""
    change_password(db, denylist, current_account, payload, password_data, request=request)
    clear_auth_cookie(response)
    return ApiResponse(message="Password changed successfully. Please log in again.")
