"""
Doctor Router - Doctor authentication and the admin-managed doctor directory.

Mounted under ``/api/v1/doctor`` together with the health report routes.
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_current_account, get_credential_payload, require_doctor, require_permission
from ..auth.models import Account, UserRole
from ..auth.schemas import EmailLogin, LoginData
from ..auth.service import login_staff, logout
from ..auth.utils import start_session, clear_auth_cookie
from ..core.pagination import PageParams, PageResponse, paginate
from ..core.permissions import Permission
from ..core.responses import ApiResponse
from ..core.revocation import TokenDenylist, get_token_denylist
from .schemas import DoctorCreate, DoctorResponse
from .service import create_doctor, list_doctors, get_doctor_profile_by_account_id

router = APIRouter(tags=["Doctors"])

@router.post("/login", response_model=ApiResponse[LoginData], summary="Doctor Login")
def doctor_login_route(
    login_data: EmailLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Doctor login endpoint. Only accounts with role ``doctor`` can log in here.
    """
    account = login_staff(db, login_data.email, login_data.password, UserRole.DOCTOR, request=request)
    return ApiResponse(message="Login successful", data=start_session(response, account))

@router.post("/logout", response_model=ApiResponse[None], summary="Doctor Logout")
def doctor_logout_route(
    request: Request,
    response: Response,
    current_account: Account = Depends(get_current_account),
    payload: Dict[str, Any] = Depends(get_credential_payload),
    denylist: TokenDenylist = Depends(get_token_denylist),
    db: Session = Depends(get_db)
):
    logout(db, denylist, current_account, payload, request=request)
    clear_auth_cookie(response)
    return ApiResponse(message="Logged out successfully")

@router.post("/", response_model=ApiResponse[DoctorResponse], status_code=status.HTTP_201_CREATED)
def create_doctor_route(
    doctor_data: DoctorCreate,
    request: Request,
    current_admin: Account = Depends(require_permission(Permission.MANAGE_DOCTORS)),
    db: Session = Depends(get_db)
):
    """
    Create a doctor
    
    Admins onboard doctors; this creates the doctor's login account and
    directory entry together.
    """
    doctor = create_doctor(db, current_admin, doctor_data, request=request)
    return ApiResponse(message="Doctor created successfully", data=DoctorResponse.model_validate(doctor))

@router.get("/", response_model=ApiResponse[PageResponse[DoctorResponse]])
def list_doctors_route(
    page_params: PageParams = Depends(),
    current_admin: Account = Depends(require_permission(Permission.MANAGE_DOCTORS)),
    db: Session = Depends(get_db)
):
    """
    Get a paginated list of doctors
    """
    page = paginate(list_doctors(db), page_params, DoctorResponse)
    return ApiResponse(message="Doctors fetched successfully", data=page)

@router.get("/me", response_model=ApiResponse[DoctorResponse])
def get_my_doctor_profile(
    current_account: Account = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    """
    Get the current doctor's profile
    """
    doctor = get_doctor_profile_by_account_id(db, current_account.id)
    return ApiResponse(data=DoctorResponse.model_validate(doctor))
