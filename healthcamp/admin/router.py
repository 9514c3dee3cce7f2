"""
Admin routes - admin authentication and the audit ledger.

Mounted under ``/api/v1/admin``.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_current_account, get_credential_payload, require_permission
from ..auth.models import Account, UserRole
from ..auth.schemas import EmailLogin, LoginData, AuditLogResponse
from ..auth.service import login_staff, logout
from ..auth.utils import start_session, clear_auth_cookie
from ..core.audit_service import query_audit_logs
from ..core.pagination import PageParams, PageResponse, paginate
from ..core.permissions import Permission
from ..core.responses import ApiResponse
from ..core.revocation import TokenDenylist, get_token_denylist

router = APIRouter(tags=["Admin"])

@router.post("/login", response_model=ApiResponse[LoginData], summary="Admin Login")
def admin_login_route(
    login_data: EmailLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Admin login endpoint. Only accounts with role ``admin`` can log in here.
    """
    account = login_staff(db, login_data.email, login_data.password, UserRole.ADMIN, request=request)
    return ApiResponse(message="Login successful", data=start_session(response, account))

@router.post("/logout", response_model=ApiResponse[None], summary="Admin Logout")
def admin_logout_route(
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

@router.get("/audit-logs", response_model=ApiResponse[PageResponse[AuditLogResponse]], summary="Admin Retrieves Audit Logs")
def get_audit_logs_route(
    action: Optional[str] = Query(None, description="Filter by action"),
    account_id: Optional[int] = Query(None, description="Filter by account"),
    page_params: PageParams = Depends(),
    current_admin: Account = Depends(require_permission(Permission.VIEW_AUDIT_LOGS)),
    db: Session = Depends(get_db)
):
    """Retrieves audit logs, newest first. Admins can filter by action or account."""
    page = paginate(query_audit_logs(db, action=action, account_id=account_id), page_params, AuditLogResponse)
    return ApiResponse(data=page)
