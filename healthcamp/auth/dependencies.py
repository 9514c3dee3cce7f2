"""
FastAPI dependencies for authentication and authorization.

Resolution order for every protected request: extract credential, verify
signature and expiry, consult the denylist, load the account, then apply role
or permission gates. Domain code runs only after all of these succeeded.
"""
from datetime import timezone
from typing import Any, Dict, Iterable, Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..core.permissions import Permission, has_permission
from ..core.revocation import TokenDenylist, get_token_denylist
from ..core.security import decode_access_token
from ..exceptions import PermissionDeniedException
from .exceptions import (
    MissingCredentialException,
    TokenRevokedException,
    AccountNotFoundException,
    RoleDeniedException,
)
from .models import Account, UserRole

logger = logging.getLogger(__name__)

# Bearer header support alongside the HTTP-only cookie
bearer_scheme = HTTPBearer(auto_error=False)

def get_credential(
    request: Request,
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """
    Extract the raw credential from the Authorization header or the cookie.
    
    Returns:
        The token string, or None when the request carries none
    """
    if bearer is not None and bearer.credentials:
        return bearer.credentials
    return request.cookies.get(settings.cookie_name) or None

def get_credential_payload(
    token: Optional[str] = Depends(get_credential),
    denylist: TokenDenylist = Depends(get_token_denylist)
) -> Dict[str, Any]:
    """
    Verify the presented credential and check it against the denylist.
    
    Raises:
        MissingCredentialException: No credential was presented
        SessionExpiredException: Credential expired
        InvalidCredentialException: Credential malformed or forged
        TokenRevokedException: Credential was revoked
    """
    if not token:
        raise MissingCredentialException()
    
    payload = decode_access_token(token)
    
    if denylist.is_revoked(payload["jti"], token):
        logger.info(f"Revoked credential presented for account {payload['id']}")
        raise TokenRevokedException()
    
    return payload

def issued_before_password_change(payload: Dict[str, Any], account: Account) -> bool:
    """True when the credential predates the account's last password change."""
    changed_at = account.password_changed_at
    if changed_at is None:
        return False
    # SQLite hands back naive datetimes
    if changed_at.tzinfo is None:
        changed_at = changed_at.replace(tzinfo=timezone.utc)
    return float(payload.get("iat", 0)) < changed_at.timestamp()

def get_current_account(
    request: Request,
    payload: Dict[str, Any] = Depends(get_credential_payload),
    db: Session = Depends(get_db)
) -> Account:
    """
    Get current authenticated account from the verified credential.
    
    The resolved identity is attached to the request state for downstream
    authorization decisions and the audit line.
    
    Raises:
        AccountNotFoundException: The account no longer exists
        TokenRevokedException: The credential predates a password change
    """
    account = db.query(Account).filter(Account.id == payload["id"]).first()
    if not account:
        logger.warning(f"Credential for missing account {payload['id']}")
        raise AccountNotFoundException()

    if issued_before_password_change(payload, account):
        logger.info(f"Credential issued before password change presented for account {account.id}")
        raise TokenRevokedException()

    request.state.account_id = account.id
    request.state.actor_email = account.email
    request.state.actor_role = account.role.value
    request.state.credential = payload
    return account

def require_roles(allowed_roles: Iterable[UserRole]):
    """
    Dependency factory to require specific roles.
    
    Args:
        allowed_roles: Roles that are allowed access
        
    Returns:
        Function that checks if the account has a required role
    """
    allowed = frozenset(allowed_roles)
    
    def role_checker(current_account: Account = Depends(get_current_account)) -> Account:
        if current_account.role not in allowed:
            raise RoleDeniedException([role.value for role in allowed], current_account.role.value)
        return current_account
    return role_checker

def require_permission(permission: Permission):
    """
    Dependency factory to require a permission from the role matrix.
    
    Args:
        permission: Permission required for access
        
    Returns:
        Function that evaluates the permission for the current account
    """
    def permission_checker(current_account: Account = Depends(get_current_account)) -> Account:
        if not has_permission(current_account.role, permission):
            raise PermissionDeniedException(
                f"Access denied. Missing permission: {permission.value}"
            )
        return current_account
    return permission_checker

# Convenience dependencies for specific roles
require_doctor = require_roles([UserRole.DOCTOR])
require_doctor_or_admin = require_roles([UserRole.DOCTOR, UserRole.ADMIN])
