"""
Authentication utility functions for credential cookies and login payloads.
"""
from datetime import datetime, timezone

from fastapi import Response

from ..config import settings
from .models import Account
from .schemas import AccountResponse, LoginData
from .service import issue_credential


def set_auth_cookie(response: Response, token: str, expires_at: datetime) -> None:
    """
    Attach the credential as an HTTP-only cookie.
    
    Args:
        response: Outgoing response
        token: Signed credential
        expires_at: Credential expiry, used as the cookie max-age
    """
    max_age = max(int((expires_at - datetime.now(timezone.utc)).total_seconds()), 0)
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        path="/",
    )

def clear_auth_cookie(response: Response) -> None:
    """Remove the credential cookie from the client."""
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        path="/",
    )

def start_session(response: Response, account: Account) -> LoginData:
    """
    Issue a credential for an authenticated account and set its cookie.
    
    Returns:
        LoginData: Token, expiry and account information
    """
    token, expires_at = issue_credential(account)
    set_auth_cookie(response, token, expires_at)
    return LoginData(
        token=token,
        expires_at=expires_at,
        account=AccountResponse.model_validate(account),
    )
