"""
Authentication-specific exceptions.

Every credential failure is a 401; the message tells the client whether the
session expired, the credential was malformed, or none was presented.
"""
from fastapi import status
from typing import Iterable
from ..exceptions import AppException, PermissionDeniedException

class UnauthenticatedException(AppException):
    """Base class for authentication exceptions."""
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class MissingCredentialException(UnauthenticatedException):
    """Exception raised when no credential accompanies the request."""
    def __init__(self, detail: str = "Please login to access this resource"):
        super().__init__(detail=detail)

class SessionExpiredException(UnauthenticatedException):
    """Exception raised when a correctly signed credential has expired."""
    def __init__(self, detail: str = "Your session has expired. Please log in again."):
        super().__init__(detail=detail)

class InvalidCredentialException(UnauthenticatedException):
    """Exception raised when a credential is malformed or forged."""
    def __init__(self, detail: str = "Invalid token. Please log in again."):
        super().__init__(detail=detail)

class TokenRevokedException(UnauthenticatedException):
    """Exception raised when a credential was explicitly invalidated."""
    def __init__(self, detail: str = "Token has been revoked. Please log in again."):
        super().__init__(detail=detail)

class AccountNotFoundException(UnauthenticatedException):
    """Exception raised when a valid credential names a missing account."""
    def __init__(self, detail: str = "User account not found or deleted"):
        super().__init__(detail=detail)

class InvalidCredentialsException(UnauthenticatedException):
    """Exception raised when login credentials are invalid."""
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(detail=detail)

class RoleDeniedException(PermissionDeniedException):
    """Exception raised when user doesn't have required role."""
    def __init__(self, required_roles: Iterable[str], user_role: str):
        roles = ", ".join(sorted(required_roles))
        detail = f"Access denied. Required roles: {roles}. Your role: {user_role}"
        super().__init__(detail=detail)
