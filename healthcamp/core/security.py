"""
Core security utilities for authentication and password handling.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
import uuid
import logging

from ..config import settings
from ..auth.exceptions import SessionExpiredException, InvalidCredentialException

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.
    
    Args:
        password: Plain text password
        
    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.
    
    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against
        
    Returns:
        bool: True if password matches hash
    """
    return pwd_context.verify(plain_password, hashed_password)

def dummy_verify() -> None:
    """Spend the same time as a real verification when no account matched."""
    pwd_context.dummy_verify()

def create_access_token(
    account_id: int,
    expires_delta: Optional[timedelta] = None,
    issued_at: Optional[datetime] = None
) -> str:
    """
    Create a signed JWT credential for an account.
    
    The payload carries the account id plus the registered claims needed for
    expiry and revocation. Role and personal data are resolved server-side on
    every request and never placed in the token.
    
    Args:
        account_id: Account the credential is issued to
        expires_delta: Credential lifetime (defaults to the configured lifetime)
        issued_at: Issuance time (defaults to now)
        
    Returns:
        str: Encoded JWT token
    """
    issued = issued_at or datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    
    to_encode = {
        "id": account_id,
        "jti": uuid.uuid4().hex,
        # Fractional seconds; compared against password_changed_at
        "iat": issued.timestamp(),
        "exp": issued + lifetime,
    }
    
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT credential.
    
    Args:
        token: JWT token string
        
    Returns:
        Dict containing the token payload
        
    Raises:
        SessionExpiredException: If the signature is valid but the token expired
        InvalidCredentialException: If the token is malformed, forged or incomplete
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        raise SessionExpiredException()
    except JWTError as e:
        logger.info(f"Rejected credential: {str(e)}")
        raise InvalidCredentialException()
    
    if not isinstance(payload.get("id"), int) or not payload.get("jti"):
        raise InvalidCredentialException("Invalid token payload")
    
    return payload

def get_token_expiry(payload: Dict[str, Any]) -> datetime:
    """
    Get the expiry time of a decoded credential.
    
    Args:
        payload: Decoded token payload
        
    Returns:
        datetime: Expiration time (UTC)
    """
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
