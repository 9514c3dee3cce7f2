"""
Bootstrap utilities for first admin creation.
Handles automatic creation of the first admin account from environment variables.
"""
import logging
from sqlalchemy.orm import Session

from ..auth.models import Account, UserRole
from ..config import settings
from .security import hash_password

logger = logging.getLogger(__name__)

def admin_exists(db: Session) -> bool:
    """
    Check if any admin account exists in the database.
    
    Args:
        db: Database session
        
    Returns:
        bool: True if at least one admin exists, False otherwise
    """
    return db.query(Account.id).filter(Account.role == UserRole.ADMIN).first() is not None

def create_bootstrap_admin(db: Session) -> bool:
    """
    Create the first admin account from environment variables.
    
    Args:
        db: Database session
        
    Returns:
        bool: True if admin was created, False otherwise
    """
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        logger.warning("Bootstrap admin credentials not provided in environment variables")
        return False
    
    email = settings.bootstrap_admin_email.lower()
    if db.query(Account).filter(Account.email == email).first():
        logger.warning(f"Bootstrap failed: Email {email} already exists")
        return False
    
    admin = Account(
        first_name="System",
        last_name="Administrator",
        email=email,
        phone_number=settings.bootstrap_admin_phone,
        password_hash=hash_password(settings.bootstrap_admin_password),
        role=UserRole.ADMIN,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    
    logger.info(f"Bootstrap admin created: {admin.email} (ID: {admin.id})")
    return True

def bootstrap_admin_if_needed(db: Session) -> None:
    """
    Create the bootstrap admin when no admin exists yet.
    This function is called during application startup.
    
    Args:
        db: Database session
    """
    if admin_exists(db):
        logger.info("Admin account found. Bootstrap not needed.")
        return
    
    logger.info("No admin accounts found. Attempting bootstrap admin creation...")
    if not create_bootstrap_admin(db):
        logger.info("To create the first admin, set BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD in your .env file.")
