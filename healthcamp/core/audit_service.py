from sqlalchemy.orm import Session
from fastapi import Request
from typing import Optional, Dict, Any

from .audit_models import AuditLog

def create_audit_log(
    db: Session,
    action: str,
    account_id: Optional[int] = None,
    request: Optional[Request] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Creates an audit log entry.

    Commits the current session, so callers record the event after their own
    changes are committed (or when there are none, e.g. a rejected login).

    Args:
        db: The database session.
        action: A string describing the action performed (e.g., 'LOGIN_SUCCESS', 'HEALTH_REPORT_CREATED').
        account_id: The ID of the account that performed the action (if applicable).
        request: The FastAPI request object to extract IP address (if available).
        details: A dictionary containing additional context or data related to the action.

    Returns:
        The created AuditLog object.
    """
    ip_address = None
    if request is not None and request.client:
        ip_address = request.client.host

    audit_entry = AuditLog(
        account_id=account_id,
        action=action,
        ip_address=ip_address,
        details=details
    )
    db.add(audit_entry)
    db.commit()
    db.refresh(audit_entry)
    return audit_entry


def query_audit_logs(
    db: Session,
    action: Optional[str] = None,
    account_id: Optional[int] = None
):
    """
    Newest-first audit entries, optionally filtered by action or account.
    """
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if account_id is not None:
        query = query.filter(AuditLog.account_id == account_id)
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
