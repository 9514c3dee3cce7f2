from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, event
from sqlalchemy.orm import relationship

from ..database import Base

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(64), nullable=False, index=True)
    details = Column(JSON, nullable=True)  # Additional context as JSON
    ip_address = Column(String(64), nullable=True)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    account = relationship("Account")

    def __repr__(self):
        return f"<AuditLog(id={self.id}, account_id={self.account_id}, action='{self.action}', timestamp='{self.timestamp}')>"


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    # Audit entries are append-only
    raise ValueError("Audit log entries are immutable")
