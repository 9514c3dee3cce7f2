"""
Credential denylist consulted by the access-control dependencies.

Credentials are stateless JWTs, so logout and password changes record the
credential's ``jti`` here until its natural expiry. Redis is used when
REDIS_URL is configured (keys expire with the credential); otherwise the
entries live in the ``revoked_credentials`` table.
"""
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional
import logging

import redis
from fastapi import Depends
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Session

from ..config import settings
from ..database import Base, get_db

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "revoked-token:"


class RevokedCredential(Base):
    """Denylist entry for a credential invalidated before its expiry."""
    __tablename__ = "revoked_credentials"

    jti = Column(String(64), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<RevokedCredential(jti='{self.jti}', account_id={self.account_id})>"


class TokenDenylist:
    """Interface shared by the denylist backends."""

    def is_revoked(self, jti: str, token: Optional[str] = None) -> bool:
        raise NotImplementedError

    def revoke(self, jti: str, account_id: Optional[int], expires_at: datetime) -> None:
        raise NotImplementedError


class DatabaseTokenDenylist(TokenDenylist):
    """Denylist stored in the application database."""

    def __init__(self, db: Session):
        self.db = db

    def is_revoked(self, jti: str, token: Optional[str] = None) -> bool:
        return self.db.get(RevokedCredential, jti) is not None

    def revoke(self, jti: str, account_id: Optional[int], expires_at: datetime) -> None:
        now = datetime.now(timezone.utc)
        # Expired entries can never match a credential that passes verification
        self.db.query(RevokedCredential).filter(RevokedCredential.expires_at < now).delete(
            synchronize_session=False
        )
        self.db.merge(RevokedCredential(jti=jti, account_id=account_id, expires_at=expires_at))
        self.db.commit()
        logger.info(f"Credential {jti} revoked for account {account_id}")


class RedisTokenDenylist(TokenDenylist):
    """Denylist stored in Redis with a TTL equal to the credential's remaining lifetime."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def is_revoked(self, jti: str, token: Optional[str] = None) -> bool:
        return bool(self.client.exists(f"{REDIS_KEY_PREFIX}{jti}"))

    def revoke(self, jti: str, account_id: Optional[int], expires_at: datetime) -> None:
        ttl = int((expires_at - datetime.now(timezone.utc)).total_seconds())
        if ttl <= 0:
            return
        self.client.setex(f"{REDIS_KEY_PREFIX}{jti}", ttl, str(account_id or ""))
        logger.info(f"Credential {jti} revoked for account {account_id} (ttl {ttl}s)")


@lru_cache(maxsize=1)
def _redis_client(url: str) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        socket_timeout=settings.database_timeout_seconds,
        socket_connect_timeout=settings.database_timeout_seconds,
    )


def get_token_denylist(db: Session = Depends(get_db)) -> TokenDenylist:
    """
    Denylist dependency - Redis when configured, the database otherwise.
    """
    if settings.redis_url:
        return RedisTokenDenylist(_redis_client(settings.redis_url))
    return DatabaseTokenDenylist(db)
