"""
Custom middleware for the FastAPI application.
"""
import time
import logging
from datetime import datetime, timezone
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import uuid
import json

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"


def redact_body(raw: bytes) -> str:
    """
    Render a request body for the audit log with password fields masked.
    
    Args:
        raw: Raw request body
        
    Returns:
        str: Printable body
    """
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return f"<{len(raw)} bytes>"
    
    def _mask(value):
        if isinstance(value, dict):
            return {
                key: REDACTED if "password" in str(key).lower() else _mask(item)
                for key, item in value.items()
            }
        if isinstance(value, list):
            return [_mask(item) for item in value]
        return value
    
    return json.dumps(_mask(payload), indent=2, default=str)


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Middleware emitting one audit line per request.
    
    The line is written after the endpoint ran, so it reflects the identity
    resolved by the access-control dependencies (or "anonymous").
    """
    def __init__(self, app: ASGIApp, verbose: bool = False):
        super().__init__(app)
        self.verbose = verbose
    
    async def dispatch(self, request: Request, call_next):
        """
        Process the request and log information.
        
        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler
            
        Returns:
            Response: The response from the next handler
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        
        body = b""
        if self.verbose and request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
        
        # Record request start time
        start_time = time.time()
        
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {str(e)} - Duration: {process_time:.4f}s"
            )
            raise
        
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        
        actor_email = getattr(request.state, "actor_email", None) or "anonymous"
        actor_role = getattr(request.state, "actor_role", None) or "unknown"
        timestamp = datetime.now(timezone.utc).isoformat()
        logger.info(
            f"[{timestamp}] {request.method} {request.url.path} by {actor_email} ({actor_role}) "
            f"- Status: {response.status_code}"
        )
        if body:
            logger.info(f"Request {request_id} body: {redact_body(body)}")
        
        return response


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.
    
    Args:
        app: FastAPI application instance
    """
    app.add_middleware(AuditLogMiddleware, verbose=settings.verbose_audit)
