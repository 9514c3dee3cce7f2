"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from . import __version__
from .database import Base, SessionLocal, engine
from .config import settings
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .core.bootstrap import bootstrap_admin_if_needed
from .admin.router import router as admin_router
from .auth.router import router as auth_router
from .doctors.router import router as doctors_router
from .health_reports.router import router as health_reports_router
from .relatives.router import router as relatives_router

# Import all models here for creating tables
from .auth.models import Account  # noqa: F401
from .core.audit_models import AuditLog  # noqa: F401
from .core.revocation import RevokedCredential  # noqa: F401
from .doctors.models import Doctor  # noqa: F401
from .health_reports.models import HealthReport  # noqa: F401
from .relatives.models import Relative  # noqa: F401

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

# Bootstrap admin creation
logger.info("Starting Health Camp API...")
db = SessionLocal()
try:
    bootstrap_admin_if_needed(db)
except Exception as e:
    logger.error(f"Bootstrap process failed: {str(e)}")
finally:
    db.close()

# Create FastAPI application
app = FastAPI(
    title="Health Camp API",
    description="API for community health camps: accounts, relatives and health reports",
    version=__version__
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
origins = sorted({
    "http://localhost:3000",
    "http://localhost:5173",
    settings.frontend_url,
})

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router, prefix="/api/v1/user")
app.include_router(relatives_router, prefix="/api/v1/user")
app.include_router(admin_router, prefix="/api/v1/admin")
app.include_router(doctors_router, prefix="/api/v1/doctor")
app.include_router(health_reports_router, prefix="/api/v1/doctor")

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.
    
    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Health Camp API", "version": __version__}

# Health check endpoint
@app.get("/health")
def health_check():
    """
    Health check endpoint for monitoring.
    
    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": "connected"}
