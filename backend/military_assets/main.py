"""FastAPI application."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import DEFAULT_SECRET, settings
from .database import SessionLocal
from .problem_details import register_exception_handlers
from .routers import assets, assignments, auth, bases, dashboard, purchases, transfers, users
from .schemas import HealthCheckResponse
from .time_utils import utcnow

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Backend API for tracking military assets across bases",
)

# Production safety checks (fail closed on insecure config).
if settings.is_production and DEFAULT_SECRET in (settings.SECRET_KEY, settings.JWT_SECRET_KEY):
    raise RuntimeError("SECRET_KEY and JWT_SECRET_KEY must be changed in production.")
if settings.is_production and not settings.cors_origins:
    raise RuntimeError("ALLOWED_ORIGINS must be set in production (explicit frontend origin required).")
if settings.is_production and any(origin.strip() == "*" for origin in settings.cors_origins):
    raise RuntimeError("ALLOWED_ORIGINS must be explicit in production (no wildcard when using credentials).")
if settings.is_production and any(
    origin.startswith("http://localhost") or origin.startswith("http://127.0.0.1") for origin in settings.cors_origins
):
    raise RuntimeError("ALLOWED_ORIGINS contains localhost in production; set it to your real frontend origin.")

# CORS
cors_methods = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
cors_headers = ["Authorization", "Content-Type"]
if not settings.is_production:
    cors_headers = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=cors_methods,
    allow_headers=cors_headers,
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(bases.router, prefix="/api")
app.include_router(assets.router, prefix="/api")
app.include_router(transfers.router, prefix="/api")
app.include_router(assignments.router, prefix="/api")
app.include_router(purchases.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")


@app.get("/api/health", response_model=HealthCheckResponse)
def health_check():
    """Health check endpoint."""
    database = "ok"
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database probe failed")
        database = "unavailable"
    finally:
        db.close()
    return HealthCheckResponse(
        status="ok" if database == "ok" else "degraded",
        database=database,
        timestamp=utcnow(),
    )


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Military Asset Management API",
        "version": "1.0.0",
        "docs": "/docs",
    }
