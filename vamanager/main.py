import uuid
import logging
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from vamanager.config import settings
from vamanager.db import engine, SessionLocal
from vamanager.local_store import LocalStore
from vamanager.logging_setup import setup_logging, request_id_var, org_id_var, log_event
from vamanager.models import Base, User
from vamanager.routes import auth, orgs, roster, accounts, finance, warmup, backups, maintenance
from vamanager.security.auth import get_password_hash
from vamanager.security.credentials import CredentialCipher
from vamanager.services.errors import VAManagerError, RecordNotFoundError, DuplicateRecordError, InvalidFieldError

setup_logging()
logger = logging.getLogger(__name__)

if settings.secret_key == "change-me-in-production-for-jwt":
    logger.warning("STARTUP WARNING: JWT_SECRET is using the default insecure key")
if not settings.database_url or "sqlite" in settings.database_url:
    logger.warning("STARTUP WARNING: running on SQLite, set DATABASE_URL for production")

app = FastAPI(title="VA Manager")
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.state.local_store = LocalStore(settings.local_state_path)
app.state.cipher = CredentialCipher(app.state.local_store)

@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    request_id_token = request_id_var.set(request_id)
    org_id_token = org_id_var.set(None)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(request_id_token)
        org_id_var.reset(org_id_token)
    response.headers["X-Request-Id"] = request_id
    return response

ERROR_STATUS = {
    RecordNotFoundError: 404,
    DuplicateRecordError: 409,
    InvalidFieldError: 400,
}

@app.exception_handler(VAManagerError)
async def service_error_handler(request: Request, exc: VAManagerError):
    status_code = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "type": type(exc).__name__},
    )

@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": "va-manager",
        "now": datetime.now(timezone.utc).isoformat()
    }

@app.get("/ready")
def readiness_check():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT id FROM users LIMIT 1"))
        return {"status": "ready"}
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "not_ready", "detail": "Database migrations pending or DB unreachable."})

app.include_router(auth.router)
app.include_router(orgs.router)
app.include_router(roster.router)
app.include_router(accounts.router)
app.include_router(finance.router)
app.include_router(warmup.router)
app.include_router(backups.router)
app.include_router(maintenance.router)

def bootstrap_superadmin():
    """Seed the platform superadmin from settings when none exists."""
    if not settings.superadmin_email or not settings.superadmin_password:
        return

    db = SessionLocal()
    try:
        if db.query(User).filter(User.is_superadmin == True).first():
            return
        logger.info(f"Bootstrap: creating superadmin {settings.superadmin_email}")
        db.add(User(
            email=settings.superadmin_email,
            password_hash=get_password_hash(settings.superadmin_password),
            is_superadmin=True,
            is_active=True,
            name="Platform Superadmin"
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Bootstrap failed: {e}")
    finally:
        db.close()

@app.on_event("startup")
def on_startup():
    logger.info("STARTUP: Creating/verifying database tables...")
    Base.metadata.create_all(bind=engine)
    bootstrap_superadmin()
    log_event("service_started", database=engine.url.get_backend_name())
