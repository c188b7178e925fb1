import os
import time
import logging
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker
from vamanager.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", settings.database_url)

def normalize_database_url(db_url: str) -> str:
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url.startswith("postgresql://") and "+psycopg" not in db_url:
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url

def _create_engine_with_retries(db_url: str, retries: int = 3, backoff: int = 2):
    db_url = normalize_database_url(db_url)

    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    test_engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)

    for attempt in range(retries):
        try:
            with test_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return test_engine
        except Exception as e:
            if attempt < retries - 1:
                logger.warning(f"Database connection failed. Retrying in {backoff}s... ({e})")
                time.sleep(backoff)
                backoff *= 2
            else:
                logger.error(f"Failed all DB connection attempts for {db_url.split('@')[-1]}.")
                raise

def _enable_sqlite_pragmas(engine):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

try:
    engine = _create_engine_with_retries(DATABASE_URL)
except Exception:
    secondary_url = os.getenv("SECONDARY_DATABASE_URL")
    if not secondary_url:
        raise
    logger.warning("PRIMARY DATABASE FAILED. Falling back to SECONDARY_DATABASE_URL.")
    engine = _create_engine_with_retries(secondary_url)
    DATABASE_URL = secondary_url

if engine.url.get_backend_name() == "sqlite":
    _enable_sqlite_pragmas(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
