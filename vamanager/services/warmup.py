import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from vamanager.models import WarmupProgress
from vamanager.services.errors import RecordNotFoundError, InvalidFieldError, require_text

logger = logging.getLogger(__name__)

def clean_username(username: str | None) -> str:
    cleaned = require_text(username, "username").replace("@", "").strip()
    if not cleaned:
        raise InvalidFieldError("username is required")
    return cleaned

def list_progress(db: Session, organization_id: int) -> list[WarmupProgress]:
    return (
        db.query(WarmupProgress)
        .filter(WarmupProgress.organization_id == organization_id)
        .order_by(WarmupProgress.username.asc())
        .all()
    )

def get_progress(db: Session, organization_id: int, username: str) -> WarmupProgress | None:
    return db.query(WarmupProgress).filter(
        WarmupProgress.organization_id == organization_id,
        WarmupProgress.username == clean_username(username)
    ).first()

def upsert_progress(
    db: Session,
    organization_id: int,
    username: str,
    current_day: int = 1,
    completed: bool = False,
    started_at: datetime | None = None,
) -> WarmupProgress:
    username = clean_username(username)
    if current_day < 1:
        raise InvalidFieldError("current_day must be at least 1")

    row = get_progress(db, organization_id, username)
    if row is None:
        row = WarmupProgress(
            organization_id=organization_id,
            username=username,
            started_at=started_at or datetime.now(timezone.utc),
        )
        db.add(row)
    elif started_at is not None:
        row.started_at = started_at

    row.current_day = current_day
    row.completed = completed
    db.commit()
    db.refresh(row)
    return row

def delete_progress(db: Session, organization_id: int, username: str) -> bool:
    row = get_progress(db, organization_id, username)
    if not row:
        raise RecordNotFoundError("Warmup progress not found")
    db.delete(row)
    db.commit()
    logger.info(f"Warmup progress deleted: {row.username}")
    return True
