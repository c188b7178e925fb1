from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.local_store import LocalStore, get_local_store
from vamanager.schemas import WarmupOut, WarmupIn, WarmupImportIn
from vamanager.security.rbac import get_current_org_id
from vamanager.services import warmup, maintenance

router = APIRouter(prefix="/warmup", tags=["warmup"])

@router.get("", response_model=list[WarmupOut])
def list_progress(db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return warmup.list_progress(db, org_id)

@router.put("", response_model=WarmupOut)
def upsert_progress(payload: WarmupIn, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return warmup.upsert_progress(
        db, org_id, payload.username,
        current_day=payload.current_day,
        completed=payload.completed,
        started_at=payload.started_at,
    )

@router.post("/import")
def import_snapshot(
    payload: WarmupImportIn,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    store: LocalStore = Depends(get_local_store)
):
    """Import warmup progress exported from a browser session."""
    return maintenance.import_warmup_snapshot(db, org_id, payload.snapshot, dry_run=payload.dry_run, store=store, force=True)

@router.delete("/{username}")
def delete_progress(username: str, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    warmup.delete_progress(db, org_id, username)
    return {"ok": True}
