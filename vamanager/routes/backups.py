from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.local_store import LocalStore, get_local_store
from vamanager.schemas import BackupHistoryOut
from vamanager.security.rbac import get_current_org_id
from vamanager.services import backups

router = APIRouter(prefix="/backups", tags=["backups"])

@router.post("")
def create_backup(
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    store: LocalStore = Depends(get_local_store)
):
    snapshot = backups.create_backup(db, store, org_id)
    return {"timestamp": snapshot["timestamp"], "counts": snapshot["counts"]}

@router.get("", response_model=list[BackupHistoryOut])
def backup_history(
    org_id: int = Depends(get_current_org_id),
    store: LocalStore = Depends(get_local_store)
):
    return [b for b in backups.get_backup_history(store) if b["organization_id"] == org_id]

@router.get("/latest")
def download_latest(
    org_id: int = Depends(get_current_org_id),
    store: LocalStore = Depends(get_local_store)
):
    snapshot = backups.load_backup(store, organization_id=org_id)
    filename = f"va-manager-backup-{snapshot['timestamp'].split('T')[0]}.json"
    return JSONResponse(
        content=snapshot,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
