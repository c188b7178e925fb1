from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.schemas import LedgerEntryOut, LedgerEntryCreate, LedgerEntryUpdate
from vamanager.security.rbac import get_current_org_id
from vamanager.services import finance

router = APIRouter(prefix="/finance", tags=["finance"])

@router.get("/{kind}", response_model=list[LedgerEntryOut])
def list_entries(
    kind: str,
    va_id: int | None = None,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    """kind is one of subscriptions, revenues, payments."""
    return finance.list_entries(db, org_id, kind, va_id=va_id)

@router.post("/{kind}", response_model=LedgerEntryOut)
def create_entry(kind: str, payload: LedgerEntryCreate, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return finance.create_entry(db, org_id, kind, payload.dict())

@router.patch("/{kind}/{entry_id}", response_model=LedgerEntryOut)
def update_entry(kind: str, entry_id: int, payload: LedgerEntryUpdate, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return finance.update_entry(db, org_id, kind, entry_id, payload.dict(exclude_unset=True))

@router.delete("/{kind}/{entry_id}")
def delete_entry(kind: str, entry_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    finance.delete_entry(db, org_id, kind, entry_id)
    return {"ok": True}
