import logging
from sqlalchemy.orm import Session
from vamanager.models import Subscription, Revenue, Payment, VA
from vamanager.services.errors import RecordNotFoundError, InvalidFieldError, require_text

logger = logging.getLogger(__name__)

LEDGERS = {
    "subscriptions": Subscription,
    "revenues": Revenue,
    "payments": Payment,
}
ENTRY_FIELDS = ("va_id", "label", "amount", "date")

def get_ledger(kind: str):
    model = LEDGERS.get(kind)
    if model is None:
        raise InvalidFieldError(f"Unknown ledger '{kind}'")
    return model

def _check_va(db: Session, organization_id: int, va_id: int | None):
    if va_id is None:
        return
    if not db.query(VA).filter(VA.id == va_id, VA.organization_id == organization_id).first():
        raise InvalidFieldError(f"va_id {va_id} does not belong to this organization")

def list_entries(db: Session, organization_id: int, kind: str, va_id: int | None = None) -> list:
    model = get_ledger(kind)
    query = db.query(model).filter(model.organization_id == organization_id)
    if va_id is not None:
        query = query.filter(model.va_id == va_id)
    return query.order_by(model.date.desc(), model.id.desc()).all()

def get_entry(db: Session, organization_id: int, kind: str, entry_id: int):
    model = get_ledger(kind)
    entry = db.query(model).filter(model.id == entry_id, model.organization_id == organization_id).first()
    if not entry:
        raise RecordNotFoundError(f"{kind[:-1].capitalize()} not found")
    return entry

def create_entry(db: Session, organization_id: int, kind: str, data: dict):
    model = get_ledger(kind)
    label = require_text(data.get("label"), "label")
    _check_va(db, organization_id, data.get("va_id"))

    entry = model(
        organization_id=organization_id,
        va_id=data.get("va_id"),
        label=label,
        amount=data.get("amount") or 0,
        date=data.get("date"),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"{kind[:-1].capitalize()} created: {entry.id}")
    return entry

def update_entry(db: Session, organization_id: int, kind: str, entry_id: int, updates: dict):
    entry = get_entry(db, organization_id, kind, entry_id)
    if "label" in updates:
        updates = {**updates, "label": require_text(updates["label"], "label")}
    if "amount" in updates and updates["amount"] is None:
        raise InvalidFieldError("amount cannot be cleared")
    if "va_id" in updates:
        _check_va(db, organization_id, updates["va_id"])
    for key, value in updates.items():
        if key in ENTRY_FIELDS:
            setattr(entry, key, value)
    db.commit()
    db.refresh(entry)
    return entry

def delete_entry(db: Session, organization_id: int, kind: str, entry_id: int) -> bool:
    entry = get_entry(db, organization_id, kind, entry_id)
    db.delete(entry)
    db.commit()
    return True
