import logging
from sqlalchemy import func
from sqlalchemy.orm import Session
from vamanager.models import VA, Creator, VACreator, Subscription, Revenue, Payment
from vamanager.security.credentials import CredentialCipher
from vamanager.services import accounts
from vamanager.services.errors import RecordNotFoundError, DuplicateRecordError, require_text

logger = logging.getLogger(__name__)

VA_FIELDS = ("name", "email", "notes")
CREATOR_FIELDS = ("name", "photo_url")

def _ensure_unique_name(db: Session, model, organization_id: int, name: str, exclude_id: int | None = None):
    query = db.query(model).filter(
        model.organization_id == organization_id,
        func.lower(model.name) == name.lower()
    )
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise DuplicateRecordError(f"'{name}' already exists in this organization")

# VAs

def list_vas(db: Session, organization_id: int) -> list[VA]:
    return db.query(VA).filter(VA.organization_id == organization_id).order_by(VA.name.asc()).all()

def get_va(db: Session, organization_id: int, va_id: int) -> VA:
    va = db.query(VA).filter(VA.id == va_id, VA.organization_id == organization_id).first()
    if not va:
        raise RecordNotFoundError("VA not found")
    return va

def create_va(db: Session, organization_id: int, data: dict) -> VA:
    name = require_text(data.get("name"), "name")
    _ensure_unique_name(db, VA, organization_id, name)

    va = VA(organization_id=organization_id, name=name, email=data.get("email"), notes=data.get("notes"))
    db.add(va)
    db.commit()
    db.refresh(va)
    logger.info(f"VA created: {va.name}")
    return va

def update_va(db: Session, organization_id: int, va_id: int, updates: dict) -> VA:
    va = get_va(db, organization_id, va_id)
    if "name" in updates:
        updates = {**updates, "name": require_text(updates["name"], "name")}
        _ensure_unique_name(db, VA, organization_id, updates["name"], exclude_id=va.id)
    for key, value in updates.items():
        if key in VA_FIELDS:
            setattr(va, key, value)
    db.commit()
    db.refresh(va)
    return va

def delete_va(db: Session, organization_id: int, va_id: int) -> bool:
    va = get_va(db, organization_id, va_id)
    # Finance rows keep their history but lose the link
    for model in (Subscription, Revenue, Payment):
        db.query(model).filter(model.va_id == va.id).update({model.va_id: None}, synchronize_session=False)
    db.delete(va)
    db.commit()
    logger.info(f"VA deleted: {va_id}")
    return True

# Creators

def list_creators(db: Session, organization_id: int) -> list[Creator]:
    return db.query(Creator).filter(Creator.organization_id == organization_id).order_by(Creator.name.asc()).all()

def get_creator(db: Session, organization_id: int, creator_id: int) -> Creator:
    creator = db.query(Creator).filter(Creator.id == creator_id, Creator.organization_id == organization_id).first()
    if not creator:
        raise RecordNotFoundError("Creator not found")
    return creator

def create_creator(db: Session, organization_id: int, data: dict) -> Creator:
    name = require_text(data.get("name"), "name")
    _ensure_unique_name(db, Creator, organization_id, name)

    creator = Creator(organization_id=organization_id, name=name, photo_url=data.get("photo_url"))
    db.add(creator)
    db.commit()
    db.refresh(creator)
    logger.info(f"Creator created: {creator.name}")
    return creator

def update_creator(db: Session, organization_id: int, creator_id: int, updates: dict) -> Creator:
    creator = get_creator(db, organization_id, creator_id)
    if "name" in updates:
        updates = {**updates, "name": require_text(updates["name"], "name")}
        _ensure_unique_name(db, Creator, organization_id, updates["name"], exclude_id=creator.id)
    for key, value in updates.items():
        if key in CREATOR_FIELDS:
            setattr(creator, key, value)
    db.commit()
    db.refresh(creator)
    return creator

def delete_creator(db: Session, organization_id: int, creator_id: int) -> bool:
    creator = get_creator(db, organization_id, creator_id)
    db.delete(creator)
    db.commit()
    logger.info(f"Creator deleted: {creator_id}")
    return True

# Assignments

def assign_creator_to_va(db: Session, organization_id: int, va_id: int, creator_id: int) -> VACreator:
    get_va(db, organization_id, va_id)
    get_creator(db, organization_id, creator_id)

    link = db.query(VACreator).filter(VACreator.va_id == va_id, VACreator.creator_id == creator_id).first()
    if link:
        return link

    link = VACreator(va_id=va_id, creator_id=creator_id)
    db.add(link)
    db.commit()
    db.refresh(link)
    logger.info(f"Creator {creator_id} assigned to VA {va_id}")
    return link

def remove_creator_from_va(db: Session, organization_id: int, va_id: int, creator_id: int) -> bool:
    get_va(db, organization_id, va_id)
    link = db.query(VACreator).filter(VACreator.va_id == va_id, VACreator.creator_id == creator_id).first()
    if not link:
        raise RecordNotFoundError("Creator is not assigned to this VA")
    db.delete(link)
    db.commit()
    return True

def get_creators_by_va(db: Session, organization_id: int, va_id: int) -> list[Creator]:
    return (
        db.query(Creator)
        .join(VACreator, VACreator.creator_id == Creator.id)
        .filter(VACreator.va_id == va_id, Creator.organization_id == organization_id)
        .order_by(Creator.name.asc())
        .all()
    )

def get_vas_for_creator(db: Session, organization_id: int, creator_id: int) -> list[VA]:
    return (
        db.query(VA)
        .join(VACreator, VACreator.va_id == VA.id)
        .filter(VACreator.creator_id == creator_id, VA.organization_id == organization_id)
        .order_by(VA.name.asc())
        .all()
    )

def get_all_va_creator_relations(db: Session, organization_id: int) -> dict[int, list[int]]:
    rows = (
        db.query(VACreator.va_id, VACreator.creator_id)
        .join(VA, VA.id == VACreator.va_id)
        .filter(VA.organization_id == organization_id)
        .all()
    )
    relations = {va.id: [] for va in list_vas(db, organization_id)}
    for va_id, creator_id in rows:
        relations.setdefault(va_id, []).append(creator_id)
    return relations

def get_complete_va_data(db: Session, cipher: CredentialCipher, organization_id: int, va_id: int) -> dict:
    """VA with its creators and every account it runs, passwords decoded."""
    va = get_va(db, organization_id, va_id)
    return {
        "va": va,
        "creators": get_creators_by_va(db, organization_id, va_id),
        "twitter_accounts": accounts.list_accounts(db, cipher, organization_id, "twitter", va_id=va_id),
        "instagram_accounts": accounts.list_accounts(db, cipher, organization_id, "instagram", va_id=va_id),
        "gmail_accounts": accounts.list_accounts(db, cipher, organization_id, "gmail", va_id=va_id),
    }

def get_complete_creator_data(db: Session, cipher: CredentialCipher, organization_id: int, creator_id: int) -> dict:
    creator = get_creator(db, organization_id, creator_id)
    return {
        "creator": creator,
        "vas": get_vas_for_creator(db, organization_id, creator_id),
        "twitter_accounts": accounts.list_accounts(db, cipher, organization_id, "twitter", creator_id=creator_id),
        "instagram_accounts": accounts.list_accounts(db, cipher, organization_id, "instagram", creator_id=creator_id),
    }
