# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import logging
from dataclasses import dataclass
from typing import Any
from sqlalchemy import func
from sqlalchemy.orm import Session
from vamanager.models import TwitterAccount, InstagramAccount, GmailAccount, VA, Creator, ACCOUNT_STATUSES
from vamanager.security.credentials import CredentialCipher, PASSWORD_PLACEHOLDER
from vamanager.services.errors import RecordNotFoundError, DuplicateRecordError, InvalidFieldError, require_text

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Platform:
    name: str
    model: Any
    identity: str
    fields: tuple[str, ...]

PLATFORMS = {
    "twitter": Platform("twitter", TwitterAccount, "username",
                        ("username", "creator_id", "va_id", "gmail_id", "status", "notes")),
    "instagram": Platform("instagram", InstagramAccount, "username",
                          ("username", "creator_id", "va_id", "gmail_id", "status", "notes")),
    "gmail": Platform("gmail", GmailAccount, "email",
                      ("email", "va_id", "status", "notes")),
}

def get_platform(platform: str) -> Platform:
    plat = PLATFORMS.get(platform)
    if not plat:
        raise InvalidFieldError(f"Unknown platform '{platform}'")
    return plat

def normalize_identity(plat: Platform, value: str | None) -> str:
    value = require_text(value, plat.identity)
    if plat.identity == "username":
        value = value.lstrip("@").strip()
        if not value:
            raise InvalidFieldError("username is required")
    return value

def serialize_account(plat: Platform, account, cipher: CredentialCipher, reveal: bool = True) -> dict:
    data = {
        "id": account.id,
        "organization_id": account.organization_id,
        "platform": plat.name,
        plat.identity: getattr(account, plat.identity),
        "va_id": account.va_id,
        "status": account.status,
        "notes": account.notes,
        "password_scheme": account.password_scheme,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    }
    if plat.name != "gmail":
        data["creator_id"] = account.creator_id
        data["gmail_id"] = account.gmail_id

    if reveal:
        result = cipher.decode_result(account.encrypted_password, account.password_scheme)
        data["password"] = result.plaintext
        data["password_outcome"] = result.outcome.value
    else:
        data["password"] = PASSWORD_PLACEHOLDER if account.encrypted_password else ""
        data["password_outcome"] = None
    return data

def _ensure_unique(db: Session, plat: Platform, organization_id: int, identity: str, exclude_id: int | None = None):
    column = getattr(plat.model, plat.identity)
    query = db.query(plat.model).filter(
        plat.model.organization_id == organization_id,
        func.lower(column) == identity.lower()
    )
    if exclude_id is not None:
        query = query.filter(plat.model.id != exclude_id)
    if query.first():
        raise DuplicateRecordError(f"A {plat.name} account '{identity}' already exists in this organization")

def _ensure_references(db: Session, organization_id: int, data: dict):
    refs = (("va_id", VA), ("creator_id", Creator), ("gmail_id", GmailAccount))
    for field, model in refs:
        ref_id = data.get(field)
        if ref_id is None:
            continue
        row = db.query(model).filter(model.id == ref_id, model.organization_id == organization_id).first()
        if not row:
            raise InvalidFieldError(f"{field} {ref_id} does not belong to this organization")

def _validate_status(status: str | None):
    if status is not None and status not in ACCOUNT_STATUSES:
        raise InvalidFieldError(f"status must be one of {', '.join(ACCOUNT_STATUSES)}")

def _get_row(db: Session, plat: Platform, organization_id: int, account_id: int):
    account = db.query(plat.model).filter(
        plat.model.id == account_id,
        plat.model.organization_id == organization_id
    ).first()
    if not account:
        raise RecordNotFoundError(f"{plat.name.capitalize()} account not found")
    return account

def list_accounts(
    db: Session,
    cipher: CredentialCipher,
    organization_id: int,
    platform: str,
    va_id: int | None = None,
    creator_id: int | None = None,
    reveal: bool = True,
) -> list[dict]:
    plat = get_platform(platform)
    query = db.query(plat.model).filter(plat.model.organization_id == organization_id)
    if va_id is not None:
        query = query.filter(plat.model.va_id == va_id)
    if creator_id is not None:
        if not hasattr(plat.model, "creator_id"):
            raise InvalidFieldError(f"{plat.name} accounts are not linked to creators")
        query = query.filter(plat.model.creator_id == creator_id)

    if va_id is not None or creator_id is not None:
        query = query.order_by(getattr(plat.model, plat.identity).asc())
    else:
        query = query.order_by(plat.model.created_at.desc(), plat.model.id.desc())

    rows = [serialize_account(plat, a, cipher, reveal=reveal) for a in query.all()]
    logger.debug(f"Retrieved {len(rows)} {plat.name} accounts")
    return rows

def get_account(db: Session, cipher: CredentialCipher, organization_id: int, platform: str, account_id: int) -> dict:
    plat = get_platform(platform)
    return serialize_account(plat, _get_row(db, plat, organization_id, account_id), cipher)

def create_account(db: Session, cipher: CredentialCipher, organization_id: int, platform: str, data: dict) -> dict:
    plat = get_platform(platform)
    identity = normalize_identity(plat, data.get(plat.identity))
    _validate_status(data.get("status"))
    _ensure_unique(db, plat, organization_id, identity)
    _ensure_references(db, organization_id, data)

    stored_form, scheme = cipher.encode_tagged(data.get("password") or "")

    values = {k: data[k] for k in plat.fields if data.get(k) is not None}
    values[plat.identity] = identity
    account = plat.model(
        organization_id=organization_id,
        encrypted_password=stored_form or None,
        password_scheme=scheme,
        **values,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info(f"{plat.name.capitalize()} account created: {identity}")
    return serialize_account(plat, account, cipher)

def update_account(
    db: Session,
    cipher: CredentialCipher,
    organization_id: int,
    platform: str,
    account_id: int,
    updates: dict,
) -> dict:
    plat = get_platform(platform)
    account = _get_row(db, plat, organization_id, account_id)

    updates = dict(updates)
    if plat.identity in updates:
        updates[plat.identity] = normalize_identity(plat, updates[plat.identity])
        _ensure_unique(db, plat, organization_id, updates[plat.identity], exclude_id=account.id)
    if "status" in updates and updates["status"] is None:
        raise InvalidFieldError("status cannot be cleared")
    _validate_status(updates.get("status"))
    _ensure_references(db, organization_id, updates)

    password = updates.pop("password", None)
    if password:
        account.encrypted_password, account.password_scheme = cipher.encode_tagged(password)

    for key, value in updates.items():
        if key in plat.fields:
            setattr(account, key, value)

    db.commit()
    db.refresh(account)
    logger.info(f"{plat.name.capitalize()} account updated: {account_id}")
    return serialize_account(plat, account, cipher)

def update_account_status(
    db: Session,
    organization_id: int,
    platform: str,
    account_id: int,
    status: str,
    notes: str | None = None,
):
    """Set the status, keeping existing notes unless new ones are given."""
    plat = get_platform(platform)
    if status not in ACCOUNT_STATUSES:
        raise InvalidFieldError(f"status must be one of {', '.join(ACCOUNT_STATUSES)}")
    account = _get_row(db, plat, organization_id, account_id)
    account.status = status
    if notes is not None:
        account.notes = notes
    db.commit()
    db.refresh(account)
    logger.info(f"{plat.name.capitalize()} account {account_id} status set to {status}")
    return account

def delete_account(db: Session, organization_id: int, platform: str, account_id: int) -> bool:
    plat = get_platform(platform)
    account = _get_row(db, plat, organization_id, account_id)
    db.delete(account)
    db.commit()
    logger.info(f"{plat.name.capitalize()} account deleted: {account_id}")
    return True

def reveal_password(db: Session, cipher: CredentialCipher, organization_id: int, platform: str, account_id: int) -> dict:
    plat = get_platform(platform)
    account = _get_row(db, plat, organization_id, account_id)
    result = cipher.decode_result(account.encrypted_password, account.password_scheme)
    return {
        "id": account.id,
        "password": result.plaintext,
        "outcome": result.outcome.value,
        "needs_reencrypt": result.needs_reencrypt and bool(account.encrypted_password),
    }
