# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

"""
Bulk credential and data repair jobs.

Every job walks records one at a time and commits per record. There is no
batch atomicity: a failure on one row is logged, counted and the walk
continues, so callers read the outcome from the returned counters.
"""
import logging
from datetime import datetime, timezone
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from vamanager.local_store import LocalStore
from vamanager.logging_setup import log_event
from vamanager.security.credentials import CredentialCipher, DecodeOutcome, SCHEME_AESGCM
from vamanager.services import warmup
from vamanager.services.accounts import PLATFORMS, get_platform
from vamanager.services.errors import VAManagerError

logger = logging.getLogger(__name__)

WARMUP_MIGRATION_COMPLETE_KEY = "warmupMigrationCompleted"
REPLACEMENT_CHAR = "\ufffd"

def reencrypt_accounts(
    db: Session,
    cipher: CredentialCipher,
    organization_id: int | None = None,
    platforms: tuple[str, ...] | None = None,
) -> dict:
    """
    Move every untagged or legacy-tagged password to the authenticated cipher.

    Rows whose stored value could only be passed through are still sealed
    (the stored value is taken as the password) but their ids are reported
    as ambiguous so an operator can verify them.
    """
    stats = {"migrated": 0, "skipped": 0, "errors": 0, "ambiguous": []}

    for name in platforms or tuple(PLATFORMS):
        plat = get_platform(name)
        model = plat.model
        query = db.query(model).filter(
            or_(model.password_scheme.is_(None), model.password_scheme != SCHEME_AESGCM)
        )
        if organization_id is not None:
            query = query.filter(model.organization_id == organization_id)

        for account in query.order_by(model.id.asc()).all():
            if not account.encrypted_password:
                stats["skipped"] += 1
                continue

            account_id = account.id
            result = cipher.decode_result(account.encrypted_password, account.password_scheme)
            try:
                account.encrypted_password, account.password_scheme = cipher.encode_tagged(result.plaintext)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                stats["errors"] += 1
                logger.error(f"Re-encryption failed for {name} account {account_id}: {e}")
                continue

            stats["migrated"] += 1
            if result.outcome == DecodeOutcome.PASSTHROUGH:
                stats["ambiguous"].append({"platform": name, "id": account_id})

    log_event(
        "credentials_reencrypted",
        organization_id=organization_id,
        migrated=stats["migrated"],
        skipped=stats["skipped"],
        errors=stats["errors"],
        ambiguous=len(stats["ambiguous"]),
    )
    return stats

def _normalize_key(value: str) -> str:
    return value.strip().lower().lstrip("@")

def reset_passwords(
    db: Session,
    cipher: CredentialCipher,
    platform: str,
    passwords: dict[str, str],
    organization_id: int | None = None,
) -> dict:
    """Set passwords from a username/email -> plaintext mapping."""
    plat = get_platform(platform)
    model = plat.model
    lookup = {_normalize_key(k): v for k, v in passwords.items()}
    stats = {"updated": 0, "not_found": 0, "errors": 0}

    query = db.query(model)
    if organization_id is not None:
        query = query.filter(model.organization_id == organization_id)

    for account in query.order_by(model.id.asc()).all():
        identity = getattr(account, plat.identity)
        password = lookup.get(_normalize_key(identity))

        # Mojibake from a bad export means the original password is lost
        if not password or REPLACEMENT_CHAR in password:
            logger.warning(f"{identity}: no valid password found")
            stats["not_found"] += 1
            continue

        try:
            account.encrypted_password, account.password_scheme = cipher.encode_tagged(password)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            stats["errors"] += 1
            logger.error(f"{identity}: password update failed: {e}")
            continue
        stats["updated"] += 1

    log_event("passwords_reset", platform=platform, **stats)
    return stats

def _parse_timestamp(value) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None

def import_warmup_snapshot(
    db: Session,
    organization_id: int,
    snapshot: dict,
    dry_run: bool = False,
    store: LocalStore | None = None,
    force: bool = False,
) -> dict:
    """
    Import warmup progress exported from a browser session.

    `snapshot` maps usernames to {"currentDay", "completed", "startDate"}.
    Existing rows are only moved forward, never back.
    """
    if store is not None and store.get(WARMUP_MIGRATION_COMPLETE_KEY) and not force and not dry_run:
        return {"status": "skipped", "reason": "Migration already completed"}

    stats = {"status": "success", "total": len(snapshot), "migrated": 0, "updated": 0,
             "skipped": 0, "errors": 0, "details": []}

    for username, progress in snapshot.items():
        progress = progress or {}
        try:
            current_day = int(progress.get("currentDay") or 1)
            completed = bool(progress.get("completed"))
            existing = warmup.get_progress(db, organization_id, username)
            if existing is not None:
                should_update = current_day > existing.current_day or (completed and not existing.completed)
                if not should_update:
                    stats["skipped"] += 1
                    stats["details"].append({"username": username, "action": "skipped"})
                    continue
                action = "updated"
            else:
                action = "inserted"

            if not dry_run:
                warmup.upsert_progress(
                    db, organization_id, username,
                    current_day=current_day,
                    completed=completed,
                    started_at=_parse_timestamp(progress.get("startDate")),
                )
        except (SQLAlchemyError, VAManagerError, ValueError) as e:
            db.rollback()
            stats["errors"] += 1
            stats["details"].append({"username": username, "action": "failed", "error": str(e)})
            logger.error(f"Warmup import failed for {username}: {e}")
            continue

        stats["migrated" if action == "inserted" else "updated"] += 1
        stats["details"].append({"username": username, "action": "dry-run" if dry_run else action})

    if store is not None and not dry_run and stats["errors"] == 0:
        store.set(WARMUP_MIGRATION_COMPLETE_KEY, datetime.now(timezone.utc).isoformat())

    log_event("warmup_imported", organization_id=organization_id, dry_run=dry_run,
              migrated=stats["migrated"], updated=stats["updated"],
              skipped=stats["skipped"], errors=stats["errors"])
    return stats
