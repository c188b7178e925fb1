# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import os
import json
import logging
from datetime import datetime, date, timezone
from decimal import Decimal
from sqlalchemy.orm import Session
from vamanager.config import settings
from vamanager.local_store import LocalStore, BACKUP_INDEX_KEY
from vamanager.models import VA, Creator, VACreator, TwitterAccount, InstagramAccount, GmailAccount
from vamanager.services.errors import RecordNotFoundError

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"

# Passwords are exported in stored form; a snapshot never holds plaintext
SNAPSHOT_TABLES = {
    "vas": VA,
    "creators": Creator,
    "twitter_accounts": TwitterAccount,
    "instagram_accounts": InstagramAccount,
    "gmail_accounts": GmailAccount,
}

def _ensure_backup_dir(backups_dir: str):
    os.makedirs(backups_dir, exist_ok=True)

def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value

def _row_to_dict(row) -> dict:
    return {c.name: _json_value(getattr(row, c.name)) for c in row.__table__.columns}

def build_snapshot(db: Session, organization_id: int) -> dict:
    data = {}
    for name, model in SNAPSHOT_TABLES.items():
        rows = db.query(model).filter(model.organization_id == organization_id).order_by(model.id.asc()).all()
        data[name] = [_row_to_dict(r) for r in rows]

    links = (
        db.query(VACreator)
        .join(VA, VA.id == VACreator.va_id)
        .filter(VA.organization_id == organization_id)
        .order_by(VACreator.id.asc())
        .all()
    )
    data["va_creators"] = [_row_to_dict(link) for link in links]

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "organization_id": organization_id,
        "version": BACKUP_VERSION,
        "data": data,
        "counts": {name: len(rows) for name, rows in data.items()},
    }

def get_backup_history(store: LocalStore) -> list[dict]:
    backups = store.get(BACKUP_INDEX_KEY, [])
    return [
        {
            "index": i + 1,
            "timestamp": b["timestamp"],
            "organization_id": b.get("organization_id"),
            "file": b["file"],
            "size_kb": round(b.get("size", 0) / 1024, 2),
            "counts": b.get("counts", {}),
        }
        for i, b in enumerate(backups)
    ]

def delete_old_backups(store: LocalStore, keep: int | None = None, organization_id: int | None = None) -> int:
    """Keep the newest `keep` backups of each organization, or of one organization when given."""
    keep = settings.backup_retention if keep is None else keep
    backups = store.get(BACKUP_INDEX_KEY, [])

    seen = {}
    kept, to_delete = [], []
    # Walk newest first so each organization keeps its latest entries
    for entry in reversed(backups):
        owner = entry.get("organization_id")
        if organization_id is not None and owner != organization_id:
            kept.append(entry)
            continue
        seen[owner] = seen.get(owner, 0) + 1
        (kept if seen[owner] <= keep else to_delete).append(entry)

    if not to_delete:
        return 0

    for entry in to_delete:
        path = entry.get("path")
        if path and os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                logger.error(f"Local cleanup failed for {path}: {e}")

    store.set(BACKUP_INDEX_KEY, list(reversed(kept)))
    logger.info(f"Deleted {len(to_delete)} old backups")
    return len(to_delete)

def create_backup(db: Session, store: LocalStore, organization_id: int, backups_dir: str | None = None) -> dict:
    backups_dir = backups_dir or settings.backups_dir
    _ensure_backup_dir(backups_dir)

    snapshot = build_snapshot(db, organization_id)
    stamp = datetime.now(timezone.utc).strftime("%Y_%m_%d_%H%M%S_%f")
    filename = f"backup_org{organization_id}_{stamp}.json"
    path = os.path.join(backups_dir, filename)

    payload = json.dumps(snapshot, indent=2)
    with open(path, "w", encoding="utf-8") as f:
        f.write(payload)

    backups = store.get(BACKUP_INDEX_KEY, [])
    backups.append({
        "timestamp": snapshot["timestamp"],
        "organization_id": organization_id,
        "file": filename,
        "path": os.path.abspath(path),
        "size": len(payload.encode("utf-8")),
        "counts": snapshot["counts"],
    })
    store.set(BACKUP_INDEX_KEY, backups)
    delete_old_backups(store, organization_id=organization_id)

    logger.info(f"Backup created: {filename}", extra={"counts": snapshot["counts"]})
    return snapshot

def load_backup(store: LocalStore, timestamp: str | None = None, organization_id: int | None = None) -> dict:
    """Load a snapshot by timestamp, or the latest one when no timestamp is given."""
    backups = store.get(BACKUP_INDEX_KEY, [])
    if organization_id is not None:
        backups = [b for b in backups if b.get("organization_id") == organization_id]
    if not backups:
        raise RecordNotFoundError("No backup available")

    if timestamp is None:
        entry = backups[-1]
    else:
        entry = next((b for b in backups if b["timestamp"] == timestamp), None)
        if entry is None:
            raise RecordNotFoundError(f"No backup with timestamp {timestamp}")

    if not os.path.exists(entry["path"]):
        raise RecordNotFoundError(f"Backup file {entry['file']} is missing")
    with open(entry["path"], "r", encoding="utf-8") as f:
        return json.load(f)
