import os
import sys
import json

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from vamanager.config import settings
from vamanager.db import SessionLocal
from vamanager.local_store import LocalStore, get_active_organization_id
from vamanager.logging_setup import setup_logging
from vamanager.services.maintenance import import_warmup_snapshot

def main(snapshot_path: str, dry_run: bool = False):
    setup_logging()
    store = LocalStore(settings.local_state_path)
    organization_id = get_active_organization_id(store)
    if organization_id is None:
        print("ERROR: no active organization. Run scripts/set_active_org.py <id> first.")
        sys.exit(1)

    with open(snapshot_path, "r", encoding="utf-8") as f:
        snapshot = json.load(f)

    db = SessionLocal()
    try:
        result = import_warmup_snapshot(db, organization_id, snapshot, dry_run=dry_run, store=store)
    finally:
        db.close()

    if result["status"] == "skipped":
        print(f"Skipped: {result['reason']}")
        return
    print(f"Total: {result['total']}  Inserted: {result['migrated']}  Updated: {result['updated']}  "
          f"Skipped: {result['skipped']}  Errors: {result['errors']}")
    for detail in result["details"]:
        if detail["action"] == "failed":
            print(f"  {detail['username']}: {detail['error']}")

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/migrate_warmup.py <snapshot.json> [dry-run]")
        sys.exit(1)
    main(sys.argv[1], dry_run=len(sys.argv) > 2 and sys.argv[2] == "dry-run")
