import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from vamanager.config import settings
from vamanager.db import SessionLocal
from vamanager.local_store import LocalStore, get_active_organization_id
from vamanager.logging_setup import setup_logging
from vamanager.services.backups import create_backup, get_backup_history

def main(organization_id: int | None = None):
    setup_logging()
    store = LocalStore(settings.local_state_path)
    organization_id = organization_id or get_active_organization_id(store)
    if organization_id is None:
        print("Usage: python scripts/backup_org.py <organization_id>")
        sys.exit(1)

    db = SessionLocal()
    try:
        snapshot = create_backup(db, store, organization_id)
    finally:
        db.close()

    print(f"SUCCESS: backup taken at {snapshot['timestamp']}")
    for entry in get_backup_history(store):
        print(f"  {entry['index']}. {entry['file']} ({entry['size_kb']} KB)")

if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else None)
