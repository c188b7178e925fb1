import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from vamanager.config import settings
from vamanager.db import SessionLocal
from vamanager.local_store import LocalStore
from vamanager.logging_setup import setup_logging
from vamanager.security.credentials import CredentialCipher
from vamanager.services.maintenance import reencrypt_accounts

def main(organization_id: int | None = None):
    setup_logging()
    store = LocalStore(settings.local_state_path)
    cipher = CredentialCipher(store)
    db = SessionLocal()
    try:
        stats = reencrypt_accounts(db, cipher, organization_id=organization_id)
    finally:
        db.close()

    print(f"Migrated: {stats['migrated']}  Skipped: {stats['skipped']}  Errors: {stats['errors']}")
    if stats["ambiguous"]:
        print("Passed through as plaintext, verify these by hand:")
        for row in stats["ambiguous"]:
            print(f"  {row['platform']} #{row['id']}")

if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else None)
