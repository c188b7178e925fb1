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
from vamanager.security.credentials import CredentialCipher
from vamanager.services.maintenance import reset_passwords

def main(platform: str, mapping_path: str):
    setup_logging()
    with open(mapping_path, "r", encoding="utf-8") as f:
        passwords = json.load(f)
    if not isinstance(passwords, dict):
        print(f"ERROR: {mapping_path} must hold a JSON object of username -> password")
        sys.exit(1)

    store = LocalStore(settings.local_state_path)
    cipher = CredentialCipher(store)
    organization_id = get_active_organization_id(store)

    db = SessionLocal()
    try:
        stats = reset_passwords(db, cipher, platform, passwords, organization_id=organization_id)
    finally:
        db.close()

    print(f"Updated: {stats['updated']}  Not found: {stats['not_found']}  Errors: {stats['errors']}")

if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python scripts/reset_passwords.py <twitter|instagram|gmail> <passwords.json>")
        sys.exit(1)
    main(sys.argv[1], sys.argv[2])
