import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from vamanager.config import settings
from vamanager.db import SessionLocal
from vamanager.local_store import LocalStore, get_active_organization_id, set_active_organization_id
from vamanager.models import Organization

def main(organization_id: int | None = None):
    store = LocalStore(settings.local_state_path)
    if organization_id is None:
        print(f"Active organization: {get_active_organization_id(store)}")
        return

    db = SessionLocal()
    try:
        org = db.get(Organization, organization_id)
    finally:
        db.close()
    if not org:
        print(f"ERROR: organization {organization_id} does not exist")
        sys.exit(1)

    set_active_organization_id(store, organization_id)
    print(f"Active organization set to #{org.id} {org.name}")

if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else None)
