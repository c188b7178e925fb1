import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import func
from vamanager.db import SessionLocal
from vamanager.models import Organization, TwitterAccount, InstagramAccount, GmailAccount
from vamanager.security.credentials import SCHEME_AESGCM

def count(db, model, organization_id, untagged_only=False):
    query = db.query(func.count(model.id)).filter(model.organization_id == organization_id)
    if untagged_only:
        query = query.filter((model.password_scheme.is_(None)) | (model.password_scheme != SCHEME_AESGCM))
    return query.scalar() or 0

def check_accounts():
    db = SessionLocal()
    try:
        orgs = db.query(Organization).order_by(Organization.id.asc()).all()
        if not orgs:
            print("No organizations found.")
            return

        for org in orgs:
            print(f"Org #{org.id} {org.name}")
            for label, model in (("twitter", TwitterAccount), ("instagram", InstagramAccount), ("gmail", GmailAccount)):
                total = count(db, model, org.id)
                pending = count(db, model, org.id, untagged_only=True)
                print(f"  {label}: {total} accounts, {pending} awaiting re-encryption")
    finally:
        db.close()

if __name__ == "__main__":
    check_accounts()
