from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.models import User
from vamanager.schemas import ReencryptOut
from vamanager.security.credentials import CredentialCipher, get_cipher
from vamanager.security.rbac import get_current_org_id, require_superadmin
from vamanager.services import maintenance

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

@router.post("/reencrypt", response_model=ReencryptOut)
def reencrypt_current_org(
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    """Seal every legacy or untagged password of the active organization."""
    return maintenance.reencrypt_accounts(db, cipher, organization_id=org_id)

@router.post("/reencrypt/all", response_model=ReencryptOut)
def reencrypt_everything(
    db: Session = Depends(get_db),
    user: User = Depends(require_superadmin),
    cipher: CredentialCipher = Depends(get_cipher)
):
    return maintenance.reencrypt_accounts(db, cipher)
