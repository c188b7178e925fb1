from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.schemas import AccountOut, AccountCreate, AccountUpdate, StatusIn, StatusOut, RevealOut
from vamanager.security.credentials import CredentialCipher, get_cipher
from vamanager.security.rbac import get_current_org_id
from vamanager.services import accounts

router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.get("/{platform}", response_model=list[AccountOut])
def list_accounts(
    platform: str,
    va_id: int | None = None,
    creator_id: int | None = None,
    reveal: bool = Query(default=True, description="False masks passwords for fast list views"),
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    return accounts.list_accounts(db, cipher, org_id, platform, va_id=va_id, creator_id=creator_id, reveal=reveal)

@router.post("/{platform}", response_model=AccountOut)
def create_account(
    platform: str,
    payload: AccountCreate,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    return accounts.create_account(db, cipher, org_id, platform, payload.dict())

@router.get("/{platform}/{account_id}", response_model=AccountOut)
def get_account(
    platform: str,
    account_id: int,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    return accounts.get_account(db, cipher, org_id, platform, account_id)

@router.get("/{platform}/{account_id}/password", response_model=RevealOut)
def reveal_password(
    platform: str,
    account_id: int,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    """Decode a single stored password for copy-to-clipboard."""
    return accounts.reveal_password(db, cipher, org_id, platform, account_id)

@router.patch("/{platform}/{account_id}", response_model=AccountOut)
def update_account(
    platform: str,
    account_id: int,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    return accounts.update_account(db, cipher, org_id, platform, account_id, payload.dict(exclude_unset=True))

@router.put("/{platform}/{account_id}/status", response_model=StatusOut)
def set_status(
    platform: str,
    account_id: int,
    payload: StatusIn,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    """Set an account's status. Omitted notes are left as they are."""
    return accounts.update_account_status(db, org_id, platform, account_id, payload.status, payload.notes)

@router.delete("/{platform}/{account_id}")
def delete_account(
    platform: str,
    account_id: int,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    accounts.delete_account(db, org_id, platform, account_id)
    return {"ok": True}
