from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.schemas import VAOut, VACreate, VAUpdate, CreatorOut, CreatorCreate, CreatorUpdate, CompleteVAOut, AccountOut
from vamanager.security.credentials import CredentialCipher, get_cipher
from vamanager.security.rbac import get_current_org_id
from vamanager.services import roster

router = APIRouter(tags=["roster"])

@router.get("/vas", response_model=list[VAOut])
def list_vas(db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.list_vas(db, org_id)

@router.post("/vas", response_model=VAOut)
def create_va(payload: VACreate, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.create_va(db, org_id, payload.dict())

@router.get("/vas/{va_id}", response_model=VAOut)
def get_va(va_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.get_va(db, org_id, va_id)

@router.get("/vas/{va_id}/complete", response_model=CompleteVAOut)
def get_complete_va(
    va_id: int,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id),
    cipher: CredentialCipher = Depends(get_cipher)
):
    """VA with its creators and all of its accounts, passwords revealed."""
    data = roster.get_complete_va_data(db, cipher, org_id, va_id)
    return CompleteVAOut(
        va=VAOut.model_validate(data["va"]),
        creators=[CreatorOut.model_validate(c) for c in data["creators"]],
        twitter_accounts=[AccountOut(**a) for a in data["twitter_accounts"]],
        instagram_accounts=[AccountOut(**a) for a in data["instagram_accounts"]],
        gmail_accounts=[AccountOut(**a) for a in data["gmail_accounts"]],
    )

@router.patch("/vas/{va_id}", response_model=VAOut)
def update_va(va_id: int, payload: VAUpdate, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.update_va(db, org_id, va_id, payload.dict(exclude_unset=True))

@router.delete("/vas/{va_id}")
def delete_va(va_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    roster.delete_va(db, org_id, va_id)
    return {"ok": True}

@router.get("/vas/{va_id}/creators", response_model=list[CreatorOut])
def list_va_creators(va_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    roster.get_va(db, org_id, va_id)
    return roster.get_creators_by_va(db, org_id, va_id)

@router.put("/vas/{va_id}/creators/{creator_id}")
def assign_creator(va_id: int, creator_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    link = roster.assign_creator_to_va(db, org_id, va_id, creator_id)
    return {"id": link.id, "va_id": link.va_id, "creator_id": link.creator_id}

@router.delete("/vas/{va_id}/creators/{creator_id}")
def unassign_creator(va_id: int, creator_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    roster.remove_creator_from_va(db, org_id, va_id, creator_id)
    return {"ok": True}

@router.get("/va-creator-relations")
def list_relations(db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.get_all_va_creator_relations(db, org_id)

@router.get("/creators", response_model=list[CreatorOut])
def list_creators(db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.list_creators(db, org_id)

@router.post("/creators", response_model=CreatorOut)
def create_creator(payload: CreatorCreate, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.create_creator(db, org_id, payload.dict())

@router.get("/creators/{creator_id}", response_model=CreatorOut)
def get_creator(creator_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.get_creator(db, org_id, creator_id)

@router.get("/creators/{creator_id}/vas", response_model=list[VAOut])
def list_creator_vas(creator_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    roster.get_creator(db, org_id, creator_id)
    return roster.get_vas_for_creator(db, org_id, creator_id)

@router.patch("/creators/{creator_id}", response_model=CreatorOut)
def update_creator(creator_id: int, payload: CreatorUpdate, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    return roster.update_creator(db, org_id, creator_id, payload.dict(exclude_unset=True))

@router.delete("/creators/{creator_id}")
def delete_creator(creator_id: int, db: Session = Depends(get_db), org_id: int = Depends(get_current_org_id)):
    roster.delete_creator(db, org_id, creator_id)
    return {"ok": True}
