from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.local_store import LocalStore, get_local_store
from vamanager.models import User
from vamanager.schemas import OrgOut, OrgCreate, OrgStatsOut, MemberIn
from vamanager.security.auth import require_user
from vamanager.security.rbac import get_current_org_id
from vamanager.services import orgs

router = APIRouter(prefix="/orgs", tags=["orgs"])

@router.get("")
def list_orgs(
    db: Session = Depends(get_db),
    user: User = Depends(require_user)
):
    """Organizations the current user can switch to."""
    return orgs.list_user_organizations(db, user)

@router.post("", response_model=OrgOut)
def create_org(
    payload: OrgCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_user)
):
    return orgs.create_organization(db, user, payload.name)

@router.get("/current", response_model=OrgOut)
def get_current_org(
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    return orgs.get_organization(db, org_id)

@router.patch("/current", response_model=OrgOut)
def rename_current_org(
    payload: OrgCreate,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    return orgs.update_organization(db, org_id, payload.name)

@router.get("/current/stats", response_model=OrgStatsOut)
def get_current_org_stats(
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    return orgs.get_organization_stats(db, org_id)

@router.get("/current/members")
def list_members(
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    return orgs.get_members(db, org_id)

@router.post("/current/members")
def add_member(
    payload: MemberIn,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    member = orgs.add_member(db, org_id, payload.email, payload.role)
    return {"id": member.id, "user_id": member.user_id, "role": member.role}

@router.delete("/current/members/{member_id}")
def remove_member(
    member_id: int,
    db: Session = Depends(get_db),
    org_id: int = Depends(get_current_org_id)
):
    orgs.remove_member(db, org_id, member_id)
    return {"ok": True}

@router.post("/{organization_id}/switch", response_model=OrgOut)
def switch_org(
    organization_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    store: LocalStore = Depends(get_local_store)
):
    try:
        return orgs.switch_organization(db, store, user, organization_id)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

@router.delete("/{organization_id}")
def delete_org(
    organization_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_user)
):
    """Delete an organization and everything scoped to it. Owner only."""
    try:
        orgs.delete_organization(db, user, organization_id)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return {"ok": True}
