# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import time
import logging
from typing import Any
from sqlalchemy import func
from sqlalchemy.orm import Session
from vamanager.config import settings
from vamanager.local_store import LocalStore, set_active_organization_id
from vamanager.models import Organization, OrganizationMember, User, VA, Creator
from vamanager.services.errors import RecordNotFoundError, DuplicateRecordError, InvalidFieldError, require_text

logger = logging.getLogger(__name__)

MEMBER_ROLES = ("owner", "admin", "member")

class TTLCache:
    """Process-local cache for cheap dashboard counters."""

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = ttl_seconds
        self._data: dict[str, tuple[float, Any]] = {}

    def get(self, key: str):
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() > expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None):
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._data[key] = (time.monotonic() + ttl, value)

    def clear(self, key: str | None = None):
        if key is None:
            self._data.clear()
        else:
            self._data.pop(key, None)

    def clear_prefix(self, prefix: str):
        for key in [k for k in self._data if k.startswith(prefix)]:
            del self._data[key]

stats_cache = TTLCache(settings.cache_ttl_seconds)

def clear_org_cache():
    stats_cache.clear_prefix("org_")

def get_organization(db: Session, organization_id: int) -> Organization:
    org = db.get(Organization, organization_id)
    if not org:
        raise RecordNotFoundError(f"Organization {organization_id} not found")
    return org

def create_organization(db: Session, owner: User, name: str) -> Organization:
    name = require_text(name, "name")

    org = Organization(name=name, owner_id=owner.id)
    db.add(org)
    db.flush()

    db.add(OrganizationMember(organization_id=org.id, user_id=owner.id, role="owner"))
    db.commit()
    db.refresh(org)
    logger.info(f"Organization created: {org.name} ({org.id})")
    return org

def update_organization(db: Session, organization_id: int, name: str) -> Organization:
    org = get_organization(db, organization_id)
    org.name = require_text(name, "name")
    db.commit()
    db.refresh(org)
    return org

def list_user_organizations(db: Session, user: User) -> list[dict]:
    """Owned organizations first, then those reached through membership."""
    if user.is_superadmin:
        return [
            {"id": o.id, "name": o.name, "role": "superadmin"}
            for o in db.query(Organization).order_by(Organization.id.asc()).all()
        ]

    result = []
    seen = set()
    owned = db.query(Organization).filter(Organization.owner_id == user.id).order_by(Organization.id.asc()).all()
    for org in owned:
        result.append({"id": org.id, "name": org.name, "role": "owner"})
        seen.add(org.id)

    memberships = (
        db.query(OrganizationMember, Organization)
        .join(Organization, Organization.id == OrganizationMember.organization_id)
        .filter(OrganizationMember.user_id == user.id)
        .order_by(OrganizationMember.id.asc())
        .all()
    )
    for membership, org in memberships:
        if org.id not in seen:
            result.append({"id": org.id, "name": org.name, "role": membership.role})
            seen.add(org.id)
    return result

def user_can_access(db: Session, user: User, organization_id: int) -> bool:
    if user.is_superadmin:
        return db.get(Organization, organization_id) is not None
    owned = db.query(Organization).filter(
        Organization.id == organization_id,
        Organization.owner_id == user.id
    ).first()
    if owned:
        return True
    membership = db.query(OrganizationMember).filter(
        OrganizationMember.user_id == user.id,
        OrganizationMember.organization_id == organization_id
    ).first()
    return membership is not None

def resolve_organization_id(db: Session, user: User, requested: int | None = None) -> int:
    """
    Pick the organization a request operates on.

    An explicitly requested organization must be reachable by the user.
    Without one, the first owned or member organization wins.
    """
    if requested is not None:
        if user_can_access(db, user, requested):
            return requested
        raise PermissionError("You do not have access to this organization")

    orgs = list_user_organizations(db, user)
    if not orgs:
        raise PermissionError("You do not belong to any organizations")
    if len(orgs) > 1:
        logger.debug(f"User {user.id} has {len(orgs)} organizations, using the first one")
    return orgs[0]["id"]

def get_organization_stats(db: Session, organization_id: int) -> dict:
    cache_key = f"org_stats_{organization_id}"
    cached = stats_cache.get(cache_key)
    if cached is not None:
        return cached

    stats = {
        "member_count": db.query(func.count(OrganizationMember.id)).filter(
            OrganizationMember.organization_id == organization_id).scalar() or 0,
        "creator_count": db.query(func.count(Creator.id)).filter(
            Creator.organization_id == organization_id).scalar() or 0,
        "va_count": db.query(func.count(VA.id)).filter(
            VA.organization_id == organization_id).scalar() or 0,
    }
    stats_cache.set(cache_key, stats)
    return stats

def switch_organization(db: Session, store: LocalStore, user: User, organization_id: int) -> Organization:
    """Make an organization the active one for this operator."""
    if not user_can_access(db, user, organization_id):
        raise PermissionError("You do not have access to this organization")
    org = get_organization(db, organization_id)
    set_active_organization_id(store, org.id)
    clear_org_cache()
    return org

def delete_organization(db: Session, user: User, organization_id: int) -> bool:
    org = get_organization(db, organization_id)
    if org.owner_id != user.id and not user.is_superadmin:
        raise PermissionError("Only the organization owner can delete it")

    db.delete(org)
    db.commit()
    clear_org_cache()
    logger.info(f"Organization deleted: {organization_id}")
    return True

def get_members(db: Session, organization_id: int) -> list[dict]:
    rows = (
        db.query(OrganizationMember, User)
        .join(User, User.id == OrganizationMember.user_id)
        .filter(OrganizationMember.organization_id == organization_id)
        .order_by(OrganizationMember.id.asc())
        .all()
    )
    return [
        {"id": m.id, "user_id": u.id, "email": u.email, "name": u.name, "role": m.role}
        for m, u in rows
    ]

def add_member(db: Session, organization_id: int, email: str, role: str = "member") -> OrganizationMember:
    if role not in MEMBER_ROLES:
        raise InvalidFieldError(f"role must be one of {', '.join(MEMBER_ROLES)}")
    email = require_text(email, "email")

    user = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if not user:
        raise RecordNotFoundError(f"No user registered with {email}")

    existing = db.query(OrganizationMember).filter(
        OrganizationMember.organization_id == organization_id,
        OrganizationMember.user_id == user.id
    ).first()
    if existing:
        raise DuplicateRecordError(f"{email} is already a member of this organization")

    member = OrganizationMember(organization_id=organization_id, user_id=user.id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    stats_cache.clear(f"org_stats_{organization_id}")
    return member

def remove_member(db: Session, organization_id: int, member_id: int) -> bool:
    member = db.query(OrganizationMember).filter(
        OrganizationMember.id == member_id,
        OrganizationMember.organization_id == organization_id
    ).first()
    if not member:
        raise RecordNotFoundError("Member not found")
    if member.role == "owner":
        raise InvalidFieldError("The organization owner cannot be removed")

    db.delete(member)
    db.commit()
    stats_cache.clear(f"org_stats_{organization_id}")
    return True
