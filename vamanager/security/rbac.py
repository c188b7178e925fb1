from fastapi import HTTPException, Depends, Header, status
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.logging_setup import org_id_var
from vamanager.models import User
from vamanager.services import orgs
from vamanager.security.auth import require_user

def get_current_org_id(
    user: User = Depends(require_user),
    org_id: str | None = Header(default=None, alias="X-Org-Id"),
    db: Session = Depends(get_db)
) -> int:
    """
    Returns the organization the request is scoped to.

    The X-Org-Id header carries the active organization selector; without it
    the user's first owned or member organization is used.
    """
    requested = None
    if org_id:
        try:
            requested = int(org_id)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-Org-Id must be an integer")

    try:
        resolved = orgs.resolve_organization_id(db, user, requested)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    org_id_var.set(resolved)
    return resolved

def require_superadmin(user: User = Depends(require_user)) -> User:
    if not user.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a platform superadmin to perform this action."
        )
    return user
