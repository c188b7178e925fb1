from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session
from vamanager.db import get_db
from vamanager.models import User
from vamanager.schemas import UserCreate
from vamanager.security.auth import verify_password, create_access_token, require_user, get_password_hash
from vamanager.services import orgs
from vamanager.services.errors import require_text

router = APIRouter(prefix="/auth", tags=["auth"])

def _set_session_cookie(response: Response, access_token: str):
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        samesite="lax",
        secure=True,
        max_age=7 * 24 * 60 * 60
    )

@router.post("/login")
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
) -> dict[str, Any]:
    user = db.query(User).filter(func.lower(User.email) == func.lower(form_data.username.strip())).first()
    if not user or not user.is_active or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": str(user.id)})
    _set_session_cookie(response, access_token)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/register")
def register(
    user_in: UserCreate,
    response: Response,
    db: Session = Depends(get_db)
) -> dict[str, Any]:
    email = require_text(user_in.email, "email")
    existing_user = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with this email already exists."
        )

    new_user = User(
        email=email,
        name=require_text(user_in.name, "name"),
        password_hash=get_password_hash(user_in.password),
        is_active=True,
        is_superadmin=False
    )
    db.add(new_user)
    db.flush()

    # Every new operator starts with their own agency
    orgs.create_organization(db, new_user, f"{new_user.name}'s Agency")

    access_token = create_access_token(data={"sub": str(new_user.id)})
    _set_session_cookie(response, access_token)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    response.delete_cookie(key="access_token", httponly=True, samesite="lax", secure=True)
    return {"message": "Logged out successfully"}

@router.get("/me")
def get_current_user_profile(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_db)
) -> dict[str, Any]:
    return {
        "id": current_user.id,
        "email": current_user.email,
        "name": current_user.name,
        "is_superadmin": current_user.is_superadmin,
        "orgs": orgs.list_user_organizations(db, current_user),
    }
