from pydantic import BaseModel, Field
from datetime import datetime, date as date_type
from decimal import Decimal
from typing import Any, Literal

AccountStatus = Literal["active", "banned", "suspended", "warning", "paused"]

class UserCreate(BaseModel):
    name: str
    email: str
    password: str

class OrgOut(BaseModel):
    id: int
    name: str
    owner_id: int | None = None
    created_at: datetime | None = None
    class Config:
        from_attributes = True

class OrgCreate(BaseModel):
    name: str

class OrgStatsOut(BaseModel):
    member_count: int
    creator_count: int
    va_count: int

class MemberIn(BaseModel):
    email: str
    role: Literal["owner", "admin", "member"] = "member"

class VAOut(BaseModel):
    id: int
    organization_id: int
    name: str
    email: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    class Config:
        from_attributes = True

class VACreate(BaseModel):
    name: str
    email: str | None = None
    notes: str | None = None

class VAUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    notes: str | None = None

class CreatorOut(BaseModel):
    id: int
    organization_id: int
    name: str
    photo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    class Config:
        from_attributes = True

class CreatorCreate(BaseModel):
    name: str
    photo_url: str | None = None

class CreatorUpdate(BaseModel):
    name: str | None = None
    photo_url: str | None = None

class AccountOut(BaseModel):
    id: int
    organization_id: int
    platform: str
    username: str | None = None
    email: str | None = None
    password: str = ""
    password_scheme: str | None = None
    # cipher, legacy or passthrough; None when the password was masked
    password_outcome: str | None = None
    creator_id: int | None = None
    va_id: int | None = None
    gmail_id: int | None = None
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

class AccountCreate(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str = ""
    creator_id: int | None = None
    va_id: int | None = None
    gmail_id: int | None = None
    status: AccountStatus = "active"
    notes: str | None = None

class AccountUpdate(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    creator_id: int | None = None
    va_id: int | None = None
    gmail_id: int | None = None
    status: AccountStatus | None = None
    notes: str | None = None

class StatusIn(BaseModel):
    status: AccountStatus
    notes: str | None = None

class StatusOut(BaseModel):
    id: int
    status: str
    notes: str | None = None
    class Config:
        from_attributes = True

class RevealOut(BaseModel):
    id: int
    password: str
    outcome: str
    needs_reencrypt: bool

class CompleteVAOut(BaseModel):
    va: VAOut
    creators: list[CreatorOut]
    twitter_accounts: list[AccountOut]
    instagram_accounts: list[AccountOut]
    gmail_accounts: list[AccountOut]

class LedgerEntryOut(BaseModel):
    id: int
    organization_id: int
    va_id: int | None = None
    label: str
    amount: Decimal
    date: date_type | None = None
    created_at: datetime | None = None
    class Config:
        from_attributes = True

class LedgerEntryCreate(BaseModel):
    label: str
    amount: Decimal = Decimal("0")
    date: date_type | None = None
    va_id: int | None = None

class LedgerEntryUpdate(BaseModel):
    label: str | None = None
    amount: Decimal | None = None
    date: date_type | None = None
    va_id: int | None = None

class WarmupOut(BaseModel):
    id: int
    organization_id: int
    username: str
    current_day: int
    completed: bool
    started_at: datetime | None = None
    updated_at: datetime | None = None
    class Config:
        from_attributes = True

class WarmupIn(BaseModel):
    username: str
    current_day: int = Field(default=1, ge=1)
    completed: bool = False
    started_at: datetime | None = None

class WarmupImportIn(BaseModel):
    snapshot: dict[str, dict[str, Any]]
    dry_run: bool = False

class ReencryptOut(BaseModel):
    migrated: int
    skipped: int
    errors: int
    ambiguous: list[dict[str, Any]]

class BackupHistoryOut(BaseModel):
    index: int
    timestamp: str
    organization_id: int | None = None
    file: str
    size_kb: float
    counts: dict[str, int]
