# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Numeric, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

ACCOUNT_STATUSES = ("active", "banned", "suspended", "warning", "paused")

class Organization(Base):
    __tablename__ = "organizations"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User")
    members = relationship("OrganizationMember", back_populates="organization", cascade="all, delete-orphan")
    vas = relationship("VA", back_populates="organization", cascade="all, delete-orphan")
    creators = relationship("Creator", back_populates="organization", cascade="all, delete-orphan")
    twitter_accounts = relationship("TwitterAccount", back_populates="organization", cascade="all, delete-orphan")
    instagram_accounts = relationship("InstagramAccount", back_populates="organization", cascade="all, delete-orphan")
    gmail_accounts = relationship("GmailAccount", back_populates="organization", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", cascade="all, delete-orphan")
    revenues = relationship("Revenue", cascade="all, delete-orphan")
    payments = relationship("Payment", cascade="all, delete-orphan")
    warmups = relationship("WarmupProgress", cascade="all, delete-orphan")

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    is_superadmin = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    memberships = relationship("OrganizationMember", back_populates="user")

class OrganizationMember(Base):
    __tablename__ = "organization_members"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(String, default="member") # owner, admin, member
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    organization = relationship("Organization", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (UniqueConstraint("organization_id", "user_id", name="uq_org_user"),)

class VA(Base):
    __tablename__ = "vas"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="vas")
    creator_links = relationship("VACreator", back_populates="va", cascade="all, delete-orphan")
    twitter_accounts = relationship("TwitterAccount", back_populates="va")
    instagram_accounts = relationship("InstagramAccount", back_populates="va")
    gmail_accounts = relationship("GmailAccount", back_populates="va")

class Creator(Base):
    __tablename__ = "creators"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    photo_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="creators")
    va_links = relationship("VACreator", back_populates="creator", cascade="all, delete-orphan")
    twitter_accounts = relationship("TwitterAccount", back_populates="creator")
    instagram_accounts = relationship("InstagramAccount", back_populates="creator")

class VACreator(Base):
    __tablename__ = "va_creators"
    id = Column(Integer, primary_key=True, index=True)
    va_id = Column(Integer, ForeignKey("vas.id"), nullable=False)
    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    va = relationship("VA", back_populates="creator_links")
    creator = relationship("Creator", back_populates="va_links")

    __table_args__ = (UniqueConstraint("va_id", "creator_id", name="uq_va_creator"),)

class TwitterAccount(Base):
    __tablename__ = "twitter_accounts"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    username = Column(String, nullable=False)

    # Stored form only; NULL scheme marks rows written before tagging existed
    encrypted_password = Column(Text, nullable=True)
    password_scheme = Column(String, nullable=True)

    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=True)
    va_id = Column(Integer, ForeignKey("vas.id"), nullable=True)
    gmail_id = Column(Integer, ForeignKey("gmail_accounts.id"), nullable=True)

    status = Column(String, default="active", nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="twitter_accounts")
    creator = relationship("Creator", back_populates="twitter_accounts")
    va = relationship("VA", back_populates="twitter_accounts")
    gmail = relationship("GmailAccount", back_populates="twitter_accounts")

class InstagramAccount(Base):
    __tablename__ = "instagram_accounts"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    username = Column(String, nullable=False)

    encrypted_password = Column(Text, nullable=True)
    password_scheme = Column(String, nullable=True)

    creator_id = Column(Integer, ForeignKey("creators.id"), nullable=True)
    va_id = Column(Integer, ForeignKey("vas.id"), nullable=True)
    gmail_id = Column(Integer, ForeignKey("gmail_accounts.id"), nullable=True)

    status = Column(String, default="active", nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="instagram_accounts")
    creator = relationship("Creator", back_populates="instagram_accounts")
    va = relationship("VA", back_populates="instagram_accounts")
    gmail = relationship("GmailAccount", back_populates="instagram_accounts")

class GmailAccount(Base):
    __tablename__ = "gmail_accounts"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    email = Column(String, nullable=False)

    encrypted_password = Column(Text, nullable=True)
    password_scheme = Column(String, nullable=True)

    va_id = Column(Integer, ForeignKey("vas.id"), nullable=True)

    status = Column(String, default="active", nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="gmail_accounts")
    va = relationship("VA", back_populates="gmail_accounts")
    twitter_accounts = relationship("TwitterAccount", back_populates="gmail")
    instagram_accounts = relationship("InstagramAccount", back_populates="gmail")

class Subscription(Base):
    __tablename__ = "subscriptions"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    va_id = Column(Integer, ForeignKey("vas.id"), nullable=True)
    label = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Revenue(Base):
    __tablename__ = "revenues"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    va_id = Column(Integer, ForeignKey("vas.id"), nullable=True)
    label = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Payment(Base):
    __tablename__ = "payments"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    va_id = Column(Integer, ForeignKey("vas.id"), nullable=True)
    label = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class WarmupProgress(Base):
    __tablename__ = "warmup_progress"
    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    username = Column(String, nullable=False)
    current_day = Column(Integer, nullable=False, default=1)
    completed = Column(Boolean, default=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("organization_id", "username", name="uq_warmup_org_username"),)
