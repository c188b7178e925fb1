import os

# Keep the module-level engine off any real database
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vamanager.db import get_db
from vamanager.local_store import LocalStore, get_local_store
from vamanager.main import app
from vamanager.models import Base, User
from vamanager.security.auth import create_access_token, get_password_hash
from vamanager.security.credentials import CredentialCipher, get_cipher
from vamanager.services import orgs

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "state" / "state.json"))

@pytest.fixture
def cipher(store):
    return CredentialCipher(store)

@pytest.fixture(autouse=True)
def clear_stats_cache():
    orgs.stats_cache.clear()
    yield
    orgs.stats_cache.clear()

def make_user(db, email: str, name: str = "Operator", password: str = "secret-pass", superadmin: bool = False) -> User:
    user = User(
        email=email,
        name=name,
        password_hash=get_password_hash(password),
        is_active=True,
        is_superadmin=superadmin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

@pytest.fixture
def user_factory(db):
    return lambda email, **kwargs: make_user(db, email, **kwargs)

@pytest.fixture
def user(db):
    return make_user(db, "owner@example.com", name="Owner")

@pytest.fixture
def org(db, user):
    return orgs.create_organization(db, user, "Owner's Agency")

@pytest.fixture
def other_org(db):
    other = make_user(db, "rival@example.com", name="Rival")
    return orgs.create_organization(db, other, "Rival Agency")

@pytest.fixture
def auth_headers(user, org):
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}", "X-Org-Id": str(org.id)}

@pytest.fixture
def client(db, store, cipher):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cipher] = lambda: cipher
    app.dependency_overrides[get_local_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
