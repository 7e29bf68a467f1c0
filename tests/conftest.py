import os

# Must be set before database.config builds the engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest

from database.config import SessionLocal, engine
from database.models import Base, Profile, User
from database.repository import Repository
from schemas.marketplace import CompanyRole
from services.company_service import CompanyService
from services.gig_service import GigService


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return Repository(db)


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from server import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(repo):
    """User + empty profile without paying for a bcrypt hash."""
    counter = {"n": 0}

    def _make_user(email=None):
        counter["n"] += 1
        with repo.transaction():
            user = repo.add(User(email=email or f"user{counter['n']}@example.com", password_hash="!"))
            repo.add(Profile(user_id=user.id))
        return user

    return _make_user


@pytest.fixture
def make_company(repo):
    def _make_company(owner, name="Acme Gigs", members=()):
        """members: iterable of (user, role) added by the owner."""
        service = CompanyService(repo)
        company = service.create_company(owner, name)
        for user, role in members:
            service.add_member(owner, company["id"], user.id, CompanyRole(role))
        return company["id"]

    return _make_company


@pytest.fixture
def make_gig(repo):
    def _make_gig(user, company_id, **overrides):
        values = {"company_id": company_id, "title": "Shelf audit", "status": "OPEN"}
        values.update(overrides)
        return GigService(repo).create_gig(user, values)["id"]

    return _make_gig


@pytest.fixture
def profile_of(repo):
    def _profile_of(user):
        return repo.first(Profile, Profile.user_id == user.id)

    return _profile_of
