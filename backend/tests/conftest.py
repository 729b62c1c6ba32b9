"""Shared fixtures: an in-memory database per test and an API client bound to it."""

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base_class import Base
from app.db.database import get_db
from app.db.models import AccessLevel, Group, GroupMember, User, UserSession
from app.main import app
from app.services.group_service import GroupService
from app.services.membership_manager import MembershipManager
from app.utils.security import hash_password

_counter = itertools.count(1)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Create a user with a live session token (``user.token``)."""

    def _make(username=None, name=None, is_admin=False, password="secret"):
        n = next(_counter)
        username = username or f"user{n}"
        user = User(
            username=username,
            name=name or f"User {n}",
            email=f"{username}@example.com",
            hashed_password=hash_password(password),
            is_admin=is_admin,
        )
        db_session.add(user)
        db_session.flush()
        token = f"token-{username}"
        db_session.add(UserSession(user_id=user.id, token=token))
        db_session.commit()
        user.token = token
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(username="root", name="Site Admin", is_admin=True)


@pytest.fixture
def make_group(db_session, admin):
    """
    Create a group through the service (so the admin starts out as owner),
    then hand ownership to *owner* when one is given.
    """

    def _make(owner=None, path=None, name=None):
        n = next(_counter)
        grp = GroupService(db_session).create_group(
            name or f"Group {n}", path or f"group-{n}", admin
        )
        if owner is not None:
            manager = MembershipManager(db_session)
            manager.add_member(grp, owner.id, AccessLevel.OWNER)
            admin_member = manager.get_member(grp, admin.id)
            manager.remove_member(grp, admin_member, admin)
        return grp

    return _make


@pytest.fixture
def manager(db_session):
    return MembershipManager(db_session)


def auth(user) -> dict:
    return {"Authorization": f"Bearer {user.token}"}


def owner_count(db_session, group: Group) -> int:
    return (
        db_session.query(GroupMember)
        .filter(
            GroupMember.group_id == group.id,
            GroupMember.access_level == int(AccessLevel.OWNER),
        )
        .count()
    )
