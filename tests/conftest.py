"""
Shared fixtures: an in-memory SQLite database rebuilt for every test,
admin/tenant accounts with bearer tokens, room/bill factories, and a
recorder that replaces outbound email.
"""
import os
import tempfile

# Must be set before any application module reads its configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["BREVO_API_KEY"] = ""
os.environ["AZURE_STORAGE_ACCOUNT"] = ""
os.environ["AZURE_STORAGE_KEY"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="billmate-uploads-")

import base64
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import SessionLocal, engine
from dependencies import create_access_token, hash_password
from models import Base, Room, User, UserRole
from utils import email as email_utils
from utils.cache import profile_cache


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    profile_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Captures (to, subject, html) instead of calling Brevo."""
    sent = []

    def fake_send_email(to_email, subject, html):
        sent.append({"to": to_email, "subject": subject, "html": html})

    monkeypatch.setattr(email_utils, "send_email", fake_send_email)
    return sent


@pytest.fixture
def client(setup_database):
    from main import app

    with TestClient(app) as test_client:
        yield test_client


def _make_user(db, email, name, role):
    user = User(email=email, password=hash_password("secret123"), name=name, role=role)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", "Admin", UserRole.ADMIN)


@pytest.fixture
def tenant(db):
    return _make_user(db, "somchai@example.com", "สมชาย", UserRole.TENANT)


@pytest.fixture
def other_tenant(db):
    return _make_user(db, "somying@example.com", "สมหญิง", UserRole.TENANT)


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(admin)}"}


@pytest.fixture
def tenant_headers(tenant):
    return {"Authorization": f"Bearer {create_access_token(tenant)}"}


@pytest.fixture
def other_tenant_headers(other_tenant):
    return {"Authorization": f"Bearer {create_access_token(other_tenant)}"}


@pytest.fixture
def make_room(db):
    """Room factory; pass ``tenant`` to create it occupied."""
    def factory(room_number="101", rent=3000, water=100, electricity=50, tenant=None):
        room = Room(
            room_number=room_number,
            floor=1,
            rent_price=Decimal(rent),
            water_price=Decimal(water),
            electricity_price=Decimal(electricity),
            is_occupied=tenant is not None,
            tenant_id=tenant.id if tenant else None,
        )
        db.add(room)
        db.flush()
        if tenant is not None:
            tenant.room_id = room.id
        db.commit()
        return room
    return factory


@pytest.fixture
def slip_image():
    """A small PNG data URL."""
    payload = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64).decode()
    return f"data:image/png;base64,{payload}"
