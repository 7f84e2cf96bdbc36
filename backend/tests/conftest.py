"""
Pytest configuration & fixtures for RxGate backend tests.

Key design decisions:
  - Uses sqlite:///:memory: for speed and isolation.
  - Uploaded documents go to a throwaway temp directory.
  - The OCR engine is never invoked; tests hand the pipeline a FakeExtractor
    or patch ocr_service.get_extractor.
  - Seeds a small catalog (gated + ungated items) and one admin account.
"""

import os
import sys
import tempfile
import uuid
from decimal import Decimal

import bcrypt
import pytest

# ── 1. Ensure backend package is importable ──
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# ── 2. Set test environment BEFORE anything else ──
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FLASK_SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["APP_ENV"] = "testing"
os.environ["UPLOAD_FOLDER"] = tempfile.mkdtemp(prefix="rxgate-uploads-")
os.environ["LOG_LEVEL"] = "WARNING"

# ── 3. NOW safe to import application modules ──
from rxgate.main import create_app
from rxgate.database import db as _db
from rxgate.errors import ExtractionFailed, StorageUnavailable
from rxgate.models.models import Product, User, ROLE_ADMIN

ADMIN_EMAIL = "admin@rxgate.test"
ADMIN_PASSWORD = "AdminPass123"


# ═══════════════════════════════════════════
# COLLABORATOR FAKES
# ═══════════════════════════════════════════

class FakeExtractor:
    """Returns canned OCR text, or raises `error` when given one."""

    def __init__(self, text: str = "", error: Exception = None):
        self.text = text
        self.error = error
        self.calls = []

    def extract(self, document_bytes: bytes, language: str = "eng") -> str:
        self.calls.append((document_bytes, language))
        if self.error is not None:
            raise self.error
        return self.text


class FakeStorage:
    """In-memory document storage."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.documents = {}

    def upload(self, data: bytes, name: str) -> str:
        if self.fail or name in self.documents:
            raise StorageUnavailable()
        self.documents[name] = data
        return f"memory://{name}"

    def delete(self, ref: str) -> None:
        self.documents.pop(ref.split("://", 1)[1], None)


# ═══════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    application = create_app()
    application.config["TESTING"] = True
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables once for the test session and seed data."""
    with app.app_context():
        _db.create_all()
        _seed_test_data()
        _db.session.commit()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture
def client(app, _setup_db):
    """Flask test client with database ready."""
    with app.test_client() as c:
        with app.app_context():
            yield c


@pytest.fixture
def db_session(app, _setup_db):
    with app.app_context():
        yield _db.session
        _db.session.rollback()


@pytest.fixture
def owner_id(db_session):
    """A fresh customer row, so record counts start from zero."""
    user = User(email=f"owner-{uuid.uuid4().hex[:10]}@example.com", password_hash="x", full_name="Owner")
    db_session.add(user)
    db_session.commit()
    return user.id


def _register(client):
    resp = client.post("/api/auth/register", json={
        "email": f"customer-{uuid.uuid4().hex[:10]}@example.com",
        "password": "TestPass123",
        "full_name": "Test Customer",
    })
    data = resp.get_json()
    return {"Authorization": f"Bearer {data['token']}"}, data["user"]["id"]


@pytest.fixture
def customer(client):
    """Register a fresh customer; returns (auth headers, user id)."""
    return _register(client)


@pytest.fixture
def auth_headers(client):
    """Headers of another fresh customer, independent of `customer`."""
    return _register(client)[0]


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def failing_extractor():
    return FakeExtractor(error=ExtractionFailed("The uploaded file is not a readable image."))


# ═══════════════════════════════════════════
# SEED DATA
# ═══════════════════════════════════════════

def _seed_test_data():
    _db.session.add_all([
        Product(id=1, name="Paracetamol 500mg", description="Fever relief",
                price=Decimal("25.00"), requires_prescription=False),
        Product(id=2, name="Amoxicillin 500mg", description="Antibiotic",
                price=Decimal("89.00"), requires_prescription=True),
        Product(id=3, name="Metformin 500mg", description="Type 2 diabetes",
                price=Decimal("40.00"), requires_prescription=True),
        Product(id=4, name="Discontinued Syrup", description="No longer stocked",
                price=Decimal("15.00"), requires_prescription=False, in_stock=False),
    ])
    _db.session.add(User(
        email=ADMIN_EMAIL,
        password_hash=bcrypt.hashpw(ADMIN_PASSWORD.encode(), bcrypt.gensalt()).decode(),
        full_name="Store Admin",
        role=ROLE_ADMIN,
    ))
