"""
Shared fixtures.

Settings are read once at import time, so the test database and log
directory are configured through the environment before teashop is imported.
"""
import os
import tempfile
from datetime import datetime

_tmp = tempfile.mkdtemp(prefix="teashop-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp, "test.db")
os.environ["LOG_DIR"] = os.path.join(_tmp, "logs")
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["INITIAL_ADMIN_EMAIL"] = ""
os.environ["INITIAL_ADMIN_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient

from teashop.main import app
from teashop.models import Product
from teashop.models.base import SessionLocal, reset_db
from teashop.services import seed_service

# Two days after the demo orders (2024-02-03)
DEMO_NOW = datetime(2024, 2, 5, 12, 0, 0)

STAFF_LOGIN = {"email": "admin@deniyaya.com", "password": "admin123"}
CUSTOMER_LOGIN = {"email": "saman.perera@email.com", "password": "customer123"}


@pytest.fixture
def db():
    """Fresh, empty schema and an open session."""
    reset_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    """Demo data with its original February 2024 timestamps."""
    seed_service.seed_demo_data(db)
    return db


@pytest.fixture
def demo_now():
    return DEMO_NOW


@pytest.fixture
def product_ids(seeded):
    """Demo product ids keyed by name."""
    return {p.name: p.id for p in seeded.query(Product).all()}


@pytest.fixture
def client(db):
    """API client over demo data shifted so the latest orders are dated today."""
    seed_service.seed_demo_data(db, anchor=datetime.utcnow())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def staff_client(client):
    r = client.post("/auth/login", json=STAFF_LOGIN)
    assert r.status_code == 200, r.text
    return client


@pytest.fixture
def customer_client(client):
    r = client.post("/auth/customer/login", json=CUSTOMER_LOGIN)
    assert r.status_code == 200, r.text
    return client
