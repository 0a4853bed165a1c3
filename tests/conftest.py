"""
Shared test fixtures: SQLite test database, test client, item builders.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point settings at the test database before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test_quantities.db"
os.environ["ZERO_COEFFICIENT_IS_ERROR"] = "false"

from quantity_app.database import Base, get_db
from quantity_app.engine.item import QuantityItem
from quantity_app.main import app


TEST_DATABASE_URL = "sqlite:///./test_quantities.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_item(**raw) -> QuantityItem:
    """Named item with the given raw field text applied, mode first."""
    item = QuantityItem()
    item.update_field("name", raw.pop("name", "Formwork"))
    if "calculation_mode" in raw:
        item.update_field("calculation_mode", raw.pop("calculation_mode"))
    for field, value in raw.items():
        item.update_field(field, value)
    return item


@pytest.fixture
def table_id(client):
    """A created quantity table."""
    response = client.post("/api/quantity-tables/", json={"name": "Level 1 take-off", "project_id": "p-1"})
    assert response.status_code == 200
    return response.json()["id"]


@pytest.fixture
def group_id(client, table_id):
    """A group inside table_id."""
    response = client.post(f"/api/quantity-tables/{table_id}/groups", json={"name": "Exterior wall"})
    assert response.status_code == 200
    return response.json()["id"]
