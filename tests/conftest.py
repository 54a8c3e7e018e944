"""
tests/conftest.py
─────────────────
Shared fixtures: in-memory SQLite session, FastAPI client and asset factories.
"""
import os
import sys
from datetime import date, datetime, timezone

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEMO_MODE"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models.base import Base, get_db
from models.asset import Asset, AssetMaintenanceRecord, AssetMaintenanceSchedule

TENANT_ID = "tenant-a"
OTHER_TENANT_ID = "tenant-b"


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db):
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_asset(db):
    def _make(tenant_id=TENANT_ID, history=(), schedules=(), **fields):
        values = {
            "name": "Fire Pump",
            "asset_code": "FP-001",
            "condition_rating": "good",
            "criticality_level": "low",
            "status": "active",
        }
        values.update(fields)
        asset = Asset(tenant_id=tenant_id, **values)
        db.add(asset)
        db.flush()

        for record in history:
            db.add(AssetMaintenanceRecord(tenant_id=tenant_id, asset_id=asset.id, **record))
        for schedule in schedules:
            db.add(AssetMaintenanceSchedule(tenant_id=tenant_id, asset_id=asset.id, **schedule))

        db.commit()
        return asset
    return _make


def maintenance(performed: date, unplanned: bool = False, condition_after=None, maintenance_type="preventive"):
    return {
        "performed_date": performed,
        "maintenance_type": maintenance_type,
        "was_unplanned": unplanned,
        "condition_after": condition_after,
    }
