import logging
from datetime import date, datetime, timedelta, timezone
from contextlib import asynccontextmanager
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from config import settings
from models.base import Base, engine, SessionLocal
from models.asset import Asset, AssetMaintenanceRecord, AssetMaintenanceSchedule
from models.asset_health import AssetHealthScore, AssetFailurePrediction

from routers.asset_health import router as asset_health_router
from routers.health import router as health_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

DEMO_TENANT_ID = "00000000-0000-0000-0000-000000000001"

def init_db():
    Base.metadata.create_all(bind=engine)

    if settings.demo_mode:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()

def seed_demo_data(db: Session, today: date = None):
    """Seed demo assets with maintenance history and schedules - idempotent"""
    existing = db.query(Asset).filter(Asset.tenant_id == DEMO_TENANT_ID).count()
    if existing > 0:
        return 0

    today = today or datetime.now(timezone.utc).date()

    assets_data = [
        {"code": "FE-001", "name": "Fire Pump Main", "type": "Fire Protection", "criticality": "critical",
         "condition": "good", "installed_years_ago": 3, "lifespan": 15, "cost": 85000,
         "history": [(30, "preventive", False, "good"), (120, "preventive", False, "good")],
         "overdue_schedules": 0, "schedules": 2},
        {"code": "GD-014", "name": "H2S Gas Detector Array", "type": "Gas Detection", "criticality": "high",
         "condition": "fair", "installed_years_ago": 6, "lifespan": 8, "cost": 24000,
         "history": [(15, "corrective", True, "fair"), (60, "calibration", False, "good"), (150, "corrective", True, "good")],
         "overdue_schedules": 1, "schedules": 2},
        {"code": "EG-003", "name": "Emergency Generator", "type": "Power", "criticality": "critical",
         "condition": "critical", "installed_years_ago": 18, "lifespan": 20, "cost": 140000,
         "history": [(10, "emergency", True, "critical"), (45, "corrective", True, "poor"), (90, "corrective", True, "fair"), (200, "preventive", False, "good")],
         "overdue_schedules": 2, "schedules": 2},
        {"code": "EW-007", "name": "Eyewash Station B", "type": "First Aid", "criticality": "low",
         "condition": "excellent", "installed_years_ago": None, "lifespan": None, "cost": None,
         "history": [], "overdue_schedules": 0, "schedules": 0},
        {"code": "SC-002", "name": "Scaffold Hoist", "type": "Lifting", "criticality": "high",
         "condition": "poor", "installed_years_ago": 9, "lifespan": 10, "cost": 32000,
         "history": [(20, "corrective", True, "poor"), (80, "inspection", False, "fair")],
         "overdue_schedules": 1, "schedules": 1},
    ]

    for data in assets_data:
        install_date = None
        if data["installed_years_ago"] is not None:
            install_date = today - timedelta(days=int(data["installed_years_ago"] * 365.25))

        asset = Asset(
            tenant_id=DEMO_TENANT_ID,
            asset_code=data["code"],
            name=data["name"],
            asset_type=data["type"],
            installation_date=install_date,
            condition_rating=data["condition"],
            criticality_level=data["criticality"],
            expected_lifespan_years=data["lifespan"],
            purchase_cost=data["cost"],
            current_book_value=data["cost"] * 0.6 if data["cost"] else None,
            status="active"
        )
        db.add(asset)
        db.flush()

        for days_ago, maintenance_type, unplanned, condition_after in data["history"]:
            db.add(AssetMaintenanceRecord(
                tenant_id=DEMO_TENANT_ID,
                asset_id=asset.id,
                performed_date=today - timedelta(days=days_ago),
                maintenance_type=maintenance_type,
                was_unplanned=unplanned,
                condition_after=condition_after
            ))

        for i in range(data["schedules"]):
            overdue = i < data["overdue_schedules"]
            db.add(AssetMaintenanceSchedule(
                tenant_id=DEMO_TENANT_ID,
                asset_id=asset.id,
                schedule_type="inspection" if i % 2 == 0 else "service",
                next_due=today - timedelta(days=14) if overdue else today + timedelta(days=30),
                last_performed=today - timedelta(days=90),
                is_active=True
            ))

    db.commit()
    logger.info(f"Demo data seeded: {len(assets_data)} assets for tenant {DEMO_TENANT_ID}")
    return len(assets_data)

class PreflightCORSMiddleware(CORSMiddleware):
    """CORS with an empty body on successful preflights."""

    def preflight_response(self, request_headers):
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(
    title=settings.app_name,
    description="Asset health scoring and failure prediction for the HSSE platform",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(asset_health_router)
app.include_router(health_router)

@app.get("/health")
async def health_check():
    """Fast health check endpoint for deployment monitoring"""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "app": settings.app_name,
        "version": settings.app_version
    }
