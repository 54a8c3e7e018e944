from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from models.base import get_db
from config import settings

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("/live")
async def liveness():
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "app": settings.app_name,
        "version": settings.app_version
    }

@router.get("/ready")
async def readiness(db: Session = Depends(get_db)):
    checks = {
        "database": False,
        "health_scoring": False
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    try:
        from core.health_scoring import WEIGHTS
        checks["health_scoring"] = abs(sum(WEIGHTS.values()) - 1.0) < 1e-9
    except Exception as e:
        checks["health_scoring_error"] = str(e)

    all_healthy = all(v for k, v in checks.items() if not k.endswith("_error"))

    return {
        "status": "ready" if all_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "model_version": settings.health_model_version,
        "demo_mode": settings.demo_mode
    }

@router.get("/")
async def health_root():
    return {"status": "ok", "app": settings.app_name}
