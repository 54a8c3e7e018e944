"""
Asset Health API Router
On-demand health scoring, fleet recalculation and health/prediction reads.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import desc, func
from pydantic import BaseModel, field_validator

from config import settings
from models.base import get_db
from models.asset import Asset
from models.asset_health import AssetHealthScore, AssetFailurePrediction, PREDICTION_STATUSES
from core.asset_health_service import AssetHealthService, AssetNotFoundError, HealthScorePersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/asset-health", tags=["Asset Health"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

PREDICTION_STATUS_UPDATES = [s for s in PREDICTION_STATUSES if s not in ("active", "superseded")]
RISK_LEVELS = ["low", "medium", "high", "critical"]
TRENDS = ["improving", "stable", "declining"]


class CalculateHealthRequest(BaseModel):
    asset_id: Optional[str] = None
    tenant_id: Optional[str] = None

    @field_validator("asset_id", "tenant_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class PredictionStatusUpdate(BaseModel):
    tenant_id: str
    status: str


def json_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


def get_health_service(db: Session = Depends(get_db)) -> AssetHealthService:
    return AssetHealthService.from_settings(db, settings)


@router.options("/calculate")
async def calculate_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/calculate")
async def calculate_asset_health(
    request: Request,
    service: AssetHealthService = Depends(get_health_service)
):
    try:
        body = await request.json()
    except ValueError:
        body = None
    payload = CalculateHealthRequest.model_validate(body if isinstance(body, dict) else {})

    if not payload.asset_id or not payload.tenant_id:
        return json_error("asset_id and tenant_id required", 400)

    try:
        result = service.calculate(payload.asset_id, payload.tenant_id)
    except AssetNotFoundError as e:
        return json_error(str(e), 404)
    except HealthScorePersistenceError as e:
        return json_error(str(e), 500)
    except Exception as e:
        logger.error(f"calculate-asset-health error: {str(e)}", exc_info=True)
        return json_error(str(e) or "Unknown error", 500)

    return JSONResponse(result.to_response(), headers=CORS_HEADERS)


@router.options("/recalculate-all")
async def recalculate_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/recalculate-all")
async def recalculate_all_assets(service: AssetHealthService = Depends(get_health_service)):
    """Daily fleet recalculation across all tenants."""
    try:
        result = service.recalculate_all()
    except Exception as e:
        logger.error(f"Daily health cron error: {str(e)}", exc_info=True)
        return json_error(str(e) or "Unknown error", 500)

    return JSONResponse(result, headers=CORS_HEADERS)


@router.get("/fleet-stats")
async def get_fleet_health_stats(
    tenant_id: str,
    db: Session = Depends(get_db)
):
    scores = db.query(AssetHealthScore).join(
        Asset, Asset.id == AssetHealthScore.asset_id
    ).filter(
        AssetHealthScore.tenant_id == tenant_id,
        Asset.deleted_at.is_(None)
    ).all()

    by_risk = {level: 0 for level in RISK_LEVELS}
    by_trend = {trend: 0 for trend in TRENDS}
    for s in scores:
        by_risk[s.risk_level] = by_risk.get(s.risk_level, 0) + 1
        by_trend[s.trend] = by_trend.get(s.trend, 0) + 1

    active_predictions = db.query(func.count(AssetFailurePrediction.id)).filter(
        AssetFailurePrediction.tenant_id == tenant_id,
        AssetFailurePrediction.status == "active"
    ).scalar() or 0

    return {
        "total_scored_assets": len(scores),
        "average_score": round(sum(s.score for s in scores) / len(scores), 1) if scores else None,
        "by_risk_level": by_risk,
        "by_trend": by_trend,
        "active_predictions": active_predictions
    }


@router.get("/at-risk")
async def list_at_risk_assets(
    tenant_id: str,
    limit: int = Query(default=5, ge=1, le=100),
    db: Session = Depends(get_db)
):
    rows = db.query(AssetHealthScore, Asset).join(
        Asset, Asset.id == AssetHealthScore.asset_id
    ).filter(
        AssetHealthScore.tenant_id == tenant_id,
        AssetHealthScore.risk_level.in_(["high", "critical"]),
        Asset.deleted_at.is_(None)
    ).order_by(AssetHealthScore.score, Asset.name).limit(limit).all()

    result = []
    for score, asset in rows:
        entry = score.to_dict()
        entry["asset_name"] = asset.name
        entry["asset_code"] = asset.asset_code
        result.append(entry)
    return result


@router.get("/predictions")
async def list_failure_predictions(
    tenant_id: str,
    asset_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = 0,
    db: Session = Depends(get_db)
):
    query = db.query(AssetFailurePrediction).filter(
        AssetFailurePrediction.tenant_id == tenant_id
    )
    if asset_id:
        query = query.filter(AssetFailurePrediction.asset_id == asset_id)
    if status:
        query = query.filter(AssetFailurePrediction.status == status)

    total = query.count()
    predictions = query.order_by(
        desc(AssetFailurePrediction.created_at), desc(AssetFailurePrediction.predicted_date)
    ).offset(offset).limit(limit).all()

    return {"total": total, "predictions": [p.to_dict() for p in predictions]}


@router.patch("/predictions/{prediction_id}")
async def update_failure_prediction(
    prediction_id: str,
    update: PredictionStatusUpdate,
    db: Session = Depends(get_db)
):
    if update.status not in PREDICTION_STATUS_UPDATES:
        return json_error(f"Invalid status. Allowed: {', '.join(PREDICTION_STATUS_UPDATES)}", 400)

    prediction = db.query(AssetFailurePrediction).filter(
        AssetFailurePrediction.id == prediction_id,
        AssetFailurePrediction.tenant_id == update.tenant_id
    ).first()
    if not prediction:
        return json_error("Prediction not found", 404)

    now = datetime.now(timezone.utc)
    prediction.status = update.status
    if update.status == "acknowledged":
        prediction.acknowledged_at = now
    else:
        prediction.resolved_at = now
    prediction.updated_at = now
    db.commit()

    return {"success": True, "prediction": prediction.to_dict()}


@router.get("/{asset_id}")
async def get_asset_health(
    asset_id: str,
    tenant_id: str,
    db: Session = Depends(get_db)
):
    health_score = db.query(AssetHealthScore).filter(
        AssetHealthScore.asset_id == asset_id,
        AssetHealthScore.tenant_id == tenant_id
    ).first()
    if not health_score:
        return json_error("Health score not found", 404)

    return health_score.to_dict()
