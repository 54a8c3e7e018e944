"""
Asset Health Service for the HSSE platform.
Gathers asset, maintenance history and schedules for one tenant-scoped asset,
scores it, upserts the health score and raises failure predictions for
high/critical assets. Also drives the daily fleet recalculation.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from models.asset import Asset, AssetMaintenanceRecord, AssetMaintenanceSchedule, Alert
from models.asset_health import AssetHealthScore, AssetFailurePrediction
from core.health_scoring import HealthAssessment, assess_health, draft_failure_prediction, summarize_alert

logger = logging.getLogger(__name__)


class AssetHealthError(Exception):
    """Base class for asset health failures surfaced to callers."""


class AssetNotFoundError(AssetHealthError):
    def __init__(self, asset_id: str, tenant_id: str):
        self.asset_id = asset_id
        self.tenant_id = tenant_id
        super().__init__("Asset not found")


class HealthScorePersistenceError(AssetHealthError):
    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__("Failed to save health score")


@dataclass
class HealthInputs:
    asset: Asset
    history: List[AssetMaintenanceRecord]
    schedules: List[AssetMaintenanceSchedule]


@dataclass
class HealthCalculationResult:
    asset_id: str
    tenant_id: str
    assessment: HealthAssessment
    calculated_at: datetime
    prediction_id: Optional[str] = None
    prediction_error: Optional[str] = None

    @property
    def prediction_created(self) -> bool:
        return self.prediction_id is not None

    def to_response(self) -> Dict[str, Any]:
        response = {
            "success": True,
            "score": self.assessment.score,
            "risk_level": self.assessment.risk_level,
            "trend": self.assessment.trend,
            "failure_probability": self.assessment.failure_probability,
            "days_until_predicted_failure": self.assessment.days_until_predicted_failure,
        }
        if self.assessment.requires_prediction:
            response["prediction_created"] = self.prediction_created
        return response


class AssetHealthService:

    def __init__(
        self,
        db: Session,
        model_version: str = "1.0.0",
        history_limit: int = 20,
        batch_size: int = 10,
        alert_list_limit: int = 10
    ):
        self.db = db
        self.model_version = model_version
        self.history_limit = history_limit
        self.batch_size = batch_size
        self.alert_list_limit = alert_list_limit

    @classmethod
    def from_settings(cls, db: Session, settings) -> "AssetHealthService":
        return cls(
            db,
            model_version=settings.health_model_version,
            history_limit=settings.maintenance_history_limit,
            batch_size=settings.recalculation_batch_size,
            alert_list_limit=settings.alert_asset_list_limit
        )

    # ── Gather ────────────────────────────────────────────────────────────────

    def gather_inputs(self, asset_id: str, tenant_id: str) -> HealthInputs:
        asset = self.db.query(Asset).filter(
            Asset.id == asset_id,
            Asset.tenant_id == tenant_id,
            Asset.deleted_at.is_(None)
        ).first()
        if not asset:
            logger.error(f"Asset fetch error: asset {asset_id} not found for tenant {tenant_id}")
            raise AssetNotFoundError(asset_id, tenant_id)

        history = self.db.query(AssetMaintenanceRecord).filter(
            AssetMaintenanceRecord.asset_id == asset_id,
            AssetMaintenanceRecord.tenant_id == tenant_id,
            AssetMaintenanceRecord.deleted_at.is_(None)
        ).order_by(desc(AssetMaintenanceRecord.performed_date)).limit(self.history_limit).all()

        schedules = self.db.query(AssetMaintenanceSchedule).filter(
            AssetMaintenanceSchedule.asset_id == asset_id,
            AssetMaintenanceSchedule.tenant_id == tenant_id,
            AssetMaintenanceSchedule.is_active == True,
            AssetMaintenanceSchedule.deleted_at.is_(None)
        ).all()

        return HealthInputs(asset=asset, history=history, schedules=schedules)

    # ── Calculate ─────────────────────────────────────────────────────────────

    def calculate(self, asset_id: str, tenant_id: str, now: Optional[datetime] = None) -> HealthCalculationResult:
        now = now or datetime.now(timezone.utc)
        logger.info(f"Calculating health for asset {asset_id}")

        inputs = self.gather_inputs(asset_id, tenant_id)
        assessment = assess_health(inputs.asset, inputs.history, inputs.schedules, now)

        self.save_score(inputs.asset, assessment, now)
        result = HealthCalculationResult(
            asset_id=asset_id,
            tenant_id=tenant_id,
            assessment=assessment,
            calculated_at=now
        )

        if assessment.requires_prediction:
            try:
                prediction = self.record_prediction(inputs.asset, assessment, now)
                result.prediction_id = prediction.id
            except Exception as e:
                # The score is already committed; predictions are best effort
                self.db.rollback()
                result.prediction_error = str(e)
                logger.error(f"Failure prediction insert failed for asset {asset_id}: {str(e)}", exc_info=True)

        logger.info(f"Health calculated for asset {asset_id}: score={assessment.score}, risk={assessment.risk_level}")
        return result

    # ── Persist ───────────────────────────────────────────────────────────────

    def save_score(self, asset: Asset, assessment: HealthAssessment, now: datetime) -> AssetHealthScore:
        """Upsert the single score row of the asset. Last writer wins."""
        factors = assessment.factors
        values = {
            "tenant_id": asset.tenant_id,
            "score": assessment.score,
            "risk_level": assessment.risk_level,
            "age_factor": factors.age,
            "condition_factor": factors.condition,
            "usage_factor": factors.usage,
            "environment_factor": factors.environment,
            "maintenance_compliance_pct": factors.maintenance,
            "failure_probability": assessment.failure_probability,
            "days_until_predicted_failure": assessment.days_until_predicted_failure,
            "trend": assessment.trend,
            "contributing_factors": assessment.contributing_factors,
            "last_calculated_at": now,
            "calculation_model_version": self.model_version,
            "updated_at": now,
        }

        asset_id = asset.id
        for attempt in range(2):
            try:
                return self._write_score(asset_id, values)
            except IntegrityError as e:
                self.db.rollback()
                if attempt == 0:
                    # Another writer inserted the row between our lookup and insert
                    logger.warning(f"Concurrent health score insert for asset {asset_id}, retrying as update")
                    continue
                logger.error(f"Health score upsert error for asset {asset_id}: {str(e)}", exc_info=True)
                raise HealthScorePersistenceError(asset_id) from e
            except Exception as e:
                self.db.rollback()
                logger.error(f"Health score upsert error for asset {asset_id}: {str(e)}", exc_info=True)
                raise HealthScorePersistenceError(asset_id) from e

    def _write_score(self, asset_id: str, values: Dict[str, Any]) -> AssetHealthScore:
        health_score = self.db.query(AssetHealthScore).filter(
            AssetHealthScore.asset_id == asset_id
        ).first()
        if health_score:
            for key, value in values.items():
                setattr(health_score, key, value)
        else:
            health_score = AssetHealthScore(asset_id=asset_id, **values)
            self.db.add(health_score)
        self.db.commit()
        return health_score

    def record_prediction(self, asset: Asset, assessment: HealthAssessment, now: datetime) -> AssetFailurePrediction:
        """Supersede the asset's active predictions and insert a fresh one."""
        draft = draft_failure_prediction(assessment, asset.purchase_cost, now)

        superseded = self.db.query(AssetFailurePrediction).filter(
            AssetFailurePrediction.asset_id == asset.id,
            AssetFailurePrediction.tenant_id == asset.tenant_id,
            AssetFailurePrediction.status == "active"
        ).update({"status": "superseded", "updated_at": now}, synchronize_session=False)

        prediction = AssetFailurePrediction(
            asset_id=asset.id,
            tenant_id=asset.tenant_id,
            predicted_failure_type=draft.predicted_failure_type,
            predicted_date=draft.predicted_date,
            confidence_pct=draft.confidence_pct,
            severity=draft.severity,
            status="active",
            recommended_action=draft.recommended_action,
            model_inputs=draft.model_inputs,
            prediction_model_version=self.model_version,
            priority=draft.priority,
            estimated_repair_cost=draft.estimated_repair_cost,
            cost_if_ignored=draft.cost_if_ignored
        )
        self.db.add(prediction)
        self.db.commit()

        if superseded:
            logger.info(f"Superseded {superseded} active prediction(s) for asset {asset.id}")
        return prediction

    # ── Fleet recalculation ───────────────────────────────────────────────────

    def recalculate_all(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Rescore every active asset across tenants and alert on high/critical ones."""
        start_time = time.monotonic()
        now = now or datetime.now(timezone.utc)
        logger.info("Starting daily asset health recalculation...")

        assets = self.db.query(Asset.id, Asset.name, Asset.tenant_id).filter(
            Asset.status == "active",
            Asset.deleted_at.is_(None)
        ).order_by(Asset.tenant_id, Asset.id).all()

        if not assets:
            logger.info("No active assets found")
            return {"success": True, "message": "No active assets to process", "processed": 0}

        logger.info(f"Found {len(assets)} active assets to process")

        results = []
        critical_assets = []
        total_batches = (len(assets) + self.batch_size - 1) // self.batch_size

        for i in range(0, len(assets), self.batch_size):
            for asset_id, asset_name, tenant_id in assets[i:i + self.batch_size]:
                try:
                    outcome = self.calculate(asset_id, tenant_id, now)
                except Exception as e:
                    self.db.rollback()
                    logger.error(f"Failed to calculate health for asset {asset_id}: {str(e)}", exc_info=True)
                    results.append({
                        "asset_id": asset_id,
                        "asset_name": asset_name,
                        "score": 0,
                        "risk_level": "unknown",
                        "success": False,
                        "error": str(e)
                    })
                    continue

                assessment = outcome.assessment
                results.append({
                    "asset_id": asset_id,
                    "asset_name": asset_name,
                    "score": assessment.score,
                    "risk_level": assessment.risk_level,
                    "success": True
                })
                if assessment.requires_prediction:
                    critical_assets.append({
                        "id": asset_id,
                        "name": asset_name,
                        "score": assessment.score,
                        "risk_level": assessment.risk_level,
                        "tenant_id": tenant_id
                    })

            logger.info(f"Processed batch {i // self.batch_size + 1}/{total_batches}")

        critical_by_tenant: Dict[str, List[Dict[str, Any]]] = {}
        for entry in critical_assets:
            critical_by_tenant.setdefault(entry["tenant_id"], []).append(entry)

        for tenant_id, tenant_assets in critical_by_tenant.items():
            self.send_critical_asset_alert(tenant_id, tenant_assets)

        success_count = len([r for r in results if r["success"]])
        failure_count = len(results) - success_count
        critical_count = len([a for a in critical_assets if a["risk_level"] == "critical"])
        high_risk_count = len([a for a in critical_assets if a["risk_level"] == "high"])
        execution_time_ms = int((time.monotonic() - start_time) * 1000)

        logger.info(
            f"Daily health recalculation complete: processed={len(results)}, successful={success_count}, "
            f"failed={failure_count}, critical={critical_count}, high_risk={high_risk_count}, "
            f"execution_time={execution_time_ms}ms"
        )

        return {
            "success": True,
            "summary": {
                "total_processed": len(results),
                "successful": success_count,
                "failed": failure_count,
                "critical_assets": critical_count,
                "high_risk_assets": high_risk_count,
                "execution_time_ms": execution_time_ms
            },
            "critical_assets": critical_assets
        }

    def send_critical_asset_alert(self, tenant_id: str, tenant_assets: List[Dict[str, Any]]) -> Optional[Alert]:
        """Record one alert per tenant. Alert failures never fail the run."""
        if not tenant_assets:
            return None

        content = summarize_alert(tenant_assets, self.alert_list_limit)
        has_critical = any(a["risk_level"] == "critical" for a in tenant_assets)

        try:
            alert = Alert(
                tenant_id=tenant_id,
                alert_type="asset_health",
                severity="critical" if has_critical else "high",
                title=content["title"],
                description=content["body"],
                status="open",
                extra_data={"asset_ids": [a["id"] for a in tenant_assets]}
            )
            self.db.add(alert)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to send critical asset alerts for tenant {tenant_id}: {str(e)}", exc_info=True)
            return None

        logger.info(f"Alert for tenant {tenant_id}: {content['title']}")
        return alert
