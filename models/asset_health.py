"""
Asset health persistence for the HSSE platform.
One score row per asset (overwritten on every calculation) and an
append-only log of failure predictions raised for high/critical assets.
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Numeric, Text, Index
from sqlalchemy.sql import func
from models.base import Base, JSONType
from models.asset import new_id


class AssetHealthScore(Base):
    __tablename__ = "asset_health_scores"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    asset_id = Column(String(36), ForeignKey("hsse_assets.id"), nullable=False, unique=True)
    score = Column(Integer, nullable=False)
    risk_level = Column(String(20), nullable=False, index=True)
    age_factor = Column(Numeric(6, 2, asdecimal=False))
    condition_factor = Column(Numeric(6, 2, asdecimal=False))
    usage_factor = Column(Numeric(6, 2, asdecimal=False))
    environment_factor = Column(Numeric(6, 2, asdecimal=False))
    maintenance_compliance_pct = Column(Numeric(6, 2, asdecimal=False))
    failure_probability = Column(Numeric(5, 4, asdecimal=False))
    days_until_predicted_failure = Column(Integer)
    trend = Column(String(20), default="stable")
    contributing_factors = Column(JSONType, default=dict)
    last_calculated_at = Column(DateTime(timezone=True))
    calculation_model_version = Column(String(50))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "asset_id": self.asset_id,
            "score": self.score,
            "risk_level": self.risk_level,
            "age_factor": self.age_factor,
            "condition_factor": self.condition_factor,
            "usage_factor": self.usage_factor,
            "environment_factor": self.environment_factor,
            "maintenance_compliance_pct": self.maintenance_compliance_pct,
            "failure_probability": self.failure_probability,
            "days_until_predicted_failure": self.days_until_predicted_failure,
            "trend": self.trend,
            "contributing_factors": self.contributing_factors or {},
            "last_calculated_at": self.last_calculated_at.isoformat() if self.last_calculated_at else None,
            "calculation_model_version": self.calculation_model_version
        }


class AssetFailurePrediction(Base):
    __tablename__ = "asset_failure_predictions"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    asset_id = Column(String(36), ForeignKey("hsse_assets.id"), nullable=False, index=True)
    predicted_failure_type = Column(String(50), nullable=False)
    predicted_date = Column(Date, nullable=False)
    confidence_pct = Column(Integer)
    severity = Column(String(20), nullable=False)
    status = Column(String(20), default="active", nullable=False)
    recommended_action = Column(Text)
    model_inputs = Column(JSONType, default=dict)
    prediction_model_version = Column(String(50))
    priority = Column(Integer)
    estimated_repair_cost = Column(Numeric(15, 2, asdecimal=False))
    cost_if_ignored = Column(Numeric(15, 2, asdecimal=False))
    acknowledged_at = Column(DateTime(timezone=True))
    resolved_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_failure_predictions_asset_status", "asset_id", "status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "asset_id": self.asset_id,
            "predicted_failure_type": self.predicted_failure_type,
            "predicted_date": self.predicted_date.isoformat() if self.predicted_date else None,
            "confidence_pct": self.confidence_pct,
            "severity": self.severity,
            "status": self.status,
            "recommended_action": self.recommended_action,
            "model_inputs": self.model_inputs or {},
            "prediction_model_version": self.prediction_model_version,
            "priority": self.priority,
            "estimated_repair_cost": self.estimated_repair_cost,
            "cost_if_ignored": self.cost_if_ignored,
            "acknowledged_at": self.acknowledged_at.isoformat() if self.acknowledged_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }


PREDICTION_STATUSES = [
    "active",
    "acknowledged",
    "resolved",
    "dismissed",
    "superseded"
]
