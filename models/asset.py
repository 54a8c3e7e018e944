import uuid
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Numeric, Date, Text, Index
from sqlalchemy.sql import func
from models.base import Base, JSONType

def new_id():
    return str(uuid.uuid4())

class Asset(Base):
    __tablename__ = "hsse_assets"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    asset_code = Column(String(100))
    name = Column(String(255), nullable=False)
    asset_type = Column(String(100))
    installation_date = Column(Date)
    warranty_expiry_date = Column(Date)
    condition_rating = Column(String(20))
    criticality_level = Column(String(20), default="medium")
    expected_lifespan_years = Column(Numeric(6, 2, asdecimal=False))
    current_book_value = Column(Numeric(15, 2, asdecimal=False))
    purchase_cost = Column(Numeric(15, 2, asdecimal=False))
    status = Column(String(50), default="active")
    deleted_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "asset_code": self.asset_code,
            "name": self.name,
            "asset_type": self.asset_type,
            "installation_date": self.installation_date.isoformat() if self.installation_date else None,
            "warranty_expiry_date": self.warranty_expiry_date.isoformat() if self.warranty_expiry_date else None,
            "condition_rating": self.condition_rating,
            "criticality_level": self.criticality_level,
            "expected_lifespan_years": self.expected_lifespan_years,
            "current_book_value": self.current_book_value,
            "purchase_cost": self.purchase_cost,
            "status": self.status
        }

class AssetMaintenanceRecord(Base):
    __tablename__ = "asset_maintenance_history"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    asset_id = Column(String(36), ForeignKey("hsse_assets.id"), nullable=False, index=True)
    performed_date = Column(Date, nullable=False)
    maintenance_type = Column(String(50), nullable=False)
    was_unplanned = Column(Boolean, default=False, nullable=False)
    condition_after = Column(String(20))
    notes = Column(Text)
    deleted_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_maintenance_history_asset_date", "asset_id", "performed_date"),
    )

class AssetMaintenanceSchedule(Base):
    __tablename__ = "asset_maintenance_schedules"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), nullable=False, index=True)
    asset_id = Column(String(36), ForeignKey("hsse_assets.id"), nullable=False, index=True)
    schedule_type = Column(String(50))
    description = Column(Text)
    next_due = Column(Date)
    last_performed = Column(Date)
    is_active = Column(Boolean, default=True, nullable=False)
    deleted_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    asset_id = Column(String(36), ForeignKey("hsse_assets.id"))
    alert_type = Column(String(50), nullable=False)
    severity = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(20), default="open")
    extra_data = Column(JSONType, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "asset_id": self.asset_id,
            "alert_type": self.alert_type,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "extra_data": self.extra_data or {},
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
