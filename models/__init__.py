from models.base import Base, get_db, engine, SessionLocal
from models.asset import Asset, AssetMaintenanceRecord, AssetMaintenanceSchedule, Alert
from models.asset_health import AssetHealthScore, AssetFailurePrediction, PREDICTION_STATUSES

__all__ = [
    'Base', 'get_db', 'engine', 'SessionLocal',
    'Asset', 'AssetMaintenanceRecord', 'AssetMaintenanceSchedule', 'Alert',
    'AssetHealthScore', 'AssetFailurePrediction', 'PREDICTION_STATUSES'
]
