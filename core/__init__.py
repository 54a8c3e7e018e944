from core.health_scoring import (
    WEIGHTS, CONDITION_SCORES, CRITICALITY_SCORES,
    HealthFactors, HealthAssessment, assess_health, classify_risk
)
from core.asset_health_service import (
    AssetHealthService, AssetHealthError, AssetNotFoundError, HealthScorePersistenceError
)

__all__ = [
    'WEIGHTS', 'CONDITION_SCORES', 'CRITICALITY_SCORES',
    'HealthFactors', 'HealthAssessment', 'assess_health', 'classify_risk',
    'AssetHealthService', 'AssetHealthError', 'AssetNotFoundError', 'HealthScorePersistenceError'
]
