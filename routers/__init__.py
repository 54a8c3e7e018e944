from routers.asset_health import router as asset_health_router
from routers.health import router as health_router

__all__ = ['asset_health_router', 'health_router']
