from fastapi import APIRouter

from app.marbete.core.config import settings
from app.marbete.routers.catalog import router as catalog_router
from app.marbete.routers.counting import router as counting_router
from app.marbete.routers.health import router as health_router
from app.marbete.routers.metrics import router as metrics_router
from app.marbete.routers.stats import router as stats_router
from app.marbete.routers.verification import router as verification_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(counting_router, tags=["counting"])
api_router.include_router(verification_router, tags=["verification"])
api_router.include_router(catalog_router, tags=["catalog"])
api_router.include_router(stats_router, tags=["stats"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
