from fastapi import APIRouter

from app.rfidpos.core.config import settings
from app.rfidpos.routers.checkout import router as checkout_router
from app.rfidpos.routers.data import router as data_router
from app.rfidpos.routers.device import router as device_router
from app.rfidpos.routers.health import router as health_router
from app.rfidpos.routers.metrics import router as metrics_router
from app.rfidpos.routers.products import router as products_router
from app.rfidpos.routers.scan import router as scan_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(products_router, tags=["products"])
api_router.include_router(scan_router, tags=["scan"])
api_router.include_router(checkout_router, tags=["checkout"])
api_router.include_router(device_router, tags=["device"])
api_router.include_router(data_router, tags=["data"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
