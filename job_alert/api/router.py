from fastapi import APIRouter

from job_alert.api.routes import alerts, delta, health

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(delta.router, prefix="/delta", tags=["delta"])
api_router.include_router(alerts.router, tags=["alerts"])
