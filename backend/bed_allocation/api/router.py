"""
Main router grouping every sub-router.
"""
from fastapi import APIRouter

from bed_allocation.api import health
from bed_allocation.api import beds
from bed_allocation.api import patients
from bed_allocation.api import requests
from bed_allocation.api import alerts
from bed_allocation.api import websocket

api_router = APIRouter()

# ============================================
# INCLUDE ALL ROUTERS
# ============================================

# Health checks stay open for load balancers
api_router.include_router(health.router)

api_router.include_router(
    beds.router,
    prefix="/beds",
    tags=["Beds"]
)

api_router.include_router(
    patients.router,
    prefix="/patients",
    tags=["Patients"]
)

api_router.include_router(
    requests.router,
    prefix="/requests",
    tags=["Bed Requests"]
)

api_router.include_router(
    alerts.router,
    prefix="/alerts",
    tags=["Alerts"]
)

api_router.include_router(
    websocket.router,
    tags=["WebSocket"]
)
