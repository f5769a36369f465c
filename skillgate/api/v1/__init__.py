"""
API v1 routes.
"""

from fastapi import APIRouter

from skillgate.api.v1 import telemetry, users

router = APIRouter()

router.include_router(telemetry.router, prefix="/telemetry", tags=["Telemetry"])
router.include_router(users.router, prefix="/users", tags=["Competency"])
