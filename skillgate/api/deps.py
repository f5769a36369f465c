"""
FastAPI dependencies: the engagement context and its services.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from skillgate.context import EngagementContext
from skillgate.services.competency_service import CompetencyService
from skillgate.services.telemetry_service import TelemetryService


def get_context(request: Request) -> EngagementContext:
    """The context built by the application lifespan."""
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Engine not initialized",
        )
    return ctx


Context = Annotated[EngagementContext, Depends(get_context)]


def get_telemetry_service(ctx: Context) -> TelemetryService:
    return ctx.telemetry


def get_competency_service(ctx: Context) -> CompetencyService:
    return ctx.competency


Telemetry = Annotated[TelemetryService, Depends(get_telemetry_service)]
Competency = Annotated[CompetencyService, Depends(get_competency_service)]
