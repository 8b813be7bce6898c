# workclock/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from workclock.api.dependencies.services import get_app_settings, get_optional_directory
from workclock.core.config import Settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(
        ...,
        description="Overall health status of the WorkClock service.",
        examples=["ok"],
    )
    app_name: str = Field(
        ...,
        description="Human-friendly name of the running application.",
        examples=["WorkClock"],
    )
    environment: str = Field(
        ...,
        description="Current deployment environment (local/dev/stage/prod).",
        examples=["local"],
    )
    directory_configured: bool = Field(
        ...,
        description="Whether a directory API token is configured.",
    )
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side timestamp (UTC) at which this health check was generated.",
        examples=["2025-01-01T10:30:00Z"],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check for WorkClock service",
    description=(
        "Lightweight endpoint to verify that the WorkClock backend is "
        "up and responding.\n\n"
        "It does **not** call the directory or the preferences store, so it "
        "remains reliable when those are degraded."
    ),
)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    directory=Depends(get_optional_directory),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        directory_configured=directory is not None,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
