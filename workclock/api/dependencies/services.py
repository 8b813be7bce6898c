# workclock/api/dependencies/services.py
from http import HTTPStatus
from typing import Optional

from fastapi import HTTPException, Request

from workclock.core.config import Settings
from workclock.services.directory_client import MondayClient
from workclock.services.notifier import Notifier
from workclock.services.preferences_service import PreferencesService


# Everything below is wired once in the application lifespan and stored on
# app.state; these dependencies only hand the instances to the routes.


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_preferences_service(request: Request) -> PreferencesService:
    return request.app.state.preferences


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_optional_directory(request: Request) -> Optional[MondayClient]:
    return getattr(request.app.state, "directory", None)


def get_directory(request: Request) -> MondayClient:
    """
    Directory client, or 503 when no directory API token is configured.
    """
    directory = get_optional_directory(request)
    if directory is None:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Directory is not configured (set MONDAY_API_TOKEN).",
        )
    return directory
