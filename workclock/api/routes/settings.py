# workclock/api/routes/settings.py
import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path

from workclock.api.dependencies.services import (
    get_app_settings,
    get_optional_directory,
    get_preferences_service,
)
from workclock.core.config import Settings
from workclock.core.errors import DirectoryClientError, InvalidTimeZoneError
from workclock.schemas.preferences import (
    AddOverrideRequest,
    OverrideRow,
    OverrideUpdate,
    PreferencesUpdate,
    SaveResult,
    SettingsRead,
)
from workclock.services.directory_client import MondayClient
from workclock.services.preferences_service import PreferencesService
from workclock.services.settings_summary import (
    build_override_rows,
    numeric_override_keys,
    summary_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get(
    "",
    response_model=SettingsRead,
    summary="Get the stored preferences",
    description=(
        "Return the preferences aggregate in its stored (camelCase) shape, "
        "a one-line summary of the default schedule and the suggested "
        "refresh interval for clients."
    ),
)
async def read_settings(
    preferences: PreferencesService = Depends(get_preferences_service),
    settings: Settings = Depends(get_app_settings),
) -> SettingsRead:
    prefs = await preferences.current()
    payload = summary_payload(
        prefs,
        now=datetime.now(tz=timezone.utc),
        refresh_interval=settings.REFRESH_INTERVAL_SECONDS,
    )
    return SettingsRead(**payload)


@router.put(
    "",
    response_model=SaveResult,
    summary="Update the default schedule and display options",
    description=(
        "Only fields provided in the request body are modified. The change is "
        "merged into the latest stored copy before the whole object is written.\n\n"
        "If the store rejects the write, `saved` is false and an error notice "
        "is emitted; the in-memory preferences keep the change."
    ),
)
async def update_settings(
    payload: PreferencesUpdate,
    preferences: PreferencesService = Depends(get_preferences_service),
) -> SaveResult:
    return await preferences.save_defaults(payload)


@router.get(
    "/overrides",
    response_model=list[OverrideRow],
    summary="List per-user overrides",
    description=(
        "Rows for the overrides table. Names of numeric user ids are looked up "
        "in the directory when one is configured; lookup failures only cost "
        "the names."
    ),
)
async def list_overrides(
    preferences: PreferencesService = Depends(get_preferences_service),
    directory: Optional[MondayClient] = Depends(get_optional_directory),
) -> list[OverrideRow]:
    prefs = await preferences.current()

    names: Dict[str, str] = {}
    ids = numeric_override_keys(prefs)
    if directory is not None and ids:
        try:
            names = await directory.lookup_user_names(ids)
        except DirectoryClientError as exc:
            logger.warning("Could not resolve override names: %s", exc)

    return build_override_rows(prefs, names)


@router.post(
    "/overrides",
    response_model=SaveResult,
    status_code=HTTPStatus.CREATED,
    summary="Add an override for a numeric user id",
    responses={400: {"description": "The user id is not numeric."}},
)
async def add_override(
    payload: AddOverrideRequest,
    preferences: PreferencesService = Depends(get_preferences_service),
) -> SaveResult:
    try:
        return await preferences.add_override(payload.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))


@router.get(
    "/overrides/export",
    response_model=Dict[str, Any],
    summary="Export overrides as JSON",
)
async def export_overrides(
    preferences: PreferencesService = Depends(get_preferences_service),
) -> Dict[str, Any]:
    return await preferences.export_overrides()


@router.post(
    "/overrides/import",
    response_model=SaveResult,
    summary="Replace all overrides from JSON",
    description=(
        "Body must be an object mapping keys (user id or name) to override "
        "objects `{timezone, startHour, endHour}`. Existing overrides are replaced."
    ),
    responses={400: {"description": "The body is not an object of objects."}},
)
async def import_overrides(
    payload: Any = Body(...),
    preferences: PreferencesService = Depends(get_preferences_service),
) -> SaveResult:
    try:
        return await preferences.import_overrides(payload)
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))


@router.put(
    "/overrides/{key}",
    response_model=SaveResult,
    summary="Create or replace one override",
    responses={400: {"description": "The timezone is not a valid IANA zone."}},
)
async def save_override(
    payload: OverrideUpdate,
    key: str = Path(..., description="User id (or legacy display name).", examples=["12345678"]),
    preferences: PreferencesService = Depends(get_preferences_service),
) -> SaveResult:
    try:
        return await preferences.upsert_override(key, payload)
    except InvalidTimeZoneError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=(
                f"{exc}. Please enter a valid IANA timezone like 'America/Toronto'."
            ),
        )


@router.delete(
    "/overrides/{key}",
    response_model=SaveResult,
    summary="Remove one override",
    responses={404: {"description": "No override exists for the key."}},
)
async def remove_override(
    key: str = Path(..., description="User id (or legacy display name)."),
    preferences: PreferencesService = Depends(get_preferences_service),
) -> SaveResult:
    try:
        return await preferences.remove_override(key)
    except KeyError:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"No override for key {key!r}.",
        )
