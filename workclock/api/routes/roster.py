# workclock/api/routes/roster.py
import logging
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from workclock.api.dependencies.services import get_directory, get_preferences_service
from workclock.core.errors import DirectoryClientError
from workclock.schemas.roster import (
    ResolveRosterRequest,
    RosterPage,
    RosterQuery,
    SortCriteria,
    SortDirection,
)
from workclock.services.directory_client import MondayClient
from workclock.services.preferences_service import PreferencesService
from workclock.services.roster_view import build_roster_page, effective_query
from workclock.services.status_projection import project

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Roster"])


@router.post(
    "/roster/resolve",
    response_model=RosterPage,
    status_code=HTTPStatus.OK,
    summary="Resolve statuses for an explicit list of people",
    description=(
        "Project the given people against the stored preferences at `now` "
        "(defaults to the current time), then filter, sort and paginate.\n\n"
        "Query fields left out fall back to the stored preferences "
        "(`sortCriteria`, `sortDirection`, `pageSize`, `showOnlineOnly`)."
    ),
    responses={
        200: {
            "description": "One page of the resolved roster.",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "person_id": "101",
                                "name": "Ada Lovelace",
                                "avatar_url": None,
                                "display_time": "4:05 p.m.",
                                "status": "lastHour",
                                "progress": 0.8542,
                                "effective_timezone": "Europe/London",
                                "timezone_was_assumed": False,
                                "start_hour": "09:00",
                                "end_hour": "17:00",
                            }
                        ],
                        "page": 1,
                        "page_size": 10,
                        "total": 1,
                        "total_pages": 1,
                        "page_numbers": [1],
                        "sort_criteria": "name",
                        "sort_direction": "asc",
                        "online_only": False,
                    }
                }
            },
        }
    },
)
async def resolve_roster(
    payload: ResolveRosterRequest,
    preferences: PreferencesService = Depends(get_preferences_service),
) -> RosterPage:
    prefs = await preferences.current()
    now = payload.now or datetime.now(tz=timezone.utc)

    views = project(payload.persons, prefs, now)
    return build_roster_page(views, effective_query(payload.query, prefs), generated_at=now)


@router.get(
    "/boards/{board_id}/roster",
    response_model=RosterPage,
    status_code=HTTPStatus.OK,
    summary="Resolve statuses for the people assigned on a board",
    description=(
        "Lists the people assigned through People columns on the board via the "
        "directory, then resolves, filters, sorts and paginates them.\n\n"
        "- 503 when no directory is configured\n"
        "- 502 when the directory query fails"
    ),
)
async def board_roster(
    board_id: str = Path(
        ...,
        description="Board identifier in the directory.",
        examples=["1234567890"],
    ),
    sort_criteria: SortCriteria | None = Query(default=None),
    sort_direction: SortDirection | None = Query(default=None),
    page: int = Query(default=1, description="Requested page; clamped to the valid range."),
    page_size: int | None = Query(default=None, ge=1),
    online_only: bool | None = Query(default=None),
    directory: MondayClient = Depends(get_directory),
    preferences: PreferencesService = Depends(get_preferences_service),
) -> RosterPage:
    try:
        persons = await directory.list_assigned_persons(board_id)
    except DirectoryClientError as exc:
        logger.warning("Directory failure for board %s: %s", board_id, exc)
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=f"Directory query failed for board {board_id}.",
        )

    prefs = await preferences.current()
    now = datetime.now(tz=timezone.utc)

    query = RosterQuery(
        sort_criteria=sort_criteria,
        sort_direction=sort_direction,
        page=page,
        page_size=page_size,
        online_only=online_only,
    )
    views = project(persons, prefs, now)
    return build_roster_page(views, effective_query(query, prefs), generated_at=now)
