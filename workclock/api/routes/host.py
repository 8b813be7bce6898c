# workclock/api/routes/host.py
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from workclock.api.dependencies.services import get_notifier
from workclock.services.host_events import parse_host_mode, select_view
from workclock.services.notifier import Notifier

router = APIRouter(tags=["Host"])


class ViewResponse(BaseModel):
    mode: str | None = Field(None, examples=["settings"])
    view: str = Field(..., description="Top-level view to show: board or settings.")


class NoticeRead(BaseModel):
    type: str = Field(..., examples=["success"])
    message: str = Field(..., examples=["Settings saved."])
    created_at: datetime


@router.get(
    "/view",
    response_model=ViewResponse,
    summary="Pick the top-level view for a host mode",
    description=(
        "Settings panel for `settings`/`accountSettings` modes or an "
        "`account_settings_view` instance; the roster otherwise, including "
        "when the mode is missing or unknown."
    ),
)
async def choose_view(
    mode: str | None = Query(default=None),
    instance_type: str | None = Query(default=None),
) -> ViewResponse:
    host_mode = parse_host_mode(mode)
    return ViewResponse(
        mode=host_mode.value if host_mode else None,
        view=select_view(host_mode, instance_type).value,
    )


@router.get(
    "/notices",
    response_model=list[NoticeRead],
    summary="Recent user-visible notices",
)
async def list_notices(notifier: Notifier = Depends(get_notifier)) -> list[NoticeRead]:
    return [
        NoticeRead(type=n.type, message=n.message, created_at=n.created_at)
        for n in notifier.recent()
    ]
