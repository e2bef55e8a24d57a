import uuid
from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, Query, status

from app.core.clock import local_tz, now_utc, today_local
from app.core.middleware import get_current_user, resolve_user_id
from app.db.models import User
from app.schemas.punch import PunchCreate, PunchEvent, PunchStatusResponse
from app.services.punches import PunchRepository, get_punch_repository, next_direction

router = APIRouter()


@router.post(
    "/",
    response_model=PunchEvent,
    status_code=status.HTTP_201_CREATED,
    summary="Punch in or out",
)
async def create_punch(
    body: PunchCreate | None = None,
    punches: PunchRepository = Depends(get_punch_repository),
    current_user: User = Depends(get_current_user),
) -> PunchEvent:
    direction = body.direction if body and body.direction else None
    if direction is None:
        direction = next_direction(await punches.last_punch(current_user.id))
    return await punches.record(current_user.id, direction, now_utc())


@router.get(
    "/status",
    response_model=PunchStatusResponse,
    summary="Current punch state of the authenticated user",
)
async def get_punch_status(
    punches: PunchRepository = Depends(get_punch_repository),
    current_user: User = Depends(get_current_user),
) -> PunchStatusResponse:
    last = await punches.last_punch(current_user.id)
    if last is None:
        return PunchStatusResponse(direction=None, last_punch_at=None, label="Not punched")
    return PunchStatusResponse(
        direction=last.direction,
        last_punch_at=last.timestamp,
        label="Punched In" if last.direction == "IN" else "Punched Out",
    )


@router.get(
    "/",
    response_model=list[PunchEvent],
    summary="Punch log within a date range",
)
async def list_punches(
    user_id: uuid.UUID | None = Query(default=None, description="Admins only"),
    date_from: date | None = Query(default=None, description="YYYY-MM-DD"),
    date_to: date | None = Query(default=None, description="YYYY-MM-DD, inclusive"),
    punches: PunchRepository = Depends(get_punch_repository),
    current_user: User = Depends(get_current_user),
) -> list[PunchEvent]:
    today = today_local()
    df = date_from or today.replace(day=1)
    dt = date_to or today
    uid = resolve_user_id(user_id, current_user)

    tz = local_tz()
    range_start = datetime.combine(df, time.min, tzinfo=tz)
    range_end = datetime.combine(dt + timedelta(days=1), time.min, tzinfo=tz)

    events = await punches.fetch_punches(uid, range_start, range_end)
    return sorted(events, key=lambda e: e.timestamp)
