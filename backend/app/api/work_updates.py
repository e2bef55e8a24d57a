from fastapi import APIRouter, Depends, HTTPException, status

from app.core.clock import today_local
from app.core.middleware import get_current_user
from app.db.models import User
from app.schemas.work_update import TodayUpdateStatus, WorkUpdateCreate, WorkUpdateResponse
from app.services.work_updates import WorkUpdateRepository, get_work_update_repository

router = APIRouter()


@router.post(
    "/",
    response_model=WorkUpdateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit today's work update",
)
async def create_work_update(
    body: WorkUpdateCreate,
    updates: WorkUpdateRepository = Depends(get_work_update_repository),
    current_user: User = Depends(get_current_user),
) -> WorkUpdateResponse:
    update = await updates.add(current_user.id, body.content, today_local())
    return WorkUpdateResponse.model_validate(update)


@router.get(
    "/latest",
    response_model=WorkUpdateResponse,
    summary="Most recent work update of the authenticated user",
)
async def get_latest_work_update(
    updates: WorkUpdateRepository = Depends(get_work_update_repository),
    current_user: User = Depends(get_current_user),
) -> WorkUpdateResponse:
    update = await updates.latest(current_user.id)
    if update is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No work updates yet",
        )
    return WorkUpdateResponse.model_validate(update)


@router.get(
    "/today",
    response_model=TodayUpdateStatus,
    summary="Whether today's work update has been submitted",
)
async def get_today_status(
    updates: WorkUpdateRepository = Depends(get_work_update_repository),
    current_user: User = Depends(get_current_user),
) -> TodayUpdateStatus:
    today = today_local()
    submitted = await updates.exists_on(current_user.id, today)
    return TodayUpdateStatus(date=today, status="Submitted" if submitted else "Pending")
