"""
Task routes.

Any user may assign a task to an active coworker and follow the tasks they
gave or received; admins additionally get the team-wide table and the
per-user overview.
"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.pagination import PageParams, page_envelope, page_params
from app.core.clock import now_utc, today_local
from app.core.middleware import get_current_user, require_admin, resolve_user_id
from app.db.models import Task, User
from app.schemas.task import (
    CalendarDay,
    TaskCreate,
    TaskFilters,
    TaskOverview,
    TaskPriority,
    TaskRelation,
    TaskResponse,
    TaskStatus,
    TaskStatusUpdate,
)
from app.services.directory import UserDirectory, get_user_directory
from app.services.tasks import (
    TaskRepository,
    build_task_overview,
    calendar_counts,
    can_change_status,
    get_task_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def task_filters(
    status_: TaskStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = Query(default=None),
    assigned_to: uuid.UUID | None = Query(default=None),
    due_from: date | None = Query(default=None, description="YYYY-MM-DD"),
    due_to: date | None = Query(default=None, description="YYYY-MM-DD, inclusive"),
    search: str | None = Query(default=None, description="Matches title or description"),
) -> TaskFilters:
    return TaskFilters(
        status=status_,
        priority=priority,
        assigned_to=assigned_to,
        due_from=due_from,
        due_to=due_to,
        search=search,
    )


async def _with_names(tasks: list[Task], directory: UserDirectory) -> list[TaskResponse]:
    ids = {t.assigned_to for t in tasks} | {t.assigned_by for t in tasks}
    names = await directory.display_names(ids)
    return [
        TaskResponse.model_validate(t).model_copy(
            update={
                "assigned_to_name": names.get(t.assigned_to),
                "assigned_by_name": names.get(t.assigned_by),
            }
        )
        for t in tasks
    ]


@router.post(
    "/",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a task to a coworker",
)
async def create_task(
    body: TaskCreate,
    tasks: TaskRepository = Depends(get_task_repository),
    directory: UserDirectory = Depends(get_user_directory),
    current_user: User = Depends(get_current_user),
) -> TaskResponse:
    assignee = await directory.get(body.assigned_to)
    if assignee is None or not assignee.is_active:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Assignee not found or inactive",
        )

    task = await tasks.add(
        Task(
            title=body.title,
            description=body.description,
            remarks=body.remarks,
            assigned_by=current_user.id,
            assigned_to=assignee.id,
            due_date=body.due_date,
            priority=body.priority,
            status="Assigned",
            last_activity=now_utc(),
        )
    )
    return (await _with_names([task], directory))[0]


@router.get(
    "/mine",
    response_model=list[TaskResponse],
    summary="Tasks assigned to and/or created by the authenticated user",
)
async def list_my_tasks(
    relation: TaskRelation = Query(default="assigned"),
    filters: TaskFilters = Depends(task_filters),
    tasks: TaskRepository = Depends(get_task_repository),
    directory: UserDirectory = Depends(get_user_directory),
    current_user: User = Depends(get_current_user),
) -> list[TaskResponse]:
    found = await tasks.for_user(current_user.id, relation, filters)
    return await _with_names(found, directory)


@router.get(
    "/calendar",
    response_model=list[CalendarDay],
    summary="Per-day task counts for a date range",
)
async def get_calendar(
    date_from: date = Query(..., description="YYYY-MM-DD"),
    date_to: date = Query(..., description="YYYY-MM-DD, inclusive"),
    user_id: uuid.UUID | None = Query(default=None, description="Admins only"),
    tasks: TaskRepository = Depends(get_task_repository),
    current_user: User = Depends(get_current_user),
) -> list[CalendarDay]:
    if date_to < date_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_to must not be before date_from",
        )

    target = resolve_user_id(user_id, current_user)
    found = await tasks.for_user(
        target, "all", TaskFilters(due_from=date_from, due_to=date_to)
    )
    return calendar_counts(found, today_local())


@router.patch(
    "/{task_id}/status",
    response_model=TaskResponse,
    summary="Move a task to another status",
)
async def update_task_status(
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    tasks: TaskRepository = Depends(get_task_repository),
    directory: UserDirectory = Depends(get_user_directory),
    current_user: User = Depends(get_current_user),
) -> TaskResponse:
    task = await tasks.get(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if not can_change_status(task, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the assignee, the assigner or an admin can update this task",
        )

    previous = task.status
    task.status = body.status
    if body.remarks is not None:
        task.remarks = body.remarks
    task.last_activity = now_utc()
    task = await tasks.save(task)

    logger.info("Task %s: %s -> %s by %s", task.id, previous, task.status, current_user.id)
    return (await _with_names([task], directory))[0]


@router.get(
    "/",
    summary="All tasks with filters and pagination (admin only)",
)
async def list_tasks(
    filters: TaskFilters = Depends(task_filters),
    paging: PageParams = Depends(page_params),
    tasks: TaskRepository = Depends(get_task_repository),
    directory: UserDirectory = Depends(get_user_directory),
    _admin: User = Depends(require_admin),
) -> dict:
    total, found = await tasks.search(filters, paging.offset, paging.per_page)
    return page_envelope(paging, total, await _with_names(found, directory))


@router.get(
    "/overview",
    response_model=TaskOverview,
    summary="Per-user task counts (admin only)",
)
async def get_task_overview(
    tasks: TaskRepository = Depends(get_task_repository),
    directory: UserDirectory = Depends(get_user_directory),
    _admin: User = Depends(require_admin),
) -> TaskOverview:
    counts = await tasks.status_counts()
    active = {u.id: u.display_name for u in await directory.active_users()}
    names = {**(await directory.display_names(set(counts) - set(active))), **active}
    return build_task_overview(counts, names)
