"""
Task assignments between coworkers.

Storage goes through ``TaskRepository``; the per-day calendar counts and the
admin per-user overview are plain functions over already loaded tasks and
status counts, so they can be checked without a database.
"""

import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Task, User
from app.db.session import get_db
from app.schemas.task import (
    CalendarDay,
    TaskFilters,
    TaskOverview,
    TaskRelation,
    UserTaskStats,
)
from app.services.hours import round_half_up

logger = logging.getLogger(__name__)


def _filtered(stmt, filters: TaskFilters):
    if filters.status is not None:
        stmt = stmt.where(Task.status == filters.status)
    if filters.priority is not None:
        stmt = stmt.where(Task.priority == filters.priority)
    if filters.assigned_to is not None:
        stmt = stmt.where(Task.assigned_to == filters.assigned_to)
    if filters.due_from is not None:
        stmt = stmt.where(Task.due_date >= filters.due_from)
    if filters.due_to is not None:
        stmt = stmt.where(Task.due_date <= filters.due_to)
    if filters.search:
        pattern = f"%{filters.search}%"
        stmt = stmt.where(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
    return stmt


class TaskRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get(self, task_id: uuid.UUID) -> Task | None:
        return await self._db.get(Task, task_id)

    async def add(self, task: Task) -> Task:
        self._db.add(task)
        task = await self.save(task)
        logger.info(
            "Task %s assigned by %s to %s, due %s",
            task.id, task.assigned_by, task.assigned_to, task.due_date,
        )
        return task

    async def save(self, task: Task) -> Task:
        await self._db.commit()
        await self._db.refresh(task)
        return task

    async def for_user(
        self, user_id: uuid.UUID, relation: TaskRelation, filters: TaskFilters
    ) -> list[Task]:
        """Tasks assigned to and/or created by ``user_id``, earliest due first."""
        if relation == "assigned":
            owner = Task.assigned_to == user_id
        elif relation == "created":
            owner = Task.assigned_by == user_id
        else:
            owner = or_(Task.assigned_to == user_id, Task.assigned_by == user_id)

        stmt = _filtered(select(Task).where(owner), filters)
        result = await self._db.execute(stmt.order_by(Task.due_date, Task.created_at))
        return list(result.scalars().all())

    async def search(
        self, filters: TaskFilters, offset: int, limit: int
    ) -> tuple[int, list[Task]]:
        """One page of all tasks, newest first, plus the total match count."""
        count_stmt = _filtered(select(func.count(Task.id)), filters)
        total = int((await self._db.execute(count_stmt)).scalar() or 0)

        stmt = _filtered(select(Task), filters)
        result = await self._db.execute(
            stmt.order_by(Task.created_at.desc(), Task.id).offset(offset).limit(limit)
        )
        return total, list(result.scalars().all())

    async def status_counts(self) -> dict[uuid.UUID, dict[str, int]]:
        """``{assignee: {status: count}}`` over every task."""
        result = await self._db.execute(
            select(Task.assigned_to, Task.status, func.count(Task.id)).group_by(
                Task.assigned_to, Task.status
            )
        )
        counts: dict[uuid.UUID, dict[str, int]] = defaultdict(dict)
        for assignee, status, count in result.all():
            counts[assignee][status] = int(count)
        return dict(counts)


def get_task_repository(db: AsyncSession = Depends(get_db)) -> TaskRepository:
    return TaskRepository(db)


def can_change_status(task: Task, user: User) -> bool:
    """The assignee, the person who assigned the task and admins may move it."""
    return user.is_admin or user.id in (task.assigned_to, task.assigned_by)


def calendar_counts(tasks: Iterable[Task], today: date) -> list[CalendarDay]:
    """
    Per due date: how many tasks, how many completed, and how many are still
    open although the due date has passed.
    """
    days: dict[date, list[int]] = defaultdict(lambda: [0, 0, 0])
    for task in tasks:
        day = days[task.due_date]
        day[0] += 1
        if task.status == "Completed":
            day[1] += 1
        elif task.due_date < today:
            day[2] += 1

    return [
        CalendarDay(task_date=d, total=total, completed=completed, overdue_open=overdue)
        for d, (total, completed, overdue) in sorted(days.items())
    ]


def build_task_overview(
    counts: dict[uuid.UUID, dict[str, int]],
    names: dict[uuid.UUID, str],
) -> TaskOverview:
    """
    Per-user task figures for the admin console.

    Everyone in ``names`` is listed, even with no tasks.
    Assignees missing from ``names`` are shown by id.
    """
    users: list[UserTaskStats] = []
    for user_id in set(counts) | set(names):
        by_status = counts.get(user_id, {})
        total = sum(by_status.values())
        completed = by_status.get("Completed", 0)
        users.append(
            UserTaskStats(
                user_id=user_id,
                name=names.get(user_id, str(user_id)),
                total_tasks=total,
                pending_tasks=by_status.get("Assigned", 0),
                in_progress_tasks=by_status.get("In Progress", 0),
                completed_tasks=completed,
                completion_rate=int(round_half_up(100 * completed / total, 0)) if total else 0,
            )
        )

    users.sort(key=lambda u: u.name.lower())
    return TaskOverview(
        total_users=len(users),
        completed_tasks=sum(u.completed_tasks for u in users),
        in_progress_tasks=sum(u.in_progress_tasks for u in users),
        users=users,
    )
