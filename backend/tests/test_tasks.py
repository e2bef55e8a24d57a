"""
Task API and aggregation tests.

Tests:
  - calendar_counts / build_task_overview  : pure per-day and per-user figures
  - POST  /api/tasks                       : assign to an active coworker
  - GET   /api/tasks/mine                  : relation + filters
  - GET   /api/tasks/calendar              : per-day counts, admin may pick a user
  - PATCH /api/tasks/{id}/status           : who may move a task
  - GET   /api/tasks, /api/tasks/overview  : admin only
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from app.core.clock import today_local
from app.db.models import Task, User
from app.services.tasks import build_task_overview, calendar_counts
from tests.conftest import FakeTaskRepository, FakeUserDirectory

DAY = date(2026, 1, 13)


def _task(
    assigned_to: uuid.UUID,
    assigned_by: uuid.UUID,
    due: date = DAY,
    status: str = "Assigned",
    priority: str = "Medium",
    title: str = "Call back Acme",
) -> Task:
    return Task(
        id=uuid.uuid4(),
        title=title,
        assigned_to=assigned_to,
        assigned_by=assigned_by,
        due_date=due,
        status=status,
        priority=priority,
    )


# ---------------------------------------------------------------------------
# Pure functions
# ---------------------------------------------------------------------------


class TestCalendarCounts:
    def test_counts_per_due_date(self) -> None:
        me, boss = uuid.uuid4(), uuid.uuid4()
        tasks = [
            _task(me, boss, DAY, "Completed"),
            _task(me, boss, DAY, "In Progress"),
            _task(me, boss, DAY, "Assigned"),
            _task(me, boss, DAY + timedelta(days=2), "Assigned"),
        ]

        days = calendar_counts(tasks, today=DAY + timedelta(days=1))

        assert [d.task_date for d in days] == [DAY, DAY + timedelta(days=2)]
        assert (days[0].total, days[0].completed, days[0].overdue_open) == (3, 1, 2)
        assert (days[1].total, days[1].completed, days[1].overdue_open) == (1, 0, 0)

    def test_due_today_is_not_overdue(self) -> None:
        me = uuid.uuid4()
        [day] = calendar_counts([_task(me, me, DAY)], today=DAY)
        assert day.overdue_open == 0

    def test_empty(self) -> None:
        assert calendar_counts([], today=DAY) == []


class TestTaskOverview:
    def test_per_user_figures(self) -> None:
        emma, sam, gone = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        counts = {
            emma: {"Assigned": 1, "In Progress": 1, "Completed": 1},
            gone: {"Completed": 2},
        }
        names = {emma: "Emma", sam: "Sam"}

        overview = build_task_overview(counts, names)

        assert overview.total_users == 3
        assert overview.completed_tasks == 3
        assert overview.in_progress_tasks == 1
        by_name = {u.name: u for u in overview.users}
        assert by_name["Emma"].total_tasks == 3
        assert by_name["Emma"].pending_tasks == 1
        assert by_name["Emma"].completion_rate == 33
        assert by_name["Sam"].total_tasks == 0
        assert by_name["Sam"].completion_rate == 0
        assert by_name[str(gone)].completion_rate == 100

    def test_rate_rounds_half_up(self) -> None:
        user = uuid.uuid4()
        overview = build_task_overview(
            {user: {"Completed": 1, "Assigned": 7}}, {user: "Una"}
        )
        # 12.5 %
        assert overview.users[0].completion_rate == 13


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class TestCreateTask:
    async def test_assign_to_coworker(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        resp = await client.post(
            "/api/tasks/",
            json={
                "title": "  Prepare quote ",
                "assigned_to": str(admin_user.id),
                "due_date": "2026-01-20",
                "priority": "High",
                "remarks": "   ",
            },
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["title"] == "Prepare quote"
        assert data["status"] == "Assigned"
        assert data["remarks"] is None
        assert data["assigned_by_name"] == "Emma Employee"
        assert data["assigned_to_name"] == "Alice Admin"
        assert data["last_activity"] is not None
        assert task_repo.tasks[0].assigned_by == employee_user.id

    async def test_unknown_assignee(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        resp = await client.post(
            "/api/tasks/",
            json={"title": "X", "assigned_to": str(uuid.uuid4()), "due_date": "2026-01-20"},
        )
        assert resp.status_code == 422, resp.text
        assert task_repo.tasks == []

    async def test_inactive_assignee(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        admin_user.is_active = False
        resp = await client.post(
            "/api/tasks/",
            json={"title": "X", "assigned_to": str(admin_user.id), "due_date": "2026-01-20"},
        )
        assert resp.status_code == 422, resp.text

    @pytest.mark.parametrize(
        "body",
        [
            {"title": "   ", "due_date": "2026-01-20"},
            {"title": "X", "due_date": "not-a-date"},
            {"title": "X", "due_date": "2026-01-20", "priority": "Urgent"},
        ],
    )
    async def test_invalid_body(
        self,
        body: dict,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        resp = await client.post("/api/tasks/", json={**body, "assigned_to": str(admin_user.id)})
        assert resp.status_code == 422, resp.text


class TestMyTasks:
    async def test_relation_and_filters(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        me, boss = employee_user.id, admin_user.id
        task_repo.tasks.extend(
            [
                _task(me, boss, DAY + timedelta(days=3), title="Later"),
                _task(me, boss, DAY, "Completed", title="Done"),
                _task(boss, me, DAY, priority="Critical", title="Given away"),
            ]
        )

        assigned = await client.get("/api/tasks/mine")
        assert [t["title"] for t in assigned.json()] == ["Done", "Later"]

        created = await client.get("/api/tasks/mine", params={"relation": "created"})
        assert [t["title"] for t in created.json()] == ["Given away"]

        both = await client.get("/api/tasks/mine", params={"relation": "all"})
        assert len(both.json()) == 3

        open_only = await client.get(
            "/api/tasks/mine", params={"relation": "all", "status": "Assigned"}
        )
        assert [t["title"] for t in open_only.json()] == ["Given away", "Later"]

        critical = await client.get(
            "/api/tasks/mine", params={"relation": "all", "priority": "Critical"}
        )
        assert [t["title"] for t in critical.json()] == ["Given away"]

    async def test_bad_status_filter(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        resp = await client.get("/api/tasks/mine", params={"status": "Sleeping"})
        assert resp.status_code == 422


class TestCalendar:
    async def test_own_calendar(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        me, boss = employee_user.id, admin_user.id
        task_repo.tasks.extend(
            [
                _task(me, boss, DAY),
                _task(boss, me, DAY, "Completed"),
                _task(boss, boss, DAY),
                _task(me, boss, DAY + timedelta(days=40)),
            ]
        )

        resp = await client.get(
            "/api/tasks/calendar", params={"date_from": "2026-01-01", "date_to": "2026-01-31"}
        )
        assert resp.status_code == 200, resp.text
        [day] = resp.json()
        assert day["task_date"] == "2026-01-13"
        assert day["total"] == 2
        assert day["completed"] == 1

    async def test_employee_cannot_peek(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        task_repo.tasks.append(_task(admin_user.id, admin_user.id, DAY))
        resp = await client.get(
            "/api/tasks/calendar",
            params={
                "date_from": "2026-01-01",
                "date_to": "2026-01-31",
                "user_id": str(admin_user.id),
            },
        )
        assert resp.json() == []

    async def test_admin_picks_user(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(admin_user)
        task_repo.tasks.append(_task(employee_user.id, employee_user.id, today_local()))
        resp = await client.get(
            "/api/tasks/calendar",
            params={
                "date_from": today_local().isoformat(),
                "date_to": today_local().isoformat(),
                "user_id": str(employee_user.id),
            },
        )
        [day] = resp.json()
        assert day["total"] == 1
        assert day["overdue_open"] == 0

    async def test_reversed_range(
        self, client: AsyncClient, task_repo: FakeTaskRepository, employee_user: User, login_as
    ) -> None:
        login_as(employee_user)
        resp = await client.get(
            "/api/tasks/calendar", params={"date_from": "2026-01-31", "date_to": "2026-01-01"}
        )
        assert resp.status_code == 400, resp.text


class TestStatusUpdate:
    async def test_assignee_moves_task(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        task = _task(employee_user.id, admin_user.id)
        task_repo.tasks.append(task)

        resp = await client.patch(
            f"/api/tasks/{task.id}/status",
            json={"status": "In Progress", "remarks": "Waiting on pricing"},
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == "In Progress"
        assert task.status == "In Progress"
        assert task.remarks == "Waiting on pricing"
        assert task.last_activity is not None

    async def test_outsider_is_forbidden(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        task = _task(admin_user.id, admin_user.id)
        task_repo.tasks.append(task)

        resp = await client.patch(f"/api/tasks/{task.id}/status", json={"status": "Completed"})
        assert resp.status_code == 403, resp.text
        assert task.status == "Assigned"

    async def test_admin_may_move_any_task(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(admin_user)
        task = _task(employee_user.id, employee_user.id)
        task_repo.tasks.append(task)

        resp = await client.patch(f"/api/tasks/{task.id}/status", json={"status": "On Hold"})
        assert resp.status_code == 200, resp.text

    async def test_missing_task(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        resp = await client.patch(f"/api/tasks/{uuid.uuid4()}/status", json={"status": "Completed"})
        assert resp.status_code == 404, resp.text


class TestAdminViews:
    async def test_table_filters_and_pages(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(admin_user)
        for n in range(3):
            task_repo.tasks.append(_task(employee_user.id, admin_user.id, title=f"Lead {n}"))
        task_repo.tasks.append(_task(admin_user.id, admin_user.id, title="Review"))

        resp = await client.get(
            "/api/tasks/",
            params={"assigned_to": str(employee_user.id), "per_page": 2},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert [t["title"] for t in data["items"]] == ["Lead 2", "Lead 1"]
        assert data["items"][0]["assigned_to_name"] == "Emma Employee"

        searched = await client.get("/api/tasks/", params={"search": "review"})
        assert [t["title"] for t in searched.json()["items"]] == ["Review"]

    async def test_overview(
        self,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        admin_user: User,
        login_as,
    ) -> None:
        login_as(admin_user)
        task_repo.tasks.extend(
            [
                _task(employee_user.id, admin_user.id, status="Completed"),
                _task(employee_user.id, admin_user.id, status="In Progress"),
            ]
        )

        resp = await client.get("/api/tasks/overview")
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total_users"] == 2
        assert data["completed_tasks"] == 1
        assert data["in_progress_tasks"] == 1
        assert [u["name"] for u in data["users"]] == ["Alice Admin", "Emma Employee"]
        assert data["users"][1]["completion_rate"] == 50
        assert data["users"][0]["total_tasks"] == 0

    @pytest.mark.parametrize("path", ["/api/tasks/", "/api/tasks/overview"])
    async def test_employee_forbidden(
        self,
        path: str,
        client: AsyncClient,
        task_repo: FakeTaskRepository,
        directory: FakeUserDirectory,
        employee_user: User,
        login_as,
    ) -> None:
        login_as(employee_user)
        resp = await client.get(path)
        assert resp.status_code == 403, resp.text
