"""
conftest.py — shared fixtures.

Strategy:
- API tests talk to the ASGI app through httpx's ASGITransport; the lifespan
  (schema creation) is not triggered, so no database is needed.
- Repositories and the authenticated user are replaced through
  ``app.dependency_overrides`` with the in-memory fakes below.
- Every fixture that installs an override removes it afterwards.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.middleware import get_current_user
from app.db.models import LeadUpload, Task, User, WorkUpdate
from app.main import app
from app.schemas.punch import PunchEvent
from app.schemas.task import TaskFilters
from app.services.directory import get_user_directory
from app.services.lead_uploads import get_lead_upload_repository
from app.services.punches import PunchFetchError, get_punch_repository
from app.services.tasks import get_task_repository
from app.services.work_updates import get_work_update_repository


# ---------------------------------------------------------------------------
# Event helpers
# ---------------------------------------------------------------------------


def at(hour: int, minute: int = 0, day: int = 13) -> datetime:
    """UTC timestamp on a fixed Tuesday (2026-01-13) unless ``day`` is given."""
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


def punch(direction: str, ts: datetime, user_id: uuid.UUID | None = None) -> PunchEvent:
    return PunchEvent(user_id=user_id or USER_ID, timestamp=ts, direction=direction)


USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


# ---------------------------------------------------------------------------
# In-memory fakes for the repositories
# ---------------------------------------------------------------------------


class FakePunchRepository:
    def __init__(self) -> None:
        self.events: list[PunchEvent] = []
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise PunchFetchError("Punch store timed out")

    async def fetch_punches(self, user_id, range_start, range_end) -> list[PunchEvent]:
        self._check()
        # newest first: callers must not rely on store order
        return [
            e
            for e in reversed(self.events)
            if e.user_id == user_id and range_start <= e.timestamp < range_end
        ]

    async def fetch_team_punches(self, range_start, range_end) -> dict:
        self._check()
        grouped: dict = defaultdict(list)
        for e in self.events:
            if range_start <= e.timestamp < range_end:
                grouped[e.user_id].append(e)
        return dict(grouped)

    async def last_punch(self, user_id) -> PunchEvent | None:
        self._check()
        own = [e for e in self.events if e.user_id == user_id]
        return max(own, key=lambda e: e.timestamp) if own else None

    async def record(self, user_id, direction, timestamp) -> PunchEvent:
        event = PunchEvent(user_id=user_id, timestamp=timestamp, direction=direction)
        self.events.append(event)
        return event


class FakeWorkUpdateRepository:
    def __init__(self) -> None:
        self.updates: list[WorkUpdate] = []

    async def add(self, user_id, content, update_date) -> WorkUpdate:
        update = WorkUpdate(
            id=len(self.updates) + 1,
            user_id=user_id,
            content=content,
            update_date=update_date,
        )
        self.updates.append(update)
        return update

    async def latest(self, user_id) -> WorkUpdate | None:
        own = [u for u in self.updates if u.user_id == user_id]
        return max(own, key=lambda u: (u.update_date, u.id)) if own else None

    async def exists_on(self, user_id, day: date) -> bool:
        return any(u.user_id == user_id and u.update_date == day for u in self.updates)

    async def count_between(self, user_id, date_from: date, date_to: date) -> int:
        return sum(
            1
            for u in self.updates
            if u.user_id == user_id and date_from <= u.update_date < date_to
        )

    async def team_counts(self, date_from: date, date_to: date) -> dict:
        counts: dict = defaultdict(int)
        for u in self.updates:
            if date_from <= u.update_date < date_to:
                counts[u.user_id] += 1
        return dict(counts)


class FakeUserDirectory:
    def __init__(self, users: list[User]) -> None:
        self.users = users

    async def get(self, user_id) -> User | None:
        return next((u for u in self.users if u.id == user_id), None)

    async def find_by_login(self, login: str) -> User | None:
        return next((u for u in self.users if login in (u.username, u.email)), None)

    async def conflict(self, username, email) -> str | None:
        if username is not None and any(u.username == username for u in self.users):
            return "username"
        if email is not None and any(u.email == email for u in self.users):
            return "email"
        return None

    async def add(self, user: User) -> User:
        user.id = user.id or uuid.uuid4()
        self.users.append(user)
        return user

    async def save(self, user: User) -> User:
        return user

    async def search(self, text, offset: int, limit: int) -> tuple[int, list[User]]:
        needle = (text or "").lower()
        found = sorted(
            (
                u
                for u in self.users
                if needle in f"{u.full_name or ''} {u.username} {u.email or ''}".lower()
            ),
            key=lambda u: (u.full_name or "", u.username),
        )
        return len(found), found[offset : offset + limit]

    async def active_users(self) -> list[User]:
        return sorted(
            (u for u in self.users if u.is_active), key=lambda u: u.display_name.lower()
        )

    async def display_names(self, user_ids) -> dict:
        wanted = set(user_ids)
        return {u.id: u.display_name for u in self.users if u.id in wanted}


class FakeLeadUploadRepository:
    def __init__(self) -> None:
        self.uploads: list[LeadUpload] = []

    async def add(self, upload: LeadUpload) -> LeadUpload:
        upload.id = len(self.uploads) + 1
        upload.upload_date = datetime(2026, 1, 13, 12, len(self.uploads), tzinfo=timezone.utc)
        self.uploads.append(upload)
        return upload

    async def history(self, user_id, offset: int, limit: int) -> tuple[int, list[LeadUpload]]:
        own = [u for u in reversed(self.uploads) if user_id is None or u.user_id == user_id]
        return len(own), own[offset : offset + limit]


class FakeTaskRepository:
    def __init__(self) -> None:
        self.tasks: list[Task] = []

    async def get(self, task_id) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    async def add(self, task: Task) -> Task:
        task.id = task.id or uuid.uuid4()
        self.tasks.append(task)
        return task

    async def save(self, task: Task) -> Task:
        return task

    @staticmethod
    def _matches(task: Task, filters: TaskFilters) -> bool:
        return (
            (filters.status is None or task.status == filters.status)
            and (filters.priority is None or task.priority == filters.priority)
            and (filters.assigned_to is None or task.assigned_to == filters.assigned_to)
            and (filters.due_from is None or task.due_date >= filters.due_from)
            and (filters.due_to is None or task.due_date <= filters.due_to)
            and (not filters.search or filters.search.lower() in task.title.lower())
        )

    async def for_user(self, user_id, relation, filters: TaskFilters) -> list[Task]:
        def owned(t: Task) -> bool:
            if relation == "assigned":
                return t.assigned_to == user_id
            if relation == "created":
                return t.assigned_by == user_id
            return user_id in (t.assigned_to, t.assigned_by)

        found = [t for t in self.tasks if owned(t) and self._matches(t, filters)]
        return sorted(found, key=lambda t: t.due_date)

    async def search(self, filters: TaskFilters, offset: int, limit: int) -> tuple[int, list[Task]]:
        found = [t for t in reversed(self.tasks) if self._matches(t, filters)]
        return len(found), found[offset : offset + limit]

    async def status_counts(self) -> dict:
        counts: dict = defaultdict(lambda: defaultdict(int))
        for t in self.tasks:
            counts[t.assigned_to][t.status] += 1
        return {user_id: dict(by_status) for user_id, by_status in counts.items()}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _make_user(role: str, name: str, user_id: uuid.UUID | None = None) -> User:
    uid_short = uuid.uuid4().hex[:8]
    return User(
        id=user_id or uuid.uuid4(),
        username=f"qa_{role}_{uid_short}",
        email=f"{name.lower().replace(' ', '.')}@example.com",
        password_hash="",
        role=role,
        full_name=name,
        is_active=True,
    )


@pytest.fixture
def employee_user() -> User:
    return _make_user("employee", "Emma Employee", USER_ID)


@pytest.fixture
def admin_user() -> User:
    return _make_user("admin", "Alice Admin")


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------


@pytest.fixture
def punch_repo() -> FakePunchRepository:
    repo = FakePunchRepository()
    app.dependency_overrides[get_punch_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_punch_repository, None)


@pytest.fixture
def update_repo() -> FakeWorkUpdateRepository:
    repo = FakeWorkUpdateRepository()
    app.dependency_overrides[get_work_update_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_work_update_repository, None)


@pytest.fixture
def directory(employee_user: User, admin_user: User) -> FakeUserDirectory:
    fake = FakeUserDirectory([employee_user, admin_user])
    app.dependency_overrides[get_user_directory] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_user_directory, None)


@pytest.fixture
def lead_repo() -> FakeLeadUploadRepository:
    repo = FakeLeadUploadRepository()
    app.dependency_overrides[get_lead_upload_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_lead_upload_repository, None)


@pytest.fixture
def task_repo() -> FakeTaskRepository:
    repo = FakeTaskRepository()
    app.dependency_overrides[get_task_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_task_repository, None)


@pytest.fixture
def login_as():
    """Call with a User to make every request authenticate as that user."""

    def _login(user: User) -> User:
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    yield _login
    app.dependency_overrides.pop(get_current_user, None)


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client() -> AsyncClient:
    """Fresh HTTPX async client per test function (maintains cookie jar)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
