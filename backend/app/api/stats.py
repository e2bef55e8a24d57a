"""
Weekly summary routes.

Hours are never stored; every request refetches the week's punches and runs
them through the aggregator.
"""

from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query

from app.core.clock import local_tz, now_utc
from app.core.config import settings
from app.core.middleware import get_current_user, require_admin
from app.db.models import User
from app.schemas.stats import MyWeeklySummary, TeamWeeklySummary
from app.services.directory import UserDirectory, get_user_directory
from app.services.hours import compute_weekly_hours, week_window
from app.services.punches import PunchRepository, get_punch_repository
from app.services.summary import build_team_summary
from app.services.work_updates import WorkUpdateRepository, get_work_update_repository

router = APIRouter()


def _window_for(week_of: date | None) -> tuple[datetime, datetime]:
    tz = local_tz()
    reference = (
        datetime.combine(week_of, time(12, 0), tzinfo=tz) if week_of else now_utc()
    )
    return week_window(reference, settings.WEEK_START_DAY, tz)


@router.get(
    "/weekly",
    response_model=MyWeeklySummary,
    summary="Hours and work updates of the authenticated user for one week",
)
async def get_my_weekly_summary(
    week_of: date | None = Query(default=None, description="Any day in the week; defaults to today"),
    punches: PunchRepository = Depends(get_punch_repository),
    updates: WorkUpdateRepository = Depends(get_work_update_repository),
    current_user: User = Depends(get_current_user),
) -> MyWeeklySummary:
    start, end = _window_for(week_of)
    events = await punches.fetch_punches(current_user.id, start, end)
    updates_count = await updates.count_between(current_user.id, start.date(), end.date())

    return MyWeeklySummary(
        week_start=start,
        week_end=end,
        hours=compute_weekly_hours(events, start, end),
        updates_count=updates_count,
    )


@router.get(
    "/weekly/team",
    response_model=TeamWeeklySummary,
    summary="Per-user weekly hours and updates (admin only)",
)
async def get_team_weekly_summary(
    week_of: date | None = Query(default=None, description="Any day in the week; defaults to today"),
    punches: PunchRepository = Depends(get_punch_repository),
    updates: WorkUpdateRepository = Depends(get_work_update_repository),
    directory: UserDirectory = Depends(get_user_directory),
    _current_user: User = Depends(require_admin),
) -> TeamWeeklySummary:
    start, end = _window_for(week_of)
    punches_by_user = await punches.fetch_team_punches(start, end)
    updates_by_user = await updates.team_counts(start.date(), end.date())
    names = await directory.display_names(set(punches_by_user) | set(updates_by_user))

    return TeamWeeklySummary(
        week_start=start,
        week_end=end,
        members=build_team_summary(punches_by_user, updates_by_user, names, start, end),
    )
