import math
import uuid
from datetime import datetime

from app.core.config import settings
from app.schemas.punch import PunchEvent
from app.schemas.stats import UserWeeklyStats
from app.services.hours import compute_weekly_hours, round_half_up


def average_daily_hours(raw_hours: float, workday_hours: float | None = None) -> float:
    """
    Hours per estimated working day.

    The number of days is not tracked, so it is estimated as
    ``ceil(hours / workday_hours)`` with a floor of one day.
    """
    workday = workday_hours or settings.STANDARD_WORKDAY_HOURS
    work_days = max(1, math.ceil(raw_hours / workday))
    return round_half_up(raw_hours / work_days)


def build_team_summary(
    punches_by_user: dict[uuid.UUID, list[PunchEvent]],
    updates_by_user: dict[uuid.UUID, int],
    names: dict[uuid.UUID, str],
    window_start: datetime,
    window_end: datetime,
) -> list[UserWeeklyStats]:
    """Per-user weekly figures for everyone who punched or posted an update."""
    stats: list[UserWeeklyStats] = []
    for user_id in set(punches_by_user) | set(updates_by_user):
        hours = compute_weekly_hours(
            punches_by_user.get(user_id, []), window_start, window_end
        )
        stats.append(
            UserWeeklyStats(
                user_id=user_id,
                name=names.get(user_id, str(user_id)),
                total_hours_week=hours.total_hours,
                updates_week=updates_by_user.get(user_id, 0),
                avg_daily_hours=average_daily_hours(hours.total_hours_raw),
            )
        )
    return sorted(stats, key=lambda s: (-s.total_hours_week, s.name.lower()))
