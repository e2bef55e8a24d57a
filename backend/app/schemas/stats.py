import uuid
from datetime import date, datetime

from pydantic import BaseModel


class WeeklyHours(BaseModel):
    total_hours: float
    total_hours_raw: float
    by_day: dict[date, float] = {}


class MyWeeklySummary(BaseModel):
    week_start: datetime
    week_end: datetime
    hours: WeeklyHours
    updates_count: int


class UserWeeklyStats(BaseModel):
    user_id: uuid.UUID
    name: str
    total_hours_week: float
    updates_week: int
    avg_daily_hours: float


class TeamWeeklySummary(BaseModel):
    week_start: datetime
    week_end: datetime
    members: list[UserWeeklyStats]
