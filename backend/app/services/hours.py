"""
Worked-hours aggregation over punch events.

Hours are derived by scanning adjacent punches in time order: every IN that
is immediately followed by an OUT forms a session. Anything else (IN-IN,
OUT-OUT, OUT-IN, a trailing IN) contributes nothing and the scan simply moves
on one position. An IN, IN, OUT sequence therefore counts only the second
IN to the OUT.

Note: a stack-based matcher would credit the first IN of IN, IN, OUT as well.
Whether the adjacency rule is the intended business rule is an open product
question; the current behaviour is kept until it is settled.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from app.core.clock import local_tz
from app.schemas.punch import PunchEvent
from app.schemas.stats import WeeklyHours

_SECONDS_PER_HOUR = 3600


def round_half_up(value: float, places: int = 1) -> float:
    """Round like a person would (2.25 -> 2.3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def week_window(
    reference: datetime,
    week_start: int,
    tz: tzinfo,
) -> tuple[datetime, datetime]:
    """
    Return the half-open calendar week ``[start, end)`` containing ``reference``.

    ``week_start`` uses ``date.weekday()`` numbering (Monday=0, Sunday=6).
    Both bounds are local midnights in ``tz``.
    """
    local = reference.astimezone(tz) if reference.tzinfo else reference.replace(tzinfo=tz)
    offset = (local.weekday() - week_start) % 7
    start_day = local.date() - timedelta(days=offset)
    start = datetime.combine(start_day, time.min, tzinfo=tz)
    end = datetime.combine(start_day + timedelta(days=7), time.min, tzinfo=tz)
    return start, end


def _as_local(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=local_tz())


def _sessions(events: Sequence[PunchEvent]) -> Iterable[tuple[PunchEvent, float]]:
    """Yield ``(in_event, seconds)`` for every adjacent IN -> OUT pair."""
    for current, following in zip(events, events[1:]):
        if current.direction == "IN" and following.direction == "OUT":
            seconds = (following.timestamp - current.timestamp).total_seconds()
            yield current, max(0.0, seconds)


def compute_weekly_hours(
    events: Iterable[PunchEvent],
    window_start: datetime,
    window_end: datetime,
) -> WeeklyHours:
    """
    Total hours worked within ``[window_start, window_end)``.

    Events are expected to belong to one user. They may be unsorted and
    contain any mix of directions; nothing here raises for such input.
    Naive window bounds are read as wall-clock time in the configured
    ``TIMEZONE``. ``by_day`` is keyed by the local date (in ``window_start``'s
    time zone) of the IN punch that opened each session.
    """
    window_start = _as_local(window_start)
    window_end = _as_local(window_end)
    windowed = [e for e in events if window_start <= e.timestamp < window_end]
    # list.sort is stable: simultaneous punches keep their input order
    windowed.sort(key=lambda e: e.timestamp)

    bucket_tz = window_start.tzinfo
    total_seconds = 0.0
    per_day: dict[date, float] = defaultdict(float)

    for opened, seconds in _sessions(windowed):
        total_seconds += seconds
        per_day[opened.timestamp.astimezone(bucket_tz).date()] += seconds

    raw_hours = total_seconds / _SECONDS_PER_HOUR
    return WeeklyHours(
        total_hours=round_half_up(raw_hours),
        total_hours_raw=raw_hours,
        by_day={
            day: round_half_up(seconds / _SECONDS_PER_HOUR)
            for day, seconds in sorted(per_day.items())
        },
    )


def combine_weekly_hours(parts: Iterable[WeeklyHours]) -> WeeklyHours:
    """Merge several windows, rounding only once at the end.

    Per-day values are summed as already rounded, so they can drift from the
    raw total by a few hundredths.
    """
    raw_hours = 0.0
    per_day: dict[date, float] = defaultdict(float)
    for part in parts:
        raw_hours += part.total_hours_raw
        for day, hours in part.by_day.items():
            per_day[day] += hours

    return WeeklyHours(
        total_hours=round_half_up(raw_hours),
        total_hours_raw=raw_hours,
        by_day={day: round_half_up(hours) for day, hours in sorted(per_day.items())},
    )
