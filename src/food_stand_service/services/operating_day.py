"""Operating-day clock.

An operating day starts at ``start_hour`` local time in the business timezone
and lasts one local calendar day. Every window is half-open, ``[start, end)``,
and expressed both in UTC (for comparing stored timestamps) and in local wall
time (for display and for the operating-day date).

All conversions go through ``zoneinfo``. Local wall times that fall into a DST
gap or overlap are resolved with ``fold=0``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Merida"
DEFAULT_START_HOUR = 0


@dataclass(frozen=True)
class OperatingDayWindow:
    """Half-open time window made of whole operating days.

    Attributes:
        window_start_utc: Inclusive start (UTC)
        window_end_utc: Exclusive end (UTC)
        local_window_start: Start as local wall time
        local_window_end: End as local wall time
        timezone: IANA timezone name
    """

    window_start_utc: datetime
    window_end_utc: datetime
    local_window_start: datetime
    local_window_end: datetime
    timezone: str

    @property
    def operating_day_date(self) -> date:
        return self.local_window_start.date()

    def contains(self, instant: datetime) -> bool:
        return self.window_start_utc <= instant < self.window_end_utc

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_start_utc": self.window_start_utc.isoformat(),
            "window_end_utc": self.window_end_utc.isoformat(),
            "local_window_start": self.local_window_start.isoformat(),
            "local_window_end": self.local_window_end.isoformat(),
            "operating_day_date": self.operating_day_date.isoformat(),
            "timezone": self.timezone,
        }


@dataclass(frozen=True)
class NextReset:
    """When the next operating day starts and how long until then."""

    next_reset_utc: datetime
    local_next_reset: datetime
    remaining: timedelta
    hours: int
    minutes: int
    timezone: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "next_reset_utc": self.next_reset_utc.isoformat(),
            "local_next_reset": self.local_next_reset.isoformat(),
            "remaining_seconds": int(self.remaining.total_seconds()),
            "hours": self.hours,
            "minutes": self.minutes,
            "timezone": self.timezone,
        }


def _check_arguments(now: datetime, start_hour: int) -> None:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be a timezone-aware datetime")
    if not 0 <= start_hour <= 23:
        raise ValueError(f"start_hour must be between 0 and 23, got {start_hour}")


def _wall_time(now: datetime, tz: ZoneInfo) -> datetime:
    """Local wall time of ``now`` without tzinfo, so arithmetic stays in wall time."""
    return now.astimezone(tz).replace(tzinfo=None)


def _to_utc(wall: datetime, tz: ZoneInfo) -> datetime:
    return wall.replace(tzinfo=tz, fold=0).astimezone(UTC)


def _window(start_wall: datetime, end_wall: datetime, tz: ZoneInfo) -> OperatingDayWindow:
    return OperatingDayWindow(
        window_start_utc=_to_utc(start_wall, tz),
        window_end_utc=_to_utc(end_wall, tz),
        local_window_start=start_wall.replace(tzinfo=tz, fold=0),
        local_window_end=end_wall.replace(tzinfo=tz, fold=0),
        timezone=tz.key,
    )


def _operating_day_start(now: datetime, tz: ZoneInfo, start_hour: int) -> datetime:
    wall = _wall_time(now, tz)
    start = wall.replace(hour=start_hour, minute=0, second=0, microsecond=0)
    if wall < start:
        start -= timedelta(days=1)
    return start


def operating_day_window(now: datetime, timezone: str, start_hour: int) -> OperatingDayWindow:
    """Return the operating day containing ``now``.

    Args:
        now: Timezone-aware instant
        timezone: IANA timezone of the business
        start_hour: Local hour (0-23) at which an operating day starts

    Returns:
        OperatingDayWindow covering exactly one local day

    Raises:
        ValueError: If ``now`` is naive or ``start_hour`` is out of range
    """
    _check_arguments(now, start_hour)
    tz = ZoneInfo(timezone)
    start = _operating_day_start(now, tz, start_hour)
    return _window(start, start + timedelta(days=1), tz)


def next_reset(now: datetime, timezone: str, start_hour: int) -> NextReset:
    """Return the start of the next operating day after ``now``.

    If local ``now`` is exactly at the start hour, the next reset is one day
    later.

    Raises:
        ValueError: If ``now`` is naive or ``start_hour`` is out of range
    """
    _check_arguments(now, start_hour)
    tz = ZoneInfo(timezone)
    wall = _wall_time(now, tz)
    candidate = wall.replace(hour=start_hour, minute=0, second=0, microsecond=0)
    if wall >= candidate:
        candidate += timedelta(days=1)

    next_utc = _to_utc(candidate, tz)
    remaining = next_utc - now
    total_seconds = int(remaining.total_seconds())
    return NextReset(
        next_reset_utc=next_utc,
        local_next_reset=candidate.replace(tzinfo=tz, fold=0),
        remaining=remaining,
        hours=total_seconds // 3600,
        minutes=(total_seconds % 3600) // 60,
        timezone=tz.key,
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)


class OperatingDayClock:
    """Operating-day calculations bound to one timezone and start hour.

    Every method accepts an optional ``now``; when omitted the clock's
    ``now_provider`` is used, which tests replace with a fixed instant.
    """

    def __init__(
        self,
        timezone: str = DEFAULT_TIMEZONE,
        start_hour: int = DEFAULT_START_HOUR,
        now_provider: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the clock.

        Args:
            timezone: IANA timezone of the business
            start_hour: Local hour (0-23) at which an operating day starts
            now_provider: Callable returning the current aware instant

        Raises:
            ValueError: For an unknown timezone or an out-of-range start hour
        """
        if not 0 <= start_hour <= 23:
            raise ValueError(f"start_hour must be between 0 and 23, got {start_hour}")
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {timezone}") from e

        self.timezone = timezone
        self.start_hour = start_hour
        self.now_provider = now_provider

    def now(self) -> datetime:
        return self.now_provider()

    def _resolve(self, now: datetime | None) -> datetime:
        return self.now() if now is None else now

    def current_window(self, now: datetime | None = None) -> OperatingDayWindow:
        return operating_day_window(self._resolve(now), self.timezone, self.start_hour)

    def next_reset(self, now: datetime | None = None) -> NextReset:
        return next_reset(self._resolve(now), self.timezone, self.start_hour)

    def week_window(self, now: datetime | None = None) -> OperatingDayWindow:
        """Operating week (Sunday to Saturday) containing ``now``."""
        day_start = self.current_window(now).local_window_start.replace(tzinfo=None)
        days_since_sunday = (day_start.weekday() + 1) % 7
        start = day_start - timedelta(days=days_since_sunday)
        return _window(start, start + timedelta(days=7), self.tz)

    def month_window(self, now: datetime | None = None) -> OperatingDayWindow:
        """Calendar month of the operating day containing ``now``."""
        day_start = self.current_window(now).local_window_start.replace(tzinfo=None)
        start = day_start.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return _window(start, end, self.tz)

    def contains(self, instant: datetime, now: datetime | None = None) -> bool:
        """Whether ``instant`` falls inside the operating day of ``now``."""
        return self.current_window(now).contains(instant)

    def debug_info(self, now: datetime | None = None) -> dict[str, Any]:
        now = self._resolve(now)
        return {
            "timezone": self.timezone,
            "start_hour": self.start_hour,
            "now_utc": now.astimezone(UTC).isoformat(),
            "now_local": now.astimezone(self.tz).isoformat(),
            "current_window": self.current_window(now).to_dict(),
            "next_reset": self.next_reset(now).to_dict(),
        }
