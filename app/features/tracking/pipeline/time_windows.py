"""
Week and month window arithmetic in the fixed tracking timezone.

Every tracking period is anchored to the ISO Monday of its week as seen
in ``settings.TRACKING_TIMEZONE``, regardless of the server's local zone.
"now" comes from an injectable clock so tests can pin it.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.config import settings
from app.features.tracking.domain.models import MonthWeekRange
from app.features.tracking.errors import InvalidDateError

Clock = Callable[[], datetime]
DateInput = date | datetime | str

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def utc_now() -> datetime:
    return datetime.now(UTC)


class TimeWindowCalculator:
    """Pure date arithmetic over a single fixed timezone plus an injectable clock."""

    def __init__(
        self,
        tz: ZoneInfo | str | None = None,
        clock: Clock | None = None,
        reminder_hour: int | None = None,
    ):
        if tz is None:
            tz = settings.tracking_tz()
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self.clock = clock or utc_now
        self.reminder_hour = settings.REMINDER_HOUR if reminder_hour is None else reminder_hour

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def to_local_date(self, value: DateInput) -> date:
        """
        Resolve a date, datetime or ISO string to a calendar date in the tracking zone.

        Aware datetimes are converted into the zone; naive datetimes and
        plain dates are taken as already local to it.
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                return value.astimezone(self.tz).date()
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise InvalidDateError(f"Unsupported date value: {value!r}", operation="parse")

        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return self.to_local_date(datetime.fromisoformat(text))
        except ValueError as e:
            raise InvalidDateError(f"Invalid date: {value!r}", operation="parse") from e

    def parse_week_start(self, value: DateInput) -> date:
        """Parse a value that must already be a Monday."""
        parsed = self.to_local_date(value)
        if parsed.weekday() != 0:
            raise InvalidDateError(
                f"{parsed.isoformat()} is not a Monday", operation="parse_week_start"
            )
        return parsed

    def is_monday(self, value: DateInput) -> bool:
        try:
            return self.to_local_date(value).weekday() == 0
        except InvalidDateError:
            return False

    # ------------------------------------------------------------------
    # Weeks
    # ------------------------------------------------------------------

    def local_now(self) -> datetime:
        return self.clock().astimezone(self.tz)

    def week_start(self, value: DateInput) -> date:
        """ISO Monday of the week containing ``value``."""
        local = self.to_local_date(value)
        return local - timedelta(days=local.weekday())

    def week_end(self, week_start_date: DateInput) -> date:
        """Sunday closing the week that starts on ``week_start_date``."""
        return self.to_local_date(week_start_date) + timedelta(days=6)

    def current_week_start(self) -> date:
        return self.week_start(self.local_now())

    def last_n_week_starts(self, n: int) -> list[date]:
        """Current Monday followed by the n-1 preceding Mondays."""
        if n < 1:
            raise ValueError("n must be at least 1")
        current = self.current_week_start()
        return [current - timedelta(weeks=i) for i in range(n)]

    def previous_week_start(self) -> date:
        return self.current_week_start() - timedelta(weeks=1)

    def start_of_day(self, value: date) -> datetime:
        """Midnight opening ``value`` in the tracking zone, as an aware datetime."""
        return datetime.combine(value, time.min, tzinfo=self.tz)

    # ------------------------------------------------------------------
    # Months
    # ------------------------------------------------------------------

    def current_month(self) -> str:
        return self.local_now().strftime("%Y-%m")

    def previous_month(self) -> str:
        first_of_month = self.local_now().date().replace(day=1)
        return (first_of_month - timedelta(days=1)).strftime("%Y-%m")

    def month_bounds(self, month: str) -> tuple[date, date]:
        match = _MONTH_PATTERN.match(month or "")
        if not match:
            raise InvalidDateError(f"Invalid month: {month!r}, expected YYYY-MM", operation="parse")
        year, month_number = int(match.group(1)), int(match.group(2))
        if not 1 <= month_number <= 12:
            raise InvalidDateError(f"Invalid month: {month!r}", operation="parse")

        try:
            first = date(year, month_number, 1)
            next_first = date(year + month_number // 12, month_number % 12 + 1, 1)
        except ValueError as e:
            raise InvalidDateError(f"Month out of range: {month!r}", operation="parse") from e
        return first, next_first - timedelta(days=1)

    def month_week_range(self, month: str) -> MonthWeekRange:
        """Mondays of every week overlapping ``month`` (YYYY-MM), partial weeks included."""
        first, last = self.month_bounds(month)
        start = self.week_start(first)
        end = self.week_start(last)
        return MonthWeekRange(start=start, end=end, week_count=(end - start).days // 7 + 1)

    # ------------------------------------------------------------------
    # Display and schedule helpers
    # ------------------------------------------------------------------

    def format_week_range(self, week_start_date: DateInput) -> str:
        """e.g. "Jan 15 - 21, 2024" or "Jan 29 - Feb 4, 2024"."""
        monday = self.to_local_date(week_start_date)
        sunday = monday + timedelta(days=6)
        start_month = monday.strftime("%b")
        end_month = sunday.strftime("%b")
        if start_month == end_month:
            return f"{start_month} {monday.day} - {sunday.day}, {monday.year}"
        return f"{start_month} {monday.day} - {end_month} {sunday.day}, {monday.year}"

    def is_reminder_time(self) -> bool:
        now = self.local_now()
        return now.weekday() == 0 and now.hour == self.reminder_hour
