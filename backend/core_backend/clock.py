"""
Clock abstraction for date-gated operations.

Eligibility checks, projections and the delivery state machine all depend on
"now" and "today" in the operational time zone. Services take a clock argument
so tests can pin time instead of patching the wall clock.
"""
from datetime import date, datetime

from django.utils import timezone


class SystemClock:
    """Wall clock in the configured TIME_ZONE."""

    def now(self) -> datetime:
        return timezone.localtime(timezone.now())

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a single instant, for tests and replays."""

    def __init__(self, at: datetime):
        if timezone.is_naive(at):
            at = timezone.make_aware(at)
        self._at = at

    def now(self) -> datetime:
        return timezone.localtime(self._at)

    def today(self) -> date:
        return self.now().date()


system_clock = SystemClock()


def resolve_clock(clock=None):
    return clock or system_clock


def local_datetime(day: date, at_time) -> datetime:
    """Combine a calendar date and time-of-day into an aware local datetime."""
    return timezone.make_aware(datetime.combine(day, at_time))
