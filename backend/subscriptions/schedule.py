"""
Calendar projection for subscriptions.

Pure functions only: no ORM access and no wall clock. Callers pass the
subscription terms, the number of servings already delivered, the effective
pause ranges, the real delivery rows and "today". Running the projection twice
on the same inputs gives the same output.
"""
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from itertools import islice
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

DELIVERED = 'DELIVERED'
PENDING = 'PENDING'
SKIPPED = 'SKIPPED'

DEFAULT_LOOKAHEAD_DAYS = 366


@dataclass(frozen=True)
class PauseRange:
    """Inclusive date range during which nothing is delivered."""
    start: date
    end: date
    pause_request_id: Optional[str] = None

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class SubscriptionTerms:
    start_date: date
    delivery_time: time
    total_servings: int


@dataclass(frozen=True)
class DeliverySnapshot:
    """Read-only view of a real delivery row."""
    delivery_id: str
    date: date
    time: time
    status: str
    items: Tuple = ()


@dataclass(frozen=True)
class ScheduledDelivery:
    """A projected entry: either a real delivery or a planned placeholder."""
    date: date
    time: time
    status: str
    delivery_id: Optional[str] = None
    is_planned: bool = False
    items: Tuple = field(default_factory=tuple)


def is_delivery_day(day: date, pause_ranges: Sequence[PauseRange]) -> bool:
    """Weekdays outside every effective pause range."""
    if day.weekday() >= 5:
        return False
    return not any(pause.contains(day) for pause in pause_ranges)


def projection_start(terms: SubscriptionTerms, real_deliveries: Iterable[DeliverySnapshot], today: date) -> date:
    """
    Start from the earliest outstanding real delivery when it lies in the
    future, otherwise from today. Never before the subscription start date.
    """
    outstanding = [d.date for d in real_deliveries if d.status != DELIVERED]
    earliest = min(outstanding) if outstanding else None
    start = earliest if earliest is not None and earliest > today else today
    return max(start, terms.start_date)


def walk_schedule(
    terms: SubscriptionTerms,
    pause_ranges: Sequence[PauseRange],
    real_deliveries: Sequence[DeliverySnapshot],
    today: date,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> Iterator[ScheduledDelivery]:
    """
    Yield real or planned entries day by day from the projection start.

    Real rows that are not DELIVERED are yielded with their real status;
    DELIVERED rows are history and are passed over; every other candidate day
    gets a planned PENDING placeholder without items. Stops after
    ``lookahead_days`` calendar days.
    """
    by_date = {}
    for snapshot in real_deliveries:
        by_date.setdefault(snapshot.date, []).append(snapshot)
    for snapshots in by_date.values():
        snapshots.sort(key=lambda s: s.time)

    day = projection_start(terms, real_deliveries, today)
    for _ in range(lookahead_days):
        if is_delivery_day(day, pause_ranges):
            existing = by_date.get(day)
            if existing:
                for snapshot in existing:
                    if snapshot.status == DELIVERED:
                        continue
                    yield ScheduledDelivery(
                        date=snapshot.date,
                        time=snapshot.time,
                        status=snapshot.status,
                        delivery_id=snapshot.delivery_id,
                        is_planned=False,
                        items=tuple(snapshot.items),
                    )
            else:
                yield ScheduledDelivery(
                    date=day,
                    time=terms.delivery_time,
                    status=PENDING,
                    is_planned=True,
                )
        day += timedelta(days=1)


def project_upcoming(
    terms: SubscriptionTerms,
    delivered_count: int,
    pause_ranges: Sequence[PauseRange],
    real_deliveries: Sequence[DeliverySnapshot],
    count: Optional[int],
    today: date,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> List[ScheduledDelivery]:
    """
    Project the next deliveries of a subscription.

    Returns at most ``min(count, total_servings - delivered_count)`` entries,
    ordered by date and time. SKIPPED rows are listed and take a slot.
    """
    remaining = max(0, terms.total_servings - delivered_count)
    limit = remaining if count is None else min(remaining, max(0, count))
    if limit == 0:
        return []

    walk = walk_schedule(terms, pause_ranges, real_deliveries, today, lookahead_days)
    return list(islice(walk, limit))


def project_servings(
    terms: SubscriptionTerms,
    delivered_count: int,
    pause_ranges: Sequence[PauseRange],
    real_deliveries: Sequence[DeliverySnapshot],
    today: date,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> List[ScheduledDelivery]:
    """
    The servings still owed, one entry each.

    SKIPPED rows give no serving, so they are left out and the schedule runs
    on past them until every remaining serving has a date.
    """
    remaining = max(0, terms.total_servings - delivered_count)
    if remaining == 0:
        return []

    walk = walk_schedule(terms, pause_ranges, real_deliveries, today, lookahead_days)
    servings = (entry for entry in walk if entry.status != SKIPPED)
    return list(islice(servings, remaining))
