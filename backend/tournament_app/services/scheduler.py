"""
Scheduler

Assigns dates, times and venues to generated fixtures.

Rules (per calendar day):
- Weekend days always usable; weekdays only if weekday matches are allowed
- At most max_matches_per_day fixtures, and never more than the venue count
- A team plays at most once per day, and (when back-to-back avoidance is on)
  never within back_to_back_hours of another of its bookings
- A venue hosts at most one fixture per day and none on its unavailable dates
- With prioritize_weekends, a weekday is only used once the remaining
  weekend capacity cannot absorb the fixtures still to place

Fixtures waiting on an earlier result (later knockout rounds) and playoff
fixtures are placed afterwards as a trailing block, playoff_gap_days apart.
Fixtures that cannot be placed are forced onto the last regular day and
reported as degraded rather than silently accepted.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from tournament_app.exceptions import ConfigurationError
from tournament_app.services.fixture_types import (
    STAGE_FINAL,
    STAGE_GROUP,
    STAGE_LEAGUE,
    STAGE_QUARTER_FINAL,
    STAGE_SEMI_FINAL,
    Fixture,
)

logger = logging.getLogger(__name__)

WEEKEND_TIME_SLOTS = ("14:00", "19:30")
WEEKDAY_TIME_SLOTS = ("15:30", "19:30")
FALLBACK_TIME = "16:00"
PLAYOFF_TIME = "19:30"

STAGE_PRIORITY = {
    STAGE_GROUP: 1,
    STAGE_LEAGUE: 1,
    STAGE_QUARTER_FINAL: 4,
    STAGE_SEMI_FINAL: 5,
    STAGE_FINAL: 6,
}
ROUND_N_PRIORITY = 2
PLAYOFF_PRIORITY = 7


@dataclass(frozen=True)
class ScheduleConstraints:
    max_matches_per_day: int = 2
    schedule_weekday_matches: bool = True
    prioritize_weekends: bool = True
    avoid_back_to_back: bool = True
    back_to_back_hours: int = 24
    playoff_gap_days: int = 2
    team_unavailable_dates: Dict[int, FrozenSet[date]] = field(default_factory=dict)
    venue_unavailable_dates: Dict[int, FrozenSet[date]] = field(default_factory=dict)


class DegradedPlacement:
    """A fixture placed outside the constraints"""

    def __init__(self, match_number: int, reason: str, scheduled_date: date, scheduled_time: str):
        self.match_number = match_number
        self.reason = reason
        self.scheduled_date = scheduled_date
        self.scheduled_time = scheduled_time

    def to_dict(self):
        return {
            "match_number": self.match_number,
            "reason": self.reason,
            "scheduled_date": self.scheduled_date.isoformat(),
            "scheduled_time": self.scheduled_time,
        }


class ScheduleResult:
    """Scheduled fixtures plus what could not be placed cleanly"""

    def __init__(self):
        self.fixtures: List[Fixture] = []
        self.degraded: List[DegradedPlacement] = []
        self.deferred: List[int] = []  # match numbers placed in the trailing block while a slot is pending

    @property
    def degraded_numbers(self) -> Set[int]:
        return {d.match_number for d in self.degraded}

    def to_dict(self):
        return {
            "scheduled": sum(1 for f in self.fixtures if f.is_scheduled),
            "degraded": [d.to_dict() for d in self.degraded],
            "deferred": self.deferred,
        }


def stage_priority(fixture: Fixture) -> int:
    if fixture.is_playoff:
        return PLAYOFF_PRIORITY
    if fixture.stage in STAGE_PRIORITY:
        return STAGE_PRIORITY[fixture.stage]
    if fixture.stage.startswith("round-"):
        return ROUND_N_PRIORITY
    return PLAYOFF_PRIORITY


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def time_slots_for(day: date) -> Tuple[str, ...]:
    return WEEKEND_TIME_SLOTS if is_weekend(day) else WEEKDAY_TIME_SLOTS


def daily_capacity(constraints: ScheduleConstraints, venue_count: int) -> int:
    """Fixtures a single day can hold: the cap, bounded by one fixture per venue."""
    return min(constraints.max_matches_per_day, venue_count)


def trailing_step_days(constraints: ScheduleConstraints) -> int:
    """Days between trailing-block fixtures; at least one so a venue never hosts two in a day."""
    return max(constraints.playoff_gap_days, 1)


def _at(day: date, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime(day.year, day.month, day.day, int(hours), int(minutes))


def _date_range(start: date, end: date) -> List[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class _Calendar:
    """Bookings made so far"""

    def __init__(self, constraints: ScheduleConstraints):
        self.constraints = constraints
        self.day_counts: Dict[date, int] = {}
        self.team_days: Dict[int, Set[date]] = {}
        self.team_times: Dict[int, List[datetime]] = {}
        self.venue_days: Set[Tuple[int, date]] = set()

    def day_count(self, day: date) -> int:
        return self.day_counts.get(day, 0)

    def team_free(self, team_id: int, day: date, kickoff: datetime) -> bool:
        if day in self.team_days.get(team_id, set()):
            return False
        if day in self.constraints.team_unavailable_dates.get(team_id, frozenset()):
            return False
        if self.constraints.avoid_back_to_back:
            cooldown = timedelta(hours=self.constraints.back_to_back_hours)
            for booked in self.team_times.get(team_id, []):
                if abs(kickoff - booked) < cooldown:
                    return False
        return True

    def venue_free(self, venue_id: int, day: date) -> bool:
        if day in self.constraints.venue_unavailable_dates.get(venue_id, frozenset()):
            return False
        return (venue_id, day) not in self.venue_days

    def book(self, fixture: Fixture, day: date, hhmm: str, venue_id: Optional[int]) -> None:
        self.day_counts[day] = self.day_count(day) + 1
        for team_id in fixture.team_ids:
            self.team_days.setdefault(team_id, set()).add(day)
            self.team_times.setdefault(team_id, []).append(_at(day, hhmm))
        if venue_id is not None:
            self.venue_days.add((venue_id, day))


def _venue_order(fixture: Fixture, venue_ids: Sequence[int]) -> List[int]:
    """Fixture's rotation venue first, then the rest in the given order."""
    if fixture.venue_id in venue_ids:
        return [fixture.venue_id] + [v for v in venue_ids if v != fixture.venue_id]
    return list(venue_ids)


# ============================================================================
# Public API
# ============================================================================


def schedule_fixtures(
    fixtures: Sequence[Fixture],
    start_date: date,
    end_date: date,
    venue_ids: Sequence[int],
    constraints: Optional[ScheduleConstraints] = None,
) -> ScheduleResult:
    """
    Place fixtures on the calendar.

    Args:
        fixtures: Generated fixtures (any order)
        start_date, end_date: Inclusive tournament window
        venue_ids: Available venues
        constraints: Scheduling rules (defaults when omitted)

    Returns:
        ScheduleResult with fixtures in scheduling order. Fixtures with a
        pending slot go to the trailing block with the playoffs and are
        listed in `deferred`.

    Raises:
        ConfigurationError: inverted date range, no venues, a non-positive
            daily cap, or too few eligible days for the fixture count
    """
    constraints = constraints or ScheduleConstraints()
    if end_date < start_date:
        raise ConfigurationError(f"end_date {end_date} is before start_date {start_date}")
    if not venue_ids:
        raise ConfigurationError("At least one venue is required to schedule fixtures")
    if constraints.max_matches_per_day < 1:
        raise ConfigurationError("max_matches_per_day must be at least 1")

    ordered = sorted(fixtures, key=lambda f: (f.round, stage_priority(f)))
    schedulable = [f for f in ordered if not f.is_playoff and f.is_ready]
    trailing = [f for f in ordered if f.is_playoff or not f.is_ready]

    step = trailing_step_days(constraints)
    regular_end = end_date - timedelta(days=step * len(trailing))
    if trailing and regular_end < start_date:
        raise ConfigurationError(
            f"Date range too short: {len(trailing)} knockout/playoff matches need "
            f"{step * len(trailing)} days after the regular fixtures"
        )

    days = [
        d for d in _date_range(start_date, regular_end) if is_weekend(d) or constraints.schedule_weekday_matches
    ]
    capacity = daily_capacity(constraints, len(venue_ids))
    needed_days = math.ceil(len(schedulable) / capacity)
    if needed_days > len(days):
        raise ConfigurationError(
            f"Not enough match days: {len(schedulable)} fixtures at {capacity} "
            f"per day need {needed_days} days, window has {len(days)}"
        )

    result = ScheduleResult()
    calendar = _Calendar(constraints)
    placed: Dict[int, Fixture] = {}

    remaining = len(schedulable)
    for fixture in schedulable:
        placement = _find_slot(fixture, days, venue_ids, calendar, capacity, constraints, remaining)
        if placement is None:
            placement = _fallback(fixture, days, regular_end, venue_ids, calendar, result)
        day, hhmm, venue_id = placement
        calendar.book(fixture, day, hhmm, venue_id)
        placed[fixture.match_number] = fixture.with_schedule(day, hhmm, venue_id)
        remaining -= 1
        logger.debug("Match %s -> %s %s venue %s", fixture.match_number, day, hhmm, venue_id)

    if trailing:
        result.deferred = [f.match_number for f in trailing if not f.is_playoff]
        last_regular = max((f.scheduled_date for f in placed.values()), default=start_date - timedelta(days=1))
        _schedule_trailing_block(trailing, last_regular, end_date, venue_ids, constraints, placed, result)

    result.fixtures = [placed.get(f.match_number, f) for f in ordered]
    for degraded in result.degraded:
        logger.warning("Degraded placement for match %s: %s", degraded.match_number, degraded.reason)
    logger.info(
        "Scheduled %d of %d fixtures between %s and %s (%d degraded, %d awaiting earlier results)",
        len(placed),
        len(ordered),
        start_date,
        end_date,
        len(result.degraded),
        len(result.deferred),
    )
    return result


# ============================================================================
# Placement
# ============================================================================


def _weekend_capacity_from(day: date, days: Sequence[date], calendar: _Calendar, capacity: int) -> int:
    return sum(max(capacity - calendar.day_count(d), 0) for d in days if d >= day and is_weekend(d))


def _try_day(
    fixture: Fixture, day: date, venue_ids: Sequence[int], calendar: _Calendar
) -> Optional[Tuple[date, str, int]]:
    venue_id = next((v for v in _venue_order(fixture, venue_ids) if calendar.venue_free(v, day)), None)
    if venue_id is None:
        return None
    slots = time_slots_for(day)
    # The day's first fixture opens in the early slot; later ones go to the evening
    for hhmm in slots[min(calendar.day_count(day), len(slots) - 1):]:
        kickoff = _at(day, hhmm)
        if all(calendar.team_free(team_id, day, kickoff) for team_id in fixture.team_ids):
            return day, hhmm, venue_id
        if any(day in calendar.team_days.get(t, set()) for t in fixture.team_ids):
            return None
    return None


def _find_slot(
    fixture: Fixture,
    days: Sequence[date],
    venue_ids: Sequence[int],
    calendar: _Calendar,
    capacity: int,
    constraints: ScheduleConstraints,
    remaining: int,
) -> Optional[Tuple[date, str, int]]:
    passes = [True, False] if constraints.prioritize_weekends else [False]
    for weekend_first in passes:
        for day in days:
            if calendar.day_count(day) >= capacity:
                continue
            if weekend_first and not is_weekend(day):
                if _weekend_capacity_from(day, days, calendar, capacity) >= remaining:
                    continue
            placement = _try_day(fixture, day, venue_ids, calendar)
            if placement is not None:
                return placement
    return None


def _fallback(
    fixture: Fixture,
    days: Sequence[date],
    regular_end: date,
    venue_ids: Sequence[int],
    calendar: _Calendar,
    result: ScheduleResult,
) -> Tuple[date, str, int]:
    day = days[-1] if days else regular_end
    candidates = _venue_order(fixture, venue_ids)
    venue_id = next((v for v in candidates if calendar.venue_free(v, day)), candidates[0])
    result.degraded.append(
        DegradedPlacement(fixture.match_number, "no slot satisfied the constraints; forced onto last day", day, FALLBACK_TIME)
    )
    return day, FALLBACK_TIME, venue_id


def _schedule_trailing_block(
    fixtures: Sequence[Fixture],
    last_regular: date,
    end_date: date,
    venue_ids: Sequence[int],
    constraints: ScheduleConstraints,
    placed: Dict[int, Fixture],
    result: ScheduleResult,
) -> None:
    """Later knockout rounds then playoffs, one per day, playoff_gap_days apart at 19:30."""
    day = last_regular
    for fixture in fixtures:
        day = day + timedelta(days=trailing_step_days(constraints))
        if day > end_date:
            day = end_date
            result.degraded.append(
                DegradedPlacement(fixture.match_number, "trailing knockout block overran end_date", day, PLAYOFF_TIME)
            )
        venue_id = _venue_order(fixture, venue_ids)[0]
        placed[fixture.match_number] = fixture.with_schedule(day, PLAYOFF_TIME, venue_id)
