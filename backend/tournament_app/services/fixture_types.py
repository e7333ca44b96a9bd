"""
Immutable fixture value objects shared by generation, scheduling and progression.

A team slot is a tagged variant: ASSIGNED (a real team), BYE (no opponent)
or PENDING (decided later, carries a display label such as "A1" or
"Winner of Match 5"). Fixtures are frozen; each stage returns new copies.
"""
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Tuple

SLOT_ASSIGNED = "assigned"
SLOT_BYE = "bye"
SLOT_PENDING = "pending"

STAGE_LEAGUE = "league"
STAGE_GROUP = "group"
STAGE_QUARTER_FINAL = "quarter-final"
STAGE_SEMI_FINAL = "semi-final"
STAGE_FINAL = "final"
STAGE_QUALIFIER_1 = "qualifier-1"
STAGE_ELIMINATOR = "eliminator"
STAGE_QUALIFIER_2 = "qualifier-2"

PLAYOFF_STAGES = (STAGE_QUALIFIER_1, STAGE_ELIMINATOR, STAGE_QUALIFIER_2, STAGE_FINAL)
ROUND_ROBIN_STAGES = (STAGE_LEAGUE, STAGE_GROUP)

_ORDINALS = {1: "1st", 2: "2nd", 3: "3rd"}


def is_knockout_stage(stage: str) -> bool:
    return stage.startswith("round-") or stage in (STAGE_QUARTER_FINAL, STAGE_SEMI_FINAL, STAGE_FINAL)


def group_position_label(group: str, position: int) -> str:
    """Placeholder for a group finisher, e.g. ("A", 1) -> "A1"."""
    return f"{group}{position}"


def league_position_label(position: int) -> str:
    """Placeholder for a league finisher, e.g. 3 -> "League 3rd"."""
    return f"League {_ORDINALS.get(position, f'{position}th')}"


def winner_label(match_number: int) -> str:
    return f"Winner of Match {match_number}"


def loser_label(match_number: int) -> str:
    return f"Loser of Match {match_number}"


@dataclass(frozen=True)
class Slot:
    kind: str
    team_id: Optional[int] = None
    label: Optional[str] = None

    @classmethod
    def assigned(cls, team_id: int, label: Optional[str] = None) -> "Slot":
        return cls(kind=SLOT_ASSIGNED, team_id=team_id, label=label)

    @classmethod
    def bye(cls) -> "Slot":
        return cls(kind=SLOT_BYE, label="BYE")

    @classmethod
    def pending(cls, label: str) -> "Slot":
        return cls(kind=SLOT_PENDING, label=label)

    @property
    def is_assigned(self) -> bool:
        return self.kind == SLOT_ASSIGNED

    @property
    def is_bye(self) -> bool:
        return self.kind == SLOT_BYE

    @property
    def is_pending(self) -> bool:
        return self.kind == SLOT_PENDING

    def display(self) -> str:
        if self.is_assigned:
            return self.label or f"Team {self.team_id}"
        return self.label or "TBD"


@dataclass(frozen=True)
class GenerationOptions:
    double_round_robin: bool = False
    ipl_format: bool = False


@dataclass(frozen=True)
class Fixture:
    home: Slot
    away: Slot
    round: int
    match_number: int
    stage: str
    group: Optional[str] = None
    bracket_position: Optional[int] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    venue_id: Optional[int] = None
    is_playoff: bool = False
    playoff_round: Optional[str] = None
    is_eliminator: bool = False

    @property
    def has_bye(self) -> bool:
        return self.home.is_bye or self.away.is_bye

    @property
    def is_ready(self) -> bool:
        """Both sides are real teams."""
        return self.home.is_assigned and self.away.is_assigned

    @property
    def team_ids(self) -> Tuple[int, ...]:
        return tuple(s.team_id for s in (self.home, self.away) if s.is_assigned)

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_date is not None

    def with_schedule(self, scheduled_date: date, scheduled_time: str, venue_id: Optional[int]) -> "Fixture":
        return replace(self, scheduled_date=scheduled_date, scheduled_time=scheduled_time, venue_id=venue_id)

    def with_slots(self, home: Slot, away: Slot) -> "Fixture":
        return replace(self, home=home, away=away)
