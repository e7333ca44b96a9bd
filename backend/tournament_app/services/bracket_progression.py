"""
Bracket Progression

Works out which pending team slots a completed result fills:
- Knockout: winner moves to bracket_position // 2 in the next round,
  home slot when the completed position is even, away when odd
- IPL-style playoffs: Q1 winner -> Final home, Q1 loser -> Q2 home,
  Eliminator winner -> Q2 away, Q2 winner -> Final away
- Group + knockout: once every group match is completed, group finishers
  fill the first-round slots labelled "A1", "B2", ...
- IPL-style seeding: once every league match is completed, the top four
  fill Qualifier 1 and the Eliminator

Functions here return SlotAssignment values and never write; the tournament
service applies them through storage. Inputs are TournamentMatch rows (or any
object with the same attributes).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from tournament_app.exceptions import StateError
from tournament_app.models.match import MATCH_ABANDONED, MATCH_COMPLETED
from tournament_app.services.fixture_types import (
    ROUND_ROBIN_STAGES,
    STAGE_ELIMINATOR,
    STAGE_FINAL,
    STAGE_GROUP,
    STAGE_LEAGUE,
    STAGE_QUALIFIER_1,
    STAGE_QUALIFIER_2,
    group_position_label,
    is_knockout_stage,
    league_position_label,
)
from tournament_app.services.standings_engine import (
    OUTCOME_LOSS,
    OUTCOME_WIN,
    MatchResult,
    StandingRecord,
    classify_result,
)

logger = logging.getLogger(__name__)

SIDE_HOME = "home"
SIDE_AWAY = "away"

IPL_PLAYOFF_TEAMS = 4
GROUP_ADVANCING = 2

_FINISHED = (MATCH_COMPLETED, MATCH_ABANDONED)


@dataclass(frozen=True)
class SlotAssignment:
    link_id: int
    side: str  # "home" | "away"
    team_id: int
    reason: str = ""

    def to_dict(self):
        return {"link_id": self.link_id, "side": self.side, "team_id": self.team_id, "reason": self.reason}


# ============================================================================
# Tie resolution strategies
# ============================================================================


class TieResolver:
    """Decides a knockout winner when the result is a tie or no-result"""

    def resolve(self, match: MatchResult) -> int:
        raise NotImplementedError


class HomeSideTieResolver(TieResolver):
    """Home side goes through. Stand-in until super overs / tiebreak entry exist."""

    def resolve(self, match: MatchResult) -> int:
        logger.warning(
            "Knockout match %s ended without a winner; advancing home team %s",
            match.match_id,
            match.home_team_id,
        )
        return match.home_team_id


class StrictTieResolver(TieResolver):
    """Refuses to advance anyone until a decisive result is entered."""

    def resolve(self, match: MatchResult) -> int:
        raise StateError(f"Knockout match {match.match_id} has no winner; enter a tiebreak result first")


def decide_winner(match: MatchResult, resolver: TieResolver) -> Tuple[int, int]:
    """Return (winner_team_id, loser_team_id) for a completed match."""
    outcome = classify_result(match)
    if outcome == OUTCOME_WIN:
        return match.home_team_id, match.away_team_id
    if outcome == OUTCOME_LOSS:
        return match.away_team_id, match.home_team_id
    winner = resolver.resolve(match)
    loser = match.away_team_id if winner == match.home_team_id else match.home_team_id
    return winner, loser


# ============================================================================
# Slot arithmetic
# ============================================================================


def next_slot(bracket_position: int) -> Tuple[int, str]:
    """Next-round (position, side) for the winner at bracket_position."""
    return bracket_position // 2, SIDE_HOME if bracket_position % 2 == 0 else SIDE_AWAY


def slot_team(link, side: str) -> Optional[int]:
    return link.home_team_id if side == SIDE_HOME else link.away_team_id


def needs_write(link, assignment: SlotAssignment) -> bool:
    """
    False when the slot already holds the same team (no-op).

    Raises:
        StateError: the slot already holds a different team
    """
    current = slot_team(link, assignment.side)
    if current is None:
        return True
    if current == assignment.team_id:
        return False
    raise StateError(
        f"Match {link.match_number} {assignment.side} slot already holds team {current}; "
        f"refusing to overwrite with team {assignment.team_id}"
    )


def _find_by_stage(links: Sequence, stage: str):
    for link in links:
        if link.is_playoff and link.stage == stage:
            return link
    return None


def _assignment(link, side: str, team_id: int, reason: str) -> List[SlotAssignment]:
    if link is None:
        return []
    return [SlotAssignment(link_id=link.id, side=side, team_id=team_id, reason=reason)]


# ============================================================================
# Advancement after a knockout / playoff result
# ============================================================================


def knockout_advancement(
    completed_link, match: MatchResult, links: Sequence, resolver: TieResolver
) -> List[SlotAssignment]:
    """
    Slot writes caused by one completed knockout or playoff match.

    Returns [] for league/group matches, finals, or when the target fixture
    does not exist.
    """
    if completed_link.is_playoff:
        return _playoff_advancement(completed_link, match, links, resolver)
    if not is_knockout_stage(completed_link.stage) or completed_link.stage == STAGE_FINAL:
        return []
    if completed_link.bracket_position is None:
        return []

    winner, _ = decide_winner(match, resolver)
    position, side = next_slot(completed_link.bracket_position)
    for link in links:
        if (
            link.round == completed_link.round + 1
            and link.bracket_position == position
            and not link.is_playoff
            and is_knockout_stage(link.stage)
        ):
            return _assignment(link, side, winner, f"winner of match {completed_link.match_number}")
    logger.debug("No next-round fixture for match %s", completed_link.match_number)
    return []


def _playoff_advancement(completed_link, match: MatchResult, links: Sequence, resolver: TieResolver):
    winner, loser = decide_winner(match, resolver)
    number = completed_link.match_number
    final = _find_by_stage(links, STAGE_FINAL)
    qualifier_2 = _find_by_stage(links, STAGE_QUALIFIER_2)

    if completed_link.stage == STAGE_QUALIFIER_1:
        return _assignment(final, SIDE_HOME, winner, f"winner of match {number}") + _assignment(
            qualifier_2, SIDE_HOME, loser, f"loser of match {number}"
        )
    if completed_link.stage == STAGE_ELIMINATOR:
        return _assignment(qualifier_2, SIDE_AWAY, winner, f"winner of match {number}")
    if completed_link.stage == STAGE_QUALIFIER_2:
        return _assignment(final, SIDE_AWAY, winner, f"winner of match {number}")
    return []


# ============================================================================
# Stage completion seeding
# ============================================================================


def stage_complete(links: Sequence, stages: Sequence[str]) -> bool:
    """True when every fixture in the given stages is finished (and at least one exists)."""
    stage_links = [link for link in links if link.stage in stages and not link.is_playoff]
    return bool(stage_links) and all(link.status in _FINISHED for link in stage_links)


def _fill_by_label(links: Sequence, label_to_team: Dict[str, int], reason: str) -> List[SlotAssignment]:
    assignments: List[SlotAssignment] = []
    for link in links:
        for side, label in ((SIDE_HOME, link.home_placeholder), (SIDE_AWAY, link.away_placeholder)):
            if label in label_to_team:
                assignments.append(
                    SlotAssignment(link_id=link.id, side=side, team_id=label_to_team[label], reason=f"{reason} {label}")
                )
    return assignments


def group_stage_assignments(
    links: Sequence, ranked_groups: Dict[Optional[str], List[StandingRecord]]
) -> List[SlotAssignment]:
    """First knockout round slots from group finishers; [] until the group stage is complete."""
    if not stage_complete(links, (STAGE_GROUP,)):
        return []
    label_to_team: Dict[str, int] = {}
    for group, table in ranked_groups.items():
        if group is None:
            continue
        for record in table[:GROUP_ADVANCING]:
            label_to_team[group_position_label(group, record.position)] = record.team_id
    knockout_links = [link for link in links if is_knockout_stage(link.stage)]
    return _fill_by_label(knockout_links, label_to_team, "group finisher")


def playoff_seed_assignments(links: Sequence, ranked_league: List[StandingRecord]) -> List[SlotAssignment]:
    """Qualifier 1 / Eliminator slots from the final league table; [] until the league is complete."""
    if not any(link.is_playoff for link in links):
        return []
    if not stage_complete(links, (STAGE_LEAGUE,)):
        return []
    label_to_team = {
        league_position_label(record.position): record.team_id for record in ranked_league[:IPL_PLAYOFF_TEAMS]
    }
    playoff_links = [link for link in links if link.is_playoff]
    return _fill_by_label(playoff_links, label_to_team, "league finisher")


def is_round_robin_stage(stage: str) -> bool:
    return stage in ROUND_ROBIN_STAGES
