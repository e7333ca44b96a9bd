"""
Tournament Service

Orchestrates the full pipelines against the persistence adapter:

Fixture build:
1. Generate fixtures for the registered teams
2. Schedule them across the tournament window and venues
3. Replace any previous fixtures, record group draws, seed standings

Result entry:
1. Validate the status transition and store the scores
2. Apply the result to standings and re-rank every table
3. Fill downstream bracket / playoff slots
4. Accumulate player statistics

One result is processed fully inside a single session before commit.
"""

import logging
import random
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from tournament_app.exceptions import (
    ConfigurationError,
    MatchNotFoundError,
    StateError,
    TournamentNotFoundError,
)
from tournament_app.models.match import (
    MATCH_ABANDONED,
    MATCH_COMPLETED,
    MATCH_LIVE,
    MATCH_SCHEDULED,
)
from tournament_app.models.tournament import FORMAT_GROUP_STAGE_KNOCKOUT, FORMAT_LEAGUE
from tournament_app.services import player_stats
from tournament_app.services.bracket_progression import (
    GROUP_ADVANCING,
    HomeSideTieResolver,
    SlotAssignment,
    TieResolver,
    group_stage_assignments,
    is_round_robin_stage,
    knockout_advancement,
    needs_write,
    playoff_seed_assignments,
)
from tournament_app.services.fixture_generator import GenerationWarning, generate_fixtures
from tournament_app.services.fixture_types import Fixture, GenerationOptions
from tournament_app.services.scheduler import ScheduleConstraints, schedule_fixtures
from tournament_app.services.standings_engine import (
    MatchResult,
    ScoringRules,
    StandingRecord,
    apply_qualification,
    apply_result,
    classify_result,
    form_guide,
    rank_by_group,
    replay_results,
)
from tournament_app.storage import TournamentStorage

logger = logging.getLogger(__name__)

FINISHED_STATUSES = (MATCH_COMPLETED, MATCH_ABANDONED)
_ALLOWED_TRANSITIONS = {
    MATCH_SCHEDULED: (MATCH_SCHEDULED, MATCH_LIVE, MATCH_COMPLETED, MATCH_ABANDONED),
    MATCH_LIVE: (MATCH_LIVE, MATCH_COMPLETED, MATCH_ABANDONED),
}

# ============================================================================
# Response Models
# ============================================================================


class FixtureBuildResult:
    """Outcome of generating and scheduling a tournament's fixtures"""

    def __init__(self, tournament_id: int, tournament_format: str):
        self.tournament_id = tournament_id
        self.format = tournament_format
        self.fixtures_created = 0
        self.standings_created = 0
        self.groups: Dict[str, List[int]] = {}
        self.auto_advanced: List[int] = []
        self.deferred: List[int] = []
        self.warnings: List[GenerationWarning] = []

    def to_dict(self):
        return {
            "tournament_id": self.tournament_id,
            "format": self.format,
            "fixtures_created": self.fixtures_created,
            "standings_created": self.standings_created,
            "groups": self.groups,
            "auto_advanced": self.auto_advanced,
            "deferred": self.deferred,
            "warnings": [w.to_dict() for w in self.warnings],
        }


class ResultProcessing:
    """What a recorded result changed downstream"""

    def __init__(self):
        self.standings_updated = 0
        self.slots_filled: List[SlotAssignment] = []
        self.players_updated = 0

    def to_dict(self):
        return {
            "standings_updated": self.standings_updated,
            "slots_filled": [a.to_dict() for a in self.slots_filled],
            "players_updated": self.players_updated,
        }


# ============================================================================
# Lookups
# ============================================================================


def _require_tournament(storage: TournamentStorage, tournament_id: int):
    tournament = storage.get_tournament(tournament_id)
    if tournament is None:
        raise TournamentNotFoundError(tournament_id)
    return tournament


def _require_link(storage: TournamentStorage, tournament_id: int, link_id: int):
    link = storage.get_tournament_match(link_id)
    if link is None or link.tournament_id != tournament_id:
        raise MatchNotFoundError(tournament_id, link_id)
    return link


# ============================================================================
# Fixture build
# ============================================================================


def generate_tournament_fixtures(
    storage: TournamentStorage,
    tournament_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    venue_ids: Optional[Sequence[int]] = None,
    constraints: Optional[ScheduleConstraints] = None,
    double_round_robin: bool = False,
    rng: Optional[random.Random] = None,
) -> FixtureBuildResult:
    """
    Generate, schedule and persist all fixtures for a tournament.

    Existing fixtures and standings for the tournament are replaced.

    Raises:
        TournamentNotFoundError: unknown tournament
        ConfigurationError: missing dates or venues, too few teams, or a
            window too short for the fixture list
    """
    tournament = _require_tournament(storage, tournament_id)
    entries = storage.get_tournament_teams(tournament_id)
    team_ids = [e.team_id for e in entries]

    start_date = start_date or tournament.start_date
    end_date = end_date or tournament.end_date
    if start_date is None or end_date is None:
        raise ConfigurationError("Tournament start_date and end_date are required to schedule fixtures")

    requested_venues = list(venue_ids or tournament.venue_ids or [v.id for v in storage.get_all_venues()])
    venues = storage.get_venues(requested_venues)
    missing = sorted(set(requested_venues) - {v.id for v in venues})
    if missing:
        raise ConfigurationError(f"Unknown venue ids: {missing}")
    resolved_venue_ids = [v.id for v in venues]

    options = GenerationOptions(double_round_robin=double_round_robin, ipl_format=tournament.ipl_format)
    generated = generate_fixtures(team_ids, tournament.format, options, rng=rng, venue_ids=resolved_venue_ids)
    scheduled = schedule_fixtures(generated.fixtures, start_date, end_date, resolved_venue_ids, constraints)

    result = FixtureBuildResult(tournament_id, generated.format)
    result.groups = generated.groups
    result.auto_advanced = generated.auto_advanced
    result.deferred = scheduled.deferred
    result.warnings = list(generated.warnings) + [
        GenerationWarning("DEGRADED_SCHEDULE", f"Match {d.match_number}: {d.reason}") for d in scheduled.degraded
    ]

    for link in storage.get_tournament_matches_by_tournament(tournament_id):
        storage.delete_tournament_match(link.id)
    storage.delete_tournament_standings(tournament_id)

    team_names = {team_id: _team_name(storage, team_id) for team_id in team_ids}
    degraded = scheduled.degraded_numbers
    for fixture in sorted(scheduled.fixtures, key=lambda f: f.match_number):
        _persist_fixture(storage, tournament, fixture, team_names, fixture.match_number in degraded)
        result.fixtures_created += 1

    group_of: Dict[int, str] = {}
    for name, members in generated.groups.items():
        for team_id in members:
            group_of[team_id] = name
    for entry in entries:
        storage.update_tournament_team(entry.id, {"group_name": group_of.get(entry.team_id)})

    if tournament.ipl_format or tournament.format in (FORMAT_LEAGUE, FORMAT_GROUP_STAGE_KNOCKOUT):
        for team_id in team_ids:
            storage.create_tournament_standing(
                {"tournament_id": tournament_id, "team_id": team_id, "group_name": group_of.get(team_id)}
            )
            result.standings_created += 1

    storage.update_tournament(
        tournament_id,
        {"start_date": start_date, "end_date": end_date, "venue_ids": resolved_venue_ids},
    )
    storage.commit()
    logger.info(
        "Tournament %s: %d fixtures saved, %d standings created, %d warnings",
        tournament_id,
        result.fixtures_created,
        result.standings_created,
        len(result.warnings),
    )
    return result


def _team_name(storage: TournamentStorage, team_id: int) -> str:
    team = storage.get_team(team_id)
    return team.name if team else f"Team {team_id}"


def _persist_fixture(storage, tournament, fixture: Fixture, team_names: Dict[int, str], degraded: bool) -> None:
    home = team_names.get(fixture.home.team_id) if fixture.home.is_assigned else fixture.home.display()
    away = team_names.get(fixture.away.team_id) if fixture.away.is_assigned else fixture.away.display()
    label = fixture.playoff_round or fixture.stage.replace("-", " ").title()
    match = storage.create_match(
        {
            "title": f"Match {fixture.match_number} ({label}): {home} vs {away}",
            "team1_id": fixture.home.team_id,
            "team2_id": fixture.away.team_id,
            "venue_id": fixture.venue_id,
            "match_date": fixture.scheduled_date,
            "overs": tournament.overs_per_innings,
        }
    )
    storage.create_tournament_match(
        {
            "tournament_id": tournament.id,
            "match_id": match.id,
            "round": fixture.round,
            "match_number": fixture.match_number,
            "stage": fixture.stage,
            "group_name": fixture.group,
            "bracket_position": fixture.bracket_position,
            "scheduled_date": fixture.scheduled_date,
            "scheduled_time": fixture.scheduled_time,
            "venue_id": fixture.venue_id,
            "schedule_degraded": degraded,
            "home_team_id": fixture.home.team_id,
            "away_team_id": fixture.away.team_id,
            "home_placeholder": None if fixture.home.is_assigned else fixture.home.label,
            "away_placeholder": None if fixture.away.is_assigned else fixture.away.label,
            "is_playoff": fixture.is_playoff,
            "playoff_round": fixture.playoff_round,
            "is_eliminator": fixture.is_eliminator,
        }
    )


# ============================================================================
# Result entry
# ============================================================================


def _validate_transition(current: str, new: str) -> None:
    if current in FINISHED_STATUSES:
        logger.warning("Rejected update to %s match (requested %s)", current, new)
        raise StateError(f"Match is already {current}; results are final")
    if new not in _ALLOWED_TRANSITIONS.get(current, ()):
        logger.warning("Rejected status change %s -> %s", current, new)
        raise StateError(f"Cannot change match status from {current} to {new}")


def record_match_result(
    storage: TournamentStorage,
    tournament_id: int,
    link_id: int,
    status: Optional[str] = None,
    home_score: Optional[str] = None,
    away_score: Optional[str] = None,
    result: Optional[str] = None,
    performances: Optional[List[Dict]] = None,
    resolver: Optional[TieResolver] = None,
) -> ResultProcessing:
    """
    Store a status/score update and, when the match finishes, run standings,
    progression and statistics.

    Raises:
        TournamentNotFoundError / MatchNotFoundError: unknown ids
        StateError: invalid transition, match already finished, missing
            teams or no determinable result
    """
    tournament = _require_tournament(storage, tournament_id)
    link = _require_link(storage, tournament_id, link_id)
    match = storage.get_match(link.match_id)
    resolver = resolver or HomeSideTieResolver()

    new_status = status or match.status
    _validate_transition(match.status, new_status)
    if performances and new_status != MATCH_COMPLETED:
        raise StateError("Player performances can only be recorded with a completed result")

    patch: Dict = {"status": new_status}
    if home_score is not None:
        patch["team1_score"] = home_score
    if away_score is not None:
        patch["team2_score"] = away_score
    if result is not None:
        patch["result"] = result

    processing = ResultProcessing()
    if new_status not in FINISHED_STATUSES:
        storage.update_match(match.id, patch)
        storage.update_tournament_match(link.id, {"status": new_status})
        storage.commit()
        return processing

    if match.team1_id is None or match.team2_id is None:
        raise StateError(f"Match {link.match_number} cannot finish before both teams are known")
    patch["completed_at"] = datetime.utcnow()
    match = storage.update_match(match.id, patch)
    outcome = MatchResult.from_match(match)
    classify_result(outcome)
    link = storage.update_tournament_match(link.id, {"status": new_status})

    if is_round_robin_stage(link.stage) and not link.is_playoff:
        processing.standings_updated = _apply_to_standings(storage, tournament, outcome)
        rerank_standings(storage, tournament)

    processing.slots_filled = _run_progression(storage, tournament, link, outcome, resolver)

    if performances:
        processing.players_updated = _record_performances(storage, tournament_id, match, performances)

    storage.commit()
    logger.info(
        "Tournament %s match %s %s: %d standings, %d slots, %d players updated",
        tournament_id,
        link.match_number,
        new_status,
        processing.standings_updated,
        len(processing.slots_filled),
        processing.players_updated,
    )
    return processing


def advance_match(
    storage: TournamentStorage, tournament_id: int, link_id: int, resolver: Optional[TieResolver] = None
) -> List[SlotAssignment]:
    """Re-run progression for an already finished match (repair path). Idempotent."""
    tournament = _require_tournament(storage, tournament_id)
    link = _require_link(storage, tournament_id, link_id)
    match = storage.get_match(link.match_id)
    if match.status not in FINISHED_STATUSES:
        raise StateError(f"Match {link.match_number} must be completed to run advancement")
    applied = _run_progression(storage, tournament, link, MatchResult.from_match(match), resolver or HomeSideTieResolver())
    storage.commit()
    return applied


def _apply_to_standings(storage: TournamentStorage, tournament, outcome: MatchResult) -> int:
    rules = ScoringRules.from_tournament(tournament)
    updated = 0
    for team_id in (outcome.home_team_id, outcome.away_team_id):
        row = storage.get_tournament_standing_by_team(tournament.id, team_id)
        if row is None:
            logger.warning("No standing for team %s in tournament %s", team_id, tournament.id)
            continue
        record = apply_result(StandingRecord.from_model(row), outcome, rules)
        storage.update_tournament_standing(row.id, record.to_patch())
        updated += 1
    return updated


def _remaining_round_robin(links: Sequence) -> Dict[int, int]:
    remaining: Dict[int, int] = {}
    for link in links:
        if link.is_playoff or not is_round_robin_stage(link.stage) or link.status in FINISHED_STATUSES:
            continue
        for team_id in (link.home_team_id, link.away_team_id):
            if team_id is not None:
                remaining[team_id] = remaining.get(team_id, 0) + 1
    return remaining


def rerank_standings(storage: TournamentStorage, tournament) -> Dict[Optional[str], List[StandingRecord]]:
    """Re-rank every table (per group when grouped) and persist positions and flags."""
    rows = storage.get_tournament_standings_by_tournament(tournament.id)
    tables = rank_by_group(StandingRecord.from_model(r) for r in rows)
    remaining = _remaining_round_robin(storage.get_tournament_matches_by_tournament(tournament.id))

    flagged: Dict[Optional[str], List[StandingRecord]] = {}
    for group, table in tables.items():
        spots = tournament.qualification_spots if group is None else GROUP_ADVANCING
        flagged[group] = apply_qualification(table, remaining, tournament.points_per_win, spots)
        for record in flagged[group]:
            storage.update_tournament_standing(
                record.id,
                {"position": record.position, "qualified": record.qualified, "eliminated": record.eliminated},
            )
    return flagged


def recalculate_standings(storage: TournamentStorage, tournament_id: int) -> Dict[Optional[str], List[StandingRecord]]:
    """
    Rebuild standings from scratch by replaying every finished league/group match.

    Raises:
        StateError: the tournament has no standings (fixtures never generated
            or a pure knockout)
    """
    tournament = _require_tournament(storage, tournament_id)
    rows = storage.get_tournament_standings_by_tournament(tournament_id)
    if not rows:
        raise StateError(f"Tournament {tournament_id} has no standings to recalculate")

    links = storage.get_tournament_matches_by_tournament(tournament_id)
    results = [
        MatchResult.from_match(storage.get_match(link.match_id))
        for link in links
        if is_round_robin_stage(link.stage) and not link.is_playoff and link.status in FINISHED_STATUSES
    ]
    records = replay_results((StandingRecord.from_model(r) for r in rows), results, ScoringRules.from_tournament(tournament))
    for record in records:
        storage.update_tournament_standing(record.id, record.to_patch())
    tables = rerank_standings(storage, tournament)
    storage.commit()
    logger.info("Recalculated standings for tournament %s from %d results", tournament_id, len(results))
    return tables


def _run_progression(storage, tournament, link, outcome: MatchResult, resolver: TieResolver) -> List[SlotAssignment]:
    links = storage.get_tournament_matches_by_tournament(tournament.id)
    assignments = knockout_advancement(link, outcome, links, resolver)

    if is_round_robin_stage(link.stage) and not link.is_playoff:
        records = [StandingRecord.from_model(r) for r in storage.get_tournament_standings_by_tournament(tournament.id)]
        tables = rank_by_group(records)
        assignments += group_stage_assignments(links, tables)
        assignments += playoff_seed_assignments(links, tables.get(None, []))

    return _apply_assignments(storage, assignments)


def _apply_assignments(storage: TournamentStorage, assignments: Sequence[SlotAssignment]) -> List[SlotAssignment]:
    applied: List[SlotAssignment] = []
    for assignment in assignments:
        target = storage.get_tournament_match(assignment.link_id)
        try:
            write = needs_write(target, assignment)
        except StateError as e:
            logger.warning("Progression rejected: %s", e)
            raise
        if not write:
            continue
        storage.update_tournament_match(target.id, {f"{assignment.side}_team_id": assignment.team_id})
        applied.append(assignment)
        logger.info(
            "Match %s %s slot <- team %s (%s)",
            target.match_number,
            assignment.side,
            assignment.team_id,
            assignment.reason,
        )
    return applied


# ============================================================================
# Player statistics and form
# ============================================================================


def _record_performances(storage: TournamentStorage, tournament_id: int, match, performances: List[Dict]) -> int:
    teams = {match.team1_id, match.team2_id}
    for performance in performances:
        if performance.get("team_id") is not None and performance["team_id"] not in teams:
            raise StateError(f"Player {performance['user_id']} team {performance['team_id']} did not play this match")

    for performance in performances:
        storage.create_match_performance(dict(performance, match_id=match.id))
        existing = storage.get_player_tournament_stats(tournament_id, performance["user_id"])
        if existing is None:
            base = {"tournament_id": tournament_id, "user_id": performance["user_id"]}
            existing = storage.create_player_tournament_stats(base)
        current = existing.model_dump(exclude={"id", "updated_at"})
        updated = player_stats.accumulate(current, performance)
        updated["team_id"] = performance.get("team_id") or existing.team_id
        updated["player_name"] = performance.get("player_name") or existing.player_name
        storage.update_player_tournament_stats(tournament_id, performance["user_id"], updated)
    return len(performances)


def team_form(storage: TournamentStorage, tournament_id: int, team_id: int) -> List[str]:
    """Last five finished results for a team, most recent first."""
    links = [
        link
        for link in storage.get_tournament_matches_by_tournament(tournament_id)
        if link.status in FINISHED_STATUSES and team_id in (link.home_team_id, link.away_team_id)
    ]
    links.sort(key=lambda link: (link.scheduled_date or date.min, link.match_number), reverse=True)
    return form_guide(team_id, [MatchResult.from_match(storage.get_match(link.match_id)) for link in links])
