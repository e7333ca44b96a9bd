"""
Standings Engine

Applies completed match results to standing records, computes net run rate
and produces a fully re-ranked table after every change.

Records are immutable: apply_result returns a new StandingRecord and leaves
the input untouched. Ranking is a total order:
    points desc -> NRR desc (3 decimal places) -> wins desc -> team id asc
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence

from tournament_app.exceptions import ConfigurationError, StateError
from tournament_app.models.match import (
    MATCH_ABANDONED,
    MATCH_COMPLETED,
    RESULT_AWAY_WIN,
    RESULT_HOME_WIN,
    RESULT_NO_RESULT,
    RESULT_TIE,
)
from tournament_app.services.score_parser import (
    BALLS_PER_OVER,
    ParsedScore,
    add_overs,
    balls_to_overs,
    decimal_overs,
    overs_to_balls,
    parse_score,
)

logger = logging.getLogger(__name__)

OUTCOME_WIN = "win"
OUTCOME_LOSS = "loss"
OUTCOME_TIE = "tie"
OUTCOME_NO_RESULT = "no_result"

FORM_LETTERS = {OUTCOME_WIN: "W", OUTCOME_LOSS: "L", OUTCOME_TIE: "T", OUTCOME_NO_RESULT: "N"}
FORM_GUIDE_LENGTH = 5
NRR_PRECISION = 3

_NO_RESULT_VALUES = (RESULT_NO_RESULT, "abandoned")


@dataclass(frozen=True)
class ScoringRules:
    """Per-tournament points table and innings settings"""

    points_per_win: int = 2
    points_per_loss: int = 0
    points_per_tie: int = 1
    points_per_no_result: int = 1
    overs_per_innings: int = 20
    all_out_counts_full_overs: bool = False

    @classmethod
    def from_tournament(cls, tournament) -> "ScoringRules":
        return cls(
            points_per_win=tournament.points_per_win,
            points_per_loss=tournament.points_per_loss,
            points_per_tie=tournament.points_per_tie,
            points_per_no_result=tournament.points_per_no_result,
            overs_per_innings=tournament.overs_per_innings,
            all_out_counts_full_overs=tournament.all_out_counts_full_overs,
        )

    def points_for(self, outcome: str) -> int:
        return {
            OUTCOME_WIN: self.points_per_win,
            OUTCOME_LOSS: self.points_per_loss,
            OUTCOME_TIE: self.points_per_tie,
            OUTCOME_NO_RESULT: self.points_per_no_result,
        }[outcome]


@dataclass(frozen=True)
class MatchResult:
    home_team_id: Optional[int]
    away_team_id: Optional[int]
    status: str
    result: Optional[str] = None
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    match_id: Optional[int] = None

    @classmethod
    def from_match(cls, match) -> "MatchResult":
        """Build from a persisted Match (team1 is the home side)."""
        return cls(
            home_team_id=match.team1_id,
            away_team_id=match.team2_id,
            status=match.status,
            result=match.result,
            home_score=match.team1_score,
            away_score=match.team2_score,
            match_id=match.id,
        )


@dataclass(frozen=True)
class StandingRecord:
    team_id: int
    group_name: Optional[str] = None
    played: int = 0
    won: int = 0
    lost: int = 0
    tied: int = 0
    no_result: int = 0
    points: int = 0
    runs_for: int = 0
    overs_for: str = "0"
    runs_against: int = 0
    overs_against: str = "0"
    net_run_rate: float = 0.0
    position: Optional[int] = None
    qualified: bool = False
    eliminated: bool = False
    id: Optional[int] = None

    @classmethod
    def from_model(cls, standing) -> "StandingRecord":
        return cls(**{name: getattr(standing, name) for name in cls.__dataclass_fields__})

    def to_patch(self) -> Dict:
        """Field values to write back onto a TournamentStanding row (id excluded)."""
        return {name: getattr(self, name) for name in self.__dataclass_fields__ if name not in ("id", "team_id")}

    def reset(self) -> "StandingRecord":
        return StandingRecord(team_id=self.team_id, group_name=self.group_name, id=self.id)


# ============================================================================
# Result application
# ============================================================================


def classify_result(match: MatchResult) -> str:
    """
    Outcome from the home side's perspective.

    Uses the explicit result tag; when it is missing, compares runs from the
    score strings. Abandoned matches are no-results.
    """
    if match.status not in (MATCH_COMPLETED, MATCH_ABANDONED):
        raise StateError(f"Match {match.match_id} is not completed (status={match.status})")
    if match.home_team_id is None or match.away_team_id is None:
        raise StateError(f"Match {match.match_id} is missing a team")

    if match.status == MATCH_ABANDONED or match.result in _NO_RESULT_VALUES:
        return OUTCOME_NO_RESULT
    if match.result == RESULT_HOME_WIN:
        return OUTCOME_WIN
    if match.result == RESULT_AWAY_WIN:
        return OUTCOME_LOSS
    if match.result == RESULT_TIE:
        return OUTCOME_TIE
    if match.result is not None:
        raise StateError(f"Match {match.match_id} has unknown result {match.result!r}")

    home = parse_score(match.home_score)
    away = parse_score(match.away_score)
    if home is None or away is None:
        raise StateError(f"Match {match.match_id} is completed but has no result or parsable scores")
    if home.runs > away.runs:
        return OUTCOME_WIN
    if away.runs > home.runs:
        return OUTCOME_LOSS
    return OUTCOME_TIE


def outcome_for_team(match: MatchResult, team_id: int) -> str:
    home_outcome = classify_result(match)
    if team_id == match.home_team_id:
        return home_outcome
    if team_id == match.away_team_id:
        return {OUTCOME_WIN: OUTCOME_LOSS, OUTCOME_LOSS: OUTCOME_WIN}.get(home_outcome, home_outcome)
    raise StateError(f"Team {team_id} did not play match {match.match_id}")


def _innings_balls(score: Optional[ParsedScore], rules: ScoringRules) -> int:
    if score is None:
        return 0
    if rules.all_out_counts_full_overs and score.is_all_out:
        return rules.overs_per_innings * BALLS_PER_OVER
    return score.balls


def apply_result(standing: StandingRecord, match: MatchResult, rules: ScoringRules) -> StandingRecord:
    """
    Return a new record with one completed match applied.

    No-results add to played/no_result/points only; they carry no runs or
    overs into NRR.

    Raises:
        StateError: match not completed, missing a team, or the standing's
            team did not play it
    """
    outcome = outcome_for_team(match, standing.team_id)
    is_home = standing.team_id == match.home_team_id

    counters = {
        OUTCOME_WIN: {"won": standing.won + 1},
        OUTCOME_LOSS: {"lost": standing.lost + 1},
        OUTCOME_TIE: {"tied": standing.tied + 1},
        OUTCOME_NO_RESULT: {"no_result": standing.no_result + 1},
    }[outcome]
    updated = replace(
        standing,
        played=standing.played + 1,
        points=standing.points + rules.points_for(outcome),
        **counters,
    )

    if outcome != OUTCOME_NO_RESULT:
        own = parse_score(match.home_score if is_home else match.away_score)
        opp = parse_score(match.away_score if is_home else match.home_score)
        updated = replace(
            updated,
            runs_for=updated.runs_for + (own.runs if own else 0),
            overs_for=add_overs(updated.overs_for, balls_to_overs(_innings_balls(own, rules))),
            runs_against=updated.runs_against + (opp.runs if opp else 0),
            overs_against=add_overs(updated.overs_against, balls_to_overs(_innings_balls(opp, rules))),
        )

    return replace(updated, net_run_rate=record_net_run_rate(updated))


def net_run_rate(runs_for: int, balls_for: int, runs_against: int, balls_against: int) -> float:
    """
    NRR = runs scored per over - runs conceded per over, rounded to 3 places.
    A side with zero overs contributes 0.
    """
    rate_for = runs_for / decimal_overs(balls_for) if balls_for > 0 else 0.0
    rate_against = runs_against / decimal_overs(balls_against) if balls_against > 0 else 0.0
    return round(rate_for - rate_against, NRR_PRECISION)


def record_net_run_rate(record: StandingRecord) -> float:
    return net_run_rate(
        record.runs_for,
        overs_to_balls(record.overs_for),
        record.runs_against,
        overs_to_balls(record.overs_against),
    )


def replay_results(
    standings: Iterable[StandingRecord], matches: Iterable[MatchResult], rules: ScoringRules
) -> List[StandingRecord]:
    """Reset every record and re-apply all completed matches in order."""
    by_team = {s.team_id: s.reset() for s in standings}
    for match in matches:
        if match.status not in (MATCH_COMPLETED, MATCH_ABANDONED):
            continue
        for team_id in (match.home_team_id, match.away_team_id):
            if team_id in by_team:
                by_team[team_id] = apply_result(by_team[team_id], match, rules)
    return list(by_team.values())


# ============================================================================
# Ranking
# ============================================================================


def _rank_key(record: StandingRecord):
    return (
        -record.points,
        -round(record.net_run_rate, NRR_PRECISION),
        -record.won,
        record.team_id,
    )


def rank_standings(standings: Iterable[StandingRecord]) -> List[StandingRecord]:
    """Sort one table and assign 1-based positions. Idempotent."""
    ordered = sorted(standings, key=_rank_key)
    return [replace(record, position=i + 1) for i, record in enumerate(ordered)]


def rank_by_group(standings: Iterable[StandingRecord]) -> Dict[Optional[str], List[StandingRecord]]:
    """Rank each group separately; records without a group form one table keyed by None."""
    tables: Dict[Optional[str], List[StandingRecord]] = {}
    for record in standings:
        tables.setdefault(record.group_name, []).append(record)
    return {group: rank_standings(records) for group, records in sorted(tables.items(), key=lambda kv: kv[0] or "")}


def apply_qualification(
    ranked: Sequence[StandingRecord],
    remaining_matches: Dict[int, int],
    points_per_win: int,
    spots: int,
) -> List[StandingRecord]:
    """
    Set qualified/eliminated flags on a ranked table.

    qualified: inside the top `spots` with no matches left to play.
    eliminated: cannot reach the current points of the last qualifying place
    even by winning every remaining match.
    """
    if spots <= 0 or not ranked:
        return list(ranked)
    cutoff_points = ranked[min(spots, len(ranked)) - 1].points
    result = []
    for record in ranked:
        remaining = remaining_matches.get(record.team_id, 0)
        qualified = record.position is not None and record.position <= spots and remaining == 0
        max_points = record.points + remaining * points_per_win
        eliminated = len(ranked) > spots and max_points < cutoff_points
        result.append(replace(record, qualified=qualified, eliminated=eliminated))
    return result


# ============================================================================
# Form guide
# ============================================================================


def form_guide(team_id: int, matches_recent_first: Iterable[MatchResult], limit: int = FORM_GUIDE_LENGTH) -> List[str]:
    """Last `limit` results for a team as W/L/T/N, most recent first."""
    letters: List[str] = []
    for match in matches_recent_first:
        if team_id not in (match.home_team_id, match.away_team_id):
            continue
        if match.status not in (MATCH_COMPLETED, MATCH_ABANDONED):
            continue
        letters.append(FORM_LETTERS[outcome_for_team(match, team_id)])
        if len(letters) >= limit:
            break
    return letters


def head_to_head(team1_id: int, team2_id: int, matches: Iterable[MatchResult]) -> Dict:
    """
    Finished meetings between two teams.

    Returns wins per side, ties, no-results, and each side's highest and
    lowest innings totals (None when no score was recorded).

    Raises:
        ConfigurationError: both ids name the same team
    """
    if team1_id == team2_id:
        raise ConfigurationError("Head-to-head needs two different teams")

    wins = {team1_id: 0, team2_id: 0}
    totals: Dict[int, List[int]] = {team1_id: [], team2_id: []}
    played = ties = no_results = 0
    for match in matches:
        if {match.home_team_id, match.away_team_id} != {team1_id, team2_id}:
            continue
        if match.status not in (MATCH_COMPLETED, MATCH_ABANDONED):
            continue
        played += 1
        outcome = outcome_for_team(match, team1_id)
        if outcome == OUTCOME_WIN:
            wins[team1_id] += 1
        elif outcome == OUTCOME_LOSS:
            wins[team2_id] += 1
        elif outcome == OUTCOME_TIE:
            ties += 1
        else:
            no_results += 1
        for team_id, raw in ((match.home_team_id, match.home_score), (match.away_team_id, match.away_score)):
            score = parse_score(raw)
            if score is not None:
                totals[team_id].append(score.runs)

    def side(team_id: int) -> Dict:
        return {
            "team_id": team_id,
            "wins": wins[team_id],
            "highest_score": max(totals[team_id], default=None),
            "lowest_score": min(totals[team_id], default=None),
        }

    return {"matches": played, "ties": ties, "no_results": no_results, "team1": side(team1_id), "team2": side(team2_id)}
