"""
Runtime: match status, scores and results.
Finishing a match updates standings, fills downstream bracket slots and
accumulates player statistics in the same request.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from tournament_app.database import get_session
from tournament_app.exceptions import TournamentError
from tournament_app.models.match import MATCH_RESULTS, Match
from tournament_app.models.tournament_match import TournamentMatch
from tournament_app.routes.errors import to_http_exception
from tournament_app.services.bracket_progression import HomeSideTieResolver, StrictTieResolver
from tournament_app.services.score_parser import overs_to_balls, parse_score
from tournament_app.services.tournament_service import advance_match, record_match_result
from tournament_app.storage import TournamentStorage

router = APIRouter()

MATCH_STATUSES = ("scheduled", "live", "completed", "abandoned")


class PerformanceInput(BaseModel):
    user_id: int
    team_id: Optional[int] = None
    player_name: Optional[str] = None
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    wickets: int = 0
    overs_bowled: str = "0"
    runs_conceded: int = 0
    catches: int = 0
    run_outs: int = 0
    stumpings: int = 0

    @field_validator("overs_bowled")
    @classmethod
    def validate_overs(cls, v):
        overs_to_balls(v)  # raises ValueError on bad notation
        return v


class MatchResultUpdate(BaseModel):
    status: Optional[str] = None
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    result: Optional[str] = None
    strict_ties: bool = False  # refuse to advance a tied knockout instead of taking the home side
    performances: Optional[List[PerformanceInput]] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in MATCH_STATUSES:
            raise ValueError(f"status must be one of {', '.join(MATCH_STATUSES)}")
        return v

    @field_validator("result")
    @classmethod
    def validate_result(cls, v):
        if v is not None and v not in MATCH_RESULTS:
            raise ValueError(f"result must be one of {', '.join(MATCH_RESULTS)}")
        return v

    @field_validator("home_score", "away_score")
    @classmethod
    def validate_score(cls, v):
        if v is not None and parse_score(v) is None:
            raise ValueError("score must look like '156/7 (19.4)'")
        return v


class MatchState(BaseModel):
    link_id: int
    match_id: int
    match_number: int
    stage: str
    status: str
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    home_score: Optional[str] = None
    away_score: Optional[str] = None
    result: Optional[str] = None
    completed_at: Optional[datetime] = None


class MatchResultResponse(BaseModel):
    match: MatchState
    processing: Dict[str, Any]


def _state(link: TournamentMatch, match: Match) -> MatchState:
    return MatchState(
        link_id=link.id,
        match_id=match.id,
        match_number=link.match_number,
        stage=link.stage,
        status=match.status,
        home_team_id=match.team1_id,
        away_team_id=match.team2_id,
        home_score=match.team1_score,
        away_score=match.team2_score,
        result=match.result,
        completed_at=match.completed_at,
    )


@router.patch(
    "/tournaments/{tournament_id}/runtime/matches/{link_id}",
    response_model=MatchResultResponse,
)
def update_match_result(
    tournament_id: int,
    link_id: int,
    payload: MatchResultUpdate,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    """Update status/scores/result. completed and abandoned are terminal."""
    storage = TournamentStorage(session)
    resolver = StrictTieResolver() if payload.strict_ties else HomeSideTieResolver()
    try:
        processing = record_match_result(
            storage,
            tournament_id,
            link_id,
            status=payload.status,
            home_score=payload.home_score,
            away_score=payload.away_score,
            result=payload.result,
            performances=[p.model_dump() for p in payload.performances] if payload.performances else None,
            resolver=resolver,
        )
    except TournamentError as e:
        raise to_http_exception(e)

    link = storage.get_tournament_match(link_id)
    match = storage.get_match(link.match_id)
    return MatchResultResponse(match=_state(link, match), processing=processing.to_dict())


@router.post(
    "/tournaments/{tournament_id}/runtime/matches/{link_id}/advance",
    response_model=Dict[str, Any],
)
def advance(
    tournament_id: int,
    link_id: int,
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Re-run advancement for a finished match (repair). Safe to repeat."""
    storage = TournamentStorage(session)
    try:
        applied = advance_match(storage, tournament_id, link_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return {"advanced_count": len(applied), "slots_filled": [a.to_dict() for a in applied]}


@router.get("/tournaments/{tournament_id}/runtime/matches/{link_id}", response_model=MatchState)
def get_match_state(tournament_id: int, link_id: int, session: Session = Depends(get_session)):
    storage = TournamentStorage(session)
    link = storage.get_tournament_match(link_id)
    if not link or link.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Match not found")
    return _state(link, storage.get_match(link.match_id))
