from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from tournament_app.database import get_session
from tournament_app.exceptions import TournamentError
from tournament_app.routes.errors import to_http_exception
from tournament_app.services.player_stats import mvp_score, resolve_category, top_performers, tournament_summary
from tournament_app.services.standings_engine import MatchResult, head_to_head
from tournament_app.storage import TournamentStorage

router = APIRouter()


class PlayerStatResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tournament_id: int
    user_id: int
    team_id: Optional[int] = None
    player_name: Optional[str] = None
    matches: int
    runs: int
    balls_faced: int
    fours: int
    sixes: int
    fifties: int
    hundreds: int
    highest_score: int
    batting_average: float
    strike_rate: float
    wickets: int
    overs_bowled: str
    runs_conceded: int
    economy_rate: float
    catches: int
    run_outs: int
    stumpings: int
    mvp_score: int = 0


@router.get("/tournaments/{tournament_id}/stats/players/{user_id}", response_model=PlayerStatResponse)
def get_player_stats(tournament_id: int, user_id: int, session: Session = Depends(get_session)):
    storage = TournamentStorage(session)
    if storage.get_tournament(tournament_id) is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    stat = storage.get_player_tournament_stats(tournament_id, user_id)
    if stat is None:
        raise HTTPException(status_code=404, detail="No statistics for this player in the tournament")
    response = PlayerStatResponse.model_validate(stat)
    response.mvp_score = mvp_score(stat)
    return response


@router.get("/tournaments/{tournament_id}/stats/top", response_model=Dict[str, Any])
def get_top_performers(
    tournament_id: int,
    category: str = Query(default="runs"),
    limit: int = Query(default=10, ge=1, le=100),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Leaderboard. Aliases: orange_cap, purple_cap, catches, allrounder."""
    storage = TournamentStorage(session)
    if storage.get_tournament(tournament_id) is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    stats = storage.get_player_tournament_stats_by_tournament(tournament_id)
    leaders: List[Dict[str, Any]] = top_performers(stats, category, limit)
    return {"category": resolve_category(category), "leaders": leaders}


@router.get("/tournaments/{tournament_id}/stats/summary", response_model=Dict[str, Any])
def get_tournament_summary(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Match counts by status, run/wicket/boundary totals and the cap holders."""
    storage = TournamentStorage(session)
    tournament = storage.get_tournament(tournament_id)
    if tournament is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    summary = tournament_summary(
        storage.get_player_tournament_stats_by_tournament(tournament_id),
        storage.get_tournament_matches_by_tournament(tournament_id),
    )
    return {"tournament_id": tournament_id, "tournament_name": tournament.name, "status": tournament.status, **summary}


@router.get("/tournaments/{tournament_id}/head-to-head", response_model=Dict[str, Any])
def get_head_to_head(
    tournament_id: int,
    team1: int = Query(...),
    team2: int = Query(...),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Finished meetings between two teams in this tournament."""
    storage = TournamentStorage(session)
    if storage.get_tournament(tournament_id) is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    teams = {team_id: storage.get_team(team_id) for team_id in (team1, team2)}
    missing = [team_id for team_id, team in teams.items() if team is None]
    if missing:
        raise HTTPException(status_code=404, detail=f"Team {missing[0]} not found")

    results = [
        MatchResult.from_match(storage.get_match(link.match_id))
        for link in storage.get_tournament_matches_by_tournament(tournament_id)
    ]
    try:
        record = head_to_head(team1, team2, results)
    except TournamentError as e:
        raise to_http_exception(e)
    for side in ("team1", "team2"):
        record[side]["name"] = teams[record[side]["team_id"]].name
    return record
