from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from tournament_app.database import get_session
from tournament_app.exceptions import TournamentError, TournamentNotFoundError
from tournament_app.routes.errors import to_http_exception
from tournament_app.services.standings_engine import StandingRecord, rank_by_group
from tournament_app.services.tournament_service import recalculate_standings, team_form
from tournament_app.storage import TournamentStorage

router = APIRouter()


class StandingRow(BaseModel):
    position: Optional[int] = None
    team_id: int
    team_name: str
    group_name: Optional[str] = None
    played: int
    won: int
    lost: int
    tied: int
    no_result: int
    points: int
    runs_for: int
    overs_for: str
    runs_against: int
    overs_against: str
    net_run_rate: float
    qualified: bool
    eliminated: bool
    form: List[str] = []


def _rows(storage: TournamentStorage, tournament_id: int, tables: Dict[Optional[str], List[StandingRecord]]):
    rows: List[StandingRow] = []
    for table in tables.values():
        for record in table:
            team = storage.get_team(record.team_id)
            rows.append(
                StandingRow(
                    **record.to_patch(),
                    team_id=record.team_id,
                    team_name=team.name if team else f"Team {record.team_id}",
                    form=team_form(storage, tournament_id, record.team_id),
                )
            )
    return rows


@router.get("/tournaments/{tournament_id}/standings", response_model=List[StandingRow])
def get_standings(tournament_id: int, session: Session = Depends(get_session)):
    """Ranked standings, grouped tables first by group name. Positions are recomputed on read."""
    storage = TournamentStorage(session)
    if storage.get_tournament(tournament_id) is None:
        raise to_http_exception(TournamentNotFoundError(tournament_id))
    records = [StandingRecord.from_model(r) for r in storage.get_tournament_standings_by_tournament(tournament_id)]
    return _rows(storage, tournament_id, rank_by_group(records))


@router.post("/tournaments/{tournament_id}/standings/recalculate", response_model=Dict[str, Any])
def recalculate(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Rebuild standings from every finished league/group match."""
    storage = TournamentStorage(session)
    try:
        tables = recalculate_standings(storage, tournament_id)
    except TournamentError as e:
        raise to_http_exception(e)
    return {
        "standings_updated": sum(len(t) for t in tables.values()),
        "standings": [row.model_dump() for row in _rows(storage, tournament_id, tables)],
    }
