from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator, model_validator
from sqlmodel import Session

from tournament_app.database import get_session
from tournament_app.models.team import Team
from tournament_app.models.tournament import TOURNAMENT_FORMATS, Tournament
from tournament_app.models.tournament_team import TournamentTeam
from tournament_app.storage import TournamentStorage

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    format: str = "league"
    ipl_format: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    overs_per_innings: int = 20
    points_per_win: int = 2
    points_per_loss: int = 0
    points_per_tie: int = 1
    points_per_no_result: int = 1
    qualification_spots: int = 4
    all_out_counts_full_overs: bool = False
    venue_ids: Optional[List[int]] = None

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        if v not in TOURNAMENT_FORMATS:
            raise ValueError(f"format must be one of {', '.join(TOURNAMENT_FORMATS)}")
        return v

    @field_validator("overs_per_innings", "qualification_spots")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TournamentResponse(BaseModel):
    id: int
    name: str
    format: str
    ipl_format: bool
    start_date: Optional[date]
    end_date: Optional[date]
    overs_per_innings: int
    points_per_win: int
    points_per_loss: int
    points_per_tie: int
    points_per_no_result: int
    qualification_spots: int
    all_out_counts_full_overs: bool
    venue_ids: Optional[List[int]] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TournamentTeamAdd(BaseModel):
    team_id: int
    seed: Optional[int] = None


class TournamentTeamResponse(BaseModel):
    id: int
    tournament_id: int
    team_id: int
    team_name: str
    seed: Optional[int] = None
    group_name: Optional[str] = None


def _get_tournament_or_404(storage: TournamentStorage, tournament_id: int) -> Tournament:
    tournament = storage.get_tournament(tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def _entry_response(entry: TournamentTeam, team: Optional[Team]) -> TournamentTeamResponse:
    return TournamentTeamResponse(
        id=entry.id,
        tournament_id=entry.tournament_id,
        team_id=entry.team_id,
        team_name=team.name if team else f"Team {entry.team_id}",
        seed=entry.seed,
        group_name=entry.group_name,
    )


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return TournamentStorage(session).list_tournaments()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    storage = TournamentStorage(session)
    if tournament_data.venue_ids:
        found = {v.id for v in storage.get_venues(tournament_data.venue_ids)}
        for venue_id in tournament_data.venue_ids:
            if venue_id not in found:
                raise HTTPException(status_code=422, detail=f"Venue {venue_id} not found")
    tournament = storage.create_tournament(tournament_data.model_dump())
    storage.commit()
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return _get_tournament_or_404(TournamentStorage(session), tournament_id)


@router.post("/tournaments/{tournament_id}/teams", response_model=TournamentTeamResponse, status_code=201)
def add_tournament_team(tournament_id: int, payload: TournamentTeamAdd, session: Session = Depends(get_session)):
    """Register a team. Registration order is the seed order when no seed is given."""
    storage = TournamentStorage(session)
    _get_tournament_or_404(storage, tournament_id)
    team = storage.get_team(payload.team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    if storage.get_tournament_team_entry(tournament_id, payload.team_id):
        raise HTTPException(status_code=409, detail="Team already registered in this tournament")

    entry = storage.create_tournament_team(
        {"tournament_id": tournament_id, "team_id": payload.team_id, "seed": payload.seed}
    )
    storage.commit()
    return _entry_response(entry, team)


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TournamentTeamResponse])
def list_tournament_teams(tournament_id: int, session: Session = Depends(get_session)):
    """Registered teams in seed order."""
    storage = TournamentStorage(session)
    _get_tournament_or_404(storage, tournament_id)
    entries = storage.get_tournament_teams(tournament_id)
    return [_entry_response(entry, storage.get_team(entry.team_id)) for entry in entries]
