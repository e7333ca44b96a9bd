"""
Fixture generation and listing.
Generation replaces any existing fixtures and standings for the tournament.
"""
import random
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session

from tournament_app.config import DEFAULT_MAX_MATCHES_PER_DAY, DEFAULT_PLAYOFF_GAP_DAYS
from tournament_app.database import get_session
from tournament_app.exceptions import TournamentError
from tournament_app.routes.errors import to_http_exception
from tournament_app.services.scheduler import ScheduleConstraints
from tournament_app.services.tournament_service import generate_tournament_fixtures
from tournament_app.storage import TournamentStorage

router = APIRouter()


class FixtureGenerationRequest(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    venue_ids: Optional[List[int]] = None
    double_round_robin: bool = False
    seed: Optional[int] = None  # seeds the group draw shuffle

    max_matches_per_day: int = DEFAULT_MAX_MATCHES_PER_DAY
    schedule_weekday_matches: bool = True
    prioritize_weekends: bool = True
    avoid_back_to_back: bool = True
    back_to_back_hours: int = 24
    playoff_gap_days: int = DEFAULT_PLAYOFF_GAP_DAYS

    @field_validator("max_matches_per_day")
    @classmethod
    def validate_cap(cls, v):
        if v < 1:
            raise ValueError("max_matches_per_day must be >= 1")
        return v

    @field_validator("back_to_back_hours", "playoff_gap_days")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self

    def constraints(self) -> ScheduleConstraints:
        return ScheduleConstraints(
            max_matches_per_day=self.max_matches_per_day,
            schedule_weekday_matches=self.schedule_weekday_matches,
            prioritize_weekends=self.prioritize_weekends,
            avoid_back_to_back=self.avoid_back_to_back,
            back_to_back_hours=self.back_to_back_hours,
            playoff_gap_days=self.playoff_gap_days,
        )


class FixtureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    match_id: int
    match_number: int
    round: int
    stage: str
    group_name: Optional[str] = None
    bracket_position: Optional[int] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    venue_id: Optional[int] = None
    schedule_degraded: bool
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    home_placeholder: Optional[str] = None
    away_placeholder: Optional[str] = None
    is_playoff: bool
    playoff_round: Optional[str] = None
    is_eliminator: bool
    status: str


@router.post("/tournaments/{tournament_id}/fixtures/generate", response_model=Dict[str, Any], status_code=201)
def generate_fixtures(
    tournament_id: int,
    payload: Optional[FixtureGenerationRequest] = None,
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    """Generate, schedule and save all fixtures. Scheduling degradations come back as warnings."""
    payload = payload or FixtureGenerationRequest()
    storage = TournamentStorage(session)
    try:
        result = generate_tournament_fixtures(
            storage,
            tournament_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            venue_ids=payload.venue_ids,
            constraints=payload.constraints(),
            double_round_robin=payload.double_round_robin,
            rng=random.Random(payload.seed) if payload.seed is not None else None,
        )
    except TournamentError as e:
        raise to_http_exception(e)
    return result.to_dict()


@router.get("/tournaments/{tournament_id}/fixtures", response_model=List[FixtureResponse])
def list_fixtures(tournament_id: int, session: Session = Depends(get_session)):
    """Fixtures in match-number order."""
    storage = TournamentStorage(session)
    if not storage.get_tournament(tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return storage.get_tournament_matches_by_tournament(tournament_id)
