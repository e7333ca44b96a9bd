"""
Team and Venue API Routes
Global team and venue registries shared by all tournaments.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session

from tournament_app.database import get_session
from tournament_app.storage import TournamentStorage

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    name: str
    short_name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    short_name: Optional[str] = None
    created_at: datetime


class VenueCreateRequest(BaseModel):
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    capacity: Optional[int] = None


class VenueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    capacity: Optional[int] = None


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/teams", response_model=TeamResponse, status_code=201)
def create_team(team_data: TeamCreateRequest, session: Session = Depends(get_session)):
    """Create a team. Names are unique."""
    storage = TournamentStorage(session)
    if storage.get_team_by_name(team_data.name):
        raise HTTPException(status_code=409, detail=f"Team '{team_data.name}' already exists")
    team = storage.create_team(team_data.model_dump())
    storage.commit()
    return team


@router.get("/teams", response_model=List[TeamResponse])
def list_teams(session: Session = Depends(get_session)):
    return TournamentStorage(session).list_teams()


@router.post("/venues", response_model=VenueResponse, status_code=201)
def create_venue(venue_data: VenueCreateRequest, session: Session = Depends(get_session)):
    storage = TournamentStorage(session)
    venue = storage.create_venue(venue_data.model_dump())
    storage.commit()
    return venue


@router.get("/venues", response_model=List[VenueResponse])
def list_venues(session: Session = Depends(get_session)):
    return TournamentStorage(session).get_all_venues()
