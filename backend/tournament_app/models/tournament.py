from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_app.models.tournament_match import TournamentMatch
    from tournament_app.models.tournament_team import TournamentTeam

FORMAT_LEAGUE = "league"
FORMAT_KNOCKOUT = "knockout"
FORMAT_GROUP_STAGE_KNOCKOUT = "group_stage_knockout"
TOURNAMENT_FORMATS = (FORMAT_LEAGUE, FORMAT_KNOCKOUT, FORMAT_GROUP_STAGE_KNOCKOUT)


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    format: str = Field(default=FORMAT_LEAGUE)  # "league" | "knockout" | "group_stage_knockout"
    ipl_format: bool = Field(default=False)  # double round-robin + Q1/Eliminator/Q2/Final
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    overs_per_innings: int = Field(default=20)

    # Points table
    points_per_win: int = Field(default=2)
    points_per_loss: int = Field(default=0)
    points_per_tie: int = Field(default=1)
    points_per_no_result: int = Field(default=1)

    qualification_spots: int = Field(default=4)
    # Count a bowled-out innings as the full overs quota for NRR
    all_out_counts_full_overs: bool = Field(default=False)

    venue_ids: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))
    status: str = Field(default="draft")  # "draft" | "live" | "completed"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    teams: List["TournamentTeam"] = Relationship(back_populates="tournament")
    matches: List["TournamentMatch"] = Relationship(back_populates="tournament")
