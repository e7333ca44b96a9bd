from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class TournamentStanding(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "team_id", name="uq_standing_tournament_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_id: int = Field(foreign_key="team.id")
    group_name: Optional[str] = Field(default=None)

    played: int = Field(default=0)
    won: int = Field(default=0)
    lost: int = Field(default=0)
    tied: int = Field(default=0)
    no_result: int = Field(default=0)
    points: int = Field(default=0)

    # Overs stored in cricket notation ("19.4" = 19 overs 4 balls)
    runs_for: int = Field(default=0)
    overs_for: str = Field(default="0")
    runs_against: int = Field(default=0)
    overs_against: str = Field(default="0")
    net_run_rate: float = Field(default=0.0)

    position: Optional[int] = Field(default=None)  # derived, recomputed on every rank
    qualified: bool = Field(default=False)
    eliminated: bool = Field(default=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
