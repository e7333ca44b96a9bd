from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_app.models.tournament import Tournament


class TournamentMatch(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    match_id: int = Field(foreign_key="match.id", index=True)

    round: int
    match_number: int
    stage: str  # league | group | round-N | quarter-final | semi-final | final | playoff stages
    group_name: Optional[str] = Field(default=None)
    bracket_position: Optional[int] = Field(default=None)  # 0-based index within knockout round

    scheduled_date: Optional[date] = Field(default=None)
    scheduled_time: Optional[str] = Field(default=None)  # "HH:MM"
    venue_id: Optional[int] = Field(default=None, foreign_key="venue.id")
    schedule_degraded: bool = Field(default=False)

    # Team slots (null while pending) with display labels for pending slots
    home_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    away_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    home_placeholder: Optional[str] = Field(default=None)  # "A1", "Winner of Match 5", ...
    away_placeholder: Optional[str] = Field(default=None)

    is_playoff: bool = Field(default=False)
    playoff_round: Optional[str] = Field(default=None)  # "Qualifier 1" | "Eliminator" | ...
    is_eliminator: bool = Field(default=False)

    status: str = Field(default="scheduled")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournament: "Tournament" = Relationship(back_populates="matches")
