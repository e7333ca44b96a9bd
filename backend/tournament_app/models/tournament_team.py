from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from tournament_app.models.tournament import Tournament


class TournamentTeam(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "team_id", name="uq_tournament_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    seed: Optional[int] = Field(default=None)  # 1-based; registration order when null
    group_name: Optional[str] = Field(default=None)  # set by group-stage generation
    registered_at: datetime = Field(default_factory=datetime.utcnow)

    tournament: "Tournament" = Relationship(back_populates="teams")
