from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class MatchPerformance(SQLModel, table=True):
    """One player's contribution to one match"""

    __table_args__ = (SAUniqueConstraint("match_id", "user_id", name="uq_performance_match_player"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    user_id: int = Field(index=True)
    team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    player_name: Optional[str] = Field(default=None)

    runs: int = Field(default=0)
    balls_faced: int = Field(default=0)
    fours: int = Field(default=0)
    sixes: int = Field(default=0)
    wickets: int = Field(default=0)
    overs_bowled: str = Field(default="0")  # cricket notation
    runs_conceded: int = Field(default=0)
    catches: int = Field(default=0)
    run_outs: int = Field(default=0)
    stumpings: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
