from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class PlayerTournamentStat(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "user_id", name="uq_player_tournament"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    user_id: int = Field(index=True)
    team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    player_name: Optional[str] = Field(default=None)

    matches: int = Field(default=0)

    # Batting
    runs: int = Field(default=0)
    balls_faced: int = Field(default=0)
    fours: int = Field(default=0)
    sixes: int = Field(default=0)
    fifties: int = Field(default=0)
    hundreds: int = Field(default=0)
    highest_score: int = Field(default=0)
    batting_average: float = Field(default=0.0)
    strike_rate: float = Field(default=0.0)

    # Bowling
    wickets: int = Field(default=0)
    overs_bowled: str = Field(default="0")
    runs_conceded: int = Field(default=0)
    economy_rate: float = Field(default=0.0)

    # Fielding
    catches: int = Field(default=0)
    run_outs: int = Field(default=0)
    stumpings: int = Field(default=0)

    updated_at: datetime = Field(default_factory=datetime.utcnow)
