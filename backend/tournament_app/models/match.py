from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, SQLModel

MATCH_SCHEDULED = "scheduled"
MATCH_LIVE = "live"
MATCH_COMPLETED = "completed"
MATCH_ABANDONED = "abandoned"

RESULT_HOME_WIN = "home_win"
RESULT_AWAY_WIN = "away_win"
RESULT_TIE = "tie"
RESULT_NO_RESULT = "no_result"
MATCH_RESULTS = (RESULT_HOME_WIN, RESULT_AWAY_WIN, RESULT_TIE, RESULT_NO_RESULT)


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str

    # team1 is the home side, team2 the away side (nullable until known)
    team1_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team2_id: Optional[int] = Field(default=None, foreign_key="team.id")
    venue_id: Optional[int] = Field(default=None, foreign_key="venue.id")

    match_date: Optional[date] = Field(default=None)
    overs: int = Field(default=20)
    status: str = Field(default=MATCH_SCHEDULED)  # scheduled | live | completed | abandoned

    # Final scores, e.g. "156/7 (19.4)"
    team1_score: Optional[str] = Field(default=None)
    team2_score: Optional[str] = Field(default=None)
    result: Optional[str] = Field(default=None)  # home_win | away_win | tie | no_result

    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(default=None)
