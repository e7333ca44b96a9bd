from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    short_name: Optional[str] = Field(default=None)  # e.g. "CSK"
    created_at: datetime = Field(default_factory=datetime.utcnow)
