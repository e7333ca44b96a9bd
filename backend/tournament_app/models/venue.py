from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Venue(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    city: Optional[str] = Field(default=None)
    country: Optional[str] = Field(default=None)
    capacity: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
