from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from ringside.models.fighter import Fighter


class Club(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    city: str
    address: str = Field(default="")
    description: str = Field(default="")
    disciplines: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    logo_url: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    fighters: List["Fighter"] = Relationship(back_populates="club_ref")
