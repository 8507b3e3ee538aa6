from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from ringside.models.bracket import Bracket


class Competition(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    location: str
    address: str = Field(default="")
    start_date: date
    end_date: date
    registration_date: date  # Registration deadline
    contact_name: str = Field(default="")
    contact_email: str = Field(default="")
    contact_phone: str = Field(default="")
    description: str = Field(default="")
    disciplines: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    registrations: List["CompetitionFighter"] = Relationship(
        back_populates="competition",
        sa_relationship_kwargs={"order_by": "CompetitionFighter.position", "cascade": "all, delete-orphan"},
    )
    brackets: List["Bracket"] = Relationship(back_populates="competition")


class CompetitionFighter(SQLModel, table=True):
    """A fighter registered to a competition, in registration order."""

    __table_args__ = (SAUniqueConstraint("competition_id", "fighter_id", name="uq_competition_fighter"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: int = Field(foreign_key="competition.id", index=True)
    fighter_id: int = Field(foreign_key="fighter.id", index=True)
    discipline: str
    position: int  # 1-based registration order

    competition: "Competition" = Relationship(back_populates="registrations")
