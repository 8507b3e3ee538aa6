from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from ringside.models.club import Club


class Fighter(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str
    nickname: str = Field(default="")
    club: str = Field(default="No Club")  # Display name, kept alongside club_id
    club_id: Optional[int] = Field(default=None, foreign_key="club.id", index=True)
    birth_date: date
    height: int  # cm
    weight: float  # kg
    discipline: str = Field(sa_column=Column(String, nullable=False))
    gender: str = Field(sa_column=Column(String, nullable=False))  # "M" | "F" | "Open"

    # Fight record
    wins: int = Field(default=0)
    losses: int = Field(default=0)
    draws: int = Field(default=0)

    image_url: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    club_ref: Optional["Club"] = Relationship(back_populates="fighters")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
