from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

from ringside.services.division_rules import DivisionKey

if TYPE_CHECKING:
    from ringside.models.competition import Competition
    from ringside.models.match import Match


class Bracket(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: int = Field(foreign_key="competition.id", index=True)

    # Division keys
    age_group: str
    discipline: str
    weight_class: str
    gender: str

    fighter_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))  # Ordered
    seed_method: str = Field(default="random")  # "random" | "ranking" | "manual"
    status: str = Field(default="draft")  # "draft" | "published" | "locked"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    competition: "Competition" = Relationship(back_populates="brackets")
    matches: List["Match"] = Relationship(
        back_populates="bracket",
        sa_relationship_kwargs={"order_by": "Match.match_number", "cascade": "all, delete-orphan"},
    )

    @property
    def division(self) -> DivisionKey:
        return DivisionKey(self.age_group, self.discipline, self.weight_class, self.gender)
