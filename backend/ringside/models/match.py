from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from ringside.models.bracket import Bracket


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("bracket_id", "match_number", name="uq_match_bracket_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    competition_id: int = Field(foreign_key="competition.id", index=True)
    bracket_id: Optional[int] = Field(default=None, foreign_key="bracket.id", index=True)  # None = standalone

    # Bracket-local topology (1..N within one bracket)
    match_number: int
    next_match_number: Optional[int] = Field(default=None)  # None = final
    round_number: int
    name: str

    # Exactly two slots: {fighter_id, display_name, status, is_winner, result_text}
    participants: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    state: str = Field(default="NO_PARTY")  # NO_SHOW | WALK_OVER | NO_PARTY | DONE | SCORE_DONE
    winner_fighter_id: Optional[int] = Field(default=None, foreign_key="fighter.id")
    result_text: Optional[str] = Field(default=None)
    start_time: Optional[datetime] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    bracket: Optional["Bracket"] = Relationship(back_populates="matches")
