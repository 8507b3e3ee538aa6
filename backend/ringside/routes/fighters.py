from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select

from ringside.database import get_session
from ringside.models.club import Club
from ringside.models.competition import CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.services.division_rules import (
    DISCIPLINE_VALUES,
    GENDER_VALUES,
    age_group_from_birth_date,
    weight_class_from_kg,
)

router = APIRouter()


class FighterCreate(BaseModel):
    first_name: str
    last_name: str
    nickname: str = ""
    club_id: Optional[int] = None
    birth_date: date
    height: int = Field(gt=0)
    weight: float = Field(gt=0)
    discipline: str
    gender: str
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    draws: int = Field(default=0, ge=0)
    image_url: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("discipline")
    @classmethod
    def validate_discipline(cls, v):
        if v not in DISCIPLINE_VALUES:
            raise ValueError(f"discipline must be one of {DISCIPLINE_VALUES}")
        return v

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v):
        if v not in GENDER_VALUES:
            raise ValueError(f"gender must be one of {GENDER_VALUES}")
        return v


class FighterUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    club_id: Optional[int] = None
    birth_date: Optional[date] = None
    height: Optional[int] = Field(default=None, gt=0)
    weight: Optional[float] = Field(default=None, gt=0)
    discipline: Optional[str] = None
    gender: Optional[str] = None
    wins: Optional[int] = Field(default=None, ge=0)
    losses: Optional[int] = Field(default=None, ge=0)
    draws: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None

    @field_validator("discipline")
    @classmethod
    def validate_discipline(cls, v):
        if v is not None and v not in DISCIPLINE_VALUES:
            raise ValueError(f"discipline must be one of {DISCIPLINE_VALUES}")
        return v

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v):
        if v is not None and v not in GENDER_VALUES:
            raise ValueError(f"gender must be one of {GENDER_VALUES}")
        return v


class FighterResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    nickname: str
    club: str
    club_id: Optional[int]
    birth_date: date
    height: int
    weight: float
    discipline: str
    gender: str
    wins: int
    losses: int
    draws: int
    image_url: Optional[str]
    created_at: datetime
    age_group: Optional[str] = None
    weight_class: Optional[str] = None

    class Config:
        from_attributes = True


def _to_response(fighter: Fighter) -> FighterResponse:
    response = FighterResponse.model_validate(fighter)
    response.age_group = age_group_from_birth_date(fighter.birth_date)
    response.weight_class = weight_class_from_kg(fighter.weight, fighter.gender)
    return response


def _club_name(session: Session, club_id: Optional[int]) -> str:
    if club_id is None:
        return "No Club"
    club = session.get(Club, club_id)
    if not club:
        raise HTTPException(status_code=422, detail=f"Club {club_id} not found")
    return club.name


@router.get("/fighters", response_model=List[FighterResponse])
def list_fighters(club_id: Optional[int] = Query(default=None), session: Session = Depends(get_session)):
    """List fighters, optionally only those of one club"""
    query = select(Fighter).order_by(Fighter.id)
    if club_id is not None:
        query = query.where(Fighter.club_id == club_id)
    return [_to_response(f) for f in session.exec(query).all()]


@router.post("/fighters", response_model=FighterResponse, status_code=201)
def create_fighter(fighter_data: FighterCreate, session: Session = Depends(get_session)):
    """Create a new fighter"""
    fighter = Fighter(**fighter_data.model_dump(), club=_club_name(session, fighter_data.club_id))
    session.add(fighter)
    session.commit()
    session.refresh(fighter)
    return _to_response(fighter)


@router.get("/fighters/{fighter_id}", response_model=FighterResponse)
def get_fighter(fighter_id: int, session: Session = Depends(get_session)):
    """Get a fighter by ID"""
    fighter = session.get(Fighter, fighter_id)
    if not fighter:
        raise HTTPException(status_code=404, detail="Fighter not found")
    return _to_response(fighter)


@router.put("/fighters/{fighter_id}", response_model=FighterResponse)
def update_fighter(fighter_id: int, fighter_data: FighterUpdate, session: Session = Depends(get_session)):
    """Update a fighter"""
    fighter = session.get(Fighter, fighter_id)
    if not fighter:
        raise HTTPException(status_code=404, detail="Fighter not found")

    update_data = fighter_data.model_dump(exclude_unset=True)
    if "club_id" in update_data:
        fighter.club = _club_name(session, update_data["club_id"])
    for field, value in update_data.items():
        setattr(fighter, field, value)

    session.add(fighter)
    session.commit()
    session.refresh(fighter)
    return _to_response(fighter)


@router.delete("/fighters/{fighter_id}", status_code=204)
def delete_fighter(fighter_id: int, session: Session = Depends(get_session)):
    """Delete a fighter and withdraw them from every competition"""
    fighter = session.get(Fighter, fighter_id)
    if not fighter:
        raise HTTPException(status_code=404, detail="Fighter not found")

    for registration in session.exec(select(CompetitionFighter).where(CompetitionFighter.fighter_id == fighter_id)).all():
        session.delete(registration)
    session.delete(fighter)
    session.commit()
    return None
