from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from ringside.database import get_session
from ringside.models.club import Club
from ringside.models.fighter import Fighter
from ringside.services.division_rules import DISCIPLINE_VALUES

router = APIRouter()


def _check_disciplines(v):
    if v is None:
        return v
    unknown = [d for d in v if d not in DISCIPLINE_VALUES]
    if unknown:
        raise ValueError(f"Unknown disciplines: {unknown}")
    return v


class ClubCreate(BaseModel):
    name: str
    city: str
    address: str = ""
    description: str = ""
    disciplines: List[str] = []
    logo_url: str = ""

    @field_validator("name", "city")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("field is required")
        return v.strip()

    @field_validator("disciplines")
    @classmethod
    def validate_disciplines(cls, v):
        return _check_disciplines(v)


class ClubUpdate(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    disciplines: Optional[List[str]] = None
    logo_url: Optional[str] = None

    @field_validator("disciplines")
    @classmethod
    def validate_disciplines(cls, v):
        return _check_disciplines(v)


class ClubResponse(BaseModel):
    id: int
    name: str
    city: str
    address: str
    description: str
    disciplines: List[str]
    logo_url: str
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/clubs", response_model=List[ClubResponse])
def list_clubs(session: Session = Depends(get_session)):
    """List all clubs"""
    return session.exec(select(Club).order_by(Club.id)).all()


@router.post("/clubs", response_model=ClubResponse, status_code=201)
def create_club(club_data: ClubCreate, session: Session = Depends(get_session)):
    """Create a new club"""
    club = Club(**club_data.model_dump())
    session.add(club)
    session.commit()
    session.refresh(club)
    return club


@router.get("/clubs/{club_id}", response_model=ClubResponse)
def get_club(club_id: int, session: Session = Depends(get_session)):
    """Get a club by ID"""
    club = session.get(Club, club_id)
    if not club:
        raise HTTPException(status_code=404, detail="Club not found")
    return club


@router.put("/clubs/{club_id}", response_model=ClubResponse)
def update_club(club_id: int, club_data: ClubUpdate, session: Session = Depends(get_session)):
    """Update a club; a name change is copied onto its fighters"""
    club = session.get(Club, club_id)
    if not club:
        raise HTTPException(status_code=404, detail="Club not found")

    update_data = club_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(club, field, value)

    if "name" in update_data:
        for fighter in session.exec(select(Fighter).where(Fighter.club_id == club_id)).all():
            fighter.club = club.name
            session.add(fighter)

    session.add(club)
    session.commit()
    session.refresh(club)
    return club


@router.delete("/clubs/{club_id}", status_code=204)
def delete_club(club_id: int, session: Session = Depends(get_session)):
    """Delete a club; its fighters become unaffiliated"""
    club = session.get(Club, club_id)
    if not club:
        raise HTTPException(status_code=404, detail="Club not found")

    for fighter in session.exec(select(Fighter).where(Fighter.club_id == club_id)).all():
        fighter.club_id = None
        fighter.club = "No Club"
        session.add(fighter)

    session.delete(club)
    session.commit()
    return None
