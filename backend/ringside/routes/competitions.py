from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator, model_validator
from sqlmodel import Session, func, select

from ringside.database import get_session
from ringside.models.bracket import Bracket
from ringside.models.competition import Competition, CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.models.match import Match
from ringside.services.division_rules import DISCIPLINE_VALUES

router = APIRouter()


def _check_disciplines(v):
    if v is None:
        return v
    unknown = [d for d in v if d not in DISCIPLINE_VALUES]
    if unknown:
        raise ValueError(f"Unknown disciplines: {unknown}")
    return v


class CompetitionCreate(BaseModel):
    title: str
    location: str
    address: str = ""
    start_date: date
    end_date: date
    registration_date: date
    contact_name: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    description: str = ""
    disciplines: List[str] = []

    @field_validator("title", "location")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("field is required")
        return v.strip()

    @field_validator("disciplines")
    @classmethod
    def validate_disciplines(cls, v):
        return _check_disciplines(v)

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        if self.registration_date > self.start_date:
            raise ValueError("registration_date must be <= start_date")
        return self


class CompetitionUpdate(BaseModel):
    title: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    registration_date: Optional[date] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    description: Optional[str] = None
    disciplines: Optional[List[str]] = None

    @field_validator("disciplines")
    @classmethod
    def validate_disciplines(cls, v):
        return _check_disciplines(v)

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class RegistrationResponse(BaseModel):
    fighter_id: int
    discipline: str
    position: int

    class Config:
        from_attributes = True


class CompetitionResponse(BaseModel):
    id: int
    title: str
    location: str
    address: str
    start_date: date
    end_date: date
    registration_date: date
    contact_name: str
    contact_email: str
    contact_phone: str
    description: str
    disciplines: List[str]
    fighters: List[RegistrationResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RegistrationCreate(BaseModel):
    fighter_id: int
    discipline: Optional[str] = None  # Defaults to the fighter's own discipline


def _to_response(session: Session, competition: Competition) -> CompetitionResponse:
    registrations = session.exec(
        select(CompetitionFighter)
        .where(CompetitionFighter.competition_id == competition.id)
        .order_by(CompetitionFighter.position, CompetitionFighter.id)
    ).all()
    response = CompetitionResponse.model_validate(competition)
    response.fighters = [RegistrationResponse.model_validate(r) for r in registrations]
    return response


def _get_competition(session: Session, competition_id: int) -> Competition:
    competition = session.get(Competition, competition_id)
    if not competition:
        raise HTTPException(status_code=404, detail="Competition not found")
    return competition


@router.get("/competitions", response_model=List[CompetitionResponse])
def list_competitions(session: Session = Depends(get_session)):
    """List all competitions"""
    competitions = session.exec(select(Competition).order_by(Competition.start_date, Competition.id)).all()
    return [_to_response(session, c) for c in competitions]


@router.post("/competitions", response_model=CompetitionResponse, status_code=201)
def create_competition(competition_data: CompetitionCreate, session: Session = Depends(get_session)):
    """Create a new competition"""
    competition = Competition(**competition_data.model_dump())
    session.add(competition)
    session.commit()
    session.refresh(competition)
    return _to_response(session, competition)


@router.get("/competitions/{competition_id}", response_model=CompetitionResponse)
def get_competition(competition_id: int, session: Session = Depends(get_session)):
    """Get a competition by ID, with its registered fighters"""
    return _to_response(session, _get_competition(session, competition_id))


@router.put("/competitions/{competition_id}", response_model=CompetitionResponse)
def update_competition(competition_id: int, competition_data: CompetitionUpdate, session: Session = Depends(get_session)):
    """Update a competition"""
    competition = _get_competition(session, competition_id)

    update_data = competition_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(competition, field, value)
    if competition.end_date < competition.start_date:
        raise HTTPException(status_code=422, detail="end_date must be >= start_date")

    session.add(competition)
    session.commit()
    session.refresh(competition)
    return _to_response(session, competition)


@router.delete("/competitions/{competition_id}", status_code=204)
def delete_competition(competition_id: int, session: Session = Depends(get_session)):
    """Delete a competition with its registrations, brackets and matches"""
    competition = _get_competition(session, competition_id)

    # Children first
    for model in (Match, Bracket, CompetitionFighter):
        for row in session.exec(select(model).where(model.competition_id == competition_id)).all():
            session.delete(row)
    session.flush()
    session.delete(competition)
    session.commit()
    return None


@router.post("/competitions/{competition_id}/fighters", response_model=CompetitionResponse, status_code=201)
def register_fighter(competition_id: int, registration: RegistrationCreate, session: Session = Depends(get_session)):
    """Register a fighter; the entry is appended after existing registrations"""
    competition = _get_competition(session, competition_id)
    fighter = session.get(Fighter, registration.fighter_id)
    if not fighter:
        raise HTTPException(status_code=404, detail="Fighter not found")

    discipline = registration.discipline or fighter.discipline
    if competition.disciplines and discipline not in competition.disciplines:
        raise HTTPException(
            status_code=422,
            detail=f"Discipline {discipline} is not part of this competition ({', '.join(competition.disciplines)})",
        )

    existing = session.exec(
        select(CompetitionFighter).where(
            CompetitionFighter.competition_id == competition_id,
            CompetitionFighter.fighter_id == registration.fighter_id,
        )
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Fighter is already registered for this competition")

    last_position = session.exec(
        select(func.max(CompetitionFighter.position)).where(CompetitionFighter.competition_id == competition_id)
    ).one()
    session.add(
        CompetitionFighter(
            competition_id=competition_id,
            fighter_id=registration.fighter_id,
            discipline=discipline,
            position=(last_position or 0) + 1,
        )
    )
    session.commit()
    session.refresh(competition)
    return _to_response(session, competition)


@router.delete("/competitions/{competition_id}/fighters/{fighter_id}", status_code=204)
def unregister_fighter(competition_id: int, fighter_id: int, session: Session = Depends(get_session)):
    """Withdraw a fighter from a competition"""
    _get_competition(session, competition_id)
    registration = session.exec(
        select(CompetitionFighter).where(
            CompetitionFighter.competition_id == competition_id,
            CompetitionFighter.fighter_id == fighter_id,
        )
    ).first()
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")

    session.delete(registration)
    session.commit()
    return None
