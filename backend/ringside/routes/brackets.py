from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from ringside.database import get_session
from ringside.models.bracket import Bracket
from ringside.models.competition import Competition
from ringside.models.fighter import Fighter
from ringside.models.match import Match
from ringside.services.bracket_generator import (
    GenerateBracketOptions,
    GeneratedMatch,
    bracket_topology,
    generate_bracket,
)
from ringside.services.chain_validator import verify_chain
from ringside.services.division_rules import (
    AGE_GROUP_VALUES,
    DISCIPLINE_VALUES,
    GENDER_VALUES,
    BracketStatus,
    DivisionKey,
    SeedMethod,
    weight_class_values,
)
from ringside.services.repositories import BracketDraft, SqlBracketRepository, generated_from_match_row

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class BracketGenerateRequest(BaseModel):
    fighter_ids: List[int]
    seed_method: SeedMethod = SeedMethod.ranking
    random_seed: Optional[Union[int, str]] = None
    start_time: Optional[datetime] = None
    bracket_size: Optional[int] = None


class BracketCreate(BracketGenerateRequest):
    age_group: str
    discipline: str
    weight_class: str
    gender: str
    status: BracketStatus = BracketStatus.draft

    @field_validator("age_group")
    @classmethod
    def validate_age_group(cls, v):
        if v not in AGE_GROUP_VALUES:
            raise ValueError(f"age_group must be one of {AGE_GROUP_VALUES}")
        return v

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


class BracketUpdate(BaseModel):
    """Any set field other than status regenerates the matches."""
    fighter_ids: Optional[List[int]] = None
    seed_method: Optional[SeedMethod] = None
    random_seed: Optional[Union[int, str]] = None
    start_time: Optional[datetime] = None
    bracket_size: Optional[int] = None
    status: Optional[BracketStatus] = None


class ParticipantResponse(BaseModel):
    fighter_id: Optional[int] = None
    display_name: Optional[str] = None
    status: str
    is_winner: bool = False
    result_text: Optional[str] = None


class MatchResponse(BaseModel):
    id: int
    competition_id: int
    bracket_id: Optional[int]
    match_number: int
    next_match_number: Optional[int]
    round_number: int
    name: str
    participants: List[ParticipantResponse]
    state: str
    winner_fighter_id: Optional[int]
    result_text: Optional[str]
    start_time: Optional[datetime]
    notes: Optional[str]

    class Config:
        from_attributes = True


class BracketResponse(BaseModel):
    id: int
    competition_id: int
    age_group: str
    discipline: str
    weight_class: str
    gender: str
    fighter_ids: List[int]
    seed_method: str
    status: str
    created_at: datetime
    updated_at: datetime
    match_count: int = 0

    class Config:
        from_attributes = True


class BracketPreviewResponse(BaseModel):
    matches: List[Dict[str, Any]]
    topology: Dict[str, int]
    chain: Dict[str, Any]


class BracketStatsResponse(BaseModel):
    bracket_id: int
    total_matches: int
    total_rounds: int
    participant_slots: int
    bye_count: int
    fighter_count: int
    completed_matches: int
    chain_ok: bool
    chain_errors: List[str]


# ============================================================================
# Helpers
# ============================================================================


def _get_competition(session: Session, competition_id: int) -> Competition:
    competition = session.get(Competition, competition_id)
    if not competition:
        raise HTTPException(status_code=404, detail="Competition not found")
    return competition


def _get_bracket(session: Session, competition_id: int, bracket_id: int) -> Bracket:
    bracket = session.get(Bracket, bracket_id)
    if not bracket or bracket.competition_id != competition_id:
        raise HTTPException(status_code=404, detail="Bracket not found")
    return bracket


def _fighter_names(session: Session, fighter_ids: List[int]) -> Dict[int, str]:
    if not fighter_ids:
        return {}
    fighters = session.exec(select(Fighter).where(Fighter.id.in_(fighter_ids))).all()
    missing = sorted(set(fighter_ids) - {f.id for f in fighters})
    if missing:
        raise HTTPException(status_code=422, detail=f"Fighters not found: {missing}")
    return {f.id: f.display_name for f in fighters}


def _generate(fighter_ids: List[int], names: Dict[int, str], seed_method, random_seed, start_time,
              bracket_size) -> List[GeneratedMatch]:
    try:
        return generate_bracket(
            GenerateBracketOptions(
                fighter_ids=fighter_ids,
                fighter_names=names,
                seed_method=seed_method,
                random_seed=random_seed,
                start_time=start_time,
                bracket_size=bracket_size,
            )
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _verified(matches: List[GeneratedMatch]) -> List[GeneratedMatch]:
    report = verify_chain(matches)
    if not report.ok:
        raise HTTPException(status_code=409, detail={"message": "Bracket chain is invalid", "errors": report.errors})
    return matches


def _bracket_response(session: Session, bracket: Bracket) -> BracketResponse:
    response = BracketResponse.model_validate(bracket)
    response.match_count = len(SqlBracketRepository(session).get_match_rows(bracket.competition_id, bracket.id))
    return response


# ============================================================================
# Preview
# ============================================================================


@router.post("/brackets/preview", response_model=BracketPreviewResponse)
def preview_bracket(request: BracketGenerateRequest, session: Session = Depends(get_session)):
    """
    Generate a bracket without persisting it.

    Unknown fighter ids are shown as "Fighter {id}"; returns the matches,
    topology metadata and the chain report.
    """
    fighters = session.exec(select(Fighter).where(Fighter.id.in_(request.fighter_ids))).all() if request.fighter_ids else []
    names = {f.id: f.display_name for f in fighters}
    matches = _generate(
        request.fighter_ids, names, request.seed_method, request.random_seed, request.start_time, request.bracket_size
    )
    return BracketPreviewResponse(
        matches=[m.to_dict() for m in matches],
        topology=bracket_topology(matches).to_dict(),
        chain=verify_chain(matches).to_dict(),
    )


# ============================================================================
# Competition brackets
# ============================================================================


@router.get("/competitions/{competition_id}/brackets", response_model=List[BracketResponse])
def list_brackets(competition_id: int, session: Session = Depends(get_session)):
    """List brackets of a competition"""
    _get_competition(session, competition_id)
    brackets = SqlBracketRepository(session).get_all_for_competition(competition_id)
    return [_bracket_response(session, b) for b in brackets]


@router.post("/competitions/{competition_id}/brackets", response_model=BracketResponse, status_code=201)
def create_bracket(competition_id: int, request: BracketCreate, session: Session = Depends(get_session)):
    """Generate, verify and persist a bracket for one division"""
    _get_competition(session, competition_id)
    if request.weight_class not in weight_class_values(request.gender):
        raise HTTPException(
            status_code=422, detail=f"Weight class {request.weight_class} is not defined for gender {request.gender}"
        )
    if len(request.fighter_ids) < 2:
        raise HTTPException(status_code=422, detail="Bracket must have at least 2 fighters")

    names = _fighter_names(session, request.fighter_ids)
    matches = _verified(
        _generate(
            request.fighter_ids, names, request.seed_method, request.random_seed, request.start_time,
            request.bracket_size,
        )
    )

    bracket = SqlBracketRepository(session).create(
        competition_id,
        BracketDraft(
            division=DivisionKey(request.age_group, request.discipline, request.weight_class, request.gender),
            fighter_ids=list(request.fighter_ids),
            seed_method=request.seed_method.value,
            status=request.status.value,
        ),
        matches,
    )
    return _bracket_response(session, bracket)


@router.get("/competitions/{competition_id}/brackets/{bracket_id}", response_model=BracketResponse)
def get_bracket(competition_id: int, bracket_id: int, session: Session = Depends(get_session)):
    """Get a bracket by ID"""
    return _bracket_response(session, _get_bracket(session, competition_id, bracket_id))


@router.put("/competitions/{competition_id}/brackets/{bracket_id}", response_model=BracketResponse)
def regenerate_bracket(competition_id: int, bracket_id: int, request: BracketUpdate,
                       session: Session = Depends(get_session)):
    """
    Regenerate a bracket's matches.

    Fields left out keep their current value; a locked bracket only accepts
    a status change.
    """
    bracket = _get_bracket(session, competition_id, bracket_id)
    regenerate = any(
        value is not None
        for value in (
            request.fighter_ids,
            request.seed_method,
            request.random_seed,
            request.bracket_size,
            request.start_time,
        )
    )

    if regenerate and bracket.status == BracketStatus.locked.value:
        raise HTTPException(status_code=409, detail="Bracket is locked")

    if regenerate:
        fighter_ids = request.fighter_ids if request.fighter_ids is not None else list(bracket.fighter_ids)
        seed_method = request.seed_method.value if request.seed_method is not None else bracket.seed_method
        if len(fighter_ids) < 2:
            raise HTTPException(status_code=422, detail="Bracket must have at least 2 fighters")
        names = _fighter_names(session, fighter_ids)
        matches = _verified(
            _generate(fighter_ids, names, seed_method, request.random_seed, request.start_time, request.bracket_size)
        )
        bracket = SqlBracketRepository(session).replace_matches(bracket, fighter_ids, seed_method, matches)

    if request.status is not None:
        bracket.status = request.status.value
        session.add(bracket)
        session.commit()
        session.refresh(bracket)

    return _bracket_response(session, bracket)


@router.delete("/competitions/{competition_id}/brackets/{bracket_id}", status_code=204)
def delete_bracket(competition_id: int, bracket_id: int, session: Session = Depends(get_session)):
    """Delete a bracket and its matches"""
    if not SqlBracketRepository(session).delete(competition_id, bracket_id):
        raise HTTPException(status_code=404, detail="Bracket not found")
    return None


@router.get("/competitions/{competition_id}/brackets/{bracket_id}/matches", response_model=List[MatchResponse])
def list_bracket_matches(competition_id: int, bracket_id: int, session: Session = Depends(get_session)):
    """Matches of a bracket, ordered by bracket-local match number"""
    _get_bracket(session, competition_id, bracket_id)
    return SqlBracketRepository(session).get_match_rows(competition_id, bracket_id)


@router.get("/competitions/{competition_id}/brackets/{bracket_id}/stats", response_model=BracketStatsResponse)
def get_bracket_stats(competition_id: int, bracket_id: int, session: Session = Depends(get_session)):
    """Topology, progress and chain verification of a stored bracket"""
    bracket = _get_bracket(session, competition_id, bracket_id)
    rows: List[Match] = SqlBracketRepository(session).get_match_rows(competition_id, bracket_id)
    matches = [generated_from_match_row(m) for m in rows]
    topology = bracket_topology(matches)
    report = verify_chain(matches)
    return BracketStatsResponse(
        bracket_id=bracket.id,
        fighter_count=len(bracket.fighter_ids or []),
        completed_matches=sum(1 for m in rows if m.winner_fighter_id is not None),
        chain_ok=report.ok,
        chain_errors=report.errors,
        **topology.to_dict(),
    )
