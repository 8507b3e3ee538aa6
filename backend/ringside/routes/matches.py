from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from ringside.database import get_session
from ringside.models.match import Match
from ringside.routes.brackets import MatchResponse
from ringside.services.division_rules import MatchState
from ringside.services.match_results import DECIDED_STATES, record_match_result

router = APIRouter()


class MatchResultRequest(BaseModel):
    winner_fighter_id: int
    result_text: Optional[str] = None
    state: str = MatchState.DONE.value

    @field_validator("state")
    @classmethod
    def validate_state(cls, v):
        if v not in DECIDED_STATES:
            raise ValueError(f"state must be one of {sorted(DECIDED_STATES)}")
        return v


class MatchResultResponse(BaseModel):
    match: MatchResponse
    advanced_to: Optional[MatchResponse] = None


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, session: Session = Depends(get_session)):
    """Get a match by ID"""
    match = session.get(Match, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.patch("/matches/{match_id}/result", response_model=MatchResultResponse)
def record_result(match_id: int, request: MatchResultRequest, session: Session = Depends(get_session)):
    """
    Record a match result and seat the winner in the next match.

    A bye is resolved by recording a WALK_OVER for the fighter facing it.
    """
    if not session.get(Match, match_id):
        raise HTTPException(status_code=404, detail="Match not found")
    try:
        outcome = record_match_result(
            session,
            match_id,
            request.winner_fighter_id,
            result_text=request.result_text,
            state=request.state,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return MatchResultResponse(
        match=MatchResponse.model_validate(outcome["match"]),
        advanced_to=MatchResponse.model_validate(outcome["advanced_to"]) if outcome["advanced_to"] else None,
    )
