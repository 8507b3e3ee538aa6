import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from ringside.database import get_session
from ringside.models.competition import Competition
from ringside.services.bracket_synthesis import (
    diagnose_empty_competition,
    synthesize_all,
    synthesize_for_competition,
)
from ringside.services.synthesis_config import SynthesisConfig, synthesis_preset

logger = logging.getLogger(__name__)

router = APIRouter()


class SynthesisRequest(BaseModel):
    preset: str = "default"
    config: Optional[SynthesisConfig] = None  # Overrides the preset entirely


class SynthesisResultResponse(BaseModel):
    competition_id: int
    brackets_created: int
    brackets_attempted: int
    per_division_diagnostics: Dict[str, List[str]]
    outcomes: List[Dict[str, Any]]


class SynthesisRunResponse(BaseModel):
    competitions: int
    competitions_with_brackets: int
    brackets_created: int
    results: List[SynthesisResultResponse]


class DiagnosisResponse(BaseModel):
    competition_id: int
    reasons: List[Dict[str, Any]]


def _resolve_config(request: Optional[SynthesisRequest]) -> SynthesisConfig:
    request = request or SynthesisRequest()
    if request.config is not None:
        return request.config
    try:
        return synthesis_preset(request.preset)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/competitions/{competition_id}/synthesize", response_model=SynthesisResultResponse)
def synthesize_competition(
    competition_id: int,
    request: Optional[SynthesisRequest] = None,
    session: Session = Depends(get_session),
):
    """
    Group a competition's fighters into divisions and build their brackets.

    Short divisions are backfilled when the config allows it. Per-division
    failures are reported in the result, not as HTTP errors.
    """
    if not session.get(Competition, competition_id):
        raise HTTPException(status_code=404, detail="Competition not found")
    config = _resolve_config(request)
    return synthesize_for_competition(session, competition_id, config).to_dict()


@router.get("/competitions/{competition_id}/diagnose", response_model=DiagnosisResponse)
def diagnose_competition(
    competition_id: int,
    preset: str = Query(default="default"),
    session: Session = Depends(get_session),
):
    """Explain why a competition has no brackets (read-only)"""
    config = _resolve_config(SynthesisRequest(preset=preset))
    reasons = diagnose_empty_competition(session, competition_id, config)
    return DiagnosisResponse(competition_id=competition_id, reasons=[r.to_dict() for r in reasons])


@router.post("/synthesis/run-all", response_model=SynthesisRunResponse)
def run_synthesis_for_all(request: Optional[SynthesisRequest] = None, session: Session = Depends(get_session)):
    """Run synthesis for every competition"""
    config = _resolve_config(request)
    results = synthesize_all(session, config)
    return SynthesisRunResponse(
        competitions=len(results),
        competitions_with_brackets=sum(1 for r in results if r.brackets_created > 0),
        brackets_created=sum(r.brackets_created for r in results),
        results=[SynthesisResultResponse(**r.to_dict()) for r in results],
    )
