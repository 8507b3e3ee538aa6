from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from ringside.database import get_session
from ringside.services.demo_seed import clear_all_data, demo_seed_preset, seed_all

router = APIRouter()


class SeedRequest(BaseModel):
    preset: str = "dev"  # "dev" | "demo"
    generate_brackets: bool = True


@router.post("/admin/seed")
def seed_demo_data(request: SeedRequest, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Replace ALL data with a generated demo dataset"""
    try:
        options = demo_seed_preset(request.preset)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    options.generate_brackets = request.generate_brackets
    return seed_all(session, options)


@router.post("/admin/clear")
def clear_data(session: Session = Depends(get_session)) -> Dict[str, Any]:
    """Delete ALL data"""
    return {"deleted": clear_all_data(session)}
