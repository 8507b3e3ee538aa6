"""
Synthesis configuration: thresholds, division whitelist, backfill strategy
and the deterministic seed, with DEFAULT / DEV / DEMO presets.
"""

import os
from enum import Enum
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ringside.services.division_rules import (
    AGE_GROUP_VALUES,
    ALL_WEIGHT_CLASS_VALUES,
    DISCIPLINE_VALUES,
    GENDER_VALUES,
    AgeGroup,
)

load_dotenv()

DEFAULT_DETERMINISTIC_SEED = "golden-championship-2025"


def _default_seed() -> str:
    return os.getenv("SYNTHESIS_SEED") or DEFAULT_DETERMINISTIC_SEED


class BackfillStrategy(str, Enum):
    CLUB_DISTRIBUTED = "club-distributed"
    RANDOM = "random"
    BALANCED = "balanced"


class AllowedDivisions(BaseModel):
    # U12 is excluded from synthesis by default
    age_groups: List[str] = Field(default_factory=lambda: [a for a in AGE_GROUP_VALUES if a != AgeGroup.U12.value])
    disciplines: List[str] = Field(default_factory=lambda: list(DISCIPLINE_VALUES))
    weight_classes: List[str] = Field(default_factory=lambda: list(ALL_WEIGHT_CLASS_VALUES))
    genders: List[str] = Field(default_factory=lambda: list(GENDER_VALUES))

    @field_validator("age_groups")
    @classmethod
    def validate_age_groups(cls, v):
        unknown = [a for a in v if a not in AGE_GROUP_VALUES]
        if unknown:
            raise ValueError(f"Unknown age groups: {unknown}")
        return v

    @field_validator("disciplines")
    @classmethod
    def validate_disciplines(cls, v):
        unknown = [d for d in v if d not in DISCIPLINE_VALUES]
        if unknown:
            raise ValueError(f"Unknown disciplines: {unknown}")
        return v

    @field_validator("genders")
    @classmethod
    def validate_genders(cls, v):
        unknown = [g for g in v if g not in GENDER_VALUES]
        if unknown:
            raise ValueError(f"Unknown genders: {unknown}")
        return v


class SynthesisConfig(BaseModel):
    target_competitions_with_brackets_ratio: float = Field(default=0.75, ge=0.0, le=1.0)
    min_fighters_per_bracket: int = Field(default=4, ge=2)
    preferred_bracket_sizes: List[int] = Field(default_factory=lambda: [4, 8, 16])
    max_brackets_per_competition: int = Field(default=6, ge=1)
    allowed_divisions: AllowedDivisions = Field(default_factory=AllowedDivisions)
    auto_backfill_fighters: bool = True
    backfill_strategy: BackfillStrategy = BackfillStrategy.CLUB_DISTRIBUTED
    deterministic_seed: str = Field(default_factory=_default_seed)
    min_competitions: int = Field(default=4, ge=0)

    @field_validator("preferred_bracket_sizes")
    @classmethod
    def validate_bracket_sizes(cls, v):
        if not v:
            raise ValueError("preferred_bracket_sizes must not be empty")
        for size in v:
            if size < 2 or size & (size - 1):
                raise ValueError(f"Bracket size {size} is not a power of two >= 2")
        return v

    @field_validator("deterministic_seed")
    @classmethod
    def validate_seed(cls, v):
        if not v or not v.strip():
            raise ValueError("deterministic_seed is required")
        return v


DEFAULT_SYNTHESIS_CONFIG = SynthesisConfig()

DEV_SYNTHESIS_CONFIG = DEFAULT_SYNTHESIS_CONFIG.model_copy(
    update={
        "target_competitions_with_brackets_ratio": 0.6,
        "preferred_bracket_sizes": [4, 8],
        "max_brackets_per_competition": 3,
        "min_competitions": 2,
    }
)

DEMO_SYNTHESIS_CONFIG = DEFAULT_SYNTHESIS_CONFIG.model_copy(
    update={
        "target_competitions_with_brackets_ratio": 0.85,
        "max_brackets_per_competition": 8,
        "min_competitions": 6,
    }
)

SYNTHESIS_PRESETS = {
    "default": DEFAULT_SYNTHESIS_CONFIG,
    "dev": DEV_SYNTHESIS_CONFIG,
    "demo": DEMO_SYNTHESIS_CONFIG,
}


def synthesis_preset(name: str) -> SynthesisConfig:
    """Deep copy of a named preset."""
    preset = SYNTHESIS_PRESETS.get(name.lower())
    if preset is None:
        raise ValueError(f"Unknown synthesis preset: {name}")
    return preset.model_copy(deep=True)
