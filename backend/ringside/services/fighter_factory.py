"""
Fighter factory: builds fighter specs that land in a requested division.

Every random choice goes through the SeededRandom passed in, so a backfill
or demo run with the same seed produces the same fighters. Nothing here
touches the database; FighterRepository.create() persists the spec.
"""

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from ringside.services.division_rules import (
    AGE_GROUP_AGE_RANGES,
    DISCIPLINE_VALUES,
    AgeGroup,
    DivisionKey,
    Gender,
    weight_class_range,
)
from ringside.utils.seeded_random import SeededRandom

CLUB_NAMES = [
    "Dinamo Fight Club",
    "Steaua Combat Academy",
    "Rapid Fighters",
    "CFR Kickboxing",
    "Petrolul Martial Arts",
    "Universitatea Fighting",
    "Astra Combat Sports",
    "Otelul Warriors",
    "Poli Timisoara Fighters",
    "Gaz Metan Dojo",
    "Pandurii Strike Team",
    "Concordia Fighting Academy",
    "Viitorul Champions",
    "Sepsi Combat Club",
    "Voluntari Fight Academy",
]

CITIES = [
    "Bucuresti",
    "Cluj-Napoca",
    "Timisoara",
    "Iasi",
    "Constanta",
    "Craiova",
    "Brasov",
    "Galati",
    "Ploiesti",
    "Oradea",
    "Braila",
    "Arad",
    "Pitesti",
    "Sibiu",
    "Bacau",
]

FIRST_NAMES_MALE = [
    "Andrei", "Alexandru", "Mihai", "Ionut", "Gabriel", "Stefan", "Cristian",
    "Vlad", "Razvan", "Adrian", "Marian", "Florin", "Constantin", "Dan",
    "Radu", "Nicolae", "Bogdan", "Vasile", "Cosmin", "George",
]

FIRST_NAMES_FEMALE = [
    "Maria", "Elena", "Andreea", "Ioana", "Ana", "Alexandra", "Cristina",
    "Mihaela", "Gabriela", "Alina", "Diana", "Daniela", "Simona", "Raluca",
    "Laura", "Oana", "Adriana", "Monica", "Nicoleta", "Valentina",
]

LAST_NAMES = [
    "Popescu", "Ionescu", "Popa", "Radu", "Dumitrescu", "Gheorghe", "Stan",
    "Munteanu", "Stoica", "Dobre", "Barbu", "Marin", "Enache", "Nastase",
    "Tudor", "Preda", "Matei", "Oprea", "Dinu", "Rusu", "Stanciu", "Anghel",
    "Manole", "Vasile", "Constantin",
]

NICKNAMES = [
    "The Hammer", "Iron Fist", "Lightning", "Shadow", "The Beast", "Thunder",
    "Viper", "Cobra", "Tiger", "Dragon", "Phoenix", "Eagle", "Wolf", "Lion",
    "Warrior", "The Rock", "Tornado", "Tsunami", "Blitz", "Fury",
]

# Weight spread per (gender, age group) when no weight class is requested
_WEIGHT_BY_AGE: Dict[str, Dict[str, Tuple[int, int]]] = {
    Gender.MALE.value: {
        AgeGroup.U12.value: (30, 50),
        AgeGroup.U15.value: (45, 65),
        AgeGroup.U18.value: (55, 85),
        AgeGroup.U21.value: (60, 100),
        AgeGroup.ADULT.value: (60, 100),
        AgeGroup.SENIOR.value: (65, 95),
    },
    Gender.FEMALE.value: {
        AgeGroup.U12.value: (25, 45),
        AgeGroup.U15.value: (40, 60),
        AgeGroup.U18.value: (50, 70),
        AgeGroup.U21.value: (50, 75),
        AgeGroup.ADULT.value: (50, 75),
        AgeGroup.SENIOR.value: (55, 75),
    },
}
_OPEN_WEIGHT = (50, 90)

# Career length (total fights) per age group
_FIGHTS_BY_AGE: Dict[str, Tuple[int, int]] = {
    AgeGroup.U12.value: (0, 8),
    AgeGroup.U15.value: (3, 15),
    AgeGroup.U18.value: (5, 25),
    AgeGroup.U21.value: (8, 35),
    AgeGroup.ADULT.value: (10, 50),
    AgeGroup.SENIOR.value: (15, 60),
}


@dataclass
class FighterSpec:
    """Everything needed to create a Fighter row, minus the id."""
    first_name: str
    last_name: str
    birth_date: date
    height: int
    weight: float
    discipline: str
    gender: str
    nickname: str = ""
    club_id: Optional[int] = None
    club: str = "No Club"
    wins: int = 0
    losses: int = 0
    draws: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def birth_date_for_age_group(age_group: str, rng: SeededRandom, today: Optional[date] = None) -> date:
    """Birth date whose age at `today` falls inside the group's age range."""
    today = today or date.today()
    lo, hi = AGE_GROUP_AGE_RANGES[age_group]
    age = rng.int(lo, hi)
    day = 28 if (today.month, today.day) == (2, 29) else today.day
    last_birthday = today.replace(year=today.year - age, day=day)
    # 1..360 days before the last birthday keeps the age exact
    return last_birthday - timedelta(days=rng.int(1, 360))


def weight_for_class(weight_class: str, gender: str, rng: SeededRandom) -> int:
    lo, hi = weight_class_range(weight_class, gender)
    return rng.int(lo, hi)


def weight_for_age_group(gender: str, age_group: str, rng: SeededRandom) -> int:
    lo, hi = _WEIGHT_BY_AGE.get(gender, {}).get(age_group, _OPEN_WEIGHT)
    return rng.int(lo, hi)


def height_for_weight(weight: float, rng: SeededRandom) -> int:
    return round(140 + weight * 0.6 + rng.int(-10, 10))


def fight_record(age_group: str, rng: SeededRandom) -> Tuple[int, int, int]:
    """(wins, losses, draws) with a 30-70% win rate and up to 10% draws."""
    lo, hi = _FIGHTS_BY_AGE[age_group]
    total = rng.int(lo, hi)
    if total == 0:
        return 0, 0, 0
    win_rate = rng.next() * 0.4 + 0.3
    draw_rate = rng.next() * 0.1
    wins = round(total * win_rate)
    draws = round(total * draw_rate)
    return wins, total - wins - draws, draws


def first_names_for(gender: str) -> List[str]:
    if gender == Gender.MALE.value:
        return FIRST_NAMES_MALE
    if gender == Gender.FEMALE.value:
        return FIRST_NAMES_FEMALE
    return FIRST_NAMES_MALE + FIRST_NAMES_FEMALE


def build_fighter_spec(
    rng: SeededRandom,
    *,
    gender: str,
    age_group: str,
    discipline: Optional[str] = None,
    weight_class: Optional[str] = None,
    club_id: Optional[int] = None,
    club_name: str = "No Club",
    today: Optional[date] = None,
) -> FighterSpec:
    """
    Build a fighter in `age_group`; with `weight_class` the weight is drawn
    from that class's range, otherwise from the gender/age spread.
    """
    birth_date = birth_date_for_age_group(age_group, rng, today)
    if weight_class is not None:
        weight = weight_for_class(weight_class, gender, rng)
    else:
        weight = weight_for_age_group(gender, age_group, rng)
    height = height_for_weight(weight, rng)
    discipline = discipline or rng.pick(DISCIPLINE_VALUES)
    wins, losses, draws = fight_record(age_group, rng)

    return FighterSpec(
        first_name=rng.pick(first_names_for(gender)),
        last_name=rng.pick(LAST_NAMES),
        nickname=rng.pick(NICKNAMES),
        birth_date=birth_date,
        height=height,
        weight=weight,
        discipline=discipline,
        gender=gender,
        club_id=club_id,
        club=club_name,
        wins=wins,
        losses=losses,
        draws=draws,
    )


def build_backfill_spec(
    division: DivisionKey,
    club_id: Optional[int],
    club_name: str,
    rng: SeededRandom,
    today: Optional[date] = None,
) -> FighterSpec:
    """Fighter whose derived division key equals `division`."""
    return build_fighter_spec(
        rng,
        gender=division.gender,
        age_group=division.age_group,
        discipline=division.discipline,
        weight_class=division.weight_class,
        club_id=club_id,
        club_name=club_name,
        today=today,
    )
