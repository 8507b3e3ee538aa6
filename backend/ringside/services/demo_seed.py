"""
Demo dataset seeding.

Builds a coherent graph of clubs, fighters and competitions from one
SeededRandom, then runs bracket synthesis over every competition.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, select

from ringside.models.bracket import Bracket
from ringside.models.club import Club
from ringside.models.competition import Competition, CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.models.match import Match
from ringside.services.bracket_synthesis import synthesize_all
from ringside.services.division_rules import AGE_GROUP_VALUES, DISCIPLINE_VALUES, Gender
from ringside.services.fighter_factory import CITIES, CLUB_NAMES, build_fighter_spec
from ringside.services.synthesis_config import SynthesisConfig, synthesis_preset
from ringside.utils.seeded_random import SeededRandom

logger = logging.getLogger(__name__)


@dataclass
class DemoSeedOptions:
    clubs: Tuple[int, int] = (8, 15)
    fighters: Tuple[int, int] = (60, 120)
    competitions: Tuple[int, int] = (4, 8)
    participants_per_competition: Tuple[int, int] = (10, 30)
    generate_brackets: bool = True
    seed: Optional[str] = None  # Defaults to the synthesis config's deterministic seed
    synthesis: SynthesisConfig = field(default_factory=lambda: synthesis_preset("default"))


def demo_seed_preset(name: str) -> DemoSeedOptions:
    if name == "dev":
        return DemoSeedOptions(
            clubs=(4, 6),
            fighters=(30, 50),
            competitions=(2, 3),
            participants_per_competition=(10, 20),
            synthesis=synthesis_preset("dev"),
        )
    if name == "demo":
        return DemoSeedOptions(
            clubs=(10, 15),
            fighters=(100, 160),
            competitions=(6, 8),
            participants_per_competition=(15, 30),
            synthesis=synthesis_preset("demo"),
        )
    raise ValueError(f"Unknown demo seed preset: {name}")


def clear_all_data(session: Session) -> Dict[str, int]:
    """Delete every row, children first. Returns deleted counts per table."""
    counts = {}
    for label, model in (
        ("matches", Match),
        ("brackets", Bracket),
        ("registrations", CompetitionFighter),
        ("competitions", Competition),
        ("fighters", Fighter),
        ("clubs", Club),
    ):
        rows = session.exec(select(model)).all()
        for row in rows:
            session.delete(row)
        session.flush()
        counts[label] = len(rows)
    session.commit()
    logger.info(f"Cleared all data: {counts}")
    return counts


def _distinct_picks(rng: SeededRandom, items: List[str], count: int) -> List[str]:
    return rng.shuffle(items)[:count]


def _create_clubs(session: Session, rng: SeededRandom, count: int) -> List[Club]:
    clubs = []
    names = rng.shuffle(CLUB_NAMES)
    for index in range(count):
        city = rng.pick(CITIES)
        name = names[index % len(names)]
        if index >= len(names):
            name = f"{name} {index // len(names) + 1}"
        club = Club(
            name=name,
            city=city,
            address=f"{rng.int(1, 150)} Strada Victoriei, {city}",
            description=f"Combat sports club in {city}. Training for every level.",
            disciplines=_distinct_picks(rng, DISCIPLINE_VALUES, 2),
        )
        session.add(club)
        clubs.append(club)
    session.commit()
    for club in clubs:
        session.refresh(club)
    return clubs


def _create_fighters(session: Session, rng: SeededRandom, clubs: List[Club], count: int, today: date) -> List[Fighter]:
    fighters = []
    genders = [Gender.MALE.value, Gender.FEMALE.value]
    for _ in range(count):
        club = rng.pick(clubs)
        spec = build_fighter_spec(
            rng,
            gender=rng.pick(genders),
            age_group=rng.pick(AGE_GROUP_VALUES),
            discipline=rng.pick(club.disciplines),
            club_id=club.id,
            club_name=club.name,
            today=today,
        )
        fighter = Fighter(**spec.to_dict())
        session.add(fighter)
        fighters.append(fighter)
    session.commit()
    for fighter in fighters:
        session.refresh(fighter)
    return fighters


def _create_competitions(
    session: Session,
    rng: SeededRandom,
    fighters: List[Fighter],
    count: int,
    participants: Tuple[int, int],
    today: date,
) -> List[Competition]:
    competitions = []
    for index in range(count):
        # Spread across past, ongoing and upcoming
        if index % 3 == 0:
            offset = rng.int(-90, -7)
        elif index % 3 == 1:
            offset = rng.int(-3, 3)
        else:
            offset = rng.int(7, 180)
        start = today + timedelta(days=offset)
        city = rng.pick(CITIES)
        disciplines = _distinct_picks(rng, DISCIPLINE_VALUES, rng.int(2, 4))

        competition = Competition(
            title=f"Golden Championship {city} {start.year}",
            location=city,
            address=f"Sports Hall, {city}",
            start_date=start,
            end_date=start + timedelta(days=rng.int(1, 3)),
            registration_date=start - timedelta(days=rng.int(14, 60)),
            contact_name="Ion Dumitru",
            contact_email="contact@goldenchampionship.ro",
            description=f"{' and '.join(disciplines)} competition open to all ages and levels.",
            disciplines=disciplines,
        )
        session.add(competition)
        session.flush()

        eligible = [f for f in fighters if f.discipline in disciplines]
        selected = rng.shuffle(eligible)[: min(rng.int(*participants), len(eligible))]
        for position, fighter in enumerate(selected, start=1):
            session.add(
                CompetitionFighter(
                    competition_id=competition.id,
                    fighter_id=fighter.id,
                    discipline=fighter.discipline,
                    position=position,
                )
            )
        competitions.append(competition)
    session.commit()
    for competition in competitions:
        session.refresh(competition)
    return competitions


def seed_all(session: Session, options: Optional[DemoSeedOptions] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Replace all data with a generated dataset.

    Returns a summary with row counts and the per-competition synthesis results.
    """
    options = options or DemoSeedOptions()
    today = today or date.today()
    seed = options.seed or options.synthesis.deterministic_seed
    rng = SeededRandom(f"{seed}-dataset")

    clear_all_data(session)

    clubs = _create_clubs(session, rng, rng.int(*options.clubs))
    fighters = _create_fighters(session, rng, clubs, rng.int(*options.fighters), today)
    competition_count = max(rng.int(*options.competitions), options.synthesis.min_competitions)
    competitions = _create_competitions(
        session, rng, fighters, competition_count, options.participants_per_competition, today
    )
    logger.info(f"Seeded {len(clubs)} clubs, {len(fighters)} fighters, {len(competitions)} competitions")

    results = []
    if options.generate_brackets:
        results = synthesize_all(session, options.synthesis, today)

    with_brackets = sum(1 for r in results if r.brackets_created > 0)
    ratio = with_brackets / len(results) if results else 0.0
    if results and ratio < options.synthesis.target_competitions_with_brackets_ratio:
        logger.warning(
            f"Only {with_brackets}/{len(results)} competitions have brackets "
            f"(target ratio {options.synthesis.target_competitions_with_brackets_ratio})"
        )

    return {
        "clubs": len(clubs),
        "fighters": len(fighters),
        "competitions": len(competitions),
        "brackets": sum(r.brackets_created for r in results),
        "competitions_with_brackets": with_brackets,
        "results": [r.to_dict() for r in results],
    }
