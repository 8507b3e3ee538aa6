"""
Repository interfaces used by the synthesizer, with SQLModel implementations.

The Protocols describe what bracket synthesis needs from persistence; the
Sql* classes back them with a Session. Write methods commit on success and
roll the session back before re-raising on failure, so one failed division
never leaves half a bracket behind.
"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Protocol, Sequence

from sqlmodel import Session, select

from ringside.models.bracket import Bracket
from ringside.models.club import Club
from ringside.models.competition import Competition, CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.models.match import Match
from ringside.services.bracket_generator import GeneratedMatch, Participant
from ringside.services.division_rules import BracketStatus, DivisionKey, SeedMethod
from ringside.services.fighter_factory import FighterSpec


class CompetitionEntry(NamedTuple):
    """One registration: a fighter entered in a discipline."""
    fighter_id: int
    discipline: str


@dataclass
class BracketDraft:
    """Bracket metadata before it has an id."""
    division: DivisionKey
    fighter_ids: List[int] = field(default_factory=list)
    seed_method: str = SeedMethod.random.value
    status: str = BracketStatus.published.value


# -----------------------------------------------------------------------------
# Interfaces
# -----------------------------------------------------------------------------

class FighterRepository(Protocol):
    def get_all(self) -> List[Fighter]: ...

    def get_by_ids(self, ids: Sequence[int]) -> List[Fighter]: ...

    def create(self, spec: FighterSpec) -> int: ...


class ClubRepository(Protocol):
    def get_all(self) -> List[Club]: ...


class CompetitionRepository(Protocol):
    def get_all(self) -> List[Competition]: ...

    def get_by_id(self, competition_id: int) -> Optional[Competition]: ...

    def get_entries(self, competition_id: int) -> List[CompetitionEntry]: ...

    def update(self, competition_id: int, fighters: Optional[Sequence[CompetitionEntry]] = None) -> Competition: ...


class BracketRepository(Protocol):
    def create(self, competition_id: int, bracket: BracketDraft, matches: Sequence[GeneratedMatch]) -> Bracket: ...

    def get_all_for_competition(self, competition_id: int) -> List[Bracket]: ...

    def get_matches(self, competition_id: int, bracket_id: int) -> List[GeneratedMatch]: ...

    def delete(self, competition_id: int, bracket_id: int) -> bool: ...


# -----------------------------------------------------------------------------
# Conversions
# -----------------------------------------------------------------------------

def match_row_from_generated(competition_id: int, bracket_id: Optional[int], match: GeneratedMatch) -> Match:
    return Match(
        competition_id=competition_id,
        bracket_id=bracket_id,
        match_number=match.id,
        next_match_number=match.next_match_id,
        round_number=match.round,
        name=match.name,
        participants=[p.to_dict() for p in match.participants],
        state=match.state,
        start_time=match.start_time,
    )


def generated_from_match_row(row: Match) -> GeneratedMatch:
    slots = [Participant.from_dict(p) for p in (row.participants or [])]
    return GeneratedMatch(
        id=row.match_number,
        name=row.name,
        round=row.round_number,
        next_match_id=row.next_match_number,
        participants=tuple(slots),
        state=row.state,
        start_time=row.start_time,
    )


# -----------------------------------------------------------------------------
# SQLModel implementations
# -----------------------------------------------------------------------------

class SqlFighterRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[Fighter]:
        return list(self.session.exec(select(Fighter).order_by(Fighter.id)).all())

    def get_by_ids(self, ids: Sequence[int]) -> List[Fighter]:
        """Fighters in the order of `ids`; unknown ids are dropped."""
        if not ids:
            return []
        rows = self.session.exec(select(Fighter).where(Fighter.id.in_(list(ids)))).all()
        by_id: Dict[int, Fighter] = {f.id: f for f in rows}
        return [by_id[i] for i in ids if i in by_id]

    def create(self, spec: FighterSpec) -> int:
        fighter = Fighter(**spec.to_dict())
        try:
            self.session.add(fighter)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(fighter)
        return fighter.id


class SqlClubRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[Club]:
        return list(self.session.exec(select(Club).order_by(Club.id)).all())


class SqlCompetitionRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> List[Competition]:
        return list(self.session.exec(select(Competition).order_by(Competition.id)).all())

    def get_by_id(self, competition_id: int) -> Optional[Competition]:
        return self.session.get(Competition, competition_id)

    def get_entries(self, competition_id: int) -> List[CompetitionEntry]:
        rows = self.session.exec(
            select(CompetitionFighter)
            .where(CompetitionFighter.competition_id == competition_id)
            .order_by(CompetitionFighter.position, CompetitionFighter.id)
        ).all()
        return [CompetitionEntry(r.fighter_id, r.discipline) for r in rows]

    def update(self, competition_id: int, fighters: Optional[Sequence[CompetitionEntry]] = None) -> Competition:
        """Replace the registration list when `fighters` is given, keeping its order."""
        competition = self.session.get(Competition, competition_id)
        if competition is None:
            raise ValueError(f"Competition {competition_id} not found")
        if fighters is None:
            return competition

        try:
            existing = {
                r.fighter_id: r
                for r in self.session.exec(
                    select(CompetitionFighter).where(CompetitionFighter.competition_id == competition_id)
                ).all()
            }
            wanted = set()
            for position, entry in enumerate(fighters, start=1):
                if entry.fighter_id in wanted:
                    continue
                wanted.add(entry.fighter_id)
                row = existing.get(entry.fighter_id)
                if row is None:
                    row = CompetitionFighter(competition_id=competition_id, fighter_id=entry.fighter_id,
                                             discipline=entry.discipline, position=position)
                else:
                    row.discipline = entry.discipline
                    row.position = position
                self.session.add(row)
            for fighter_id, row in existing.items():
                if fighter_id not in wanted:
                    self.session.delete(row)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(competition)
        return competition


class SqlBracketRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, competition_id: int, bracket: BracketDraft, matches: Sequence[GeneratedMatch]) -> Bracket:
        """Persist the bracket and all of its matches in one transaction."""
        row = Bracket(
            competition_id=competition_id,
            age_group=bracket.division.age_group,
            discipline=bracket.division.discipline,
            weight_class=bracket.division.weight_class,
            gender=bracket.division.gender,
            fighter_ids=list(bracket.fighter_ids),
            seed_method=bracket.seed_method,
            status=bracket.status,
        )
        try:
            self.session.add(row)
            self.session.flush()
            for match in matches:
                self.session.add(match_row_from_generated(competition_id, row.id, match))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(row)
        return row

    def get_all_for_competition(self, competition_id: int) -> List[Bracket]:
        return list(
            self.session.exec(
                select(Bracket).where(Bracket.competition_id == competition_id).order_by(Bracket.id)
            ).all()
        )

    def get_match_rows(self, competition_id: int, bracket_id: int) -> List[Match]:
        return list(
            self.session.exec(
                select(Match)
                .where(Match.competition_id == competition_id, Match.bracket_id == bracket_id)
                .order_by(Match.match_number)
            ).all()
        )

    def get_matches(self, competition_id: int, bracket_id: int) -> List[GeneratedMatch]:
        return [generated_from_match_row(m) for m in self.get_match_rows(competition_id, bracket_id)]

    def replace_matches(self, bracket: Bracket, fighter_ids: Sequence[int], seed_method: str,
                        matches: Sequence[GeneratedMatch]) -> Bracket:
        """Swap a bracket's fighter list and matches for a regenerated set."""
        try:
            for old in self.get_match_rows(bracket.competition_id, bracket.id):
                self.session.delete(old)
            self.session.flush()
            bracket.fighter_ids = list(fighter_ids)
            bracket.seed_method = seed_method
            self.session.add(bracket)
            for match in matches:
                self.session.add(match_row_from_generated(bracket.competition_id, bracket.id, match))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(bracket)
        return bracket

    def delete(self, competition_id: int, bracket_id: int) -> bool:
        bracket = self.session.get(Bracket, bracket_id)
        if bracket is None or bracket.competition_id != competition_id:
            return False
        try:
            for match in self.get_match_rows(competition_id, bracket_id):
                self.session.delete(match)
            self.session.delete(bracket)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return True


@dataclass
class Repositories:
    fighters: FighterRepository
    clubs: ClubRepository
    competitions: CompetitionRepository
    brackets: BracketRepository

    @classmethod
    def from_session(cls, session: Session) -> "Repositories":
        return cls(
            fighters=SqlFighterRepository(session),
            clubs=SqlClubRepository(session),
            competitions=SqlCompetitionRepository(session),
            brackets=SqlBracketRepository(session),
        )
