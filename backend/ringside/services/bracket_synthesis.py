"""
Bracket Synthesis Engine
========================
Turns a competition's roster into persisted, chain-verified brackets.

Per division, independently:
  GROUPED -> (BACKFILLED)? -> SIZED -> GENERATED -> VALIDATED -> PERSISTED

A failing division is recorded on the result and skipped; the run always
returns a SynthesisResult, never raises for per-division problems.

Determinism: one SeededRandom per competition, seeded with
"{deterministic_seed}-{competition_id}", drives club picks for backfill and
the per-division shuffle seed. Same data + same config => same brackets.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlmodel import Session

from ringside.models.club import Club
from ringside.models.fighter import Fighter
from ringside.services.bracket_generator import GenerateBracketOptions, generate_bracket, next_power_of_two
from ringside.services.chain_validator import verify_chain
from ringside.services.division_rules import (
    BracketStatus,
    DivisionKey,
    SeedMethod,
    age_group_from_birth_date,
    weight_class_from_kg,
)
from ringside.services.fighter_factory import build_backfill_spec
from ringside.services.repositories import BracketDraft, CompetitionEntry, Repositories
from ringside.services.synthesis_config import (
    DEFAULT_SYNTHESIS_CONFIG,
    AllowedDivisions,
    BackfillStrategy,
    SynthesisConfig,
)
from ringside.utils.seeded_random import SeededRandom

logger = logging.getLogger(__name__)

MAX_RANDOM_SEED = 1_000_000


class SynthesisReason(str, Enum):
    INSUFFICIENT_FIGHTERS = "INSUFFICIENT_FIGHTERS"
    CHAIN_INVALID = "CHAIN_INVALID"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    MAX_BRACKETS_REACHED = "MAX_BRACKETS_REACHED"
    NO_FIGHTERS = "NO_FIGHTERS"
    NO_ELIGIBLE_DIVISIONS = "NO_ELIGIBLE_DIVISIONS"
    ERROR = "ERROR"


class DivisionStatus(str, Enum):
    created = "created"
    failed = "failed"
    skipped = "skipped"


class DiagnosisCategory(str, Enum):
    INSUFFICIENT_FIGHTERS = "INSUFFICIENT_FIGHTERS"
    NO_ELIGIBLE_DIVISIONS = "NO_ELIGIBLE_DIVISIONS"
    PERSISTENCE_CONFLICT = "PERSISTENCE_CONFLICT"
    UNKNOWN = "UNKNOWN"


# -----------------------------------------------------------------------------
# Result types
# -----------------------------------------------------------------------------

@dataclass
class DivisionOutcome:
    division: DivisionKey
    status: str
    reason: Optional[str] = None
    messages: List[str] = field(default_factory=list)
    fighter_ids: List[int] = field(default_factory=list)
    backfilled_ids: List[int] = field(default_factory=list)
    bracket_id: Optional[int] = None
    bracket_size: Optional[int] = None
    match_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "division": self.division._asdict(),
            "division_key": self.division.normalized(),
            "status": self.status,
            "reason": self.reason,
            "messages": list(self.messages),
            "fighter_ids": list(self.fighter_ids),
            "backfilled_ids": list(self.backfilled_ids),
            "bracket_id": self.bracket_id,
            "bracket_size": self.bracket_size,
            "match_count": self.match_count,
        }


@dataclass
class SynthesisResult:
    competition_id: int
    brackets_created: int = 0
    brackets_attempted: int = 0
    outcomes: List[DivisionOutcome] = field(default_factory=list)
    competition_diagnostics: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def per_division_diagnostics(self) -> Dict[str, List[str]]:
        """Normalized division key (or competition-level code) -> messages."""
        diagnostics: Dict[str, List[str]] = {}
        for outcome in self.outcomes:
            diagnostics.setdefault(outcome.division.normalized(), []).extend(outcome.messages)
        for code, messages in self.competition_diagnostics.items():
            diagnostics.setdefault(code, []).extend(messages)
        return diagnostics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "competition_id": self.competition_id,
            "brackets_created": self.brackets_created,
            "brackets_attempted": self.brackets_attempted,
            "per_division_diagnostics": self.per_division_diagnostics,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class DiagnosisReason:
    category: str
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "details": list(self.details)}


# -----------------------------------------------------------------------------
# Grouping / backfill / sizing
# -----------------------------------------------------------------------------

def _is_allowed(key: DivisionKey, allowed: AllowedDivisions) -> bool:
    return (
        key.age_group in allowed.age_groups
        and key.discipline in allowed.disciplines
        and key.weight_class in allowed.weight_classes
        and key.gender in allowed.genders
    )


def group_eligible_fighters_by_division(
    fighters: Sequence[Fighter],
    allowed_divisions: AllowedDivisions,
    today: Optional[date] = None,
) -> Dict[DivisionKey, List[int]]:
    """
    Group fighter ids by derived division key, in input order.

    Only fighters whose four key components are all whitelisted are kept,
    so every returned group is non-empty.
    """
    groups: Dict[DivisionKey, List[int]] = {}
    for fighter in fighters:
        key = DivisionKey(
            age_group=age_group_from_birth_date(fighter.birth_date, today),
            discipline=fighter.discipline,
            weight_class=weight_class_from_kg(fighter.weight, fighter.gender),
            gender=fighter.gender,
        )
        if not _is_allowed(key, allowed_divisions):
            continue
        groups.setdefault(key, []).append(fighter.id)
    return groups


def _pick_club(
    strategy: BackfillStrategy,
    index: int,
    clubs: Sequence[Club],
    repos: Repositories,
    rng: SeededRandom,
) -> Club:
    if strategy == BackfillStrategy.CLUB_DISTRIBUTED:
        return clubs[index % len(clubs)]
    if strategy == BackfillStrategy.BALANCED:
        counts = Counter(f.club_id for f in repos.fighters.get_all())
        # min() keeps the first club on ties
        return min(clubs, key=lambda c: counts.get(c.id, 0))
    return rng.pick(clubs)


def backfill_fighters_for_division(
    repos: Repositories,
    division: DivisionKey,
    needed_count: int,
    strategy: Union[BackfillStrategy, str],
    rng: SeededRandom,
    today: Optional[date] = None,
) -> List[int]:
    """
    Create `needed_count` fighters matching `division`, spread across clubs.

    Returns the new fighter ids; [] when there are no clubs to draw from.
    A failed create stops the loop and the fighters created so far are
    returned, so the caller can still register them.
    """
    strategy = BackfillStrategy(strategy)
    clubs = repos.clubs.get_all()
    if not clubs:
        logger.warning(f"No clubs available for backfilling division {division.normalized()}")
        return []

    created: List[int] = []
    for index in range(needed_count):
        try:
            club = _pick_club(strategy, index, clubs, repos, rng)
            spec = build_backfill_spec(division, club.id, club.name, rng, today)
            created.append(repos.fighters.create(spec))
        except Exception as exc:
            logger.warning(
                f"Backfill for division {division.normalized()} stopped after "
                f"{len(created)}/{needed_count} fighters: {exc}"
            )
            break
    logger.debug(f"Backfilled {len(created)} fighters into {division.normalized()} ({strategy.value})")
    return created


def choose_bracket_size(fighter_count: int, preferred_sizes: Sequence[int]) -> int:
    """Smallest preferred size >= fighter_count, else the next power of two (min 2)."""
    for size in sorted(preferred_sizes):
        if size >= fighter_count:
            return size
    return max(2, next_power_of_two(fighter_count))


# -----------------------------------------------------------------------------
# Synthesis
# -----------------------------------------------------------------------------

def _as_repositories(source: Union[Session, Repositories]) -> Repositories:
    if isinstance(source, Repositories):
        return source
    return Repositories.from_session(source)


def _process_division(
    repos: Repositories,
    competition_id: int,
    division: DivisionKey,
    fighter_ids: List[int],
    roster: List[CompetitionEntry],
    config: SynthesisConfig,
    rng: SeededRandom,
    today: Optional[date],
) -> DivisionOutcome:
    outcome = DivisionOutcome(division=division, status=DivisionStatus.failed.value, fighter_ids=list(fighter_ids))
    minimum = config.min_fighters_per_bracket
    key = division.normalized()

    if len(fighter_ids) < minimum:
        shortfall = [f"Insufficient fighters: {len(fighter_ids)} < {minimum}"]
        if not config.auto_backfill_fighters:
            outcome.reason = SynthesisReason.INSUFFICIENT_FIGHTERS.value
            outcome.messages = shortfall + ["Auto-backfill disabled"]
            logger.debug(f"Division {key} short and backfill disabled")
            return outcome

        needed = minimum - len(fighter_ids)
        backfilled = backfill_fighters_for_division(
            repos, division, needed, config.backfill_strategy, rng, today
        )
        if backfilled:
            outcome.backfilled_ids = backfilled
            outcome.fighter_ids.extend(backfilled)
            roster.extend(CompetitionEntry(fid, division.discipline) for fid in backfilled)
            repos.competitions.update(competition_id, fighters=roster)

        if len(backfilled) < needed:
            outcome.reason = SynthesisReason.INSUFFICIENT_FIGHTERS.value
            outcome.messages = shortfall + ["Backfill failed"]
            if backfilled:
                outcome.messages.append(f"Backfilled only {len(backfilled)} of {needed} fighters")
            logger.warning(f"Backfill failed for division {key}")
            return outcome

        outcome.messages.append(
            f"Backfilled {len(backfilled)} fighters (had {len(fighter_ids)}, needed {minimum})"
        )

    all_ids = outcome.fighter_ids
    bracket_size = choose_bracket_size(len(all_ids), config.preferred_bracket_sizes)
    names = {f.id: f.display_name for f in repos.fighters.get_by_ids(all_ids)}

    matches = generate_bracket(
        GenerateBracketOptions(
            fighter_ids=all_ids,
            fighter_names=names,
            seed_method=SeedMethod.random.value,
            random_seed=rng.int(1, MAX_RANDOM_SEED),
            bracket_size=bracket_size,
        )
    )

    report = verify_chain(matches)
    if not report.ok:
        outcome.reason = SynthesisReason.CHAIN_INVALID.value
        outcome.messages.append("Bracket validation failed")
        outcome.messages.extend(report.errors)
        logger.warning(f"Bracket validation failed for division {key}: {'; '.join(report.errors)}")
        return outcome

    bracket = repos.brackets.create(
        competition_id,
        BracketDraft(
            division=division,
            fighter_ids=list(all_ids),
            seed_method=SeedMethod.random.value,
            status=BracketStatus.published.value,
        ),
        matches,
    )
    outcome.status = DivisionStatus.created.value
    outcome.bracket_id = bracket.id
    outcome.bracket_size = bracket_size
    outcome.match_count = len(matches)
    outcome.messages.append(
        f"Created bracket: {len(all_ids)} fighters -> {bracket_size}-slot bracket with {len(matches)} matches"
    )
    logger.debug(f"Created bracket {bracket.id} for division {key}")
    return outcome


def synthesize_for_competition(
    source: Union[Session, Repositories],
    competition_id: int,
    config: Optional[SynthesisConfig] = None,
    today: Optional[date] = None,
) -> SynthesisResult:
    """
    Group, backfill, generate, validate and persist brackets for one competition.

    `source` is a Session or a Repositories bundle. Divisions are handled
    in first-registration order; each failure is recorded on its outcome.
    """
    config = config or DEFAULT_SYNTHESIS_CONFIG
    repos = _as_repositories(source)
    result = SynthesisResult(competition_id=competition_id)

    try:
        competition = repos.competitions.get_by_id(competition_id)
        if competition is None:
            result.competition_diagnostics[SynthesisReason.ERROR.value] = ["Competition not found"]
            return result

        roster = repos.competitions.get_entries(competition_id)
        fighters = repos.fighters.get_by_ids([e.fighter_id for e in roster])
        groups = group_eligible_fighters_by_division(fighters, config.allowed_divisions, today)
    except Exception as exc:
        logger.warning(f"Synthesis failed for competition {competition_id}: {exc!r}")
        result.competition_diagnostics[SynthesisReason.ERROR.value] = [f"Synthesis failed: {exc!r}"]
        return result

    if not fighters:
        result.competition_diagnostics[SynthesisReason.NO_FIGHTERS.value] = [
            "Competition has no registered fighters"
        ]
        return result

    if not groups:
        result.competition_diagnostics[SynthesisReason.NO_ELIGIBLE_DIVISIONS.value] = [
            "No fighters match allowed divisions",
            f"Competition disciplines: {', '.join(competition.disciplines or [])}",
        ]
        return result

    rng = SeededRandom(f"{config.deterministic_seed}-{competition_id}")
    limit = config.max_brackets_per_competition

    for division, fighter_ids in groups.items():
        if result.brackets_created >= limit:
            result.outcomes.append(
                DivisionOutcome(
                    division=division,
                    status=DivisionStatus.skipped.value,
                    reason=SynthesisReason.MAX_BRACKETS_REACHED.value,
                    messages=[f"Skipped: stopped at {limit} brackets"],
                    fighter_ids=list(fighter_ids),
                )
            )
            result.competition_diagnostics[SynthesisReason.MAX_BRACKETS_REACHED.value] = [
                f"Stopped at {limit} brackets"
            ]
            continue

        result.brackets_attempted += 1
        try:
            outcome = _process_division(repos, competition_id, division, fighter_ids, roster, config, rng, today)
        except Exception as exc:
            logger.warning(f"Bracket creation failed for division {division.normalized()}: {exc}")
            outcome = DivisionOutcome(
                division=division,
                status=DivisionStatus.failed.value,
                reason=SynthesisReason.PERSISTENCE_ERROR.value,
                messages=[f"Bracket creation failed: {exc}"],
                fighter_ids=list(fighter_ids),
            )
        if outcome.status == DivisionStatus.created.value:
            result.brackets_created += 1
        result.outcomes.append(outcome)

    logger.info(
        f"Synthesis for competition {competition_id}: "
        f"{result.brackets_created} created / {result.brackets_attempted} attempted "
        f"across {len(groups)} divisions"
    )
    return result


def synthesize_all(
    source: Union[Session, Repositories],
    config: Optional[SynthesisConfig] = None,
    today: Optional[date] = None,
) -> List[SynthesisResult]:
    """Run synthesis for every competition, sequentially, in id order."""
    repos = _as_repositories(source)
    results = [
        synthesize_for_competition(repos, competition.id, config, today)
        for competition in repos.competitions.get_all()
    ]
    with_brackets = sum(1 for r in results if r.brackets_created > 0)
    logger.info(f"Synthesis run complete: {with_brackets}/{len(results)} competitions have brackets")
    return results


# -----------------------------------------------------------------------------
# Diagnosis
# -----------------------------------------------------------------------------

def diagnose_empty_competition(
    source: Union[Session, Repositories],
    competition_id: int,
    config: Optional[SynthesisConfig] = None,
    today: Optional[date] = None,
) -> List[DiagnosisReason]:
    """Read-only: explain why a competition has no (usable) brackets."""
    config = config or DEFAULT_SYNTHESIS_CONFIG
    repos = _as_repositories(source)

    competition = repos.competitions.get_by_id(competition_id)
    if competition is None:
        return [DiagnosisReason(DiagnosisCategory.UNKNOWN.value, ["Competition not found"])]

    fighters = repos.fighters.get_by_ids([e.fighter_id for e in repos.competitions.get_entries(competition_id)])
    if not fighters:
        return [
            DiagnosisReason(DiagnosisCategory.INSUFFICIENT_FIGHTERS.value, ["Competition has 0 registered fighters"])
        ]

    groups = group_eligible_fighters_by_division(fighters, config.allowed_divisions, today)
    if not groups:
        return [
            DiagnosisReason(
                DiagnosisCategory.NO_ELIGIBLE_DIVISIONS.value,
                [
                    "No fighters match allowed divisions",
                    f"Competition has {len(fighters)} fighters but none in eligible divisions",
                ],
            )
        ]

    reasons: List[DiagnosisReason] = []
    minimum = config.min_fighters_per_bracket
    for division, fighter_ids in groups.items():
        if len(fighter_ids) >= minimum:
            continue
        reasons.append(
            DiagnosisReason(
                DiagnosisCategory.INSUFFICIENT_FIGHTERS.value,
                [
                    f"Division {division.normalized()}:",
                    f"  Has {len(fighter_ids)} fighters, needs {minimum}",
                    f"  Missing: {minimum - len(fighter_ids)} fighters",
                    f"  Age Group: {division.age_group}",
                    f"  Discipline: {division.discipline}",
                    f"  Weight Class: {division.weight_class}",
                    f"  Gender: {division.gender}",
                ],
            )
        )

    brackets = repos.brackets.get_all_for_competition(competition_id)
    for bracket in brackets:
        if not repos.brackets.get_matches(competition_id, bracket.id):
            reasons.append(
                DiagnosisReason(
                    DiagnosisCategory.PERSISTENCE_CONFLICT.value,
                    [
                        f"Bracket {bracket.id} exists but has no matches",
                        "This may indicate a storage write failure",
                    ],
                )
            )

    if not reasons:
        reasons.append(
            DiagnosisReason(
                DiagnosisCategory.UNKNOWN.value,
                [
                    "No obvious issues found",
                    f"Competition has {len(fighters)} fighters in {len(groups)} divisions",
                    f"Existing brackets: {len(brackets)}",
                ],
            )
        )
    return reasons
