"""
Bracket Generator - seeding and single-elimination topology.

Builds the empty tournament skeleton for one division:
1. Order fighters by seed method (random shuffle or caller order)
2. Place them into a power-of-two slot table using the standard seeding pattern
3. Create every match round by round with dense ids (1..N, never reset per round)
4. Wire each match to the match that receives its winner

Pure: no database access, no clock reads unless a random seed is omitted.
Byes are marked in round 1 but never advanced; round 2+ always starts as TBD.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ringside.services.division_rules import MatchState, SeedMethod
from ringside.utils.seeded_random import SeededRandom

# Participant slot statuses
PARTICIPANT_READY = "ready"
PARTICIPANT_TBD = "tbd"
PARTICIPANT_BYE = "bye"

# Standard tournament seeding tables (seed numbers in slot order)
SEEDING_PATTERNS: Dict[int, List[int]] = {
    2: [1, 2],
    4: [1, 4, 2, 3],
    8: [1, 8, 4, 5, 2, 7, 3, 6],
    16: [1, 16, 8, 9, 5, 12, 4, 13, 6, 11, 3, 14, 7, 10, 2, 15],
    32: [
        1, 32, 16, 17, 8, 25, 9, 24, 5, 28, 12, 21, 4, 29, 13, 20,
        6, 27, 11, 22, 3, 30, 14, 19, 7, 26, 10, 23, 2, 31, 15, 18,
    ],
}


# -----------------------------------------------------------------------------
# Data Models
# -----------------------------------------------------------------------------

@dataclass
class Participant:
    fighter_id: Optional[int] = None
    display_name: Optional[str] = None
    status: str = PARTICIPANT_TBD
    is_winner: bool = False
    result_text: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.fighter_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fighter_id": self.fighter_id,
            "display_name": self.display_name,
            "status": self.status,
            "is_winner": self.is_winner,
            "result_text": self.result_text,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Participant":
        return cls(
            fighter_id=data.get("fighter_id"),
            display_name=data.get("display_name"),
            status=data.get("status", PARTICIPANT_TBD),
            is_winner=bool(data.get("is_winner", False)),
            result_text=data.get("result_text"),
        )


@dataclass
class GeneratedMatch:
    """One match of a generated bracket. `id` is bracket-local."""
    id: int
    name: str
    round: int
    next_match_id: Optional[int]
    participants: Tuple[Participant, Participant]
    state: str = MatchState.NO_PARTY.value
    start_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "round": self.round,
            "next_match_id": self.next_match_id,
            "participants": [p.to_dict() for p in self.participants],
            "state": self.state,
            "start_time": self.start_time.isoformat() if self.start_time else None,
        }


@dataclass
class GenerateBracketOptions:
    fighter_ids: List[int]
    fighter_names: Dict[int, str] = field(default_factory=dict)
    seed_method: str = SeedMethod.ranking.value
    random_seed: Optional[Union[int, str]] = None
    start_time: Optional[datetime] = None
    bracket_size: Optional[int] = None  # Power of two >= fighter count; defaults to the smallest


@dataclass
class BracketTopology:
    total_matches: int = 0
    total_rounds: int = 0
    participant_slots: int = 0
    bye_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_matches": self.total_matches,
            "total_rounds": self.total_rounds,
            "participant_slots": self.participant_slots,
            "bye_count": self.bye_count,
        }


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    size = 1
    while size < n:
        size *= 2
    return size


def seeding_pattern(size: int) -> List[int]:
    """Seed numbers in slot order; sequential for sizes without a standard table."""
    pattern = SEEDING_PATTERNS.get(size)
    if pattern is not None:
        return list(pattern)
    return list(range(1, size + 1))


def round_name(round_number: int, total_rounds: int) -> str:
    from_final = total_rounds - round_number
    if from_final == 0:
        return "Final"
    if from_final == 1:
        return "Semifinal"
    if from_final == 2:
        return "Quarterfinal"
    return f"Round {round_number}"


def _normalize_seed_method(seed_method) -> str:
    value = seed_method.value if isinstance(seed_method, SeedMethod) else str(seed_method)
    if value not in {m.value for m in SeedMethod}:
        raise ValueError(f"Unknown seed method: {value}")
    return value


def _validate_fighter_ids(fighter_ids: Sequence[int]) -> None:
    seen = set()
    for fighter_id in fighter_ids:
        if not isinstance(fighter_id, int) or isinstance(fighter_id, bool) or fighter_id <= 0:
            raise ValueError(f"Fighter ids must be positive integers, got {fighter_id!r}")
        if fighter_id in seen:
            raise ValueError(f"Duplicate fighter id {fighter_id}")
        seen.add(fighter_id)


def order_fighters(fighter_ids: Sequence[int], seed_method, random_seed=None) -> List[int]:
    """Apply the seed method. Only `random` reorders; ranking/manual trust the caller's order."""
    method = _normalize_seed_method(seed_method)
    if method == SeedMethod.random.value:
        seed = str(random_seed) if random_seed is not None else str(time.time_ns())
        return SeededRandom(seed).shuffle(fighter_ids)
    return list(fighter_ids)


def place_in_slots(ordered_ids: Sequence[int], bracket_size: int) -> List[Optional[int]]:
    """Slot table of length `bracket_size`; None marks a bye."""
    slots: List[Optional[int]] = [None] * bracket_size
    for slot_index, seed_number in enumerate(seeding_pattern(bracket_size)):
        if seed_number - 1 < len(ordered_ids):
            slots[slot_index] = ordered_ids[seed_number - 1]
    return slots


def _resolve_bracket_size(fighter_count: int, requested: Optional[int]) -> int:
    if requested is None:
        return next_power_of_two(fighter_count)
    if requested < 2 or requested & (requested - 1):
        raise ValueError(f"Bracket size must be a power of two >= 2, got {requested}")
    if requested < fighter_count:
        raise ValueError(f"Bracket size {requested} cannot hold {fighter_count} fighters")
    return requested


def _fighter_participant(fighter_id: int, fighter_names: Mapping[int, str]) -> Participant:
    return Participant(
        fighter_id=fighter_id,
        display_name=fighter_names.get(fighter_id, f"Fighter {fighter_id}"),
        status=PARTICIPANT_READY,
    )


# -----------------------------------------------------------------------------
# Generation
# -----------------------------------------------------------------------------

def generate_bracket(options: GenerateBracketOptions) -> List[GeneratedMatch]:
    """
    Generate a single-elimination bracket.

    Returns:
        [] for no fighters; a single decided "Final" for one fighter;
        otherwise bracket_size - 1 matches ordered by round then position.

    Raises:
        ValueError: duplicate / non-positive fighter ids, unknown seed method,
            or a bracket_size that is not a power of two holding every fighter
    """
    fighter_ids = list(options.fighter_ids)
    _validate_fighter_ids(fighter_ids)
    seed_method = _normalize_seed_method(options.seed_method)
    names = options.fighter_names or {}

    if not fighter_ids:
        return []

    if len(fighter_ids) == 1:
        winner = _fighter_participant(fighter_ids[0], names)
        winner.is_winner = True
        return [
            GeneratedMatch(
                id=1,
                name="Final",
                round=1,
                next_match_id=None,
                participants=(winner, Participant(status=PARTICIPANT_BYE)),
                state=MatchState.DONE.value,
                start_time=options.start_time,
            )
        ]

    ordered = order_fighters(fighter_ids, seed_method, options.random_seed)
    bracket_size = _resolve_bracket_size(len(ordered), options.bracket_size)
    slots = place_in_slots(ordered, bracket_size)
    total_rounds = bracket_size.bit_length() - 1

    # Dense ids: round r occupies a contiguous block right after round r-1
    round_first_ids: List[int] = []
    next_id = 1
    for round_number in range(1, total_rounds + 1):
        round_first_ids.append(next_id)
        next_id += bracket_size >> round_number

    matches: List[GeneratedMatch] = []
    for round_number in range(1, total_rounds + 1):
        matches_in_round = bracket_size >> round_number
        first_id = round_first_ids[round_number - 1]
        label = round_name(round_number, total_rounds)

        for index in range(matches_in_round):
            if round_number < total_rounds:
                next_match_id = round_first_ids[round_number] + index // 2
            else:
                next_match_id = None

            if round_number == 1:
                pair = []
                for fighter_id in (slots[2 * index], slots[2 * index + 1]):
                    if fighter_id is None:
                        pair.append(Participant(status=PARTICIPANT_BYE))
                    else:
                        pair.append(_fighter_participant(fighter_id, names))
                participants = (pair[0], pair[1])
            else:
                participants = (Participant(), Participant())

            matches.append(
                GeneratedMatch(
                    id=first_id + index,
                    name=f"{label} - Match {index + 1}",
                    round=round_number,
                    next_match_id=next_match_id,
                    participants=participants,
                    start_time=options.start_time,
                )
            )

    return matches


def bracket_topology(matches: Sequence[GeneratedMatch]) -> BracketTopology:
    """Derived summary for UI and assertions; byes are empty round-1 slots."""
    if not matches:
        return BracketTopology()

    total_rounds = max(m.round for m in matches)
    bye_count = sum(
        1
        for m in matches
        if m.round == 1
        for p in m.participants
        if p.fighter_id is None
    )
    return BracketTopology(
        total_matches=len(matches),
        total_rounds=total_rounds,
        participant_slots=2 ** total_rounds,
        bye_count=bye_count,
    )
