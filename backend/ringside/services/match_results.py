"""
Match result recording with winner propagation.

Recording a result marks the match decided, emits MatchResultRecorded and
seats the winner in the parent match: the lower-numbered child feeds
slot 0, the other child slot 1. Byes are not advanced automatically;
record a walkover on the round-1 match to move the fighter on.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from ringside.models.match import Match
from ringside.services.bracket_generator import PARTICIPANT_READY, Participant
from ringside.services.division_rules import MatchState
from ringside.services.match_events import MatchEventBus, MatchResultRecorded, match_event_bus

logger = logging.getLogger(__name__)

PARTICIPANT_NO_SHOW = "no_show"

DECIDED_STATES = {
    MatchState.DONE.value,
    MatchState.SCORE_DONE.value,
    MatchState.WALK_OVER.value,
    MatchState.NO_SHOW.value,
}


def _slots(match: Match) -> List[Participant]:
    return [Participant.from_dict(p) for p in (match.participants or [])]


def _find_parent(session: Session, match: Match) -> Optional[Match]:
    if match.next_match_number is None or match.bracket_id is None:
        return None
    return session.exec(
        select(Match).where(
            Match.bracket_id == match.bracket_id,
            Match.match_number == match.next_match_number,
        )
    ).first()


def _feeder_numbers(session: Session, parent: Match) -> List[int]:
    rows = session.exec(
        select(Match.match_number)
        .where(Match.bracket_id == parent.bracket_id, Match.next_match_number == parent.match_number)
        .order_by(Match.match_number)
    ).all()
    return list(rows)


def _advance_winner(session: Session, match: Match, winner: Participant) -> Optional[Match]:
    parent = _find_parent(session, match)
    if parent is None:
        if match.next_match_number is not None:
            logger.warning(f"Parent match {match.next_match_number} of match {match.id} not found")
        return None

    feeders = _feeder_numbers(session, parent)
    if len(feeders) != 2:
        logger.warning(f"Parent match {parent.id} should have exactly 2 children, has {len(feeders)}")
    if match.match_number not in feeders:
        logger.warning(f"Match {match.id} is not a child of match {parent.id}")
        return None

    slot_index = min(feeders.index(match.match_number), 1)
    slots = _slots(parent)
    while len(slots) < 2:
        slots.append(Participant())
    slots[slot_index] = Participant(
        fighter_id=winner.fighter_id,
        display_name=winner.display_name,
        status=PARTICIPANT_READY,
    )
    parent.participants = [p.to_dict() for p in slots]
    session.add(parent)
    return parent


def record_match_result(
    session: Session,
    match_id: int,
    winner_fighter_id: int,
    result_text: Optional[str] = None,
    state: str = MatchState.DONE.value,
    bus: Optional[MatchEventBus] = None,
) -> Dict[str, Any]:
    """
    Record the winner of a match and advance them to the parent match.

    Returns:
        {"match": Match, "advanced_to": Optional[Match]}

    Raises:
        ValueError: match not found, fighter not in the match, or a
            state that does not decide the match
    """
    bus = bus or match_event_bus
    if state not in DECIDED_STATES:
        raise ValueError(f"State {state} does not decide a match")

    match = session.get(Match, match_id)
    if match is None:
        raise ValueError(f"Match {match_id} not found")

    slots = _slots(match)
    winner_index = next((i for i, p in enumerate(slots) if p.fighter_id == winner_fighter_id), None)
    if winner_index is None:
        raise ValueError(f"Fighter {winner_fighter_id} not in match {match_id}")

    walkover = state in (MatchState.WALK_OVER.value, MatchState.NO_SHOW.value)
    for index, slot in enumerate(slots):
        if index == winner_index:
            slot.is_winner = True
            slot.result_text = result_text
            slot.status = PARTICIPANT_READY
        else:
            slot.is_winner = False
            if walkover and slot.fighter_id is not None:
                slot.status = PARTICIPANT_NO_SHOW

    match.participants = [p.to_dict() for p in slots]
    match.state = state
    match.winner_fighter_id = winner_fighter_id
    match.result_text = result_text
    session.add(match)

    parent = _advance_winner(session, match, slots[winner_index])
    session.commit()
    session.refresh(match)
    if parent is not None:
        session.refresh(parent)

    logger.info(f"Recorded result for match {match.id}: winner {winner_fighter_id} ({state})")
    bus.emit(
        MatchResultRecorded(
            match_id=match.id,
            competition_id=match.competition_id,
            bracket_id=match.bracket_id,
            match_number=match.match_number,
            next_match_number=match.next_match_number,
            winner_fighter_id=winner_fighter_id,
        )
    )
    return {"match": match, "advanced_to": parent}
