"""
In-process match event bus.

Result recording emits MatchResultRecorded; subscribers are called in
subscription order and a failing handler never blocks the others.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

MATCH_RESULT_RECORDED = "MATCH_RESULT_RECORDED"


@dataclass(frozen=True)
class MatchResultRecorded:
    match_id: int
    competition_id: int
    bracket_id: Optional[int]
    match_number: int
    next_match_number: Optional[int]
    winner_fighter_id: Optional[int]
    type: str = MATCH_RESULT_RECORDED


MatchEventHandler = Callable[[MatchResultRecorded], None]


class MatchEventBus:
    def __init__(self):
        self._handlers: List[MatchEventHandler] = []

    def subscribe(self, handler: MatchEventHandler) -> Callable[[], None]:
        """Register `handler`; returns a callable that unsubscribes it."""
        self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: MatchEventHandler) -> None:
        self._handlers = [h for h in self._handlers if h is not handler]

    def emit(self, event: MatchResultRecorded) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Match event handler failed for match {event.match_id}")

    @property
    def handler_count(self) -> int:
        return len(self._handlers)


# Application-wide bus
match_event_bus = MatchEventBus()
