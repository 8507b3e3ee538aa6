"""
Bracket Chain Verifier
======================
Authoritative gate before a bracket is persisted.

Checks every structural invariant linking matches to their successors:
  A) Match ids are integers and unique within the bracket
  B) Round numbers parse to integers and form a contiguous range
  C) Every match has exactly two participant slots
  D) The final round holds one match, and it has no successor
  E) Every earlier match points at an existing match exactly one round later
  F) Every match after the first round has exactly two children

Never raises: malformed input is reported as error strings.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence


@dataclass
class ChainReport:
    ok: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "errors": list(self.errors)}


@dataclass
class _Node:
    position: int
    id: Optional[int]
    round: Optional[int]
    next_match_id: Optional[int]
    has_next: bool


_MISSING = object()


def _get(match: Any, name: str) -> Any:
    if isinstance(match, Mapping):
        return match.get(name, _MISSING)
    return getattr(match, name, _MISSING)


def _parse_int(value: Any) -> Optional[int]:
    if value is _MISSING or value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _show(value: Any) -> str:
    return repr(None if value is _MISSING else value)


def _describe(node: _Node) -> str:
    return f"Match {node.id}" if node.id is not None else f"Match at position {node.position}"


# ─── Per-match extraction ────────────────────────────────────────────────

def _load_nodes(matches: Sequence[Any], errors: List[str]) -> List[_Node]:
    nodes: List[_Node] = []
    for position, match in enumerate(matches):
        raw_id = _get(match, "id")
        match_id = _parse_int(raw_id)
        if match_id is None:
            errors.append(f"Match at position {position} has non-integer id {_show(raw_id)}")

        raw_round = _get(match, "round")
        round_number = _parse_int(raw_round)
        label = f"Match {match_id}" if match_id is not None else f"Match at position {position}"
        if round_number is None:
            errors.append(f"{label} has round {_show(raw_round)} that is not an integer")

        raw_next = _get(match, "next_match_id")
        has_next = raw_next is not _MISSING and raw_next is not None
        next_id = _parse_int(raw_next) if has_next else None
        if has_next and next_id is None:
            errors.append(f"{label} has non-integer next_match_id {raw_next!r}")

        participants = _get(match, "participants")
        try:
            slot_count = len(participants) if participants is not _MISSING and participants is not None else 0
        except TypeError:
            slot_count = 0
        if slot_count != 2:
            errors.append(f"{label} has {slot_count} participant slots (expected 2)")

        nodes.append(_Node(position, match_id, round_number, next_id, has_next))
    return nodes


# ─── Checks ──────────────────────────────────────────────────────────────

def _check_unique_ids(nodes: List[_Node]) -> List[str]:
    counts: Dict[int, int] = defaultdict(int)
    for node in nodes:
        if node.id is not None:
            counts[node.id] += 1
    return [f"Duplicate match id {mid} appears {count} times" for mid, count in sorted(counts.items()) if count > 1]


def _check_round_range(by_round: Dict[int, List[_Node]]) -> List[str]:
    rounds = sorted(by_round)
    missing = [r for r in range(rounds[0], rounds[-1] + 1) if r not in by_round]
    return [f"Round {r} has no matches (rounds must be contiguous)" for r in missing]


def _check_final(by_round: Dict[int, List[_Node]], final_round: int) -> List[str]:
    errors = []
    finals = by_round[final_round]
    if len(finals) != 1:
        errors.append(f"Final round {final_round} has {len(finals)} matches (expected 1)")
    for node in finals:
        if node.has_next:
            errors.append(f"{_describe(node)} in final round {final_round} has next_match_id {node.next_match_id} (expected None)")
    return errors


def _check_successors(nodes: List[_Node], final_round: int, round_of: Dict[int, int]) -> List[str]:
    errors = []
    for node in nodes:
        if node.round is None or node.round == final_round:
            continue
        if not node.has_next:
            errors.append(f"{_describe(node)} in round {node.round} has no next_match_id")
            continue
        if node.next_match_id is None:
            continue  # already reported as non-integer
        target_round = round_of.get(node.next_match_id)
        if target_round is None:
            errors.append(f"{_describe(node)} references missing match {node.next_match_id}")
        elif target_round != node.round + 1:
            errors.append(
                f"{_describe(node)} in round {node.round} references match {node.next_match_id} "
                f"in round {target_round} (expected round {node.round + 1})"
            )
    return errors


def _check_child_counts(nodes: List[_Node], by_round: Dict[int, List[_Node]], first_round: int) -> List[str]:
    children: Dict[int, int] = defaultdict(int)
    for node in nodes:
        if node.round is not None and node.next_match_id is not None:
            children[node.next_match_id] += 1

    errors = []
    for round_number in sorted(by_round):
        if round_number == first_round:
            continue
        for node in by_round[round_number]:
            if node.id is None:
                continue
            count = children.get(node.id, 0)
            if count != 2:
                errors.append(f"{_describe(node)} in round {round_number} has {count} child matches (expected 2)")
    return errors


def verify_chain(matches: Sequence[Any]) -> ChainReport:
    """
    Verify bracket chain integrity.

    Accepts generated matches or plain mappings with id / round /
    next_match_id / participants. Round may be free text such as "2".
    """
    errors: List[str] = []
    try:
        items = list(matches or [])
    except TypeError:
        return ChainReport(ok=False, errors=["Match list is not iterable"])

    if not items:
        return ChainReport(ok=True, errors=[])

    nodes = _load_nodes(items, errors)
    errors.extend(_check_unique_ids(nodes))

    by_round: Dict[int, List[_Node]] = defaultdict(list)
    round_of: Dict[int, int] = {}
    for node in nodes:
        if node.round is None:
            continue
        by_round[node.round].append(node)
        if node.id is not None:
            round_of.setdefault(node.id, node.round)

    if by_round:
        final_round = max(by_round)
        first_round = min(by_round)
        errors.extend(_check_round_range(by_round))
        errors.extend(_check_final(by_round, final_round))
        errors.extend(_check_successors(nodes, final_round, round_of))
        errors.extend(_check_child_counts(nodes, by_round, first_round))

    return ChainReport(ok=not errors, errors=errors)
