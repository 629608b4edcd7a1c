# export/sequencer.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple

from models import Attempt, SequencedAttempt


@dataclass(frozen=True, slots=True)
class AttemptSequence:
    items: Tuple[SequencedAttempt, ...]
    counts: Mapping[str, int]  # user_id -> attempts numbered; read-only

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def sequence_attempts(attempts: Iterable[Attempt]) -> AttemptSequence:
    """
    Number one column's attempts per student, oldest first.

    A student's Nth attempt by creation time is always number N. The sort is
    stable, so attempts with identical timestamps keep their fetch order.
    This must finish before any file for the column is downloaded.
    """
    ordered = sorted(attempts, key=lambda a: a.sort_key)

    counter: Dict[str, int] = {}
    items = []
    for attempt in ordered:
        n = counter.get(attempt.user_id, 0) + 1
        counter[attempt.user_id] = n
        items.append(SequencedAttempt(attempt=attempt, number=n))

    return AttemptSequence(items=tuple(items), counts=MappingProxyType(dict(counter)))
