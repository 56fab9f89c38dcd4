"""
shuffle_queue.py – never-ending shuffled order of clip IDs.

Every clip plays once per cycle.  When a cycle runs dry a fresh shuffle is
dealt, and its head is swapped away from the clip that was dequeued last so
the same clip never plays twice in a row (unless it is the only one).
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass
class QueueState:
    order: List[str] = field(default_factory=list)
    last_played: Optional[str] = None


class ShuffleQueue:
    def __init__(self, clip_ids: Iterable[str], rng: random.Random | None = None):
        self._catalog = list(dict.fromkeys(clip_ids))
        self._rng     = rng or random.Random()      # OS-seeded
        self.state    = QueueState()

    @property
    def catalog(self) -> List[str]:
        return list(self._catalog)

    def __len__(self) -> int:
        """Clips left in the current cycle."""
        return len(self.state.order)

    def replace_catalog(self, clip_ids: Iterable[str]) -> None:
        self._catalog = list(dict.fromkeys(clip_ids))
        self.reset()

    def _shuffled(self) -> List[str]:
        order = list(self._catalog)
        self._rng.shuffle(order)
        last = self.state.last_played
        if len(order) > 1 and order[0] == last:
            order[0], order[1] = order[1], order[0]
        return order

    def reset(self) -> None:
        self.state.order = self._shuffled()

    def take(self, refill: bool = True) -> Optional[str]:
        """
        Pop the next clip ID.  An empty cycle is reshuffled once when
        *refill* is set; otherwise None marks the end of the cycle.
        """
        if not self.state.order:
            if not refill or not self._catalog:
                return None
            self.reset()
        clip_id = self.state.order.pop(0)
        self.state.last_played = clip_id
        return clip_id
