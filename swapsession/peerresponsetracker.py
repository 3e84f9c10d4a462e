"""Ranks peers by how often each was first to deliver a block."""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Sequence


class PeerResponseTracker:
    """Counts first responses per peer and picks peers weighted by those counts."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._first_responder: Counter[str] = Counter()
        self._rng = rng or random.Random()

    def received_block_from(self, peer: str) -> None:
        """Record that ``peer`` was first to send a block."""
        self._first_responder[peer] += 1

    def choose(self, peers: Sequence[str]) -> str | None:
        """Pick one of ``peers`` with probability proportional to its count."""
        if not peers:
            return None

        rnd = self._rng.random()
        total = sum(self.peer_count(p) for p in peers)

        counted = 0.0
        for p in peers:
            counted += self.peer_count(p) / total
            if counted > rnd:
                return p

        # Floating point rounding may leave a sliver uncovered.
        return peers[-1]

    def peer_count(self, peer: str) -> int:
        """Times ``peer`` was first to respond; unknown peers count as 1."""
        return self._first_responder.get(peer, 1)