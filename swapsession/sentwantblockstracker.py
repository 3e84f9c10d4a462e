"""Remembers which peers have been sent a want-block for which content ids."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable


class SentWantBlocksTracker:
    """Tracks want-blocks sent to each peer."""

    def __init__(self) -> None:
        self._sent: defaultdict[str, set[str]] = defaultdict(set)

    def add_sent_want_blocks_to(self, peer: str, cids: Iterable[str]) -> None:
        """Record that want-blocks for ``cids`` were sent to ``peer``."""
        self._sent[peer].update(cids)

    def have_sent_want_block_to(self, peer: str, cid: str) -> bool:
        """Whether a want-block for ``cid`` was sent to ``peer``."""
        sent = self._sent.get(peer)
        return sent is not None and cid in sent