"""A FIFO queue of content ids with cheap membership tests and removal."""

from __future__ import annotations

from collections import deque


class CidQueue:
    """Queue of content ids; a removed id is skipped lazily when popped."""

    def __init__(self) -> None:
        self._elems: deque[str] = deque()
        self._members: set[str] = set()

    def pop(self) -> str | None:
        """Take the oldest id still in the queue, or ``None`` if it is empty."""
        while self._elems:
            out = self._elems.popleft()
            if out in self._members:
                self._members.discard(out)
                return out
        return None

    def cids(self) -> list[str]:
        """A copy of the ids in the queue, oldest first."""
        if len(self._elems) > len(self._members):
            self._elems = deque(c for c in self._elems if c in self._members)
        return list(self._elems)

    def push(self, cid: str) -> None:
        """Append ``cid`` unless it is already queued."""
        if cid not in self._members:
            self._members.add(cid)
            self._elems.append(cid)

    def remove(self, cid: str) -> None:
        """Drop ``cid`` from the queue if present."""
        self._members.discard(cid)

    def __contains__(self, cid: object) -> bool:
        return cid in self._members

    def __len__(self) -> int:
        return len(self._members)