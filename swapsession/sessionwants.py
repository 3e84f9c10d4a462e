"""Tracks which content ids a session still has to fetch and which are in flight."""

from __future__ import annotations

import random
import time
from collections.abc import Iterable

from swapsession.cidqueue import CidQueue

# How far the live-want ordering may drift from the live wants before it is
# compacted.
LIVE_WANTS_ORDER_GC_LIMIT = 32


class SessionWants:
    """Pending wants (not yet sent) and live wants (sent, awaiting a block)."""

    def __init__(self, broadcast_limit: int) -> None:
        self._to_fetch = CidQueue()
        self._live_wants: dict[str, float] = {}
        self._live_wants_order: list[str] = []
        self.broadcast_limit = broadcast_limit

    def __str__(self) -> str:
        return f"{len(self._to_fetch)} pending / {len(self._live_wants)} live"

    def blocks_requested(self, new_wants: Iterable[str]) -> None:
        """Queue wants the client has asked for."""
        for cid in new_wants:
            self._to_fetch.push(cid)

    def get_next_wants(self) -> list[str]:
        """Move pending wants to live, up to the broadcast limit; return them."""
        now = time.monotonic()
        to_add = self.broadcast_limit - len(self._live_wants)
        live: list[str] = []
        while to_add > 0 and len(self._to_fetch) > 0:
            cid = self._to_fetch.pop()
            live.append(cid)
            self._live_wants_order.append(cid)
            self._live_wants[cid] = now
            to_add -= 1
        return live

    def wants_sent(self, keys: Iterable[str]) -> None:
        """Mark pending wants that were sent to a peer as live."""
        now = time.monotonic()
        for cid in keys:
            if cid not in self._live_wants and cid in self._to_fetch:
                self._to_fetch.remove(cid)
                self._live_wants_order.append(cid)
                self._live_wants[cid] = now

    def blocks_received(self, keys: Iterable[str]) -> tuple[list[str], float]:
        """Drop received wants; return those that were wanted and their total latency in seconds."""
        keys = list(keys)
        wanted: list[str] = []
        total_latency = 0.0
        if not keys:
            return wanted, total_latency

        now = time.monotonic()
        for cid in keys:
            if self.is_wanted(cid):
                wanted.append(cid)
                sent_at = self._live_wants.pop(cid, None)
                if sent_at is not None:
                    total_latency += now - sent_at
                self._to_fetch.remove(cid)

        if len(self._live_wants_order) - len(self._live_wants) > LIVE_WANTS_ORDER_GC_LIMIT:
            self._live_wants_order = [c for c in self._live_wants_order if c in self._live_wants]

        return wanted, total_latency

    def prepare_broadcast(self) -> list[str]:
        """Reset the sent time of live wants and return them in order, up to the limit."""
        now = time.monotonic()
        live: list[str] = []
        for cid in self._live_wants_order:
            if cid in self._live_wants:
                self._live_wants[cid] = now
                live.append(cid)
                if len(live) == self.broadcast_limit:
                    break
        return live

    def cancel_pending(self, keys: Iterable[str]) -> None:
        """Remove the given wants from the pending queue."""
        for cid in keys:
            self._to_fetch.remove(cid)

    def live_wants(self) -> list[str]:
        """All live wants."""
        return list(self._live_wants)

    def random_live_want(self) -> str | None:
        """A randomly chosen live want, or ``None`` if there are none."""
        if not self._live_wants:
            return None
        return random.choice(list(self._live_wants))

    def has_live_wants(self) -> bool:
        """Whether any wants are live."""
        return bool(self._live_wants)

    def is_wanted(self, cid: str) -> bool:
        """Whether ``cid`` is pending or live."""
        return cid in self._live_wants or cid in self._to_fetch