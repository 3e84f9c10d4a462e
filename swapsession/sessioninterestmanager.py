"""Records which content ids each session wants or is interested in."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from swapsession.testutil import Block


class SessionInterestManager:
    """Maps content ids to the sessions interested in them.

    For each (cid, session) pair a flag tells whether the session still wants
    the block, or only wants messages about it (after the block arrived, the
    peers that have it may still have other blocks the session needs).
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._wants: dict[str, dict[int, bool]] = {}

    def record_session_interest(self, session_id: int, keys: Iterable[str]) -> None:
        """Record that the session wants the blocks for ``keys``."""
        with self._lock:
            for cid in keys:
                self._wants.setdefault(cid, {})[session_id] = True

    def remove_session(self, session_id: int) -> list[str]:
        """Drop all interest of the session; return keys no session cares about any more."""
        with self._lock:
            deleted: list[str] = []
            for cid in list(self._wants):
                sessions = self._wants[cid]
                sessions.pop(session_id, None)
                if not sessions:
                    del self._wants[cid]
                    deleted.append(cid)
            return deleted

    def remove_session_wants(self, session_id: int, keys: Iterable[str]) -> None:
        """Mark the blocks for ``keys`` as no longer wanted by the session."""
        with self._lock:
            for cid in keys:
                sessions = self._wants.get(cid)
                if sessions is not None and sessions.get(session_id):
                    sessions[session_id] = False

    def remove_session_interested(self, session_id: int, keys: Iterable[str]) -> list[str]:
        """Drop the session's interest in ``keys``; return keys no session cares about any more."""
        with self._lock:
            deleted: list[str] = []
            for cid in keys:
                sessions = self._wants.get(cid)
                if sessions is None:
                    continue
                sessions.pop(session_id, None)
                if not sessions:
                    del self._wants[cid]
                    deleted.append(cid)
            return deleted

    def filter_session_interested(
        self, session_id: int, *args: Sequence[str]
    ) -> list[list[str]]:
        """For each list of keys, keep only those the session is interested in."""
        with self._lock:
            return [
                [cid for cid in keys if session_id in self._wants.get(cid, {})]
                for keys in args
            ]

    def split_wanted_unwanted(self, blocks: Sequence[Block]) -> tuple[list[Block], list[Block]]:
        """Split blocks into those some session still wants and the rest."""
        with self._lock:
            wanted_keys = {
                b.cid for b in blocks
                if any(self._wants.get(b.cid, {}).values())
            }
        wanted = [b for b in blocks if b.cid in wanted_keys]
        unwanted = [b for b in blocks if b.cid not in wanted_keys]
        return wanted, unwanted

    def interested_sessions(
        self,
        blocks: Iterable[str],
        haves: Iterable[str],
        dont_haves: Iterable[str],
    ) -> list[int]:
        """Sessions interested in any of the given keys."""
        with self._lock:
            found: dict[int, None] = {}
            for keys in (blocks, haves, dont_haves):
                for cid in keys:
                    for session_id in self._wants.get(cid, {}):
                        found[session_id] = None
            return list(found)