"""Creates sessions, tracks them, and routes incoming messages to them."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from swapsession.sessioninterestmanager import SessionInterestManager
from swapsession.sessionwantsender import PeerManager


class Session(Protocol):
    """A session managed by the session manager."""

    session_id: int

    def receive_from(
        self, peer: str, keys: list[str], haves: list[str], dont_haves: list[str]
    ) -> None: ...

    def shutdown(self) -> None: ...


class BlockPresenceTracker(Protocol):
    """Records which peers said they have, or don't have, which blocks."""

    def receive_from(self, peer: str, haves: list[str], dont_haves: list[str]) -> None: ...

    def remove_keys(self, keys: list[str]) -> None: ...


SessionFactory = Callable[..., Session]
"""Called as ``factory(manager, session_id, session_peer_manager, interest_manager,
peer_manager, block_presence, notifier, provider_search_delay, rebroadcast_delay,
self_peer)`` and returns the new session."""

PeerManagerFactory = Callable[[int], Any]
"""Called with a session id; returns that session's peer manager."""


class SessionManager:
    """Creates sessions, dispatches messages to them and cleans up after them."""

    def __init__(
        self,
        session_factory: SessionFactory,
        interest_manager: SessionInterestManager,
        peer_manager_factory: PeerManagerFactory,
        block_presence: BlockPresenceTracker,
        peer_manager: PeerManager,
        notifier: Any,
        self_peer: str,
    ) -> None:
        self._session_factory = session_factory
        self._interest_manager = interest_manager
        self._peer_manager_factory = peer_manager_factory
        self._block_presence = block_presence
        self._peer_manager = peer_manager
        self._notifier = notifier
        self.self_peer = self_peer

        # None once the manager has been shut down.
        self._sessions: dict[int, Session] | None = {}
        self._sessions_lock = threading.RLock()

        self._last_id = 0
        self._id_lock = threading.Lock()

    def new_session(self, provider_search_delay: float, rebroadcast_delay: Any) -> Session:
        """Create a session, register it with the manager and return it."""
        session_id = self.next_session_id()
        session_peers = self._peer_manager_factory(session_id)
        session = self._session_factory(
            self,
            session_id,
            session_peers,
            self._interest_manager,
            self._peer_manager,
            self._block_presence,
            self._notifier,
            provider_search_delay,
            rebroadcast_delay,
            self.self_peer,
        )
        with self._sessions_lock:
            if self._sessions is not None:
                self._sessions[session_id] = session
        return session

    def shutdown(self) -> None:
        """Shut down every session; calling it again does nothing more."""
        with self._sessions_lock:
            sessions = list(self._sessions.values()) if self._sessions else []
            self._sessions = None
        for session in sessions:
            session.shutdown()

    def remove_session(self, session_id: int) -> None:
        """Forget a session and cancel the keys no other session wants."""
        cancel_keys = self._interest_manager.remove_session(session_id)
        self._cancel_wants(cancel_keys)
        with self._sessions_lock:
            if self._sessions is not None:
                self._sessions.pop(session_id, None)

    def next_session_id(self) -> int:
        """Return the next sequential session id, starting at 1."""
        with self._id_lock:
            self._last_id += 1
            return self._last_id

    def receive_from(
        self,
        peer: str,
        blocks: Iterable[str],
        haves: Iterable[str],
        dont_haves: Iterable[str],
    ) -> None:
        """Record block presence and pass a received message to interested sessions."""
        blocks, haves, dont_haves = list(blocks), list(haves), list(dont_haves)
        self._block_presence.receive_from(peer, haves, dont_haves)

        for session_id in self._interest_manager.interested_sessions(blocks, haves, dont_haves):
            with self._sessions_lock:
                if self._sessions is None:
                    return
                session = self._sessions.get(session_id)
            if session is not None:
                session.receive_from(peer, blocks, haves, dont_haves)

        self._peer_manager.send_cancels(blocks)

    def cancel_session_wants(self, session_id: int, wants: Iterable[str]) -> None:
        """Drop a session's interest in ``wants`` and cancel keys nobody wants."""
        cancel_keys = self._interest_manager.remove_session_interested(session_id, wants)
        self._cancel_wants(cancel_keys)

    def _cancel_wants(self, wants: list[str]) -> None:
        self._block_presence.remove_keys(wants)
        self._peer_manager.send_cancels(wants)