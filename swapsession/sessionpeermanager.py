"""Tracks the peers of one session and tags their connections."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

log = logging.getLogger(__name__)

# Connection-manager tag value that asks it to keep the connection.
SESSION_PEER_TAG_VALUE = 5


class PeerTagger(Protocol):
    """Tags and protects peer connections with the connection manager."""

    def tag_peer(self, peer: str, tag: str, value: int) -> None: ...

    def untag_peer(self, peer: str, tag: str) -> None: ...

    def protect(self, peer: str, tag: str) -> None: ...

    def unprotect(self, peer: str, tag: str) -> bool: ...


class SessionPeerManager:
    """The set of peers in a session, kept in step with connection tagging."""

    def __init__(self, session_id: int, tagger: PeerTagger) -> None:
        self.session_id = session_id
        self.tag = f"bs-ses-{session_id}"
        self._tagger = tagger
        self._lock = threading.RLock()
        self._peers: set[str] = set()
        self._peers_discovered = False

    def add_peer(self, peer: str) -> bool:
        """Add ``peer``; return True if it was not already in the session."""
        with self._lock:
            if peer in self._peers:
                return False
            self._peers.add(peer)
            self._peers_discovered = True
            self._tagger.tag_peer(peer, self.tag, SESSION_PEER_TAG_VALUE)
            log.debug(
                "added peer to session %d: %s (peer count %d)",
                self.session_id, peer, len(self._peers),
            )
            return True

    def protect_connection(self, peer: str) -> None:
        """Protect the connection to ``peer`` if it is in the session."""
        with self._lock:
            if peer in self._peers:
                self._tagger.protect(peer, self.tag)

    def remove_peer(self, peer: str) -> bool:
        """Remove ``peer``; return True if it was in the session."""
        with self._lock:
            if peer not in self._peers:
                return False
            self._peers.discard(peer)
            self._tagger.untag_peer(peer, self.tag)
            self._tagger.unprotect(peer, self.tag)
            log.debug(
                "removed peer from session %d: %s (peer count %d)",
                self.session_id, peer, len(self._peers),
            )
            return True

    def peers_discovered(self) -> bool:
        """True once any peer has been added, even if all were later removed."""
        with self._lock:
            return self._peers_discovered

    def peers(self) -> list[str]:
        """All peers currently in the session."""
        with self._lock:
            return list(self._peers)

    def has_peers(self) -> bool:
        """Whether the session has any peers."""
        with self._lock:
            return bool(self._peers)

    def has_peer(self, peer: str) -> bool:
        """Whether ``peer`` is in the session."""
        with self._lock:
            return peer in self._peers

    def shutdown(self) -> None:
        """Untag and unprotect every peer so their connections can be released."""
        with self._lock:
            for peer in self._peers:
                self._tagger.untag_peer(peer, self.tag)
                self._tagger.unprotect(peer, self.tag)