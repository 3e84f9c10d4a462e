"""Sends want-have and want-block requests to the peers of a session.

For each want a single optimistic want-block goes to one peer and want-haves
go to every other peer in the session. The peer for the want-block is chosen
from what each peer said about the block (HAVE / DONT_HAVE / unknown) and
from which peers were first to deliver earlier blocks.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from swapsession.peerresponsetracker import PeerResponseTracker
from swapsession.sentwantblockstracker import SentWantBlocksTracker
from swapsession.sessionpeermanager import SessionPeerManager
from swapsession.wantinfo import BlockPresence, WantInfo

log = logging.getLogger(__name__)

# Maximum number of changes to queue before adding one blocks.
CHANGES_BUFFER_SIZE = 128
# A peer that sends this many DONT_HAVEs in a row is pruned from the session.
PEER_DONT_HAVE_LIMIT = 16

# How often blocked loops look at the shutdown flag, in seconds.
_POLL_INTERVAL = 0.02


class PeerManager(Protocol):
    """Sends wants for sessions and tracks which sessions care about which peers."""

    def register_session(self, peer: str, session: Any) -> None: ...

    def unregister_session(self, session_id: int) -> None: ...

    def send_wants(self, peer: str, want_blocks: list[str], want_haves: list[str]) -> None: ...

    def broadcast_want_haves(self, wants: list[str]) -> None: ...

    def send_cancels(self, cancels: list[str]) -> None: ...


class BlockPresenceSource(Protocol):
    """Knows which peers said they have, or don't have, which blocks."""

    def peer_has_block(self, peer: str, cid: str) -> bool: ...

    def peer_does_not_have_block(self, peer: str, cid: str) -> bool: ...

    def all_peers_do_not_have_block(self, peers: Sequence[str], cids: Sequence[str]) -> list[str]: ...


class _WantsCanceller(Protocol):
    def cancel_session_wants(self, session_id: int, wants: list[str]) -> None: ...


@dataclass(frozen=True)
class _Update:
    """A message received by the session."""

    from_peer: str
    keys: tuple[str, ...] = ()
    haves: tuple[str, ...] = ()
    dont_haves: tuple[str, ...] = ()


@dataclass(frozen=True)
class _Change:
    """New wants, cancelled wants, a received message or a peer's availability."""

    add: tuple[str, ...] = ()
    cancel: tuple[str, ...] = ()
    update: _Update | None = None
    availability: tuple[str, bool] | None = None


@dataclass
class _WantSets:
    want_blocks: dict[str, None] = field(default_factory=dict)
    want_haves: dict[str, None] = field(default_factory=dict)


class SessionWantSender:
    """Decides which wants to send to which peers of a session."""

    def __init__(
        self,
        session_id: int,
        peer_manager: PeerManager,
        session_peer_manager: SessionPeerManager,
        canceller: _WantsCanceller,
        block_presence: BlockPresenceSource,
        on_send: Callable[[str, list[str], list[str]], None],
        on_peers_exhausted: Callable[[list[str]], None],
    ) -> None:
        self.session_id = session_id
        self._peer_manager = peer_manager
        self._spm = session_peer_manager
        self._canceller = canceller
        self._bpm = block_presence
        self._on_send = on_send
        self._on_peers_exhausted = on_peers_exhausted

        self._changes: queue.Queue[_Change] = queue.Queue(maxsize=CHANGES_BUFFER_SIZE)
        self._stopped = threading.Event()
        self._closed = threading.Event()
        self._started = False
        self._thread: threading.Thread | None = None

        self._wants: dict[str, WantInfo] = {}
        self._peer_consecutive_dont_haves: dict[str, int] = {}
        self._sent_want_blocks = SentWantBlocksTracker()
        self._peer_response_tracker = PeerResponseTracker()

    # Public interface

    def add(self, keys: Iterable[str]) -> None:
        """Add new wants to the session."""
        keys = tuple(keys)
        if keys:
            self._add_change(_Change(add=keys))

    def cancel(self, keys: Iterable[str]) -> None:
        """Cancel wants of the session."""
        keys = tuple(keys)
        if keys:
            self._add_change(_Change(cancel=keys))

    def update(
        self,
        from_peer: str,
        keys: Iterable[str] | None,
        haves: Iterable[str] | None,
        dont_haves: Iterable[str] | None,
    ) -> None:
        """Report a message with blocks, HAVEs or DONT_HAVEs from ``from_peer``."""
        upd = _Update(from_peer, tuple(keys or ()), tuple(haves or ()), tuple(dont_haves or ()))
        if upd.keys or upd.haves or upd.dont_haves:
            self._add_change(_Change(update=upd))

    def signal_availability(self, peer: str, available: bool) -> None:
        """Report that ``peer`` connected or disconnected; never blocks."""
        self._add_change_non_blocking(_Change(availability=(peer, available)))

    def run(self) -> None:
        """Process changes until :meth:`shutdown` is called."""
        self._started = True
        try:
            while not self._stopped.is_set():
                try:
                    change = self._changes.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    continue
                self._on_change([change])
        finally:
            self._peer_manager.unregister_session(self.session_id)
            self._closed.set()

    def start(self) -> threading.Thread:
        """Run the processing loop on a background thread."""
        self._started = True
        self._thread = threading.Thread(
            target=self.run, name=f"want-sender-{self.session_id}", daemon=True
        )
        self._thread.start()
        return self._thread

    def shutdown(self) -> None:
        """Stop the processing loop and wait for it to finish."""
        self._stopped.set()
        if self._started:
            self._closed.wait()

    # Queueing changes

    def _add_change(self, change: _Change) -> None:
        while not self._stopped.is_set():
            try:
                self._changes.put(change, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def _add_change_non_blocking(self, change: _Change) -> None:
        try:
            self._changes.put_nowait(change)
        except queue.Full:
            threading.Thread(target=self._add_change, args=(change,), daemon=True).start()

    def _collect_changes(self, changes: list[_Change]) -> list[_Change]:
        while len(changes) < CHANGES_BUFFER_SIZE:
            try:
                changes.append(self._changes.get_nowait())
            except queue.Empty:
                break
        return changes

    # Processing

    def _on_change(self, changes: list[_Change]) -> None:
        changes = self._collect_changes(changes)

        availability: dict[str, bool] = {}
        cancels: list[str] = []
        updates: list[_Update] = []
        for change in changes:
            for cid in change.add:
                self._track_want(cid)

            for cid in change.cancel:
                self._wants.pop(cid, None)
                cancels.append(cid)

            if change.update is not None:
                upd = change.update
                # Blocks or HAVEs mean the peer is available.
                if upd.keys or upd.haves:
                    availability[upd.from_peer] = True
                    self._peer_manager.register_session(upd.from_peer, self)
                updates.append(upd)

            if change.availability is not None:
                peer, available = change.availability
                availability[peer] = available

        newly_available, newly_unavailable = self._process_availability(availability)
        dont_haves = self._process_updates(updates)
        self._check_for_exhausted_wants(dont_haves, newly_unavailable)

        if cancels:
            self._canceller.cancel_session_wants(self.session_id, cancels)

        if self._spm.has_peers():
            self._send_next_wants(newly_available)

    def _process_availability(self, availability: dict[str, bool]) -> tuple[list[str], list[str]]:
        newly_available: list[str] = []
        newly_unavailable: list[str] = []
        for peer, is_now_available in availability.items():
            if is_now_available:
                changed = self._spm.add_peer(peer)
                if changed:
                    newly_available.append(peer)
            else:
                changed = self._spm.remove_peer(peer)
                if changed:
                    newly_unavailable.append(peer)

            if changed:
                self._update_wants_peer_availability(peer, is_now_available)
                self._peer_consecutive_dont_haves.pop(peer, None)
        return newly_available, newly_unavailable

    def _track_want(self, cid: str) -> None:
        if cid in self._wants:
            return
        self._wants[cid] = WantInfo(self._peer_response_tracker)
        for peer in self._spm.peers():
            self._update_want_block_presence(cid, peer)

    def _process_updates(self, updates: list[_Update]) -> list[str]:
        """Apply received blocks, HAVEs and DONT_HAVEs; return the DONT_HAVEs."""
        block_cids: set[str] = set()
        for upd in updates:
            for cid in upd.keys:
                block_cids.add(cid)
                if self._wants.pop(cid, None) is not None:
                    # This peer was first to send the block.
                    self._peer_response_tracker.received_block_from(upd.from_peer)
                    self._spm.protect_connection(upd.from_peer)
                self._peer_consecutive_dont_haves.pop(upd.from_peer, None)

        dont_haves: dict[str, None] = {}
        prune_peers: dict[str, None] = {}
        for upd in updates:
            for cid in upd.dont_haves:
                count = self._peer_consecutive_dont_haves.get(upd.from_peer, 0)
                if count == PEER_DONT_HAVE_LIMIT:
                    prune_peers[upd.from_peer] = None
                else:
                    self._peer_consecutive_dont_haves[upd.from_peer] = count + 1

                if cid in block_cids:
                    continue

                dont_haves[cid] = None
                self._update_want_block_presence(cid, upd.from_peer)

                # A DONT_HAVE answering our want-block frees the want for
                # another peer.
                if self._sent_want_blocks.have_sent_want_block_to(upd.from_peer, cid):
                    wi = self._wants.get(cid)
                    if wi is not None and wi.sent_to == upd.from_peer:
                        wi.sent_to = None

        for upd in updates:
            for cid in upd.haves:
                if cid not in block_cids:
                    self._update_want_block_presence(cid, upd.from_peer)
                self._peer_consecutive_dont_haves.pop(upd.from_peer, None)
                prune_peers.pop(upd.from_peer, None)

        # Keep peers that said they have a block we still want.
        to_prune = [
            peer for peer in prune_peers
            if not any(self._bpm.peer_has_block(peer, cid) for cid in self._wants)
        ]
        for peer in to_prune:
            log.info(
                "peer %s sent too many dont haves, removing from session %d",
                peer, self.session_id,
            )
            self.signal_availability(peer, False)

        return list(dont_haves)

    def _check_for_exhausted_wants(self, dont_haves: list[str], newly_unavailable: list[str]) -> None:
        if not dont_haves and not newly_unavailable:
            return

        wants = dont_haves
        if newly_unavailable:
            # The peer that left may have been the last one that hadn't
            # answered DONT_HAVE, so every want must be checked.
            wants = list(self._wants)
            if not self._spm.has_peers():
                self._process_exhausted_wants(wants)
                return

        if wants:
            exhausted = self._bpm.all_peers_do_not_have_block(self._spm.peers(), wants)
            self._process_exhausted_wants(exhausted)

    def _process_exhausted_wants(self, exhausted: Iterable[str]) -> None:
        newly = []
        for cid in exhausted:
            wi = self._wants.get(cid)
            if wi is not None and not wi.exhausted:
                wi.exhausted = True
                newly.append(cid)
        if newly:
            self._on_peers_exhausted(newly)

    def _send_next_wants(self, newly_available: list[str]) -> None:
        to_send: dict[str, _WantSets] = {}

        def for_peer(peer: str) -> _WantSets:
            return to_send.setdefault(peer, _WantSets())

        for cid, wi in self._wants.items():
            for peer in newly_available:
                for_peer(peer).want_haves[cid] = None

            # Still waiting on an earlier want-block.
            if wi.sent_to is not None:
                continue
            # Every peer said DONT_HAVE; wait for more peers.
            if wi.best_peer is None:
                continue

            best = wi.best_peer
            wi.sent_to = best
            for_peer(best).want_blocks[cid] = None
            for other in self._spm.peers():
                if other != best:
                    for_peer(other).want_haves[cid] = None

        self._send_wants(to_send)

    def _send_wants(self, sends: dict[str, _WantSets]) -> None:
        for peer, sets in sends.items():
            for cid in self._piggyback_want_haves(peer, sets.want_blocks):
                sets.want_haves[cid] = None

            want_blocks = list(sets.want_blocks)
            want_haves = list(sets.want_haves)
            self._peer_manager.send_wants(peer, want_blocks, want_haves)
            self._on_send(peer, want_blocks, want_haves)
            self._sent_want_blocks.add_sent_want_blocks_to(peer, want_blocks)

    def _piggyback_want_haves(self, peer: str, want_blocks: dict[str, None]) -> list[str]:
        return [
            cid for cid in self._wants
            if cid not in want_blocks
            and not self._sent_want_blocks.have_sent_want_block_to(peer, cid)
        ]

    def _update_wants_peer_availability(self, peer: str, is_now_available: bool) -> None:
        for cid, wi in self._wants.items():
            if is_now_available:
                self._update_want_block_presence(cid, peer)
            else:
                wi.remove_peer(peer)

    def _update_want_block_presence(self, cid: str, peer: str) -> None:
        wi = self._wants.get(cid)
        if wi is None:
            return
        if self._bpm.peer_has_block(peer, cid):
            wi.set_peer_block_presence(peer, BlockPresence.HAVE)
        elif self._bpm.peer_does_not_have_block(peer, cid):
            wi.set_peer_block_presence(peer, BlockPresence.DONT_HAVE)
        else:
            wi.set_peer_block_presence(peer, BlockPresence.UNKNOWN)