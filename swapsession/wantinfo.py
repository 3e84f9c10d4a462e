"""Per-want bookkeeping: what each peer said about a block and whom to ask next."""

from __future__ import annotations

from enum import IntEnum

from swapsession.peerresponsetracker import PeerResponseTracker


class BlockPresence(IntEnum):
    """Whether a peer has a block.

    The order matters: a want goes preferably to a peer that has the block,
    then to a peer whose answer is unknown, never to one that lacks it.
    """

    DONT_HAVE = 0
    UNKNOWN = 1
    HAVE = 2


class WantInfo:
    """What is known about one want across the peers of a session."""

    def __init__(self, tracker: PeerResponseTracker) -> None:
        # HAVE / DONT_HAVE / unknown reported for the want by each peer
        self.block_presence: dict[str, BlockPresence] = {}
        # The peer a want-block was sent to, cleared when it responds
        self.sent_to: str | None = None
        # The best peer to send the want-block to next
        self.best_peer: str | None = None
        # True if all known peers have said they don't have the block
        self.exhausted = False
        self._tracker = tracker

    def set_peer_block_presence(self, peer: str, presence: BlockPresence) -> None:
        """Record what ``peer`` said about the block and recompute the best peer."""
        self.block_presence[peer] = presence
        self.calculate_best_peer()

        # A peer having the block means the want is no longer exhausted.
        if presence == BlockPresence.HAVE:
            self.exhausted = False

    def remove_peer(self, peer: str) -> None:
        """Forget ``peer``, and stop waiting on it if the want-block went there."""
        if peer == self.sent_to:
            self.sent_to = None
        self.block_presence.pop(peer, None)
        self.calculate_best_peer()

    def calculate_best_peer(self) -> None:
        """Pick the peer with the best block presence, breaking ties by response history."""
        best_presence = BlockPresence.DONT_HAVE
        best_peer: str | None = None
        count_with_best = 0
        for peer, presence in self.block_presence.items():
            if presence > best_presence:
                best_presence = presence
                best_peer = peer
                count_with_best = 1
            elif presence == best_presence:
                count_with_best += 1
        self.best_peer = best_peer

        if best_peer is None or count_with_best <= 1:
            return

        peers_with_best = [
            peer for peer, presence in self.block_presence.items()
            if presence == best_presence
        ]
        self.best_peer = self._tracker.choose(peers_with_best)