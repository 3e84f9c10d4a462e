# swapsession

This package keeps the books for the sessions of a block-exchange protocol.
In such a protocol, peers ask each other for blocks that are addressed by
their content. The package needs nothing outside the standard library.

Content identifiers and peer identifiers are plain strings throughout.

## Modules

- `swapsession.cidqueue.CidQueue` is a first-in, first-out queue of content identifiers.
  - It holds each identifier only once.
  - `remove` takes effect lazily: a removed identifier is skipped when `pop` reaches it.
- `swapsession.peerresponsetracker.PeerResponseTracker` counts how often each peer was first to deliver a block.
  - `choose` picks one peer from a list at random, weighted by those counts.
  - A peer with no deliveries counts as 1.
- `swapsession.sentwantblockstracker.SentWantBlocksTracker` records which peers have been sent a want-block, and for which identifiers.
- `swapsession.sessionwants.SessionWants` keeps two kinds of want:
  - pending wants, which have not been sent yet;
  - live wants, which have been sent and are waiting for a block.

  It does the following:
  - It moves pending wants to live, up to a broadcast limit.
  - It measures the latency of received blocks, in seconds.
  - It returns the live wants in request order for a broadcast.
- `swapsession.wantinfo` holds `BlockPresence` (`DONT_HAVE`, `UNKNOWN`, `HAVE`) and `WantInfo`.
  - `WantInfo` records what each peer said about one want.
  - It picks the best peer to send the want-block to. Ties are broken through a `PeerResponseTracker`.
- `swapsession.sessioninterestmanager.SessionInterestManager` records which sessions want which identifiers, or are only interested in them.
  - `filter_session_interested` filters lists of keys down to those a session is interested in.
  - `interested_sessions` finds the sessions interested in a message.
  - `split_wanted_unwanted` splits blocks into those some session still wants and the rest.
- `swapsession.sessionpeermanager.SessionPeerManager` is the set of peers in one session.
  - It tags, untags, protects and unprotects their connections through a `PeerTagger` that you supply.
- `swapsession.sessionwantsender.SessionWantSender` decides, for each want, which one peer gets a want-block. Every other peer in the session gets a want-have.
  - It reads changes from a bounded queue.
  - `run` processes the queue on the current thread. `start` processes it on a background thread. `shutdown` stops it and waits for it to finish.
  - It prunes a peer that sends too many DONT_HAVEs in a row, unless that peer has said it has a block still wanted.
  - It calls `on_peers_exhausted` with the wants for which every peer said DONT_HAVE.
- `swapsession.sessionmanager.SessionManager` handles the sessions themselves:
  - it creates sessions through a factory that you supply and numbers them from 1;
  - it hands incoming messages to the sessions interested in them;
  - it sends cancels for keys that no session wants any more;
  - it shuts down all of its sessions at once.
- `swapsession.testutil` has `Block`, a block addressed by the SHA-256 of its data, and helpers that do the following:
  - generate blocks, content identifiers, peer identifiers and session ids;
  - compare lists of these while ignoring their order.

## Install

```
pip install .
```

To also install pytest for the tests:

```
pip install ".[test]"
```

## Example

```python
from swapsession.sessionwants import SessionWants
from swapsession.testutil import generate_cids

wants = SessionWants(broadcast_limit=3)
cids = generate_cids(5)

wants.blocks_requested(cids)
live = wants.get_next_wants()          # the first three become live
wanted, latency = wants.blocks_received(cids[:1])
print(wants)                           # "2 pending / 2 live"
print(wants.prepare_broadcast())       # [cids[1], cids[2]]
```

A session peer manager with a tagger that does nothing:

```python
from swapsession.sessionpeermanager import SessionPeerManager


class NullTagger:
    def tag_peer(self, peer, tag, value): ...
    def untag_peer(self, peer, tag): ...
    def protect(self, peer, tag): ...
    def unprotect(self, peer, tag):
        return False


spm = SessionPeerManager(1, NullTagger())
spm.add_peer("peer-a")                 # True: the peer is new
spm.has_peers()                        # True
```

## What it does not do

The package holds no networking and no storage.

The following parts are not included. You supply them as objects with the methods that the `Protocol` classes in the modules describe:

- the peer manager that actually sends wants, broadcasts and cancels (`sessionwantsender.PeerManager`);
- the tracker of which peers have which blocks (`sessionwantsender.BlockPresenceSource`, `sessionmanager.BlockPresenceTracker`);
- the connection tagger (`sessionpeermanager.PeerTagger`);
- the sessions that `SessionManager` creates through its factory.

There is no provider discovery, no block fetching and no command-line program.

## Tests

```
pytest
```