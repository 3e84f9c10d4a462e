"""Helpers for generating blocks, content ids and peer ids, and comparing them."""

from __future__ import annotations

import hashlib
import itertools
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

_block_sequence = itertools.count()
_session_sequence = itertools.count(1)


def _cid_for(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class Block:
    """An immutable chunk of data addressed by the hash of its content."""

    data: bytes
    cid: str

    @classmethod
    def from_data(cls, data: bytes) -> "Block":
        """Build a block whose content id is derived from ``data``."""
        data = bytes(data)
        return cls(data=data, cid=_cid_for(data))


def _next_block() -> Block:
    return Block.from_data(f"block-{next(_block_sequence)}".encode())


def generate_blocks_of_size(n: int, size: int) -> list[Block]:
    """Generate ``n`` blocks of ``size`` random bytes each."""
    return [Block.from_data(os.urandom(size)) for _ in range(n)]


def generate_cids(n: int) -> list[str]:
    """Produce ``n`` distinct content ids."""
    return [_next_block().cid for _ in range(n)]


def generate_peers(n: int) -> list[str]:
    """Create ``n`` peer ids, named by their position."""
    return [str(i) for i in range(n)]


def generate_session_id() -> int:
    """Return a fresh, unique session id."""
    return next(_session_sequence)


def contains_peer(peers: Iterable[str], p: str) -> bool:
    """Whether ``p`` is among ``peers``."""
    return p in peers


def index_of(blocks: Sequence[Block], cid: str) -> int:
    """Position of the block with ``cid`` in ``blocks``, or -1 if absent."""
    return next((i for i, b in enumerate(blocks) if b.cid == cid), -1)


def contains_block(blocks: Sequence[Block], block: Block) -> bool:
    """Whether a block with the same content id is in ``blocks``."""
    return index_of(blocks, block.cid) != -1


def contains_key(keys: Iterable[str], cid: str) -> bool:
    """Whether ``cid`` is among ``keys``."""
    return cid in keys


def match_keys_ignore_order(keys1: Sequence[str], keys2: Sequence[str]) -> bool:
    """Whether both lists hold the same content ids, in any order."""
    return len(keys1) == len(keys2) and all(k in keys2 for k in keys1)


def match_peers_ignore_order(peers1: Sequence[str], peers2: Sequence[str]) -> bool:
    """Whether both lists hold the same peers, in any order."""
    return len(peers1) == len(peers2) and all(p in peers2 for p in peers1)