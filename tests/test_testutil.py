from swapsession.testutil import (
    Block,
    contains_block,
    contains_key,
    contains_peer,
    generate_blocks_of_size,
    generate_cids,
    generate_peers,
    generate_session_id,
    index_of,
    match_keys_ignore_order,
    match_peers_ignore_order,
)


def test_generate_blocks_of_size_cids_roundtrip():
    for b1 in generate_blocks_of_size(10, 100):
        b2 = Block.from_data(b1.data)
        assert b2.cid == b1.cid
        assert len(b1.data) == 100


def test_generate_cids_are_distinct():
    cids = generate_cids(20) + generate_cids(20)
    assert len(set(cids)) == 40


def test_generate_peers_named_by_position():
    assert generate_peers(3) == ["0", "1", "2"]


def test_generate_session_id_increases():
    first = generate_session_id()
    second = generate_session_id()
    assert second == first + 1


def test_index_and_contains_block():
    blocks = generate_blocks_of_size(3, 16)
    other = generate_blocks_of_size(1, 16)[0]
    assert index_of(blocks, blocks[2].cid) == 2
    assert index_of(blocks, other.cid) == -1
    assert contains_block(blocks, blocks[1])
    assert not contains_block(blocks, other)


def test_contains_key_and_peer():
    cids = generate_cids(2)
    peers = generate_peers(2)
    assert contains_key(cids, cids[1])
    assert not contains_key(cids[:1], cids[1])
    assert contains_peer(peers, peers[0])
    assert not contains_peer(peers[:1], peers[1])


def test_match_ignore_order():
    cids = generate_cids(3)
    assert match_keys_ignore_order(cids, list(reversed(cids)))
    assert not match_keys_ignore_order(cids, cids[:2])
    assert not match_keys_ignore_order(cids[:2], [cids[0], generate_cids(1)[0]])
    peers = generate_peers(3)
    assert match_peers_ignore_order(peers, list(reversed(peers)))
    assert not match_peers_ignore_order(peers, peers[1:])