from swapsession.sentwantblockstracker import SentWantBlocksTracker
from swapsession.testutil import generate_cids, generate_peers


def test_send_want_blocks_tracker():
    peers = generate_peers(2)
    cids = generate_cids(2)
    swbt = SentWantBlocksTracker()

    assert not swbt.have_sent_want_block_to(peers[0], cids[0])

    swbt.add_sent_want_blocks_to(peers[0], cids)
    assert swbt.have_sent_want_block_to(peers[0], cids[0])
    assert swbt.have_sent_want_block_to(peers[0], cids[1])
    assert not swbt.have_sent_want_block_to(peers[1], cids[0])


def test_adding_accumulates():
    peers = generate_peers(1)
    cids = generate_cids(2)
    swbt = SentWantBlocksTracker()
    swbt.add_sent_want_blocks_to(peers[0], cids[:1])
    swbt.add_sent_want_blocks_to(peers[0], cids[1:])
    assert swbt.have_sent_want_block_to(peers[0], cids[0])
    assert swbt.have_sent_want_block_to(peers[0], cids[1])