import random

from swapsession.peerresponsetracker import PeerResponseTracker
from swapsession.testutil import generate_peers


def test_init():
    peers = generate_peers(2)
    prt = PeerResponseTracker()
    assert prt.choose([]) is None
    assert prt.choose([peers[0]]) == peers[0]
    assert prt.choose(peers) in peers


def test_peer_count():
    peers = generate_peers(2)
    prt = PeerResponseTracker()
    assert prt.peer_count(peers[0]) == 1
    prt.received_block_from(peers[0])
    prt.received_block_from(peers[0])
    assert prt.peer_count(peers[0]) == 2
    assert prt.peer_count(peers[1]) == 1


def test_probability_unknown_peers():
    peers = generate_peers(4)
    prt = PeerResponseTracker(random.Random(1))
    count = 1000
    choices = dict.fromkeys(peers, 0)
    for _ in range(count):
        choices[prt.choose(peers)] += 1
    first = choices[peers[0]]
    for c in choices.values():
        assert c > 0
        assert abs(c - first) <= 0.2 * count


def test_probability_proportional():
    peers = generate_peers(3)
    prt = PeerResponseTracker(random.Random(3))
    probabilities = [0.1, 0.6, 0.3]
    count = 1000
    for peer, prob in zip(peers, probabilities):
        i = 0
        while i < count * prob:
            prt.received_block_from(peer)
            i += 1

    choices = dict.fromkeys(peers, 0)
    for _ in range(count):
        choices[prt.choose(peers)] += 1

    for peer, prob in zip(peers, probabilities):
        c = choices[peer]
        assert c > 0
        assert abs(c - count * prob) <= 0.2 * count