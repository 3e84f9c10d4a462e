from swapsession.sessioninterestmanager import SessionInterestManager
from swapsession.testutil import generate_blocks_of_size, generate_cids


def test_empty():
    sim = SessionInterestManager()
    ses = 1
    cids = generate_cids(2)
    res = sim.filter_session_interested(ses, cids)
    assert len(res) == 1
    assert res[0] == []
    assert sim.interested_sessions(cids, [], []) == []


def test_basic():
    sim = SessionInterestManager()
    ses1, ses2 = 1, 2
    cids1 = generate_cids(2)
    cids2 = generate_cids(1) + [cids1[1]]
    sim.record_session_interest(ses1, cids1)

    res = sim.filter_session_interested(ses1, cids1)
    assert len(res) == 1 and len(res[0]) == 2
    assert len(sim.interested_sessions(cids1, [], [])) == 1

    sim.record_session_interest(ses2, cids2)
    res = sim.filter_session_interested(ses2, cids1[:1])
    assert len(res) == 1 and len(res[0]) == 0
    res = sim.filter_session_interested(ses2, cids2)
    assert len(res) == 1 and len(res[0]) == 2

    assert len(sim.interested_sessions(cids1[:1], [], [])) == 1
    assert sorted(sim.interested_sessions(cids1[1:], [], [])) == [1, 2]


def test_interested_sessions():
    sim = SessionInterestManager()
    ses = 1
    cids = generate_cids(3)
    sim.record_session_interest(ses, cids[0:2])

    assert sim.interested_sessions(cids, [], []) == [ses]
    assert sim.interested_sessions(cids[0:1], [], []) == [ses]
    assert sim.interested_sessions([], cids, []) == [ses]
    assert sim.interested_sessions([], cids[0:1], []) == [ses]
    assert sim.interested_sessions([], [], cids) == [ses]
    assert sim.interested_sessions([], [], cids[0:1]) == [ses]
    assert sim.interested_sessions(cids[2:], [], []) == []


def test_remove_session():
    sim = SessionInterestManager()
    ses1, ses2 = 1, 2
    cids1 = generate_cids(2)
    cids2 = generate_cids(1) + [cids1[1]]
    sim.record_session_interest(ses1, cids1)
    sim.record_session_interest(ses2, cids2)
    deleted = sim.remove_session(ses1)
    assert deleted == [cids1[0]]

    res = sim.filter_session_interested(ses1, cids1)
    assert len(res) == 1 and len(res[0]) == 0

    res = sim.filter_session_interested(ses2, cids1, cids2)
    assert len(res) == 2
    assert len(res[0]) == 1
    assert len(res[1]) == 2


def test_remove_session_interested():
    sim = SessionInterestManager()
    ses1, ses2 = 1, 2
    cids1 = generate_cids(2)
    cids2 = generate_cids(1) + [cids1[1]]
    sim.record_session_interest(ses1, cids1)
    sim.record_session_interest(ses2, cids2)

    res = sim.remove_session_interested(ses1, [cids1[0]])
    assert len(res) == 1

    interested = sim.filter_session_interested(ses1, cids1)
    assert len(interested) == 1 and len(interested[0]) == 1

    res = sim.remove_session_interested(ses1, cids1)
    assert len(res) == 0

    interested = sim.filter_session_interested(ses1, cids1)
    assert len(interested) == 1 and len(interested[0]) == 0

    interested = sim.filter_session_interested(ses2, cids1)
    assert len(interested) == 1 and len(interested[0]) == 1


def test_split_wanted_unwanted():
    blks = generate_blocks_of_size(3, 1024)
    sim = SessionInterestManager()
    ses1, ses2 = 1, 2
    cids = [b.cid for b in blks]

    wanted, unwanted = sim.split_wanted_unwanted(blks)
    assert len(wanted) == 0
    assert len(unwanted) == 3

    sim.record_session_interest(ses1, cids[0:2])
    wanted, unwanted = sim.split_wanted_unwanted(blks)
    assert len(wanted) == 2
    assert len(unwanted) == 1

    sim.record_session_interest(ses2, cids[1:])
    sim.remove_session_wants(ses1, cids[:1])
    wanted, unwanted = sim.split_wanted_unwanted(blks)
    assert len(wanted) == 2
    assert len(unwanted) == 1

    sim.remove_session_wants(ses1, cids[1:2])
    wanted, unwanted = sim.split_wanted_unwanted(blks)
    assert len(wanted) == 2
    assert len(unwanted) == 1

    sim.remove_session_wants(ses2, cids[1:2])
    wanted, unwanted = sim.split_wanted_unwanted(blks)
    assert len(wanted) == 1
    assert len(unwanted) == 2
    assert wanted[0].cid == cids[2]


def test_remove_session_wants_keeps_interest():
    sim = SessionInterestManager()
    cids = generate_cids(1)
    sim.record_session_interest(1, cids)
    sim.remove_session_wants(1, cids)
    assert sim.filter_session_interested(1, cids) == [cids]
    assert sim.interested_sessions(cids, [], []) == [1]


def test_remove_session_wants_unknown_key_is_ignored():
    sim = SessionInterestManager()
    cids = generate_cids(2)
    sim.record_session_interest(1, cids[:1])
    sim.remove_session_wants(1, cids[1:])
    assert sim.filter_session_interested(1, cids) == [cids[:1]]