import threading

import pytest

from taptempo.errors import InvalidInputError
from taptempo.session import NS_PER_MS, SessionState, TapSession

BASE_NS = 5_000 * NS_PER_MS


def _at(ms: int) -> int:
    return BASE_NS + ms * NS_PER_MS


def test_new_session_is_empty():
    session = TapSession()
    assert session.state is SessionState.EMPTY
    assert session.offsets == []
    assert session.origin is None
    assert not session.just_reset
    assert len(session) == 0


def test_session_transitions():
    session = TapSession()

    assert session.record(_at(0)) == 0
    assert session.offsets == [0]
    assert session.state is SessionState.ACTIVE

    assert session.record(_at(480)) == 480
    assert session.offsets == [0, 480]

    session.clear_origin()
    assert session.just_reset
    assert session.state is SessionState.RESET
    assert session.offsets == [0, 480]

    session.record(_at(9_000))
    assert session.offsets == [0]
    assert session.origin == _at(9_000)
    assert not session.just_reset
    assert session.state is SessionState.ACTIVE


def test_clear_origin_on_empty_session_stays_empty():
    session = TapSession()
    session.clear_origin()
    assert session.state is SessionState.EMPTY
    assert not session.just_reset


def test_offsets_truncate_to_whole_milliseconds():
    session = TapSession()
    session.record(BASE_NS)
    session.record(BASE_NS + 2 * NS_PER_MS - 1)
    assert session.offsets == [0, 1]


def test_equal_timestamps_are_kept():
    session = TapSession()
    session.record(_at(0))
    session.record(_at(0))
    assert session.offsets == [0, 0]


def test_tap_before_origin_is_rejected():
    session = TapSession()
    session.record(_at(100))
    with pytest.raises(InvalidInputError):
        session.record(_at(50))
    assert session.offsets == [0]


def test_tap_before_previous_tap_is_rejected():
    session = TapSession()
    session.record(_at(0))
    session.record(_at(500))
    with pytest.raises(InvalidInputError):
        session.record(_at(400))
    assert session.offsets == [0, 500]


def test_offsets_returns_a_copy():
    session = TapSession()
    session.record(_at(0))
    session.offsets.append(99)
    assert session.offsets == [0]


def test_snapshot_reports_reset_flag_and_offsets():
    session = TapSession()
    session.record(_at(0))
    session.record(_at(600))
    assert session.snapshot() == (False, [0, 600])
    session.clear_origin()
    assert session.snapshot() == (True, [0, 600])


def test_record_defaults_to_monotonic_clock():
    session = TapSession()
    session.record()
    session.record()
    offsets = session.offsets
    assert offsets[0] == 0
    assert offsets[1] >= 0


def test_concurrent_taps_stay_ordered():
    session = TapSession()
    session.record()

    def worker():
        for _ in range(200):
            session.record()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    offsets = session.offsets
    assert len(offsets) == 801
    assert offsets == sorted(offsets)


@pytest.mark.parametrize("read", [len, lambda s: s.origin, lambda s: s.just_reset, lambda s: s.state])
def test_readers_wait_for_the_session_lock(read):
    session = TapSession()
    session.record(_at(0))
    results = []

    session._lock.acquire()
    try:
        reader = threading.Thread(target=lambda: results.append(read(session)))
        reader.start()
        reader.join(timeout=0.05)
        assert reader.is_alive()
        assert results == []
    finally:
        session._lock.release()

    reader.join(timeout=1)
    assert not reader.is_alive()
    assert len(results) == 1
