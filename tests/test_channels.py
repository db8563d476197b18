import threading

import pytest

from app.reindex.channels import Cancelled, Channel, join_all, start_stage


def test_items_then_close():
    ch = Channel(threading.Event(), maxsize=4)
    for i in range(3):
        ch.send(i)
    ch.close()
    assert list(ch) == [0, 1, 2]


def test_close_stops_every_consumer():
    ch = Channel(threading.Event())
    ch.close()
    assert list(ch) == []
    assert list(ch) == []


def test_send_after_close():
    ch = Channel(threading.Event())
    ch.close()
    with pytest.raises(RuntimeError):
        ch.send(1)


def test_cancel_unblocks_a_full_channel():
    cancel = threading.Event()
    ch = Channel(cancel, maxsize=1)
    ch.send(1)
    cancel.set()
    with pytest.raises(Cancelled):
        ch.send(2)
    assert list(ch) == []


def test_stage_runs_workers_then_on_done():
    cancel = threading.Event()
    src, out = Channel(cancel, maxsize=2), Channel(cancel, maxsize=2)

    def work():
        for n in src:
            out.send(n * 10)

    closer = start_stage("double", 3, work, out.close, lambda exc: None)
    for n in range(5):
        src.send(n)
    src.close()

    assert sorted(out) == [0, 10, 20, 30, 40]
    join_all([closer])


def test_stage_reports_errors():
    errors = []

    def work():
        raise ValueError("boom")

    done = threading.Event()
    closer = start_stage("broken", 2, work, done.set, errors.append)
    join_all([closer, None])
    assert done.is_set()
    assert len(errors) == 2 and all(isinstance(e, ValueError) for e in errors)
