"""
Pipeline plumbing
=================

A ``Channel`` is a bounded queue that a stage closes once its workers have
all returned. Every blocking call polls the run's cancellation event, so a
cancelled run unblocks producers and consumers at their next send/receive.

``start_stage`` runs N copies of a worker function and, once the last one
returns, calls ``on_done`` (normally closing the stage's own outputs).
"""

import logging
import queue
import threading
from typing import Any, Callable, Iterator, List, Optional

POLL_INTERVAL = 0.1

_CLOSED = object()

log = logging.getLogger(__name__)


class Cancelled(Exception):
    """Raised from ``Channel.send`` once the run has been cancelled."""


class Channel:
    def __init__(self, cancel: threading.Event, maxsize: int = 0, name: str = ""):
        self.name = name
        self._q: "queue.Queue[Any]" = queue.Queue(maxsize)
        self._cancel = cancel
        self._closed = False

    def send(self, item: Any) -> None:
        if self._closed:
            raise RuntimeError(f"send on closed channel {self.name}")
        self._put(item)

    def _put(self, item: Any) -> None:
        while True:
            if self._cancel.is_set():
                raise Cancelled()
            try:
                self._q.put(item, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._put(_CLOSED)
        except Cancelled:
            # consumers stop on the cancel event themselves
            pass

    def __iter__(self) -> Iterator[Any]:
        while not self._cancel.is_set():
            try:
                item = self._q.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is _CLOSED:
                # hand the marker on so every other consumer stops too
                self._q.put(_CLOSED)
                return
            yield item


def start_stage(
    name: str,
    workers: int,
    work: Callable[[], None],
    on_done: Callable[[], None],
    on_error: Callable[[BaseException], None],
) -> threading.Thread:
    """
    Start ``workers`` threads running ``work``; return the thread that waits
    for them and then calls ``on_done``.

    ``Cancelled`` ends a worker quietly. Any other exception escaping ``work``
    is handed to ``on_error``.
    """

    def run() -> None:
        try:
            work()
        except Cancelled:
            pass
        except Exception as exc:
            log.exception("%s worker failed", name)
            on_error(exc)

    threads: List[threading.Thread] = [
        threading.Thread(target=run, name=f"{name}-{i}", daemon=True) for i in range(max(workers, 1))
    ]
    for t in threads:
        t.start()

    def wait() -> None:
        for t in threads:
            t.join()
        try:
            on_done()
        except Exception as exc:
            log.exception("%s failed to finish", name)
            on_error(exc)
        log.info("finished %s", name)

    closer = threading.Thread(target=wait, name=f"{name}-closer", daemon=True)
    closer.start()
    return closer


def join_all(threads: List[Optional[threading.Thread]]) -> None:
    for t in threads:
        if t is not None:
            t.join()
