"""
Bulk indexer
============

Background batcher over ``elasticsearch.helpers.streaming_bulk``.

``add`` only enqueues and returns immediately. A single flusher thread
accumulates items and sends a batch once it reaches ``flush_items`` items or
``flush_bytes`` bytes, or when no new item has arrived for
``flush_interval`` seconds. After each flush exactly one of the item's
``on_success(item, result)`` / ``on_failure(item, result, error)`` callbacks
is called. ``close`` returns once every queued item has had its callback.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from elasticsearch import Elasticsearch, helpers

ACTIONS = ("create", "index", "update")

SuccessFn = Callable[["BulkItem", Dict[str, Any]], None]
FailureFn = Callable[["BulkItem", Dict[str, Any], Optional[BaseException]], None]

log = logging.getLogger(__name__)

_STOP = object()


@dataclass
class BulkItem:
    action: str
    index: str
    id: str
    body: Union[bytes, str, Dict[str, Any]]
    on_success: Optional[SuccessFn] = None
    on_failure: Optional[FailureFn] = None

    @property
    def size(self) -> int:
        if isinstance(self.body, (bytes, str)):
            return len(self.body)
        return 0

    def to_action(self) -> Dict[str, Any]:
        body = self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body
        return {"_op_type": self.action, "_index": self.index, "_id": self.id, "_source": body}


class BulkIndexer:
    def __init__(
        self,
        es: Elasticsearch,
        *,
        flush_items: int = 500,
        flush_bytes: int = 5 * 1024 * 1024,
        flush_interval: float = 1.0,
    ):
        self._es = es
        self._flush_items = flush_items
        self._flush_bytes = flush_bytes
        self._flush_interval = flush_interval
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self.stats = {"added": 0, "flushed": 0, "succeeded": 0, "failed": 0}
        self._thread = threading.Thread(target=self._run, name="bulk-indexer", daemon=True)
        self._thread.start()

    def add(
        self,
        action: str,
        index: str,
        doc_id: str,
        body: Union[bytes, str, Dict[str, Any]],
        on_success: Optional[SuccessFn] = None,
        on_failure: Optional[FailureFn] = None,
    ) -> None:
        if action not in ACTIONS:
            raise ValueError(f"unsupported bulk action {action!r}")
        with self._lock:
            if self._closed:
                raise RuntimeError("bulk indexer is closed")
            self.stats["added"] += 1
        self._queue.put(BulkItem(action, index, doc_id, body, on_success, on_failure))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("bulk indexer already closed")
            self._closed = True
        self._queue.put(_STOP)
        self._thread.join()
        log.info(
            "bulk indexer closed: %(added)d added, %(flushed)d flushed, "
            "%(succeeded)d succeeded, %(failed)d failed",
            self.stats,
        )

    # ------------------------------ Flusher ----------------------------------

    def _run(self) -> None:
        batch: List[BulkItem] = []
        size = 0
        while True:
            try:
                item = self._queue.get(timeout=self._flush_interval)
            except queue.Empty:
                if batch:
                    self._flush(batch)
                    batch, size = [], 0
                continue

            if item is _STOP:
                if batch:
                    self._flush(batch)
                return

            batch.append(item)
            size += item.size
            if len(batch) >= self._flush_items or size >= self._flush_bytes:
                self._flush(batch)
                batch, size = [], 0

    def _flush(self, batch: List[BulkItem]) -> None:
        self.stats["flushed"] += len(batch)
        done = 0
        try:
            results = helpers.streaming_bulk(
                self._es,
                (item.to_action() for item in batch),
                chunk_size=len(batch),
                max_chunk_bytes=max(self._flush_bytes, 1) * 2,
                raise_on_error=False,
                raise_on_exception=False,
            )
            for item, (ok, result) in zip(batch, results):
                done += 1
                if ok:
                    self._succeeded(item, result)
                else:
                    self._failed(item, result, None)
        except Exception as exc:
            log.error("bulk flush of %d items failed: %s", len(batch), exc)
            for item in batch[done:]:
                self._failed(item, {}, exc)

    def _succeeded(self, item: BulkItem, result: Dict[str, Any]) -> None:
        self.stats["succeeded"] += 1
        if item.on_success is None:
            return
        try:
            item.on_success(item, result)
        except Exception:
            log.exception("bulk on_success callback raised for %s", item.id)

    def _failed(self, item: BulkItem, result: Dict[str, Any], error: Optional[BaseException]) -> None:
        self.stats["failed"] += 1
        if item.on_failure is None:
            return
        try:
            item.on_failure(item, result, error)
        except Exception:
            log.exception("bulk on_failure callback raised for %s", item.id)
