"""
Elasticsearch client
====================

Thin wrapper over ``elasticsearch.Elasticsearch`` exposing only the calls the
API and the reindexer make. Library exceptions are translated into
``UpstreamError`` / ``DecodeError`` here so routers never see transport types.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from elasticsearch import ApiError, Elasticsearch, SerializationError, TransportError

from app.clients.bulk import BulkIndexer
from app.core.errors import DecodeError, ES, UpstreamError

NDJSON = "application/x-ndjson"
JSON = "application/json"

log = logging.getLogger(__name__)


@dataclass
class Search:
    """One multi-search entry: header object plus an already-serialised body."""

    header: Dict[str, Any]
    body: str


def frame_searches(searches: Sequence[Search]) -> str:
    return "".join(
        json.dumps(s.header, separators=(",", ":")) + "\n" + s.body + "\n" for s in searches
    )


# legacy clusters still accept a mapping type segment
def _path(index: str, doc_type: Optional[str]) -> str:
    return f"/{index}/{doc_type}" if doc_type else f"/{index}"


class ElasticClient:
    def __init__(
        self,
        es: Elasticsearch,
        *,
        status_timeout: Optional[float] = None,
        bulk_flush_items: int = 500,
        bulk_flush_bytes: int = 5 * 1024 * 1024,
    ):
        self.es = es
        self._status_timeout = status_timeout
        self._bulk_flush_items = bulk_flush_items
        self._bulk_flush_bytes = bulk_flush_bytes

    def _request(self, method: str, path: str, body: Any, content_type: str) -> Any:
        try:
            resp = self.es.perform_request(
                method,
                path,
                headers={"content-type": content_type, "accept": JSON},
                body=body,
            )
        except SerializationError as exc:
            raise DecodeError(exc) from exc
        except (ApiError, TransportError) as exc:
            log.error("elasticsearch %s %s failed: %s", method, path, exc)
            raise UpstreamError(ES, exc) from exc
        return getattr(resp, "body", resp)

    # ------------------------------ Read path --------------------------------

    def search(self, index: str, body: Union[str, Dict[str, Any]], doc_type: Optional[str] = None) -> Any:
        return self._request("POST", f"{_path(index, doc_type)}/_search", body, JSON)

    def multi_search(
        self, index: str, body: Union[str, Sequence[Search]], doc_type: Optional[str] = None
    ) -> Any:
        """
        Run a multi-search. ``body`` is either wire-format text (header/body
        lines) or a list of ``Search`` entries which are framed here.
        """
        if not isinstance(body, str):
            body = frame_searches(body)
        return self._request("POST", f"{_path(index, doc_type)}/_msearch", body, NDJSON)

    def get_status(self) -> str:
        """Plain-text ``_cat/health`` line."""
        es = self.es
        if self._status_timeout:
            es = es.options(request_timeout=self._status_timeout)
        try:
            resp = es.cat.health()
        except (ApiError, TransportError) as exc:
            raise UpstreamError(ES, exc) from exc
        return str(getattr(resp, "body", resp))

    # ------------------------------ Index admin ------------------------------

    def create_index(self, name: str, settings: Dict[str, Any]) -> None:
        try:
            self.es.indices.create(index=name, **settings)
        except (ApiError, TransportError) as exc:
            raise UpstreamError(ES, exc) from exc
        log.info("created index %s", name)

    def bulk_indexer(self) -> BulkIndexer:
        return BulkIndexer(
            self.es,
            flush_items=self._bulk_flush_items,
            flush_bytes=self._bulk_flush_bytes,
        )

    def update_aliases(self, alias: str, remove_from: Iterable[str], add_to: Iterable[str]) -> None:
        """Swap ``alias`` in a single atomic ``_aliases`` call."""
        actions: List[Dict[str, Any]] = [
            {"remove": {"index": index, "alias": alias, "must_exist": False}}
            for index in remove_from
        ]
        actions += [{"add": {"index": index, "alias": alias}} for index in add_to]
        try:
            self.es.indices.update_aliases(actions=actions)
        except (ApiError, TransportError) as exc:
            raise UpstreamError(ES, exc) from exc

    def get_alias(self) -> Dict[str, Any]:
        """``{index: {"aliases": {alias: {...}}}}`` for every index."""
        try:
            resp = self.es.indices.get_alias(index="*")
        except (ApiError, TransportError) as exc:
            raise UpstreamError(ES, exc) from exc
        return dict(getattr(resp, "body", resp))

    def delete_indices(self, names: Sequence[str]) -> None:
        try:
            self.es.indices.delete(index=list(names))
        except (ApiError, TransportError) as exc:
            raise UpstreamError(ES, exc) from exc
        log.info("deleted indices %s", ", ".join(names))
